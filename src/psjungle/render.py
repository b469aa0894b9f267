"""Text rendering of process trees."""

from rich.text import Text

from psjungle.models import ProcessNode, ProcessRecord, ProcessTree

BRANCH = "├── "
CORNER = "└── "
PIPE = "│   "
BLANK = "    "

TARGET_STYLE = "green"


def format_memory(kilobytes: int) -> str:
    """
    Format a memory size given in KB as a short human-readable string.

    Units are decimal (1000 based). Values under 10 keep two decimals,
    larger ones keep one.
    """
    if kilobytes < 1000:
        return f"{kilobytes}KB"
    if kilobytes < 1_000_000:
        value, unit = kilobytes / 1000, "MB"
    else:
        value, unit = kilobytes / 1_000_000, "GB"
    return f"{value:.2f}{unit}" if value < 10 else f"{value:.1f}{unit}"


def _has_later_sibling(tree: ProcessTree, node: ProcessNode) -> bool:
    parent = tree.parent_of(node)
    if parent is None:
        return False
    return parent.children[-1] is not node


def tree_prefix(tree: ProcessTree, node: ProcessNode, flat: bool = False) -> str:
    """
    Glyph prefix for ``node``.

    Each ancestor below the root contributes a pipe when it still has
    siblings to print, otherwise blank padding. The node itself gets a branch
    or, when it is the last child, a corner.
    """
    if flat or node.parent_pid is None:
        return ""

    path = tree.ancestors(node)[1:] + [node]
    parts = [PIPE if _has_later_sibling(tree, ancestor) else BLANK for ancestor in path[:-1]]
    parts.append(BRANCH if _has_later_sibling(tree, node) else CORNER)
    return "".join(parts)


def format_line(record: ProcessRecord) -> str:
    """``PID CPU% MEM CMD`` for one process."""
    memory = format_memory(record.memory_rss // 1024)
    return f"{record.pid} {record.cpu_percent:.1f} {memory} {record.display_command}"


def render_tree(tree: ProcessTree, flat: bool = False) -> list[Text]:
    """One line per node in pre-order, with the target highlighted."""
    lines: list[Text] = []
    for node in tree.walk():
        line = Text(tree_prefix(tree, node, flat))
        line.append(format_line(node.record), style=TARGET_STYLE if node.is_target else None)
        lines.append(line)
    return lines
