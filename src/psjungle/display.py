"""Multi-target display with overlap de-duplication."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from rich.text import Text

from psjungle.errors import PsjungleError
from psjungle.models import Snapshot
from psjungle.render import render_tree
from psjungle.tree import Lookup, build_tree, membership

logger = logging.getLogger(__name__)

ERROR_STYLE = "red"


@dataclass(slots=True)
class TreeReport:
    """Rendered output of one display pass plus the targets it covered."""

    lines: list[Text] = field(default_factory=list)
    processed: list[int] = field(default_factory=list)

    @property
    def plain(self) -> str:
        return "\n".join(line.plain for line in self.lines)


def display_all(
    targets: Sequence[int],
    snapshot: Snapshot,
    lookup: Lookup | None = None,
    flat: bool = False,
) -> TreeReport:
    """
    Render one tree per target, skipping targets already covered.

    A target whose membership set overlaps any tree printed earlier in this
    pass is skipped and left out of ``processed``, so it is never signalled
    on its own.
    """
    report = TreeReport()
    shown: set[int] = set()
    first_tree = True

    for pid in targets:
        if pid not in snapshot and (lookup is None or lookup(pid) is None):
            report.lines.append(Text(f"Process {pid} not found", style=ERROR_STYLE))
            continue

        members = membership(pid, snapshot, lookup)
        if not members.isdisjoint(shown):
            logger.debug("pid %d already covered by an earlier tree", pid)
            continue

        if not first_tree:
            report.lines.append(Text())
        if len(targets) > 1:
            report.lines.append(Text(f"Process tree for PID {pid}:"))

        try:
            tree = build_tree(pid, snapshot, lookup)
        except PsjungleError as exc:
            report.lines.append(Text(f"Error for PID {pid}: {exc}", style=ERROR_STYLE))
        else:
            report.lines.extend(render_tree(tree, flat))

        report.processed.append(pid)
        shown |= members
        first_tree = False

    return report
