"""Data models for psjungle."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a process state."""

    pid: int
    parent_id: int | None  # None when the parent id could not be read
    name: str
    command_line: str
    cpu_percent: float  # lifetime average, 0.0 - 100.0 * core_count
    memory_rss: int  # Bytes

    @property
    def display_command(self) -> str:
        """Command line, or the process name when it is empty."""
        return self.command_line or self.name


@dataclass(slots=True, frozen=True)
class Connection:
    """One inet socket owned by a process."""

    pid: int | None
    local_address: str
    local_port: int | None
    remote_address: str
    remote_port: int | None
    status: str  # 'LISTEN', 'ESTABLISHED', 'NONE', etc.


class Snapshot:
    """
    Point-in-time mapping of pid to ProcessRecord.

    A parent-id to children index is built once on construction so that
    both tree ascent and descent avoid rescanning the whole table.
    """

    __slots__ = ("_records", "_children")

    def __init__(self, records: Iterable[ProcessRecord]) -> None:
        self._records: dict[int, ProcessRecord] = {}
        self._children: dict[int, list[int]] = {}

        for record in records:
            self._records[record.pid] = record
        for record in self._records.values():
            if record.parent_id is None or record.parent_id == record.pid:
                continue
            self._children.setdefault(record.parent_id, []).append(record.pid)

    def get(self, pid: int) -> ProcessRecord | None:
        return self._records.get(pid)

    def children_of(self, pid: int) -> list[int]:
        """Direct child pids of ``pid``, in snapshot order."""
        return list(self._children.get(pid, ()))

    def __contains__(self, pid: object) -> bool:
        return pid in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ProcessRecord]:
        return iter(self._records.values())


@dataclass(slots=True, eq=False)
class ProcessNode:
    """Tree node wrapping one ProcessRecord."""

    record: ProcessRecord
    children: list["ProcessNode"] = field(default_factory=list)
    parent_pid: int | None = None  # back-reference by id, None at the root
    depth: int = 0
    is_target: bool = False

    @property
    def pid(self) -> int:
        return self.record.pid


class ProcessTree:
    """
    Rooted process tree built for one target.

    Ownership flows parent to children; a node only knows its parent by pid,
    resolved through the tree's own index.
    """

    __slots__ = ("root", "target", "_nodes")

    def __init__(self, root: ProcessNode, target: ProcessNode) -> None:
        self.root = root
        self.target = target
        self._nodes: dict[int, ProcessNode] = {node.pid: node for node in self.walk()}

    def walk(self) -> Iterator[ProcessNode]:
        """Yield nodes in pre-order, children in attachment order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def pids(self) -> list[int]:
        """Depth-first list of every pid in the tree."""
        return [node.pid for node in self.walk()]

    def find(self, pid: int) -> ProcessNode | None:
        return self._nodes.get(pid)

    def parent_of(self, node: ProcessNode) -> ProcessNode | None:
        if node.parent_pid is None:
            return None
        return self._nodes.get(node.parent_pid)

    def ancestors(self, node: ProcessNode) -> list[ProcessNode]:
        """Ancestors of ``node`` ordered from the root down to its parent."""
        chain: list[ProcessNode] = []
        current = self.parent_of(node)
        while current is not None:
            chain.append(current)
            current = self.parent_of(current)
        chain.reverse()
        return chain

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, pid: object) -> bool:
        return pid in self._nodes
