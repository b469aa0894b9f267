"""Focused process tree assembly.

A tree runs from the topmost reachable ancestor of a target down to the
target, then fans out to every descendant of the target. Records only carry
their own parent id, so ancestry is walked upward through parent ids and
descendants are found through the snapshot's children index.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from psjungle.errors import ProcessNotFoundError
from psjungle.models import ProcessNode, ProcessRecord, ProcessTree, Snapshot

logger = logging.getLogger(__name__)

INIT_PID = 1

Lookup = Callable[[int], ProcessRecord | None]


@dataclass(slots=True)
class ParentChain:
    """Ancestor pids of a target, ordered root first."""

    pids: list[int]
    broken: bool = False  # a repeated pid was met while ascending


def _resolve(pid: int, snapshot: Snapshot, lookup: Lookup | None) -> ProcessRecord | None:
    record = snapshot.get(pid)
    if record is None and lookup is not None:
        record = lookup(pid)
    return record


def parent_chain(target_pid: int, snapshot: Snapshot, lookup: Lookup | None = None) -> ParentChain:
    """
    Follow parent ids upward from ``target_pid``.

    Stops at pid 1, at a parent id of 0 or below, at a self-parented record or
    at a record that cannot be resolved. A pid seen twice marks the chain as
    broken.
    """
    chain: list[int] = []
    seen = {target_pid}
    current = target_pid
    broken = False

    while current > INIT_PID:
        record = _resolve(current, snapshot, lookup)
        if record is None or record.parent_id is None:
            break

        ppid = record.parent_id
        if ppid <= INIT_PID or ppid == current:
            if ppid == INIT_PID:
                chain.append(ppid)
            break
        if ppid in seen:
            logger.debug("parent cycle at pid %d while ascending from %d", ppid, target_pid)
            broken = True
            break

        chain.append(ppid)
        seen.add(ppid)
        current = ppid

    chain.reverse()
    return ParentChain(chain, broken)


def _attach_descendants(node: ProcessNode, snapshot: Snapshot, visited: set[int]) -> None:
    """Attach every descendant of ``node`` found in the snapshot, depth first."""
    visited.add(node.pid)
    stack = [node]
    while stack:
        parent = stack.pop()
        for child_pid in snapshot.children_of(parent.pid):
            if child_pid in visited:
                logger.debug("pid %d already in tree, not attaching under %d", child_pid, parent.pid)
                continue
            visited.add(child_pid)
            child = ProcessNode(snapshot.get(child_pid), parent_pid=parent.pid, depth=parent.depth + 1)
            parent.children.append(child)
            stack.append(child)


def normalize_depths(root: ProcessNode) -> None:
    """Assign depth 0 to the root and parent depth + 1 to every child."""
    root.depth = 0
    stack = [root]
    while stack:
        node = stack.pop()
        for child in node.children:
            child.depth = node.depth + 1
            stack.append(child)


def minimal_tree(target: ProcessRecord, snapshot: Snapshot) -> ProcessTree:
    """Tree rooted at the target itself, with its descendants."""
    node = ProcessNode(target, is_target=True)
    _attach_descendants(node, snapshot, set())
    normalize_depths(node)
    return ProcessTree(node, node)


def build_tree(target_pid: int, snapshot: Snapshot, lookup: Lookup | None = None) -> ProcessTree:
    """
    Build the focused tree for ``target_pid``.

    ``lookup`` is consulted for pids missing from the snapshot (processes
    started after the scan). Unreadable ancestors degrade to a minimal tree
    rather than failing; a missing target raises ProcessNotFoundError.
    """
    target = _resolve(target_pid, snapshot, lookup)
    if target is None:
        raise ProcessNotFoundError(target_pid)

    chain = parent_chain(target_pid, snapshot, lookup)
    if chain.broken or not chain.pids:
        return minimal_tree(target, snapshot)

    ancestors: list[ProcessRecord] = []
    for pid in chain.pids:
        if pid == target_pid:
            continue
        record = _resolve(pid, snapshot, lookup)
        if record is None:
            logger.debug("ancestor %d of %d unreadable, using minimal tree", pid, target_pid)
            return minimal_tree(target, snapshot)
        ancestors.append(record)

    if not ancestors:
        return minimal_tree(target, snapshot)

    root = ProcessNode(ancestors[0])
    current = root
    for record in ancestors[1:]:
        node = ProcessNode(record, parent_pid=current.pid)
        current.children.append(node)
        current = node

    target_node = ProcessNode(target, parent_pid=current.pid, is_target=True)
    current.children.append(target_node)

    visited = {record.pid for record in ancestors}
    _attach_descendants(target_node, snapshot, visited)

    normalize_depths(root)
    return ProcessTree(root, target_node)


def membership(target_pid: int, snapshot: Snapshot, lookup: Lookup | None = None) -> set[int]:
    """
    Pids that make up a target's tree for de-duplication purposes.

    That is the target, its immediate parent when known, and all of its
    descendants. Cheaper than a full build since only reachability matters.
    """
    members = {target_pid}
    target = _resolve(target_pid, snapshot, lookup)
    if target is not None and target.parent_id is not None:
        members.add(target.parent_id)

    stack = [target_pid]
    seen = {target_pid}
    while stack:
        pid = stack.pop()
        for child_pid in snapshot.children_of(pid):
            if child_pid in seen:
                continue
            seen.add(child_pid)
            members.add(child_pid)
            stack.append(child_pid)
    return members
