"""Resolve user specifiers (PID, :port, name or regex) into target pids."""

import logging
import os
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from psjungle.errors import InvalidSpecifierError
from psjungle.models import Connection, ProcessRecord

logger = logging.getLogger(__name__)

PID_RE = re.compile(r"[0-9]+")
MAX_PORT = 65535

LISTEN = "LISTEN"
ANY_HOST = "*"
LOOPBACK_ALIASES = frozenset({"127.0.0.1", "localhost", "::1"})


@dataclass(slots=True, frozen=True)
class MatchOptions:
    """How a name/pattern or port specifier is interpreted."""

    strict: bool = False
    host: str | None = None  # only applies to :port specifiers
    ignore_case: bool = False  # regex mode only, strict mode always folds case
    exclude_pids: frozenset[int] = field(default_factory=lambda: frozenset({os.getpid()}))


def is_pid(value: str) -> bool:
    return PID_RE.fullmatch(value) is not None


def parse_port(specifier: str) -> int:
    """Parse a ``:N`` specifier into a port number."""
    port = specifier[1:]
    if not is_pid(port) or int(port) > MAX_PORT:
        raise InvalidSpecifierError(f"invalid port '{port}'")
    return int(port)


def host_matches(local_address: str, host: str) -> bool:
    """Whether a listener's local address satisfies a ``--host`` filter."""
    if local_address == host or local_address == ANY_HOST:
        return True
    return local_address in LOOPBACK_ALIASES and host in LOOPBACK_ALIASES


def by_port(port: int, connections: Iterable[Connection], host: str | None = None) -> list[int]:
    """
    Pids owning a connection on ``port``.

    Without a host filter any connection whose local or remote port matches
    qualifies. With one, only listening sockets bound to that host count.
    """
    matches: set[int] = set()
    for conn in connections:
        if not conn.pid:
            continue
        if conn.local_port != port and conn.remote_port != port:
            continue
        if host:
            if conn.status != LISTEN or not host_matches(conn.local_address, host):
                continue
        matches.add(conn.pid)
    return sorted(matches)


def _compile_matcher(pattern: str, strict: bool, ignore_case: bool) -> Callable[[str], bool]:
    if strict:
        needle = pattern.lower()
        return lambda text: needle in text.lower()

    try:
        regex = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
    except re.error as exc:
        raise InvalidSpecifierError(f"invalid pattern '{pattern}': {exc}") from exc
    return lambda text: regex.search(text) is not None


def by_pattern(
    pattern: str,
    records: Iterable[ProcessRecord],
    options: MatchOptions = MatchOptions(),
) -> list[int]:
    """
    Pids whose command line or name matches ``pattern``.

    The command line is tried first; the name is used when the command line
    is empty or does not match (kernel threads, renamed workers).
    """
    matches = _compile_matcher(pattern, options.strict, options.ignore_case)
    found: set[int] = set()

    for record in records:
        if record.pid in options.exclude_pids:
            continue
        if record.command_line and matches(record.command_line):
            found.add(record.pid)
        elif record.name and matches(record.name):
            found.add(record.pid)

    return sorted(found)


def resolve(
    specifiers: Sequence[str],
    records: Iterable[ProcessRecord],
    connections: Callable[[], Iterable[Connection]],
    options: MatchOptions = MatchOptions(),
) -> list[int]:
    """
    Resolve specifiers into a sorted, de-duplicated list of pids.

    ``connections`` is only called for ``:port`` specifiers. When more than
    one specifier is given, every one of them must be a literal PID.
    """
    if not specifiers:
        raise InvalidSpecifierError("no input provided")

    if len(specifiers) > 1:
        literal: set[int] = set()
        for value in specifiers:
            if not is_pid(value):
                raise InvalidSpecifierError(f"invalid PID '{value}'")
            literal.add(int(value))
        return sorted(literal)

    specifier = specifiers[0]
    if is_pid(specifier):
        return [int(specifier)]
    if specifier.startswith(":"):
        port = parse_port(specifier)
        pids = by_port(port, connections(), options.host)
        logger.debug("port %d matched pids %s", port, pids)
        return pids

    pids = by_pattern(specifier, records, options)
    logger.debug("pattern %r matched %d processes", specifier, len(pids))
    return pids
