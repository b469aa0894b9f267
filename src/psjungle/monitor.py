"""Process table, connection and signal access for psjungle."""

import logging
import time
from typing import Protocol

import psutil

from psjungle.errors import SnapshotError, SnapshotTimeoutError
from psjungle.models import Connection, ProcessRecord, Snapshot

logger = logging.getLogger(__name__)

# Attributes to fetch per process in one pass
PROCESS_ATTRS = [
    "pid",
    "ppid",
    "name",
    "cmdline",
    "cpu_times",
    "create_time",
    "memory_info",
]


class ProcessProvider(Protocol):
    """What the tree, matcher and signal code need from the OS."""

    def snapshot(self) -> Snapshot: ...

    def get_process(self, pid: int) -> ProcessRecord | None: ...

    def connections(self) -> list[Connection]: ...

    def send_signal(self, pid: int, signum: int) -> None: ...


def _lifetime_cpu_percent(cpu_times, create_time: float | None, now: float) -> float:
    """Average CPU usage since the process started."""
    if cpu_times is None or not create_time:
        return 0.0
    elapsed = now - create_time
    if elapsed <= 0:
        return 0.0
    return (cpu_times.user + cpu_times.system) / elapsed * 100.0


def record_from_info(info: dict, now: float | None = None) -> ProcessRecord:
    """
    Build a ProcessRecord from a psutil ``info`` dict.

    Each attribute may be None (access denied or unsupported) and falls back
    to a safe default instead of failing the whole record.
    """
    now = time.time() if now is None else now

    cmdline = info.get("cmdline") or []
    mem_info = info.get("memory_info")

    return ProcessRecord(
        pid=info["pid"],
        parent_id=info.get("ppid"),
        name=info.get("name") or "",
        command_line=" ".join(cmdline),
        cpu_percent=_lifetime_cpu_percent(info.get("cpu_times"), info.get("create_time"), now),
        memory_rss=mem_info.rss if mem_info else 0,
    )


def _connection_from_sconn(conn, pid: int | None = None) -> Connection:
    laddr = conn.laddr or None
    raddr = conn.raddr or None
    return Connection(
        pid=getattr(conn, "pid", pid) or pid,
        local_address=laddr.ip if laddr else "",
        local_port=laddr.port if laddr else None,
        remote_address=raddr.ip if raddr else "",
        remote_port=raddr.port if raddr else None,
        status=conn.status,
    )


class ProcessMonitor:
    """
    psutil-backed process provider.

    Every scan is bounded by ``deadline`` seconds so a single unresponsive
    /proc entry cannot stall a refresh cycle.
    """

    def __init__(self, deadline: float = 5.0) -> None:
        """
        Initialize the ProcessMonitor.

        Args:
            deadline: Upper bound for one full scan (in seconds). Default 5.0s.
        """
        self._deadline = deadline

    @property
    def deadline(self) -> float:
        """Get the scan deadline."""
        return self._deadline

    def _check_deadline(self, started: float) -> None:
        if time.monotonic() - started > self._deadline:
            raise SnapshotTimeoutError(self._deadline)

    def snapshot(self) -> Snapshot:
        """
        Collect records for all running processes.

        Processes that die mid-scan, deny access or are zombies are skipped.
        """
        started = time.monotonic()
        now = time.time()
        records: list[ProcessRecord] = []

        try:
            for proc in psutil.process_iter(attrs=PROCESS_ATTRS):
                self._check_deadline(started)
                try:
                    records.append(record_from_info(proc.info, now))
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
        except psutil.Error as exc:
            raise SnapshotError(f"failed to get all processes: {exc}") from exc

        return Snapshot(records)

    def get_process(self, pid: int) -> ProcessRecord | None:
        """Look a single process up directly, bypassing any snapshot."""
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                info = proc.as_dict(attrs=PROCESS_ATTRS)
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, ValueError):
            return None
        return record_from_info(info)

    def connections(self) -> list[Connection]:
        """
        List all inet connections with their owning pid.

        Falls back to per-process queries whenever the system-wide call fails
        (macOS without root, platforms without support, missing /proc/net).
        Both the bulk call and the fallback scan are bounded by the deadline.
        """
        started = time.monotonic()
        try:
            conns = psutil.net_connections(kind="inet")
        except (psutil.Error, OSError, NotImplementedError) as exc:
            logger.debug("system-wide connection listing failed (%r), scanning per process", exc)
        else:
            self._check_deadline(started)
            return [_connection_from_sconn(c) for c in conns]

        found: list[Connection] = []
        last_error: Exception | None = None

        for proc in psutil.process_iter():
            self._check_deadline(started)
            try:
                conns = proc.net_connections(kind="inet")
            except (psutil.Error, OSError, NotImplementedError) as exc:
                last_error = exc
                continue
            found.extend(_connection_from_sconn(c, pid=proc.pid) for c in conns)

        if not found and last_error is not None:
            raise SnapshotError(f"failed to list connections: {last_error!r}") from last_error

        return found

    def send_signal(self, pid: int, signum: int) -> None:
        """Send ``signum`` to ``pid``; raises psutil.Error on failure."""
        psutil.Process(pid).send_signal(signum)
