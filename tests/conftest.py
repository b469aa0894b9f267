"""Shared fixtures: synthetic process tables and a fake provider."""

import psutil
import pytest

from psjungle.models import Connection, ProcessRecord, Snapshot


def make_record(
    pid: int,
    parent_id: int | None,
    command_line: str = "",
    name: str = "",
    cpu_percent: float = 0.0,
    memory_rss: int = 0,
) -> ProcessRecord:
    return ProcessRecord(
        pid=pid,
        parent_id=parent_id,
        name=name or f"proc{pid}",
        command_line=command_line,
        cpu_percent=cpu_percent,
        memory_rss=memory_rss,
    )


class FakeProvider:
    """In-memory ProcessProvider for tests."""

    def __init__(self, records=(), connections=(), extra=(), signal_errors=None):
        self.records = list(records)
        self.conns = list(connections)
        # Records visible to get_process but missing from snapshots
        self.extra = {record.pid: record for record in extra}
        self.signal_errors = signal_errors or {}
        self.signals: list[tuple[int, int]] = []
        self.snapshot_error: Exception | None = None
        self.snapshots_taken = 0

    def snapshot(self) -> Snapshot:
        self.snapshots_taken += 1
        if self.snapshot_error is not None:
            raise self.snapshot_error
        return Snapshot(self.records)

    def get_process(self, pid):
        for record in self.records:
            if record.pid == pid:
                return record
        return self.extra.get(pid)

    def connections(self):
        return list(self.conns)

    def send_signal(self, pid, signum):
        if pid in self.signal_errors:
            raise self.signal_errors[pid]
        self.signals.append((pid, signum))


@pytest.fixture
def family_records():
    """
    1 init
    ├── 100 sshd
    │   └── 200 bash
    │       ├── 300 python app.py
    │       │   ├── 400 worker a
    │       │   └── 401 worker b
    │       └── 310 vim
    └── 500 cron
    """
    return [
        make_record(1, 0, "/sbin/init", name="init"),
        make_record(100, 1, "/usr/sbin/sshd -D", name="sshd"),
        make_record(200, 100, "-bash", name="bash"),
        make_record(300, 200, "python app.py", name="python", cpu_percent=12.5, memory_rss=8192 * 1024),
        make_record(400, 300, "worker a", name="python"),
        make_record(401, 300, "worker b", name="python"),
        make_record(310, 200, "vim notes.txt", name="vim"),
        make_record(500, 1, "/usr/sbin/cron", name="cron"),
    ]


@pytest.fixture
def family(family_records):
    return Snapshot(family_records)


@pytest.fixture
def provider(family_records):
    return FakeProvider(
        family_records,
        connections=[
            Connection(300, "0.0.0.0", 8080, "", None, "LISTEN"),
            Connection(500, "10.0.0.2", 51000, "10.0.0.9", 443, "ESTABLISHED"),
        ],
        signal_errors={401: psutil.NoSuchProcess(401)},
    )
