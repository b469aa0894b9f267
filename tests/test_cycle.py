"""Tests for a full refresh cycle against a fake provider."""

import signal

import pytest

from psjungle.config import Settings
from psjungle.cycle import match_options, run_cycle
from psjungle.errors import InvalidSpecifierError, NoProcessesFoundError, SnapshotTimeoutError


def test_cycle_by_pid(provider):
    """Test a PID specifier renders its tree."""
    result = run_cycle(["300"], provider, Settings())

    assert result.processed == [300]
    assert result.deliveries == []
    assert [line.plain for line in result.output()][-2:] == [
        "            ├── 400 0.0 0KB worker a",
        "            └── 401 0.0 0KB worker b",
    ]


def test_cycle_by_port(provider):
    """Test a :port specifier resolves through connections."""
    result = run_cycle([":8080"], provider, Settings())
    assert result.processed == [300]


def test_cycle_by_port_with_host(provider):
    """Test the host filter excludes a wildcard listener."""
    with pytest.raises(NoProcessesFoundError, match="No processes found"):
        run_cycle([":8080"], provider, Settings(host="127.0.0.1"))


def test_cycle_by_pattern_dedups(provider):
    """Test a pattern matching parent and children shows one tree."""
    result = run_cycle(["worker|app"], provider, Settings())
    assert result.processed == [300]


def test_cycle_strict(provider):
    """Test strict mode reaches the matcher."""
    with pytest.raises(NoProcessesFoundError):
        run_cycle(["worker|app"], provider, Settings(strict=True))


def test_cycle_sends_signal_to_processed_only(provider):
    """Test absorbed targets are never signalled."""
    result = run_cycle(["300", "400"], provider, Settings(signal=signal.SIGHUP))

    assert provider.signals == [(300, signal.SIGHUP)]
    assert [line.plain for line in result.output()][-1] == "Sent signal 1 to PID 300"


def test_cycle_signal_failure_is_warning(provider):
    """Test a failed delivery becomes a warning line."""
    result = run_cycle(["401"], provider, Settings(signal=signal.SIGTERM))

    assert result.deliveries[0].pid == 401
    assert not result.deliveries[0].ok
    assert result.output()[-1].plain.startswith("Warning: Could not send signal to PID 401")


def test_cycle_input_error(provider):
    """Test malformed multi-target input is raised before any output."""
    with pytest.raises(InvalidSpecifierError):
        run_cycle(["300", "nginx"], provider, Settings())


def test_cycle_snapshot_failure(provider):
    """Test snapshot errors propagate to the caller."""
    provider.snapshot_error = SnapshotTimeoutError(5.0)
    with pytest.raises(SnapshotTimeoutError, match="deadline"):
        run_cycle(["300"], provider, Settings())


def test_each_cycle_takes_fresh_snapshot(provider):
    """Test no snapshot is reused between cycles."""
    run_cycle(["300"], provider, Settings())
    run_cycle(["300"], provider, Settings())
    assert provider.snapshots_taken == 2


def test_match_options_from_settings():
    """Test settings map onto matcher options."""
    options = match_options(Settings(strict=True, host="localhost", ignore_case=True))
    assert options.strict
    assert options.host == "localhost"
    assert options.ignore_case
