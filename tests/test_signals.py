"""Tests for signal parsing and delivery."""

import signal

import psutil
import pytest

from psjungle.errors import InvalidSignalError
from psjungle.signals import Delivery, SignalName, deliver, format_delivery, is_signal_value, parse_signal

from conftest import FakeProvider


class TestParseSignal:
    """Tests for parse_signal."""

    @pytest.mark.parametrize("value", ["", None])
    def test_default_is_term(self, value):
        """Test an empty value means SIGTERM."""
        assert parse_signal(value) == signal.SIGTERM

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("term", signal.SIGTERM),
            ("HUP", signal.SIGHUP),
            ("int", signal.SIGINT),
            ("kill", signal.SIGKILL),
            ("stop", signal.SIGSTOP),
            ("cont", signal.SIGCONT),
            ("usr1", signal.SIGUSR1),
            ("Usr2", signal.SIGUSR2),
            ("SIGKILL", signal.SIGKILL),
            ("sighup", signal.SIGHUP),
        ],
    )
    def test_names(self, value, expected):
        """Test names are case-insensitive with an optional SIG prefix."""
        assert parse_signal(value) == expected

    @pytest.mark.parametrize("value", ["0", "9", "15", "64"])
    def test_numbers(self, value):
        """Test raw numbers within range pass through."""
        assert parse_signal(value) == int(value)

    @pytest.mark.parametrize("value", ["65", "-1", "bogus", "sigbogus", "9x"])
    def test_invalid(self, value):
        """Test unknown names and out-of-range numbers are rejected."""
        with pytest.raises(InvalidSignalError, match="invalid signal"):
            parse_signal(value)

    def test_enum_is_closed(self):
        """Test exactly the supported names are members."""
        assert [member.name for member in SignalName] == [
            "TERM", "HUP", "INT", "KILL", "STOP", "CONT", "USR1", "USR2",
        ]

    def test_is_signal_value(self):
        """Test which -k arguments count as signal values."""
        assert is_signal_value("hup")
        assert is_signal_value("9")
        assert not is_signal_value("")
        assert not is_signal_value("nginx")
        assert not is_signal_value("1234")


class TestDeliver:
    """Tests for deliver."""

    def test_all_pids_signalled_in_order(self):
        """Test each pid receives the signal once."""
        provider = FakeProvider()
        results = deliver([30, 10, 20], signal.SIGHUP, provider)

        assert provider.signals == [(30, signal.SIGHUP), (10, signal.SIGHUP), (20, signal.SIGHUP)]
        assert all(result.ok for result in results)

    def test_failures_do_not_abort(self):
        """Test a failing pid is recorded and the rest still get signalled."""
        provider = FakeProvider(
            signal_errors={
                10: psutil.NoSuchProcess(10),
                20: psutil.AccessDenied(20),
            }
        )
        results = deliver([10, 20, 30], signal.SIGTERM, provider)

        assert [result.ok for result in results] == [False, False, True]
        assert provider.signals == [(30, signal.SIGTERM)]
        assert results[0].error

    def test_format_success(self):
        """Test the success message."""
        text = format_delivery(Delivery(42, signal.SIGKILL))
        assert text.plain == "Sent signal 9 to PID 42"

    def test_format_warning(self):
        """Test failures render as warnings."""
        text = format_delivery(Delivery(42, signal.SIGTERM, "process no longer exists"))
        assert text.plain == "Warning: Could not send signal to PID 42: process no longer exists"
        assert text.style == "yellow"
