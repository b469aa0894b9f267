"""Signal parsing and delivery."""

import logging
import signal
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

import psutil
from rich.text import Text

from psjungle.errors import InvalidSignalError
from psjungle.monitor import ProcessProvider

logger = logging.getLogger(__name__)

MAX_SIGNAL = 64

WARNING_STYLE = "yellow"


class SignalName(Enum):
    """Signal names accepted by ``--kill``."""

    TERM = signal.SIGTERM
    HUP = signal.SIGHUP
    INT = signal.SIGINT
    KILL = signal.SIGKILL
    STOP = signal.SIGSTOP
    CONT = signal.SIGCONT
    USR1 = signal.SIGUSR1
    USR2 = signal.SIGUSR2


def parse_signal(value: str | None) -> int:
    """
    Parse a signal name or number.

    An empty value means SIGTERM. Names are case-insensitive and may carry a
    ``SIG`` prefix; numbers must lie within 0-64.
    """
    if not value:
        return signal.SIGTERM

    name = value.strip().upper()
    if name.startswith("SIG"):
        name = name[3:]
    if name in SignalName.__members__:
        return SignalName[name].value

    if value.isdecimal() and int(value) <= MAX_SIGNAL:
        return int(value)

    raise InvalidSignalError(f"invalid signal: {value}")


def is_signal_value(value: str) -> bool:
    """Whether ``value`` would be consumed as a ``-k`` argument."""
    try:
        parse_signal(value)
    except InvalidSignalError:
        return False
    return bool(value)


@dataclass(slots=True, frozen=True)
class Delivery:
    """Outcome of sending one signal to one pid."""

    pid: int
    signum: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def deliver(pids: Iterable[int], signum: int, provider: ProcessProvider) -> list[Delivery]:
    """
    Send ``signum`` to each pid in order.

    Failures are recorded per pid and never stop the remaining deliveries;
    the process may have exited since it was displayed.
    """
    results: list[Delivery] = []
    for pid in pids:
        try:
            provider.send_signal(pid, signum)
        except (psutil.Error, OSError) as exc:
            logger.debug("signal %d to pid %d failed: %s", signum, pid, exc)
            results.append(Delivery(pid, signum, str(exc) or exc.__class__.__name__))
        else:
            results.append(Delivery(pid, signum))
    return results


def format_delivery(result: Delivery) -> Text:
    if result.ok:
        return Text(f"Sent signal {int(result.signum)} to PID {result.pid}")
    return Text(
        f"Warning: Could not send signal to PID {result.pid}: {result.error}",
        style=WARNING_STYLE,
    )
