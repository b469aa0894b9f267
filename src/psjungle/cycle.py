"""One refresh cycle: snapshot, match, display, optional signal delivery."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from rich.text import Text

from psjungle.config import Settings
from psjungle.display import display_all
from psjungle.errors import NoProcessesFoundError
from psjungle.matcher import MatchOptions, resolve
from psjungle.monitor import ProcessProvider
from psjungle.signals import Delivery, deliver, format_delivery

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CycleResult:
    """Everything one cycle produced."""

    lines: list[Text] = field(default_factory=list)
    processed: list[int] = field(default_factory=list)
    deliveries: list[Delivery] = field(default_factory=list)

    def output(self) -> list[Text]:
        """Tree lines followed by one line per signal delivery."""
        return self.lines + [format_delivery(result) for result in self.deliveries]


def match_options(settings: Settings) -> MatchOptions:
    return MatchOptions(strict=settings.strict, host=settings.host, ignore_case=settings.ignore_case)


def run_cycle(specifiers: Sequence[str], provider: ProcessProvider, settings: Settings) -> CycleResult:
    """
    Run one full cycle against a fresh snapshot.

    Raises InvalidSpecifierError for malformed input, SnapshotError when the
    process table cannot be read, and NoProcessesFoundError when nothing
    matched. Nothing from the cycle is kept afterwards.
    """
    snapshot = provider.snapshot()
    logger.debug("snapshot holds %d processes", len(snapshot))

    targets = resolve(specifiers, snapshot, provider.connections, match_options(settings))
    if not targets:
        raise NoProcessesFoundError()

    report = display_all(targets, snapshot, provider.get_process, settings.flat)
    result = CycleResult(lines=report.lines, processed=report.processed)

    if settings.signal is not None:
        result.deliveries = deliver(report.processed, settings.signal, provider)

    return result
