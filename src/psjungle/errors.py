"""Exception hierarchy for psjungle.

Input errors terminate the invocation, resolution and delivery failures are
reported per pid, snapshot failures end the current refresh cycle.
"""


class PsjungleError(Exception):
    """Base class for all psjungle errors."""


class InvalidSpecifierError(PsjungleError):
    """Malformed PID, port or pattern, or a non-numeric multi-target argument."""


class ProcessNotFoundError(PsjungleError):
    """Target pid is neither in the snapshot nor resolvable directly."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"target process {pid} not found")
        self.pid = pid


class NoProcessesFoundError(PsjungleError):
    """A specifier matched nothing."""

    def __init__(self) -> None:
        super().__init__("No processes found")


class SnapshotError(PsjungleError):
    """The process table or connection list could not be read."""


class SnapshotTimeoutError(SnapshotError):
    """Snapshot acquisition exceeded its deadline."""

    def __init__(self, deadline: float) -> None:
        super().__init__(f"process scan exceeded deadline of {deadline:g}s")
        self.deadline = deadline


class InvalidSignalError(PsjungleError):
    """Signal name or number not recognised."""


class ConfigError(PsjungleError):
    """Invalid configuration value."""
