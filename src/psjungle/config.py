"""Runtime settings for psjungle.

Defaults can be overridden through ``PSJUNGLE_*`` environment variables;
command-line flags are applied on top with ``Settings.replace``.
"""

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass

from psjungle.errors import ConfigError

DEFAULT_INTERVAL = 2.0
DEFAULT_DEADLINE = 5.0
MIN_INTERVAL = 0.1

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


@dataclass(slots=True, frozen=True)
class Settings:
    """Options for one invocation; shared unchanged by every refresh cycle."""

    interval: float = DEFAULT_INTERVAL  # watch refresh, seconds
    deadline: float = DEFAULT_DEADLINE  # max seconds for one process scan
    flat: bool = False
    strict: bool = False
    ignore_case: bool = False
    host: str | None = None
    signal: int | None = None  # None means no signal delivery
    color: bool = True

    def __post_init__(self) -> None:
        if self.interval < MIN_INTERVAL:
            object.__setattr__(self, "interval", MIN_INTERVAL)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            interval=_env_float(env, "PSJUNGLE_INTERVAL", DEFAULT_INTERVAL),
            deadline=_env_float(env, "PSJUNGLE_DEADLINE", DEFAULT_DEADLINE),
            ignore_case=_env_bool(env, "PSJUNGLE_IGNORE_CASE", False),
            color="NO_COLOR" not in env,
        )

    def replace(self, **changes) -> "Settings":
        return dataclasses.replace(self, **changes)
