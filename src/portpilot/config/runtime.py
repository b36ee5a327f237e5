from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

DEFAULT_VERIFY_DELAY_SECONDS = 0.5
DEFAULT_LOG_LEVEL = "WARNING"

COMMAND_TIMEOUT_ENV = "PORTPILOT_COMMAND_TIMEOUT_SECONDS"
VERIFY_DELAY_ENV = "PORTPILOT_VERIFY_DELAY_SECONDS"
LOG_LEVEL_ENV = "PORTPILOT_LOG_LEVEL"
PLATFORM_ENV = "PORTPILOT_PLATFORM"


def env_str(name: str, or_value: str | None = None) -> str | None:
    """Fetch an environment variable as a stripped string; blank counts as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return or_value
    return value.strip()


def env_float(name: str, or_value: float | None = None) -> float | None:
    """Fetch an environment variable and coerce it to ``float``."""

    raw = env_str(name)
    if raw is None:
        return or_value
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be a float (got {raw!r})") from exc


def env_seconds(name: str, or_value: float | None = None) -> float | None:
    """Fetch a non-negative duration in seconds."""

    value = env_float(name, or_value)
    if value is not None and value < 0:
        raise ConfigurationError.invalid_value(name, value, "Durations must be non-negative")
    return value


@dataclass(frozen=True)
class PortPilotSettings:
    """Snapshot of the environment-driven settings for one invocation."""

    command_timeout: Optional[float] = None
    verify_delay: float = DEFAULT_VERIFY_DELAY_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL
    platform_override: Optional[str] = None


def load_settings() -> PortPilotSettings:
    """Read settings from the environment."""
    command_timeout = env_seconds(COMMAND_TIMEOUT_ENV)
    if command_timeout == 0:
        raise ConfigurationError.invalid_value(COMMAND_TIMEOUT_ENV, command_timeout, "Leave unset to disable the timeout")
    verify_delay = env_seconds(VERIFY_DELAY_ENV, DEFAULT_VERIFY_DELAY_SECONDS)
    log_level = env_str(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    platform_override = env_str(PLATFORM_ENV)
    return PortPilotSettings(
        command_timeout=command_timeout,
        verify_delay=verify_delay if verify_delay is not None else DEFAULT_VERIFY_DELAY_SECONDS,
        log_level=(log_level or DEFAULT_LOG_LEVEL).upper(),
        platform_override=platform_override.lower() if platform_override else None,
    )
