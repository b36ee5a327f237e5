"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError, UnsupportedPlatformError
from .runtime import (
    PortPilotSettings,
    env_float,
    env_seconds,
    env_str,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "PortPilotSettings",
    "UnsupportedPlatformError",
    "env_float",
    "env_seconds",
    "env_str",
    "load_settings",
]
