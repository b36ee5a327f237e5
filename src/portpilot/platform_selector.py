"""
Pick the platform variant for the running operating system.

The variant is built on first use and kept for the rest of the process:

    from portpilot.platform_selector import get_platform

    platform = get_platform()
    descriptor = await platform.lookup_port(3000)
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional, Protocol

from .config import PortPilotSettings, UnsupportedPlatformError, load_settings
from .platform_helpers import PosixPlatform, WindowsPlatform
from .process_models import PortLookup, ProcessDescriptor

logger = logging.getLogger(__name__)

LINUX = "linux"
DARWIN = "darwin"
WINDOWS = "windows"

_PLATFORM_ALIASES = {
    "linux": LINUX,
    "darwin": DARWIN,
    "macos": DARWIN,
    "win32": WINDOWS,
    "windows": WINDOWS,
}


class PlatformCapability(Protocol):
    """Operations every platform variant provides."""

    name: str

    async def resolve_port(self, port: int) -> PortLookup: ...

    async def lookup_port(self, port: int) -> Optional[ProcessDescriptor]: ...

    async def list_listening(self) -> List[ProcessDescriptor]: ...

    async def terminate(self, pid: int, force: bool = False) -> bool: ...


_platform: Optional[PlatformCapability] = None


def detect_platform_name(system: Optional[str] = None) -> str:
    """Normalize ``sys.platform`` (or an override) to linux, darwin or windows."""
    raw = (system if system is not None else sys.platform).lower()
    for prefix, normalized in _PLATFORM_ALIASES.items():
        if raw.startswith(prefix):
            return normalized
    raise UnsupportedPlatformError(raw)


def create_platform(settings: Optional[PortPilotSettings] = None, system: Optional[str] = None) -> PlatformCapability:
    """Build a new variant for ``system`` without touching the process-wide one."""
    resolved_settings = settings if settings is not None else load_settings()
    name = detect_platform_name(system if system is not None else resolved_settings.platform_override)
    logger.debug("Selected %s platform variant", name)
    if name == WINDOWS:
        return WindowsPlatform(resolved_settings)
    return PosixPlatform(resolved_settings)


def get_platform(settings: Optional[PortPilotSettings] = None) -> PlatformCapability:
    """Return the process-wide variant, creating it on the first call.

    Raises:
        UnsupportedPlatformError: If the host OS has no variant.
    """
    global _platform
    if _platform is None:
        _platform = create_platform(settings)
    return _platform


def reset_platform() -> None:
    """Forget the process-wide variant (test helper)."""
    global _platform
    _platform = None


__all__ = [
    "DARWIN",
    "LINUX",
    "PlatformCapability",
    "WINDOWS",
    "create_platform",
    "detect_platform_name",
    "get_platform",
    "reset_platform",
]
