"""Kill the owner of a port and confirm the port was released."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .config import load_settings
from .platform_selector import PlatformCapability
from .process_models import ProcessDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KillOutcome:
    """Result of terminating a port owner, optionally with a follow-up check."""

    port: int
    pid: int
    killed: bool
    verified_free: Optional[bool] = None
    blocking_pid: Optional[int] = None

    @property
    def message(self) -> str:
        if not self.killed:
            return f"Failed to kill PID {self.pid}"
        if self.verified_free is None:
            return f"Killed PID {self.pid} on port {self.port}"
        if self.verified_free:
            return f"Port {self.port} is free"
        return f"Port {self.port} is still in use by PID {self.blocking_pid}"


async def kill_and_verify(
    platform: PlatformCapability,
    descriptor: ProcessDescriptor,
    *,
    force: bool = False,
    verify: bool = True,
    delay: Optional[float] = None,
) -> KillOutcome:
    """Terminate ``descriptor.pid`` and, when ``verify``, re-check the port.

    The re-check waits ``delay`` seconds (the configured verification delay by
    default) so the OS can finish tearing down the socket.
    """
    killed = await platform.terminate(descriptor.pid, force=force)
    if not killed:
        logger.info("Could not terminate PID %s on port %s", descriptor.pid, descriptor.port)
        return KillOutcome(descriptor.port, descriptor.pid, killed=False)
    if not verify:
        return KillOutcome(descriptor.port, descriptor.pid, killed=True)

    wait_seconds = delay if delay is not None else load_settings().verify_delay
    await asyncio.sleep(wait_seconds)

    remaining = await platform.lookup_port(descriptor.port)
    if remaining is None:
        return KillOutcome(descriptor.port, descriptor.pid, killed=True, verified_free=True)
    logger.info("Port %s still held by PID %s after kill", descriptor.port, remaining.pid)
    return KillOutcome(
        descriptor.port,
        descriptor.pid,
        killed=True,
        verified_free=False,
        blocking_pid=remaining.pid,
    )


__all__ = ["KillOutcome", "kill_and_verify"]
