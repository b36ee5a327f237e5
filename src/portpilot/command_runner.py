"""Run external introspection tools and capture their output.

Every tool invocation in the package goes through :func:`run_command`, which
never raises for the routine ways a tool can fail: the executable missing,
a non-zero exit, or an expired timeout. Those are reported through
``CommandResult.status`` instead.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class CommandStatus(Enum):
    """How an external invocation ended."""

    OK = "ok"
    FAILED = "failed"
    MISSING = "missing"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class CommandResult:
    """Captured output of one external invocation."""

    argv: Tuple[str, ...]
    status: CommandStatus
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.OK


def _decode(payload: Optional[bytes]) -> str:
    if not payload:
        return ""
    return payload.decode("utf-8", errors="replace")


async def _reap(proc: asyncio.subprocess.Process) -> None:
    """Kill and wait for a child that is still running."""
    try:
        proc.kill()
    except ProcessLookupError:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
        logger.debug("Process %s exited before it could be killed", proc.pid)
    await proc.wait()


async def run_command(argv: Sequence[str], *, timeout: Optional[float] = None) -> CommandResult:
    """Run ``argv`` without a shell and wait for it to finish.

    Args:
        argv: Executable followed by its arguments.
        timeout: Seconds to wait before the child is killed; ``None`` waits forever.

    Returns:
        CommandResult describing the outcome. The call itself does not raise for
        a missing executable, a non-zero exit status or a timeout.
    """
    args = tuple(str(part) for part in argv)
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as exc:
        logger.debug("Cannot run %s: %s", args[0], exc)
        return CommandResult(args, CommandStatus.MISSING, stderr=str(exc))
    except OSError as exc:
        logger.debug("Failed to spawn %s: %s", args[0], exc)
        return CommandResult(args, CommandStatus.MISSING, stderr=str(exc))

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug("%s did not finish within %ss; killing it", args[0], timeout)
        return CommandResult(args, CommandStatus.TIMEOUT)
    finally:
        # Also covers cancellation, e.g. Ctrl-C under asyncio.run
        if proc.returncode is None:
            await _reap(proc)

    status = CommandStatus.OK if proc.returncode == 0 else CommandStatus.FAILED
    if status is CommandStatus.FAILED:
        logger.debug("%s exited with status %s", " ".join(args), proc.returncode)
    return CommandResult(args, status, proc.returncode, _decode(stdout), _decode(stderr))


__all__ = ["CommandResult", "CommandStatus", "run_command"]
