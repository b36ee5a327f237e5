"""Linux and macOS variant built on ``lsof``, ``ps`` and signals."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import psutil

from ..command_runner import CommandResult, run_command
from ..config import PortPilotSettings
from ..process_models import LookupStatus, PortLookup, ProcessDescriptor, ProcessDetails, validate_port
from .outcomes import failed_lookup
from .posix_parsers import parse_lsof_line, parse_lsof_port, parse_ps_details

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., Awaitable[CommandResult]]

PS_DETAIL_FORMAT = "rss=,etime=,args="


class PosixPlatform:
    """Port lookup and termination for hosts that ship ``lsof``."""

    name = "posix"

    def __init__(self, settings: Optional[PortPilotSettings] = None, runner: CommandRunner = run_command) -> None:
        self._timeout = settings.command_timeout if settings else None
        self._run = runner

    async def _invoke(self, argv: Sequence[str]) -> CommandResult:
        return await self._run(list(argv), timeout=self._timeout)

    async def resolve_port(self, port: int) -> PortLookup:
        """Find the listening process on ``port`` with an explicit outcome."""
        validate_port(port)
        result = await self._invoke(["lsof", f"-iTCP:{port}", "-P", "-n", "-sTCP:LISTEN"])
        if not result.ok:
            return failed_lookup(result, nonzero_means_absent=True)

        saw_rows = False
        for line in result.stdout.splitlines():
            if not line.strip() or line.split()[0] == "COMMAND":
                continue
            saw_rows = True
            parsed = parse_lsof_line(line)
            if parsed is None:
                logger.debug("Skipping lsof row without a PID: %r", line)
                continue
            name, pid = parsed
            details = await self._fetch_details(pid, name)
            return PortLookup.hit(ProcessDescriptor.from_details(port, pid, details, name=name))

        if saw_rows:
            return PortLookup.miss(LookupStatus.PARSE_FAILURE, "no lsof row carried a usable PID")
        return PortLookup.miss(LookupStatus.NOT_FOUND)

    async def lookup_port(self, port: int) -> Optional[ProcessDescriptor]:
        """Return the listening process on ``port`` or ``None``."""
        return (await self.resolve_port(port)).descriptor

    async def list_listening(self) -> List[ProcessDescriptor]:
        """Every listening TCP port, ascending, one descriptor per port."""
        result = await self._invoke(["lsof", "-iTCP", "-P", "-n", "-sTCP:LISTEN"])
        if not result.ok:
            logger.debug("Listening scan unavailable: %s", failed_lookup(result, nonzero_means_absent=True).status.value)
            return []

        by_port: Dict[int, ProcessDescriptor] = {}
        details_by_pid: Dict[int, ProcessDetails] = {}
        for line in result.stdout.splitlines():
            parsed = parse_lsof_line(line)
            if parsed is None:
                continue
            port = parse_lsof_port(line)
            if port is None or port in by_port:
                continue
            name, pid = parsed
            if pid not in details_by_pid:
                details_by_pid[pid] = await self._fetch_details(pid, name)
            by_port[port] = ProcessDescriptor.from_details(port, pid, details_by_pid[pid], name=name)

        return [by_port[port] for port in sorted(by_port)]

    async def _fetch_details(self, pid: int, name: str) -> ProcessDetails:
        """RSS, elapsed time and argument list for one PID; placeholders on failure."""
        result = await self._invoke(["ps", "-p", str(pid), "-o", PS_DETAIL_FORMAT])
        details = parse_ps_details(result.stdout, name) if result.ok else None
        if details is None:
            logger.debug("No ps details for PID %s (%s)", pid, result.status.value)
            return ProcessDetails(name=name, command=name)
        return details

    async def terminate(self, pid: int, force: bool = False) -> bool:
        """Send SIGTERM (or SIGKILL when ``force``); escalate once if SIGTERM cannot be sent."""
        if pid <= 0:
            return False
        if _send_signal(pid, kill=force):
            return True
        if not force:
            logger.debug("SIGTERM to %s failed; escalating to SIGKILL", pid)
            return _send_signal(pid, kill=True)
        return False


def _send_signal(pid: int, *, kill: bool) -> bool:
    try:
        proc = psutil.Process(pid)
        if kill:
            proc.kill()
        else:
            proc.terminate()
    except psutil.NoSuchProcess:
        logger.debug("Process %s no longer exists", pid)
        return False
    except psutil.AccessDenied:
        logger.debug("Permission denied signalling process %s", pid)
        return False
    except (psutil.Error, OSError) as exc:
        logger.debug("Could not signal process %s: %s", pid, exc)
        return False
    return True


__all__ = ["PosixPlatform"]
