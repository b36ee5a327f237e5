"""Windows variant built on ``netstat``, ``wmic``, ``tasklist`` and ``taskkill``.

Full scans enrich every discovered PID with one ``wmic`` call instead of one
call per port. When ``wmic`` is unusable the scan degrades to ``tasklist``
(name and memory only) and finally to placeholder details.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from ..command_runner import CommandResult, run_command
from ..config import PortPilotSettings
from ..process_models import (
    PLACEHOLDER_DETAILS,
    LookupStatus,
    PortLookup,
    ProcessDescriptor,
    ProcessDetails,
    validate_port,
)
from .outcomes import failed_lookup
from .windows_parsers import parse_netstat_line, parse_tasklist_csv, parse_wmic_csv

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., Awaitable[CommandResult]]

NETSTAT_ARGS = ("netstat", "-ano", "-p", "TCP")
TASKLIST_ARGS = ("tasklist", "/FO", "CSV", "/NH")
WMIC_FIELDS = "ProcessId,Name,CommandLine,WorkingSetSize,CreationDate"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_pid_filter(pids: Iterable[int]) -> str:
    """WQL filter matching any of ``pids``, e.g. ``ProcessId=10 or ProcessId=20``."""
    return " or ".join(f"ProcessId={pid}" for pid in pids)


class WindowsPlatform:
    """Port lookup and termination for Windows hosts."""

    name = "windows"

    def __init__(
        self,
        settings: Optional[PortPilotSettings] = None,
        runner: CommandRunner = run_command,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._timeout = settings.command_timeout if settings else None
        self._run = runner
        self._clock = clock

    async def _invoke(self, argv: Sequence[str]) -> CommandResult:
        return await self._run(list(argv), timeout=self._timeout)

    async def resolve_port(self, port: int) -> PortLookup:
        """Find the listening process on ``port`` with an explicit outcome."""
        validate_port(port)
        result = await self._invoke(NETSTAT_ARGS)
        if not result.ok:
            return failed_lookup(result, nonzero_means_absent=False)

        for line in result.stdout.splitlines():
            parsed = parse_netstat_line(line)
            if parsed is None or parsed[0] != port:
                continue
            _, pid = parsed
            details = await self.fetch_details([pid])
            return PortLookup.hit(ProcessDescriptor.from_details(port, pid, details[pid]))
        return PortLookup.miss(LookupStatus.NOT_FOUND)

    async def lookup_port(self, port: int) -> Optional[ProcessDescriptor]:
        """Return the listening process on ``port`` or ``None``."""
        return (await self.resolve_port(port)).descriptor

    async def list_listening(self) -> List[ProcessDescriptor]:
        """Every listening TCP port, ascending, enriched with one batched call."""
        result = await self._invoke(NETSTAT_ARGS)
        if not result.ok:
            logger.debug("netstat unavailable: %s", result.status.value)
            return []

        port_pids: Dict[int, int] = {}
        for line in result.stdout.splitlines():
            parsed = parse_netstat_line(line)
            if parsed is None or parsed[0] in port_pids:
                continue
            port, pid = parsed
            port_pids[port] = pid

        unique_pids = list(dict.fromkeys(port_pids.values()))
        details = await self.fetch_details(unique_pids)
        return [ProcessDescriptor.from_details(port, port_pids[port], details[port_pids[port]]) for port in sorted(port_pids)]

    async def fetch_details(self, pids: Sequence[int]) -> Dict[int, ProcessDetails]:
        """Details for every PID in ``pids``; PIDs the tools omit get placeholders."""
        if not pids:
            return {}

        found = await self._query_wmic(pids)
        if found is None:
            logger.info("wmic unavailable; falling back to tasklist for %d PIDs", len(pids))
            found = await self._query_tasklist()
        if found is None:
            logger.info("tasklist unavailable; using placeholder details")
            found = {}

        return {pid: found.get(pid, PLACEHOLDER_DETAILS) for pid in pids}

    async def _query_wmic(self, pids: Sequence[int]) -> Optional[Dict[int, ProcessDetails]]:
        argv = [
            "wmic",
            "process",
            "where",
            build_pid_filter(pids),
            "get",
            WMIC_FIELDS,
            "/FORMAT:CSV",
        ]
        result = await self._invoke(argv)
        if not result.ok:
            logger.debug("wmic failed (%s)", result.status.value)
            return None
        parsed = parse_wmic_csv(result.stdout, now=self._clock())
        if not parsed:
            logger.debug("wmic output had no parseable rows")
            return None
        return parsed

    async def _query_tasklist(self) -> Optional[Dict[int, ProcessDetails]]:
        result = await self._invoke(TASKLIST_ARGS)
        if not result.ok:
            logger.debug("tasklist failed (%s)", result.status.value)
            return None
        return parse_tasklist_csv(result.stdout)

    async def terminate(self, pid: int, force: bool = False) -> bool:
        """Run ``taskkill``; without ``force`` a failure is retried once with ``/F``."""
        if pid <= 0:
            return False
        if await self._taskkill(pid, force=force):
            return True
        if not force:
            logger.debug("taskkill /PID %s failed; retrying with /F", pid)
            return await self._taskkill(pid, force=True)
        return False

    async def _taskkill(self, pid: int, *, force: bool) -> bool:
        argv = ["taskkill", "/F", "/PID", str(pid)] if force else ["taskkill", "/PID", str(pid)]
        result = await self._invoke(argv)
        return result.ok


__all__ = ["WindowsPlatform", "build_pid_filter"]
