"""Parsers for ``lsof`` and ``ps`` output."""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from ..process_models import MAX_PORT, MIN_PORT, ProcessDetails
from .formatting import format_etime

logger = logging.getLogger(__name__)

KIB = 1024
_LSOF_HEADER = "COMMAND"
_LSOF_LISTEN_PORT = re.compile(r":(\d+)\s+\(LISTEN\)")


def parse_lsof_line(line: str) -> Optional[Tuple[str, int]]:
    """Return ``(name, pid)`` from one ``lsof`` row, or ``None`` for headers and junk."""
    parts = line.split()
    if len(parts) < 2 or parts[0] == _LSOF_HEADER:
        return None
    try:
        pid = int(parts[1])
    except ValueError:
        return None
    if pid <= 0:
        return None
    return parts[0], pid


def parse_lsof_port(line: str) -> Optional[int]:
    """Extract the port from the ``host:PORT (LISTEN)`` column."""
    match = _LSOF_LISTEN_PORT.search(line)
    if not match:
        return None
    port = int(match.group(1))
    if not MIN_PORT <= port <= MAX_PORT:
        return None
    return port


def parse_ps_details(output: str, name: str) -> Optional[ProcessDetails]:
    """Parse ``ps -o rss=,etime=,args=`` output for one PID.

    RSS is reported in KiB. The argument list is free text and may contain
    spaces, so everything after the second column is the command line.
    Returns ``None`` when the output is empty or malformed.
    """
    line = next((candidate for candidate in output.splitlines() if candidate.strip()), "")
    parts = line.split(None, 2)
    if len(parts) < 2:
        return None
    try:
        rss_kib = int(parts[0])
    except ValueError:
        logger.debug("Unexpected RSS column in ps output: %r", line)
        return None
    command = parts[2].strip() if len(parts) > 2 else ""
    return ProcessDetails(
        name=name,
        command=command or name,
        memory=max(rss_kib, 0) * KIB,
        uptime=format_etime(parts[1]),
    )


__all__ = ["parse_lsof_line", "parse_lsof_port", "parse_ps_details"]
