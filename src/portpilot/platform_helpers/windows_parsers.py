"""Parsers for ``netstat``, ``wmic`` and ``tasklist`` output."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Dict, Optional, Tuple

from ..process_models import MAX_PORT, MIN_PORT, ProcessDetails
from .formatting import uptime_from_creation

logger = logging.getLogger(__name__)

KIB = 1024
LISTENING_STATE = "LISTENING"
_LOCAL_PORT = re.compile(r":(\d+)$")

# Node,CommandLine,CreationDate,Name,ProcessId,WorkingSetSize
# CommandLine may itself contain commas, so the trailing columns anchor the match.
_WMIC_ROW = re.compile(r"^[^,]*,(.*),(\d{14}\.\d+[+-]\d+),([^,]+),(\d+),(\d+)$")
_WMIC_HEADER_PREFIX = "Node,"

# "Image Name","PID","Session Name","Session#","Mem Usage"
_TASKLIST_ROW = re.compile(r'"([^"]+)","(\d+)","[^"]*","[^"]*","([\d,.\s ]+?)\s*K"')


def strip_exe(name: str) -> str:
    """Drop a trailing ``.exe`` from an image name."""
    if name.lower().endswith(".exe"):
        return name[:-4]
    return name


def parse_netstat_line(line: str) -> Optional[Tuple[int, int]]:
    """Return ``(port, pid)`` for a LISTENING row of ``netstat -ano``.

    Rows in any other TCP state, and rows owned by PID 0, are ignored.
    """
    parts = line.split()
    if len(parts) < 5 or LISTENING_STATE not in parts:
        return None
    try:
        pid = int(parts[-1])
    except ValueError:
        return None
    if pid <= 0:
        return None
    match = _LOCAL_PORT.search(parts[1])
    if not match:
        return None
    port = int(match.group(1))
    if not MIN_PORT <= port <= MAX_PORT:
        return None
    return port, pid


def parse_wmic_csv(output: str, now: Optional[datetime] = None) -> Dict[int, ProcessDetails]:
    """Parse ``wmic process ... /FORMAT:CSV`` into details keyed by PID."""
    details: Dict[int, ProcessDetails] = {}
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_WMIC_HEADER_PREFIX):
            continue
        match = _WMIC_ROW.match(line)
        if not match:
            logger.debug("Skipping unparseable wmic row: %r", line)
            continue
        command_line, creation_date, image_name, pid_text, working_set = match.groups()
        name = strip_exe(image_name)
        details[int(pid_text)] = ProcessDetails(
            name=name,
            command=command_line.strip() or name,
            memory=int(working_set),
            uptime=uptime_from_creation(creation_date, now),
        )
    return details


def parse_tasklist_csv(output: str) -> Dict[int, ProcessDetails]:
    """Parse ``tasklist /FO CSV /NH`` into name and memory keyed by PID."""
    details: Dict[int, ProcessDetails] = {}
    for line in output.splitlines():
        match = _TASKLIST_ROW.search(line)
        if not match:
            continue
        image_name, pid_text, mem_text = match.groups()
        digits = re.sub(r"\D", "", mem_text)
        name = strip_exe(image_name)
        details[int(pid_text)] = ProcessDetails(
            name=name,
            command=name,
            memory=int(digits) * KIB if digits else 0,
            uptime="",
        )
    return details


__all__ = [
    "LISTENING_STATE",
    "parse_netstat_line",
    "parse_tasklist_csv",
    "parse_wmic_csv",
    "strip_exe",
]
