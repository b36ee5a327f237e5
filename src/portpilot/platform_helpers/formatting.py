"""Duration and memory normalization shared by the platform variants."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
BYTES_PER_MB = 1024 * 1024
MB_PER_GB = 1024
EMPTY_CELL = "–"

# ps etime shapes, most specific first
_ETIME_DAYS = re.compile(r"^(\d+)-(\d+):(\d+):(\d+)$")
_ETIME_HMS = re.compile(r"^(\d+):(\d+):(\d+)$")
_ETIME_MS = re.compile(r"^(\d+):(\d+)$")
_ETIME_SECONDS = re.compile(r"^(\d+)$")

_CREATION_DATE = re.compile(r"^(\d{14})(?:\.\d+)?(?:([+-])(\d+))?")


def format_etime(etime: str) -> str:
    """Convert a ``ps -o etime`` value to its two largest units.

    ``"3-04:05:06"`` becomes ``"3d 4h"`` and ``"05:30"`` becomes ``"5m 30s"``.
    Returns an empty string for values in none of the known shapes.
    """
    trimmed = etime.strip()

    match = _ETIME_DAYS.match(trimmed)
    if match:
        return f"{int(match.group(1))}d {int(match.group(2))}h"

    match = _ETIME_HMS.match(trimmed)
    if match:
        return f"{int(match.group(1))}h {int(match.group(2))}m"

    match = _ETIME_MS.match(trimmed)
    if match:
        return f"{int(match.group(1))}m {int(match.group(2))}s"

    match = _ETIME_SECONDS.match(trimmed)
    if match:
        return f"{int(match.group(1))}s"

    logger.debug("Unrecognised elapsed time %r", etime)
    return ""


def format_uptime(total_seconds: float) -> str:
    """Render a duration using the two largest units, seconds only under a minute."""
    seconds = max(int(total_seconds), 0)
    minutes = seconds // SECONDS_PER_MINUTE
    hours = seconds // SECONDS_PER_HOUR
    days = seconds // SECONDS_PER_DAY

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def parse_creation_date(value: str) -> Optional[datetime]:
    """Parse a WMI CreationDate such as ``20240102030405.123456+060``.

    The trailing ``+060`` is the UTC offset in minutes, so the result is an
    aware datetime. Values without an offset come back naive (local time).
    """
    match = _CREATION_DATE.match(value.strip())
    if not match:
        return None
    stamp, sign, offset_minutes = match.groups()
    try:
        created = datetime.strptime(stamp, "%Y%m%d%H%M%S")
        if sign is None:
            return created
        offset = timedelta(minutes=int(offset_minutes))
        return created.replace(tzinfo=timezone(offset if sign == "+" else -offset))
    except ValueError:
        logger.debug("Invalid creation date %r", value)
        return None


def _as_aware(moment: datetime) -> datetime:
    # Naive values are taken as local time
    return moment if moment.tzinfo is not None else moment.astimezone()


def uptime_from_creation(value: str, now: Optional[datetime] = None) -> str:
    """Elapsed time since a WMI CreationDate, or an empty string if unparseable."""
    created = parse_creation_date(value)
    if created is None:
        return ""
    current = now if now is not None else datetime.now(timezone.utc)
    return format_uptime((_as_aware(current) - _as_aware(created)).total_seconds())


def format_memory(memory_bytes: int) -> str:
    """Render a byte count as whole megabytes, or gigabytes with one decimal."""
    if memory_bytes <= 0:
        return EMPTY_CELL
    megabytes = memory_bytes / BYTES_PER_MB
    if megabytes >= MB_PER_GB:
        return f"{megabytes / MB_PER_GB:.1f}GB"
    return f"{math.floor(megabytes + 0.5)}MB"


__all__ = [
    "EMPTY_CELL",
    "format_etime",
    "format_memory",
    "format_uptime",
    "parse_creation_date",
    "uptime_from_creation",
]
