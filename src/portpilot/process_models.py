from __future__ import annotations

"""Value objects shared by every platform variant."""


from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

UNKNOWN_PROCESS = "unknown"
MIN_PORT = 1
MAX_PORT = 65535


class LookupStatus(Enum):
    """Outcome of a single-port lookup before it is collapsed for callers."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    TOOL_UNAVAILABLE = "tool_unavailable"
    PARSE_FAILURE = "parse_failure"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ProcessDetails:
    """Resource details for one PID as reported by a detail tool."""

    name: str = UNKNOWN_PROCESS
    command: str = UNKNOWN_PROCESS
    memory: int = 0
    uptime: str = ""


PLACEHOLDER_DETAILS = ProcessDetails()


@dataclass(frozen=True)
class ProcessDescriptor:
    """The process holding a listening TCP socket on ``port``."""

    port: int
    pid: int
    name: str
    command: str
    memory: int = 0
    uptime: str = ""

    def __post_init__(self) -> None:
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ValueError(f"Port out of range: {self.port}")
        if self.pid <= 0:
            raise ValueError(f"PID must be positive: {self.pid}")
        if self.memory < 0:
            raise ValueError(f"Memory must be non-negative: {self.memory}")

    @classmethod
    def from_details(cls, port: int, pid: int, details: ProcessDetails, *, name: Optional[str] = None) -> "ProcessDescriptor":
        """Combine a socket-table hit with enrichment details.

        ``name`` overrides the detail name; the POSIX path takes the name from
        the socket table rather than from ``ps``.
        """
        process_name = name if name is not None else details.name
        return cls(
            port=port,
            pid=pid,
            name=process_name,
            command=details.command,
            memory=details.memory,
            uptime=details.uptime,
        )


@dataclass(frozen=True)
class PortLookup:
    """Explicit result of resolving a port; ``descriptor`` is set only when found."""

    status: LookupStatus
    descriptor: Optional[ProcessDescriptor] = None
    detail: str = field(default="", compare=False)

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @classmethod
    def hit(cls, descriptor: ProcessDescriptor) -> "PortLookup":
        return cls(LookupStatus.FOUND, descriptor)

    @classmethod
    def miss(cls, status: LookupStatus = LookupStatus.NOT_FOUND, detail: str = "") -> "PortLookup":
        if status is LookupStatus.FOUND:
            raise ValueError("A miss cannot carry the FOUND status")
        return cls(status, None, detail)


def validate_port(port: int) -> int:
    """Return ``port`` unchanged or raise ``ValueError`` when out of range."""
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValueError(f"Port must be an integer: {port!r}")
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValueError(f"Port must be between {MIN_PORT} and {MAX_PORT}: {port}")
    return port


__all__ = [
    "LookupStatus",
    "MAX_PORT",
    "MIN_PORT",
    "PLACEHOLDER_DETAILS",
    "PortLookup",
    "ProcessDescriptor",
    "ProcessDetails",
    "UNKNOWN_PROCESS",
    "validate_port",
]
