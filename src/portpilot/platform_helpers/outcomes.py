"""Map command outcomes onto lookup statuses."""

from __future__ import annotations

from ..command_runner import CommandResult, CommandStatus
from ..process_models import LookupStatus, PortLookup


def failed_lookup(result: CommandResult, *, nonzero_means_absent: bool) -> PortLookup:
    """Describe why a socket-table invocation produced no descriptor.

    ``lsof`` exits non-zero when nothing matches, so for it a plain failure is
    the same as absence; ``netstat`` has no such convention.
    """
    if result.status is CommandStatus.TIMEOUT:
        return PortLookup.miss(LookupStatus.TIMEOUT, f"{result.argv[0]} timed out")
    if result.status is CommandStatus.MISSING:
        return PortLookup.miss(LookupStatus.TOOL_UNAVAILABLE, result.stderr.strip())
    if nonzero_means_absent:
        return PortLookup.miss(LookupStatus.NOT_FOUND, result.stderr.strip())
    return PortLookup.miss(
        LookupStatus.TOOL_UNAVAILABLE,
        f"{result.argv[0]} exited with status {result.returncode}",
    )
