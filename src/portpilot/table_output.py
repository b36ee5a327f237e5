"""Plain-text rendering of process descriptors."""

from __future__ import annotations

from typing import Callable, Iterable, List, Sequence

from .platform_helpers.formatting import EMPTY_CELL, format_memory
from .process_models import ProcessDescriptor

COLUMNS = (("PORT", 8), ("PID", 10), ("PROCESS", 18), ("UPTIME", 12), ("MEMORY", 8))
TABLE_WIDTH = sum(width for _, width in COLUMNS) + 4


def _pad(text: str, width: int) -> str:
    return text[:width] if len(text) >= width else text.ljust(width)


def _row(cells: Sequence[str]) -> str:
    body = "".join(_pad(cell, width) for cell, (_, width) in zip(cells, COLUMNS))
    return f"  │ {_pad('  ' + body, TABLE_WIDTH - 1)}│"


def render_table(processes: Iterable[ProcessDescriptor]) -> List[str]:
    """Lines of a boxed table, or an empty list when there is nothing to show."""
    rows = list(processes)
    if not rows:
        return []
    lines = [
        "  ┌" + "─" * TABLE_WIDTH + "┐",
        _row([title for title, _ in COLUMNS]),
        "  ├" + "─" * TABLE_WIDTH + "┤",
    ]
    for proc in rows:
        lines.append(
            _row(
                [
                    str(proc.port),
                    str(proc.pid),
                    proc.name,
                    proc.uptime or EMPTY_CELL,
                    format_memory(proc.memory),
                ]
            )
        )
    lines.append("  └" + "─" * TABLE_WIDTH + "┘")
    return lines


def print_table(processes: Iterable[ProcessDescriptor], emit: Callable[[str], None] = print) -> None:
    lines = render_table(processes)
    if not lines:
        return
    emit("")
    for line in lines:
        emit(line)
    emit("")


def scan_summary(count: int) -> str:
    return f"  {count} port{'' if count == 1 else 's'} in use"


__all__ = ["print_table", "render_table", "scan_summary"]
