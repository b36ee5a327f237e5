"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from portpilot import platform_selector
from portpilot.command_runner import CommandResult, CommandStatus


class FakeRunner:
    """Scripted stand-in for ``run_command`` keyed by executable name.

    Each tool has a queue of results; the last one is repeated once the queue
    is down to a single entry. Tools with no script behave as if missing.
    """

    def __init__(self) -> None:
        self._scripts: Dict[str, List[CommandResult]] = {}
        self.calls: List[Tuple[List[str], Optional[float]]] = []

    def add(
        self,
        tool: str,
        stdout: str = "",
        *,
        status: CommandStatus = CommandStatus.OK,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> "FakeRunner":
        if returncode is None:
            returncode = 0 if status is CommandStatus.OK else 1
        self._scripts.setdefault(tool, []).append(CommandResult((tool,), status, returncode, stdout, stderr))
        return self

    def calls_for(self, tool: str) -> List[List[str]]:
        return [argv for argv, _ in self.calls if argv[0] == tool]

    async def __call__(self, argv: Sequence[str], *, timeout: Optional[float] = None) -> CommandResult:
        args = list(argv)
        self.calls.append((args, timeout))
        queue = self._scripts.get(args[0])
        if not queue:
            return CommandResult(tuple(args), CommandStatus.MISSING, stderr=f"{args[0]}: not found")
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        return CommandResult(tuple(args), result.status, result.returncode, result.stdout, result.stderr)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    for name in (
        "PORTPILOT_COMMAND_TIMEOUT_SECONDS",
        "PORTPILOT_VERIFY_DELAY_SECONDS",
        "PORTPILOT_LOG_LEVEL",
        "PORTPILOT_PLATFORM",
    ):
        monkeypatch.delenv(name, raising=False)
    platform_selector.reset_platform()
    yield
    platform_selector.reset_platform()
