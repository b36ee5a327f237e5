"""Tests for the netstat/wmic/tasklist platform variant."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from portpilot.command_runner import CommandStatus
from portpilot.platform_helpers.windows import WindowsPlatform, build_pid_filter
from portpilot.process_models import PLACEHOLDER_DETAILS, LookupStatus, ProcessDescriptor

NOW = datetime(2024, 1, 2, 5, 0, 0, tzinfo=timezone(timedelta(hours=1)))

NETSTAT = """
Active Connections

  Proto  Local Address          Foreign Address        State           PID
  TCP    0.0.0.0:135            0.0.0.0:0              LISTENING       900
  TCP    0.0.0.0:3000           0.0.0.0:0              LISTENING       10
  TCP    0.0.0.0:8080           0.0.0.0:0              LISTENING       20
  TCP    127.0.0.1:3000         127.0.0.1:51000        ESTABLISHED     30
  TCP    [::]:3000              [::]:0                 LISTENING       40
  TCP    [::]:9229              [::]:0                 LISTENING       10
  TCP    0.0.0.0:5040           0.0.0.0:0              LISTENING       0
"""

WMIC_HEADER = "Node,CommandLine,CreationDate,Name,ProcessId,WorkingSetSize\r\n"
WMIC_NODE = "HOST,node server.js,20240102030000.000000+060,node.exe,10,104857600\r\n"
WMIC_SVC = "HOST,C:\\Windows\\system32\\svchost.exe -k RPCSS,20240101050000.000000+060,svchost.exe,900,8388608\r\n"


def _platform(runner) -> WindowsPlatform:
    return WindowsPlatform(runner=runner, clock=lambda: NOW)


def test_build_pid_filter():
    assert build_pid_filter([10, 20]) == "ProcessId=10 or ProcessId=20"


class TestLookupPort:
    async def test_returns_descriptor_for_listening_port(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)
        fake_runner.add("wmic", WMIC_HEADER + WMIC_NODE)

        descriptor = await _platform(fake_runner).lookup_port(3000)

        assert descriptor == ProcessDescriptor(
            port=3000,
            pid=10,
            name="node",
            command="node server.js",
            memory=104857600,
            uptime="2h 0m",
        )
        assert fake_runner.calls_for("netstat") == [["netstat", "-ano", "-p", "TCP"]]
        wmic_argv = fake_runner.calls_for("wmic")[0]
        assert wmic_argv[:4] == ["wmic", "process", "where", "ProcessId=10"]
        assert wmic_argv[-1] == "/FORMAT:CSV"

    async def test_non_listening_states_do_not_match(self, fake_runner):
        fake_runner.add(
            "netstat",
            "  TCP    127.0.0.1:4000         127.0.0.1:51000        ESTABLISHED     30\n",
        )

        lookup = await _platform(fake_runner).resolve_port(4000)

        assert lookup.status is LookupStatus.NOT_FOUND
        assert fake_runner.calls_for("wmic") == []

    async def test_port_prefix_does_not_match(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)

        assert await _platform(fake_runner).lookup_port(300) is None

    async def test_netstat_failure_is_tool_unavailable(self, fake_runner):
        fake_runner.add("netstat", status=CommandStatus.FAILED)

        lookup = await _platform(fake_runner).resolve_port(3000)

        assert lookup.status is LookupStatus.TOOL_UNAVAILABLE
        assert lookup.descriptor is None

    async def test_missing_details_use_placeholder(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)

        descriptor = await _platform(fake_runner).lookup_port(8080)

        assert descriptor == ProcessDescriptor(port=8080, pid=20, name="unknown", command="unknown", memory=0, uptime="")


class TestListListening:
    async def test_batched_enrichment(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)
        fake_runner.add("wmic", WMIC_HEADER + WMIC_NODE + WMIC_SVC)

        result = await _platform(fake_runner).list_listening()

        assert [(d.port, d.pid, d.name) for d in result] == [
            (135, 900, "svchost"),
            (3000, 10, "node"),
            (8080, 20, "unknown"),
            (9229, 10, "node"),
        ]
        assert len(fake_runner.calls_for("wmic")) == 1
        assert fake_runner.calls_for("wmic")[0][3] == "ProcessId=900 or ProcessId=10 or ProcessId=20"
        assert fake_runner.calls_for("tasklist") == []

    async def test_pid_omitted_by_wmic_gets_placeholder(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)
        fake_runner.add("wmic", WMIC_HEADER + WMIC_NODE)

        details = await _platform(fake_runner).fetch_details([10, 20])

        assert details[10].name == "node"
        assert details[20] == PLACEHOLDER_DETAILS
        assert fake_runner.calls_for("tasklist") == []

    async def test_falls_back_to_tasklist(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)
        fake_runner.add("wmic", status=CommandStatus.MISSING)
        fake_runner.add("tasklist", '"node.exe","10","Console","1","2,048 K"\r\n')

        result = await _platform(fake_runner).list_listening()

        by_port = {d.port: d for d in result}
        assert by_port[3000] == ProcessDescriptor(port=3000, pid=10, name="node", command="node", memory=2048 * 1024, uptime="")
        assert by_port[135].name == "unknown"
        assert fake_runner.calls_for("tasklist") == [["tasklist", "/FO", "CSV", "/NH"]]

    async def test_unparseable_wmic_output_falls_back(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)
        fake_runner.add("wmic", "something unexpected\r\n")
        fake_runner.add("tasklist", '"node.exe","10","Console","1","2,048 K"\r\n')

        details = await _platform(fake_runner).fetch_details([10])

        assert details[10].name == "node"

    async def test_all_tools_fail_yields_placeholders(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)

        result = await _platform(fake_runner).list_listening()

        assert [d.port for d in result] == [135, 3000, 8080, 9229]
        assert all(d.name == "unknown" and d.memory == 0 and d.uptime == "" for d in result)

    async def test_netstat_failure_is_empty(self, fake_runner):
        assert await _platform(fake_runner).list_listening() == []

    async def test_no_listeners_skips_enrichment(self, fake_runner):
        fake_runner.add("netstat", "  TCP    127.0.0.1:3000   127.0.0.1:51000   ESTABLISHED   30\n")

        assert await _platform(fake_runner).list_listening() == []
        assert fake_runner.calls_for("wmic") == []

    async def test_idempotent(self, fake_runner):
        fake_runner.add("netstat", NETSTAT)
        fake_runner.add("wmic", WMIC_HEADER + WMIC_NODE + WMIC_SVC)
        platform = _platform(fake_runner)

        assert await platform.list_listening() == await platform.list_listening()


class TestTerminate:
    async def test_graceful_success(self, fake_runner):
        fake_runner.add("taskkill", "SUCCESS")

        assert await _platform(fake_runner).terminate(10) is True
        assert fake_runner.calls_for("taskkill") == [["taskkill", "/PID", "10"]]

    async def test_retries_with_force(self, fake_runner):
        fake_runner.add("taskkill", status=CommandStatus.FAILED)
        fake_runner.add("taskkill", "SUCCESS")

        assert await _platform(fake_runner).terminate(10) is True
        assert fake_runner.calls_for("taskkill") == [["taskkill", "/PID", "10"], ["taskkill", "/F", "/PID", "10"]]

    async def test_fails_after_retry(self, fake_runner):
        fake_runner.add("taskkill", status=CommandStatus.FAILED)

        assert await _platform(fake_runner).terminate(10) is False
        assert len(fake_runner.calls_for("taskkill")) == 2

    async def test_force_makes_single_attempt(self, fake_runner):
        fake_runner.add("taskkill", status=CommandStatus.FAILED)

        assert await _platform(fake_runner).terminate(10, force=True) is False
        assert fake_runner.calls_for("taskkill") == [["taskkill", "/F", "/PID", "10"]]

    @pytest.mark.parametrize("pid", [0, -5])
    async def test_non_positive_pid(self, fake_runner, pid):
        assert await _platform(fake_runner).terminate(pid) is False
        assert fake_runner.calls == []
