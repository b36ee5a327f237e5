#!/usr/bin/env python3
"""See what is listening on a TCP port, and kill it.

Usage:
    portpilot <port> [port...]     Show what is on a port
    portpilot <port> --kill        Kill without prompting
    portpilot <port> --free        Kill and verify the port is free
    portpilot --scan               Show all listening ports
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
from typing import Callable, List, Optional, Sequence

from . import __version__
from .config import ConfigurationError
from .logging_config import setup_logging
from .platform_selector import PlatformCapability, get_platform
from .port_actions import kill_and_verify
from .process_models import MAX_PORT, MIN_PORT
from .table_output import print_table, scan_summary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
_YES_ANSWERS = {"y", "yes"}
_PORT_DIGITS = re.compile(r"[0-9]+")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portpilot",
        description="See what's using your ports. Kill it.",
    )
    parser.add_argument("ports", nargs="*", metavar="port", help="TCP port(s) to inspect")
    parser.add_argument("-k", "--kill", action="store_true", help="Kill without prompt")
    parser.add_argument("-f", "--free", action="store_true", help="Kill and verify port is freed")
    parser.add_argument("-s", "--scan", action="store_true", help="Show all listening ports")
    parser.add_argument("-v", "--version", action="version", version=f"portpilot v{__version__}")
    return parser


def parse_ports(values: Sequence[str]) -> List[int]:
    """Convert CLI arguments to ports, raising ``ValueError`` on the first bad one."""
    ports = []
    for value in values:
        if not _PORT_DIGITS.fullmatch(value):
            raise ValueError(f"Invalid port: {value}")
        port = int(value)
        if not MIN_PORT <= port <= MAX_PORT:
            raise ValueError(f"Invalid port: {value}")
        ports.append(port)
    return ports


def confirm(question: str) -> bool:
    """Ask a yes/no question; anything but y/yes means no."""
    try:
        answer = input(f"  {question} (y/N) ")
    except EOFError:
        return False
    return answer.strip().lower() in _YES_ANSWERS


def _error(message: str) -> None:
    print()
    print(f"  ✗ {message}")
    print()


def _port_free(port: int) -> None:
    print()
    print(f"  ✓ Port {port} is free")
    print()


async def _scan(platform: PlatformCapability) -> int:
    processes = await platform.list_listening()
    if not processes:
        print()
        print("  ✓ No listening ports found")
        print()
        return EXIT_OK
    print_table(processes)
    print(scan_summary(len(processes)))
    print()
    return EXIT_OK


async def _inspect_port(
    platform: PlatformCapability,
    port: int,
    *,
    kill: bool,
    free: bool,
    confirm_func: Callable[[str], bool],
) -> None:
    proc = await platform.lookup_port(port)
    if proc is None:
        _port_free(port)
        return

    print_table([proc])
    if not (kill or confirm_func(f"Kill {proc.name} on port {port}?")):
        return

    outcome = await kill_and_verify(platform, proc, verify=free)
    if not outcome.killed:
        _error(f"Failed to kill PID {proc.pid} - try running with elevated privileges")
        return

    print(f"  ✓ Killed {proc.name} (PID {proc.pid}) on port {port}")
    if outcome.verified_free is True:
        _port_free(port)
    elif outcome.verified_free is False:
        _error(outcome.message)


async def run(
    args: argparse.Namespace,
    platform: Optional[PlatformCapability] = None,
    confirm_func: Callable[[str], bool] = confirm,
) -> int:
    """Execute parsed arguments; returns the process exit code."""
    try:
        ports = parse_ports(args.ports)
    except ValueError as exc:
        _error(str(exc))
        return EXIT_ERROR

    if not args.scan and not ports:
        build_parser().print_help()
        return EXIT_OK

    try:
        active = platform if platform is not None else get_platform()
    except ConfigurationError as exc:
        _error(str(exc))
        return EXIT_ERROR

    if args.scan:
        return await _scan(active)

    kill = args.kill or args.free
    for port in ports:
        await _inspect_port(active, port, kill=kill, free=args.free, confirm_func=confirm_func)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console entry point."""
    args = build_parser().parse_args(argv)
    try:
        setup_logging()
    except ConfigurationError as exc:
        _error(str(exc))
        return EXIT_ERROR
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
