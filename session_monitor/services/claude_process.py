"""Detect running Claude Code processes from the OS process table."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import psutil

from session_monitor.schemas.operations import RunningProcess

__all__ = [
    'executable_names',
    'find_claude_processes',
    'process_from_info',
]

logger = logging.getLogger(__name__)

# psutil attributes fetched in one pass per process
PROCESS_ATTRS = ['pid', 'name', 'cwd', 'create_time']


def executable_names(process_name: str, platform: str = sys.platform) -> frozenset[str]:
    """Names the process table may report for an executable (adds .exe on Windows)."""
    if platform.startswith('win'):
        return frozenset({process_name, f'{process_name}.exe'})
    return frozenset({process_name})


def process_from_info(info: Mapping[str, Any]) -> RunningProcess:
    """Build a RunningProcess from a psutil info dict.

    cwd is None when the OS denied access; create_time falls back to the epoch
    so such a process sorts as the oldest.
    """
    cwd = info.get('cwd')
    create_time = info.get('create_time') or 0.0
    return RunningProcess(
        pid=int(info['pid']),
        name=str(info.get('name') or ''),
        cwd=Path(cwd) if cwd else None,
        started_at=datetime.fromtimestamp(create_time, UTC),
    )


def find_claude_processes(
    process_name: str,
    *,
    exclude_names: Iterable[str] = (),
    exclude_pid: int | None = None,
) -> list[RunningProcess]:
    """
    Enumerate running processes whose name equals the Claude executable name.

    The monitor's own process is excluded both by pid and by name, since a
    monitor named e.g. "claude-monitor" must never be mistaken for a session.

    Args:
        process_name: Executable name of the Claude Code CLI (e.g. "claude")
        exclude_names: Additional process names to skip
        exclude_pid: PID to skip (defaults to the current process)

    Returns:
        Processes sorted by start time, most recently started first
    """
    wanted = executable_names(process_name)
    excluded = frozenset(exclude_names)
    own_pid = os.getpid() if exclude_pid is None else exclude_pid

    processes: list[RunningProcess] = []
    for proc in psutil.process_iter(PROCESS_ATTRS):
        info = proc.info
        name = info.get('name') or ''
        if name not in wanted or name in excluded or info.get('pid') == own_pid:
            continue
        processes.append(process_from_info(info))

    processes.sort(key=lambda p: p.started_at, reverse=True)
    logger.debug(f'Found {len(processes)} {process_name} processes')
    return processes
