#!/usr/bin/env python3
"""
Command-line interface for claude-session-monitor.

Provides commands to list live Claude Code sessions, read a session's
conversation, and watch statuses change.
"""

from __future__ import annotations

import asyncio
import contextlib
import traceback
from typing import Literal

import typer

from session_monitor.cli.logger import configure_logging
from session_monitor.config.base import BaseMonitorSettings
from session_monitor.config.monitor import settings
from session_monitor.exceptions import SessionMonitorError
from session_monitor.schemas.operations import (
    MonitorSnapshot,
    SessionNotification,
    SessionSnapshot,
    SessionStatus,
)
from session_monitor.services.conversation import SessionConversationService
from session_monitor.services.discovery import SessionDiscoveryService
from session_monitor.services.parser import SessionLogParser
from session_monitor.services.polling import SessionMonitor

app = typer.Typer(
    name='claude-monitor',
    help='Monitor running Claude Code sessions',
    add_completion=False,
)

STATUS_COLORS = {
    SessionStatus.WORKING: typer.colors.GREEN,
    SessionStatus.NEEDS_PERMISSION: typer.colors.YELLOW,
    SessionStatus.WAITING_FOR_INPUT: typer.colors.CYAN,
    SessionStatus.CONNECTING: typer.colors.WHITE,
}


def _echo_session(session: SessionSnapshot) -> None:
    """One line per session: status, pid, name, then what it is doing."""
    typer.secho(f'{session.status.value:<16}', fg=STATUS_COLORS[session.status], nl=False)
    name = session.custom_title or session.session_name
    branch = f' ({session.git_branch})' if session.git_branch else ''
    typer.echo(f' {session.pid:>7}  {name}{branch}  {session.id}')
    if session.pending_tool_name and session.status is SessionStatus.NEEDS_PERMISSION:
        typer.echo(f'{"":25}Needs permission for {session.pending_tool_name}')
    elif session.latest_message:
        typer.echo(f'{"":25}{session.latest_message}')


def _echo_notification(notification: SessionNotification) -> None:
    color = typer.colors.YELLOW if notification.kind == 'needs_permission' else typer.colors.CYAN
    typer.secho(f'[{notification.created_at:%H:%M:%S}] {notification.body}', fg=color, bold=True)
    typer.echo(f'           {notification.title}')


@app.command()
def sessions(
    format: Literal['text', 'json'] = typer.Option('text', '--format', '-f', help='Output format: text or json'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """List running Claude Code sessions and their current status.

    Examples:
        claude-monitor sessions
        claude-monitor sessions --format json
    """
    configure_logging(verbose)
    try:
        snapshot = SessionMonitor.from_settings(settings).run_cycle()
    except Exception as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        if verbose:
            traceback.print_exc()
        raise typer.Exit(1)

    if format == 'json':
        typer.echo(snapshot.model_dump_json(indent=2))
        return

    if not snapshot.sessions:
        typer.secho('No running Claude Code sessions found.', fg=typer.colors.YELLOW)
        return

    for session in snapshot.sessions:
        _echo_session(session)


@app.command()
def conversation(
    session_id: str = typer.Argument(..., help='Session ID (the log file name without .jsonl)'),
    format: Literal['text', 'json'] = typer.Option('text', '--format', '-f', help='Output format: text or json'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Print the full message history of a session.

    Examples:
        claude-monitor conversation 6f1c2d3e-...
        claude-monitor conversation 6f1c2d3e-... --format json
    """
    configure_logging(verbose)
    service = SessionConversationService(SessionDiscoveryService(settings), SessionLogParser())
    try:
        result = service.get_conversation(session_id)
    except SessionMonitorError as e:
        typer.secho(f'Error: {e}', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if format == 'json':
        typer.echo(result.model_dump_json(indent=2))
        return

    for message in result.messages:
        stamp = f'{message.timestamp:%Y-%m-%d %H:%M:%S}' if message.timestamp else '-'
        typer.secho(f'[{stamp}] {message.message_type}', bold=True)
        typer.echo(message.content)
        typer.echo()


@app.command()
def watch(
    interval: float | None = typer.Option(None, '--interval', '-i', help='Seconds between polls (default: 3.5)'),
    cycles: int = typer.Option(0, '--cycles', '-n', help='Stop after this many polls (0: run until interrupted)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Watch sessions, printing status changes and notifications as they happen.

    Examples:
        claude-monitor watch
        claude-monitor watch --interval 1
    """
    configure_logging(verbose)
    if interval is not None and interval <= 0:
        raise typer.BadParameter('Must be greater than 0', param_hint='--interval')

    watch_settings: BaseMonitorSettings = settings
    if interval is not None:
        watch_settings = settings.model_copy(update={'POLL_INTERVAL_SECONDS': interval})

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_watch_async(SessionMonitor.from_settings(watch_settings), cycles))


async def _watch_async(monitor: SessionMonitor, cycles: int) -> None:
    """Run the loop in the background and render each published snapshot."""
    subscription = monitor.subscribe()
    task = asyncio.create_task(monitor.run_forever())
    previous: dict[str, SessionStatus] | None = None
    received = 0
    try:
        while cycles == 0 or received < cycles:
            snapshot = await subscription.get()
            received += 1
            previous = _render_snapshot(snapshot, previous)
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


def _render_snapshot(
    snapshot: MonitorSnapshot,
    previous: dict[str, SessionStatus] | None,
) -> dict[str, SessionStatus]:
    """Print sessions whose status changed (all of them on the first snapshot)."""
    current = {session.id: session.status for session in snapshot.sessions}
    if previous is None and not snapshot.sessions:
        typer.secho('No running Claude Code sessions found. Watching...', fg=typer.colors.YELLOW)

    for session in snapshot.sessions:
        if previous is None or previous.get(session.id) is not session.status:
            _echo_session(session)

    for session_id in (previous or {}).keys() - current.keys():
        typer.secho(f'{"Ended":<16} {session_id}', dim=True)

    for notification in snapshot.notifications:
        _echo_notification(notification)
    return current


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == '__main__':
    main()
