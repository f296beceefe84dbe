"""
Claude Code Session Monitor MCP Server.

Runs the poll/notify loop in the background and exposes its view of live
Claude Code sessions as tools.

Setup:
    claude mcp add --scope user claude-monitor -- claude-monitor-mcp

Example:
    # Latest published snapshot (refreshed every few seconds)
    list_sessions()

    # Full history of one session
    get_conversation('6f1c2d3e-...')
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import Any

import attrs
from mcp.server.fastmcp import Context, FastMCP

from session_monitor.config.monitor import settings
from session_monitor.mcp.utils import DualLogger
from session_monitor.schemas.operations import Conversation, DetectedSession, MonitorSnapshot, SessionNotification
from session_monitor.services.conversation import SessionConversationService
from session_monitor.services.parser import SessionLogParser
from session_monitor.services.polling import SessionMonitor

logger = logging.getLogger(__name__)

# ==============================================================================
# Server State (immutable)
# ==============================================================================


@attrs.define(frozen=True)
class ServerState:
    """
    Immutable server state initialized at startup.

    The monitor itself is mutable, but only its background task mutates it;
    tools read the frozen snapshots it publishes.
    """

    monitor: SessionMonitor
    conversation_service: SessionConversationService
    loop_task: asyncio.Task[None]


def _log_notification(notification: SessionNotification) -> None:
    logger.info(f'[{notification.kind}] {notification.body} ({notification.title})')


# ==============================================================================
# Lifespan Management
# ==============================================================================


@contextlib.asynccontextmanager
async def lifespan(mcp_server: FastMCP) -> AsyncIterator[None]:
    """
    Manage server lifecycle and state initialization.

    Starts the session monitor loop at startup and cancels it on shutdown.
    """
    monitor = SessionMonitor.from_settings(settings, on_notify=_log_notification)
    conversation_service = SessionConversationService(monitor.discovery, SessionLogParser())
    loop_task = asyncio.create_task(monitor.run_forever())

    try:
        state = ServerState(
            monitor=monitor,
            conversation_service=conversation_service,
            loop_task=loop_task,
        )

        # Register tools with closure over state
        register_tools(state)

        logger.info(f'[MCP Server] Watching {settings.projects_dir}')

        yield  # Setup successful; application active

    finally:
        loop_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await loop_task
        logger.info('[MCP Server] Session monitor stopped')


# ==============================================================================
# Server Setup
# ==============================================================================

server = FastMCP('claude-monitor', lifespan=lifespan)


# ==============================================================================
# Tool Registration (Closure Pattern)
# ==============================================================================


def register_tools(state: ServerState) -> None:
    """
    Register MCP tools with closure over server state.

    Args:
        state: Server state containing the monitor and services
    """

    @server.tool()
    async def list_sessions(ctx: Context[Any, Any, Any] | None = None) -> MonitorSnapshot:
        """
        Live Claude Code sessions with their inferred status.

        Returns the snapshot most recently published by the background loop.
        Before the first cycle completes, runs a one-shot detection instead
        (without touching the loop's notification memory).

        Returns:
            MonitorSnapshot with one SessionSnapshot per live session. Status is
            one of Working, NeedsPermission, WaitingForInput, Connecting.

        Examples:
            snapshot = await list_sessions()
            # Returns: MonitorSnapshot(cycle=12, sessions=[SessionSnapshot(status='NeedsPermission', ...)])
        """
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')
        log = DualLogger(ctx, logger)

        latest = state.monitor.latest
        if latest is not None:
            return latest

        await log.info('No snapshot published yet, detecting sessions directly')
        now = datetime.now(UTC)
        sessions = await asyncio.to_thread(state.monitor.collect_sessions, now)
        return MonitorSnapshot(cycle=0, taken_at=now, sessions=tuple(sessions))

    @server.tool()
    async def detect_sessions(ctx: Context[Any, Any, Any] | None = None) -> list[DetectedSession]:
        """
        One-shot process/session correlation, without status inference.

        Returns:
            DetectedSession per running Claude process bound to a session log
        """
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')
        log = DualLogger(ctx, logger)

        detected = await asyncio.to_thread(state.monitor.discovery.detect_sessions)
        await log.debug(f'Detected {len(detected)} sessions')
        return detected

    @server.tool()
    async def get_conversation(session_id: str, ctx: Context[Any, Any, Any] | None = None) -> Conversation:
        """
        Full message history of a session.

        Args:
            session_id: Session ID (log file name without .jsonl). Must not
                contain path separators or '..'.

        Returns:
            Conversation with messages typed User, Assistant, Thinking,
            ToolUse or ToolResult, in log order

        Examples:
            conversation = await get_conversation('6f1c2d3e-8b88-43e0-a6da-71d649ec07b0')
        """
        if ctx is None:
            raise RuntimeError('Context is required - must be called via FastMCP')
        log = DualLogger(ctx, logger)

        conversation = await asyncio.to_thread(state.conversation_service.get_conversation, session_id)
        await log.info(f'Read {len(conversation.messages)} messages from session {session_id}')
        return conversation


# ==============================================================================
# Server Entry Point
# ==============================================================================


def main() -> None:
    """Run the MCP server."""
    logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(name)s: %(message)s')
    server.run()


if __name__ == '__main__':
    main()
