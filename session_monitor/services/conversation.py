"""
Conversation service - full message history of one session.

Off the hot path: reads the entire log on demand. The session ID is validated
before any filesystem access.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from session_monitor.exceptions import LogReadError
from session_monitor.schemas.operations import Conversation, ConversationMessage
from session_monitor.schemas.session import (
    AssistantTurn,
    LogEntry,
    TextBlock,
    ThinkingBlock,
    ToolInvocation,
    ToolOutcome,
    UserTurn,
)
from session_monitor.services.discovery import SessionDiscoveryService
from session_monitor.services.parser import SessionLogParser

__all__ = [
    'SessionConversationService',
    'extract_messages',
    'format_tool_invocation',
    'format_tool_outcome',
]

logger = logging.getLogger(__name__)


def format_tool_invocation(invocation: ToolInvocation) -> str:
    """[Bash] toolu_01 - {pretty JSON input}"""
    return f'[{invocation.name}] {invocation.id} - {_pretty_json(invocation.input)}'


def format_tool_outcome(outcome: ToolOutcome) -> str:
    """[Result] toolu_01: output, or [Error] ... when the tool failed."""
    label = 'Error' if outcome.is_error else 'Result'
    return f'[{label}] {outcome.tool_id}: {outcome.output}'


def extract_messages(entries: Iterable[LogEntry]) -> list[ConversationMessage]:
    """
    Flatten decoded entries into displayable messages.

    User turns yield one message (ToolResult role for re-injected tool
    results). Assistant turns yield one message per text, thinking, tool
    invocation and tool outcome block; opaque blocks are skipped.
    Informational entries yield nothing.
    """
    messages: list[ConversationMessage] = []
    for entry in entries:
        match entry:
            case UserTurn():
                messages.append(
                    ConversationMessage(
                        timestamp=entry.timestamp,
                        message_type='ToolResult' if entry.is_tool_result else 'User',
                        content=entry.text,
                    )
                )
            case AssistantTurn():
                for block in entry.content_blocks:
                    match block:
                        case TextBlock():
                            message_type, content = 'Assistant', block.text
                        case ThinkingBlock():
                            message_type, content = 'Thinking', block.thinking
                        case ToolInvocation():
                            message_type, content = 'ToolUse', format_tool_invocation(block)
                        case ToolOutcome():
                            message_type, content = 'ToolResult', format_tool_outcome(block)
                        case _:
                            continue
                    messages.append(
                        ConversationMessage(timestamp=entry.timestamp, message_type=message_type, content=content)
                    )
    return messages


class SessionConversationService:
    """Service for on-demand full-history retrieval."""

    def __init__(self, discovery: SessionDiscoveryService, parser: SessionLogParser) -> None:
        self.discovery = discovery
        self.parser = parser

    def get_conversation(self, session_id: str) -> Conversation:
        """
        Read and flatten the complete history of a session.

        Args:
            session_id: Opaque session ID (log file stem)

        Returns:
            Conversation with messages in log order

        Raises:
            InvalidSessionIdError: If session_id contains separators or traversal sequences
            SessionNotFoundError: If no project directory holds the log
            LogReadError: If the log exists but cannot be read
        """
        log_file = self.discovery.find_session_file(session_id)

        try:
            entries = self.parser.parse_all(log_file)
        except OSError as e:
            raise LogReadError(log_file, str(e)) from e

        messages = extract_messages(entries)
        logger.debug(f'Extracted {len(messages)} messages from {log_file}')
        return Conversation(session_id=session_id, messages=messages)


def _pretty_json(value: Any) -> str:
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return ''
