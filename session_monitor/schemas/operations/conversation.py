"""
Conversation operation schemas.

Models for full-history retrieval returned by get_conversation.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from session_monitor.schemas.base import StrictModel
from session_monitor.schemas.types import JsonDatetime

MessageType = Literal['User', 'Assistant', 'Thinking', 'ToolUse', 'ToolResult']


class ConversationMessage(StrictModel):
    """One displayable message. Assistant turns expand to one message per content block."""

    timestamp: JsonDatetime | None
    message_type: MessageType
    content: str


class Conversation(StrictModel):
    """Complete message history of one session."""

    session_id: str
    messages: Sequence[ConversationMessage] = ()
