"""
Decoded session log entries.

A LogEntry is the typed form of one line of a session log. Entries are
ordered by file position; nothing else orders them.

    UserTurn       - a human prompt, or a tool result re-injected as a user record
    AssistantTurn  - ordered content blocks (text, thinking, tool invocations/outcomes)
    Informational  - progress, snapshots, summaries, unknown or malformed lines
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Any, Literal, Union

import pydantic

from session_monitor.schemas.types import BaseStrictModel, JsonDatetime


class StrictModel(BaseStrictModel):
    """Session-layer strict model."""

    pass


# ==============================================================================
# Content Blocks
# ==============================================================================


class TextBlock(StrictModel):
    kind: Literal['text'] = 'text'
    text: str


class ThinkingBlock(StrictModel):
    kind: Literal['thinking'] = 'thinking'
    thinking: str


class ToolInvocation(StrictModel):
    """A request by the assistant to run a tool, identified by an id local to its turn."""

    kind: Literal['tool_invocation'] = 'tool_invocation'
    id: str
    name: str
    input: Any = None


class ToolOutcome(StrictModel):
    """Result of a tool invocation. Matches an invocation only within the same turn."""

    kind: Literal['tool_outcome'] = 'tool_outcome'
    tool_id: str
    output: str
    is_error: bool = False


class OpaqueBlock(StrictModel):
    """Recognized-but-uninterpreted block (image, document, redacted thinking, ...)."""

    kind: Literal['opaque'] = 'opaque'
    block_type: str


ContentBlock = Annotated[
    Union[TextBlock, ThinkingBlock, ToolInvocation, ToolOutcome, OpaqueBlock],
    pydantic.Field(discriminator='kind'),
]


# ==============================================================================
# Entries
# ==============================================================================


class UserTurn(StrictModel):
    """A user record.

    is_tool_result separates an actual prompt typed by a human from a tool
    result payload written back into the log as a "user" record.
    """

    kind: Literal['user'] = 'user'
    timestamp: JsonDatetime | None = None
    text: str
    is_tool_result: bool = False
    git_branch: str | None = None


class AssistantTurn(StrictModel):
    """An assistant record with its ordered content blocks."""

    kind: Literal['assistant'] = 'assistant'
    timestamp: JsonDatetime | None = None
    content_blocks: tuple[ContentBlock, ...] = ()
    stop_reason: str | None = None
    git_branch: str | None = None

    def tool_invocations(self) -> Iterator[ToolInvocation]:
        for block in self.content_blocks:
            if isinstance(block, ToolInvocation):
                yield block

    def pending_tool_invocations(self) -> list[ToolInvocation]:
        """Invocations with no ToolOutcome carrying the same id in this turn."""
        completed_ids = {block.tool_id for block in self.content_blocks if isinstance(block, ToolOutcome)}
        return [invocation for invocation in self.tool_invocations() if invocation.id not in completed_ids]


class Informational(StrictModel):
    """Record that carries no turn-taking information.

    record_type is the raw `type` discriminator when one could be read; it is
    None for lines that were not valid JSON objects.
    """

    kind: Literal['informational'] = 'informational'
    record_type: str | None = None
    custom_title: str | None = None


LogEntry = Annotated[
    Union[UserTurn, AssistantTurn, Informational],
    pydantic.Field(discriminator='kind'),
]

MeaningfulEntry = Union[UserTurn, AssistantTurn]
