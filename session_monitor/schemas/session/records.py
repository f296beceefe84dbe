"""
Pydantic models for raw Claude Code session JSONL records.

Only the fields the monitor reads are declared. Every model is permissive
(unknown fields ignored) because the log is written by an external program
whose schema drifts between releases.

Record shapes observed in ~/.claude/projects/<encoded-cwd>/<session-id>.jsonl:

    {"type": "user", "timestamp": "...", "cwd": "...", "gitBranch": "...",
     "message": {"role": "user", "content": "plain prompt" | [blocks]}}

    {"type": "assistant", "timestamp": "...",
     "message": {"content": [blocks], "stop_reason": null}}

    {"type": "custom-title", "customTitle": "...", "sessionId": "..."}

Anything else (progress, file-history-snapshot, summary, system, ...) has no
model here and decodes to an Informational entry.

User content arrays mix `text` blocks with `tool_result` blocks; a
tool_result's own `content` may be a string or an array of text blocks.
Assistant content blocks are keyed by `type`; unknown block types fall
through to RawUnknownBlock instead of failing the record.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal, Union

import pydantic

from session_monitor.schemas.types import PermissiveModel

# ==============================================================================
# Content Blocks
# ==============================================================================


class RawTextBlock(PermissiveModel):
    """Text content block from user or assistant messages."""

    type: Literal['text']
    text: str


class RawThinkingBlock(PermissiveModel):
    """Thinking content block from assistant messages."""

    type: Literal['thinking']
    thinking: str
    signature: str | None = None


class RawToolUseBlock(PermissiveModel):
    """Tool invocation requested by the assistant."""

    type: Literal['tool_use']
    id: str
    name: str
    input: Any = None


class RawToolResultBlock(PermissiveModel):
    """Tool execution result.

    `content` is either a plain string or a sequence of nested blocks
    (usually `{"type": "text", "text": ...}`, sometimes images).
    """

    type: Literal['tool_result']
    tool_use_id: str
    content: str | Sequence[Mapping[str, Any]] | None = None
    is_error: bool | None = None


class RawUnknownBlock(PermissiveModel):
    """Fallback for block types the monitor does not interpret (images, documents, ...)."""

    type: str


RawContentBlock = Annotated[
    Union[RawTextBlock, RawThinkingBlock, RawToolUseBlock, RawToolResultBlock, RawUnknownBlock],
    pydantic.Field(union_mode='left_to_right'),
]


# ==============================================================================
# Messages
# ==============================================================================


class RawUserMessage(PermissiveModel):
    """Message payload of a user record."""

    role: str = 'user'
    content: str | Sequence[RawContentBlock] | None = None


class RawAssistantMessage(PermissiveModel):
    """Message payload of an assistant record.

    stop_reason is almost always null in the JSONL even for finished turns,
    which is why status inference falls back on recency.
    """

    model: str | None = None
    id: str | None = None
    role: str = 'assistant'
    content: Sequence[RawContentBlock] = ()
    stop_reason: str | None = None


# ==============================================================================
# Records (Discriminated Union)
# ==============================================================================


class RawUserRecord(PermissiveModel):
    """A user turn: a human prompt or a tool result fed back to the model."""

    type: Literal['user']
    timestamp: str | None = None
    session_id: str | None = pydantic.Field(default=None, alias='sessionId')
    cwd: str | None = None
    git_branch: str | None = pydantic.Field(default=None, alias='gitBranch')
    message: RawUserMessage


class RawAssistantRecord(PermissiveModel):
    """An assistant turn with its content blocks."""

    type: Literal['assistant']
    timestamp: str | None = None
    session_id: str | None = pydantic.Field(default=None, alias='sessionId')
    cwd: str | None = None
    git_branch: str | None = pydantic.Field(default=None, alias='gitBranch')
    message: RawAssistantMessage


class RawCustomTitleRecord(PermissiveModel):
    """User-defined session name written by /rename."""

    type: Literal['custom-title']
    custom_title: str = pydantic.Field(alias='customTitle')


RawSessionRecord = Annotated[
    Union[RawUserRecord, RawAssistantRecord, RawCustomTitleRecord],
    pydantic.Field(discriminator='type'),
]

RawSessionRecordAdapter: pydantic.TypeAdapter[RawSessionRecord] = pydantic.TypeAdapter(RawSessionRecord)
