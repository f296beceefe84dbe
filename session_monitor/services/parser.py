"""
Session log parser service - JSONL decoding into typed entries.

Framework-agnostic service for reading Claude Code session logs.

Two entry points:
- parse_tail(): last N non-blank lines, read backward from end-of-file
  without loading the whole file (hot polling path)
- parse_all(): every line (on-demand full-history retrieval)

Decoding never fails as a whole: a line that is not JSON, not an object, or
does not match a known record shape becomes an Informational entry and
parsing continues with the next line.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pydantic

from session_monitor.schemas.session import (
    AssistantTurn,
    ContentBlock,
    Informational,
    LogEntry,
    OpaqueBlock,
    RawAssistantRecord,
    RawCustomTitleRecord,
    RawSessionRecordAdapter,
    RawTextBlock,
    RawThinkingBlock,
    RawToolResultBlock,
    RawToolUseBlock,
    RawUserRecord,
    TextBlock,
    ThinkingBlock,
    ToolInvocation,
    ToolOutcome,
    UserTurn,
)

__all__ = [
    'SessionLogParser',
    'parse_timestamp',
]

logger = logging.getLogger(__name__)

# Placeholder text for a tool_result user record with no textual payload
TOOL_RESULT_PLACEHOLDER = '[tool result]'


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp from a log record; None if absent or unparseable.

    Naive timestamps are taken as UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class SessionLogParser:
    """
    Service for parsing Claude Code session JSONL files.

    Stateless - decodes raw lines into typed LogEntry objects.
    """

    # Bytes read per backward step in read_last_lines()
    TAIL_BLOCK_SIZE = 8192

    # ==========================================================================
    # File Access
    # ==========================================================================

    def parse_tail(self, file_path: Path, count: int) -> list[LogEntry]:
        """
        Decode the last `count` non-blank lines of a session log.

        Equivalent to parse_all(file_path)[-count:] for any file size.

        Raises:
            OSError: If the file cannot be opened or read
        """
        return self.parse_lines(self.read_last_lines(file_path, count))

    def parse_all(self, file_path: Path) -> list[LogEntry]:
        """
        Decode every line of a session log.

        Raises:
            OSError: If the file cannot be opened or read
        """
        return list(self.iter_entries(file_path))

    def iter_entries(self, file_path: Path) -> Iterator[LogEntry]:
        """Stream decoded entries from the start of a session log."""
        with open(file_path, 'rb') as f:
            for raw_line in f:
                line = _decode_bytes(raw_line)
                if _is_blank(line):
                    continue
                yield self.decode_line(line)

    def read_last_lines(self, file_path: Path, count: int) -> list[str]:
        """
        Read the last `count` non-blank lines of a file.

        Seeks near end-of-file and walks backward block by block until enough
        complete lines are buffered, then splits forward. The first fragment of
        the buffer is discarded unless the read reached the start of the file,
        since it may be the tail end of a longer line.

        Raises:
            OSError: If the file cannot be opened or read
        """
        if count <= 0:
            return []

        with open(file_path, 'rb') as f:
            position = f.seek(0, os.SEEK_END)
            buffer = b''
            non_blank: list[str] = []

            while True:
                read_size = min(self.TAIL_BLOCK_SIZE, position)
                position -= read_size
                f.seek(position)
                buffer = f.read(read_size) + buffer

                pieces = buffer.split(b'\n')
                # pieces[0] may be a partial line unless we are at offset 0
                decoded = (_decode_bytes(piece) for piece in (pieces if position == 0 else pieces[1:]))
                non_blank = [line for line in decoded if not _is_blank(line)]

                if position == 0 or len(non_blank) >= count:
                    break

        return non_blank[-count:]

    # ==========================================================================
    # Decoding
    # ==========================================================================

    def parse_lines(self, lines: Iterable[str]) -> list[LogEntry]:
        """Decode raw lines, skipping blank ones."""
        return [self.decode_line(line) for line in lines if not _is_blank(line)]

    def decode_line(self, line: str) -> LogEntry:
        """
        Decode one JSONL line.

        Never raises: malformed or unrecognized lines become Informational.
        """
        try:
            raw_data = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f'Skipping malformed log line: {line[:80]}')
            return Informational()

        if not isinstance(raw_data, dict):
            return Informational()

        record_type = raw_data.get('type')
        if not isinstance(record_type, str):
            record_type = None

        try:
            record = RawSessionRecordAdapter.validate_python(raw_data)
        except pydantic.ValidationError:
            # Unknown record type (progress, snapshot, summary, ...) or a known
            # type missing required fields
            return Informational(record_type=record_type)

        match record:
            case RawUserRecord():
                return self._decode_user(record)
            case RawAssistantRecord():
                return self._decode_assistant(record)
            case RawCustomTitleRecord():
                return Informational(record_type=record_type, custom_title=record.custom_title)

    def _decode_user(self, record: RawUserRecord) -> UserTurn:
        content = record.message.content
        timestamp = parse_timestamp(record.timestamp)

        if content is None:
            return UserTurn(timestamp=timestamp, text='', git_branch=record.git_branch)

        if isinstance(content, str):
            return UserTurn(timestamp=timestamp, text=content, git_branch=record.git_branch)

        parts: list[str] = []
        has_tool_result = False
        for block in content:
            match block:
                case RawToolResultBlock():
                    has_tool_result = True
                    text = _tool_result_text(block.content)
                    if text:
                        parts.append(text)
                case RawTextBlock():
                    parts.append(block.text)

        if has_tool_result:
            text = '\n'.join(parts) if parts else TOOL_RESULT_PLACEHOLDER
        else:
            text = '\n'.join(parts)

        return UserTurn(
            timestamp=timestamp,
            text=text,
            is_tool_result=has_tool_result,
            git_branch=record.git_branch,
        )

    def _decode_assistant(self, record: RawAssistantRecord) -> AssistantTurn:
        blocks: list[ContentBlock] = []
        for block in record.message.content:
            match block:
                case RawTextBlock():
                    blocks.append(TextBlock(text=block.text))
                case RawThinkingBlock():
                    blocks.append(ThinkingBlock(thinking=block.thinking))
                case RawToolUseBlock():
                    blocks.append(ToolInvocation(id=block.id, name=block.name, input=block.input))
                case RawToolResultBlock():
                    blocks.append(
                        ToolOutcome(
                            tool_id=block.tool_use_id,
                            output=_tool_result_text(block.content),
                            is_error=bool(block.is_error),
                        )
                    )
                case _:
                    blocks.append(OpaqueBlock(block_type=block.type))

        return AssistantTurn(
            timestamp=parse_timestamp(record.timestamp),
            content_blocks=tuple(blocks),
            stop_reason=record.message.stop_reason,
            git_branch=record.git_branch,
        )


def _tool_result_text(content: str | Sequence[Mapping[str, Any]] | None) -> str:
    """Flatten tool_result content: a string, or an array of text blocks."""
    if content is None:
        return ''
    if isinstance(content, str):
        return content
    texts = [block['text'] for block in content if isinstance(block.get('text'), str)]
    return '\n'.join(texts)


def _decode_bytes(raw_line: bytes) -> str:
    return raw_line.decode('utf-8', errors='replace')


def _is_blank(line: str) -> bool:
    # U+00A0 and other Unicode whitespace count as blank
    return not line.strip()
