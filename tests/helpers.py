"""
Builders for synthetic Claude Code session logs.

Records mirror the shapes Claude Code writes to
~/.claude/projects/<encoded-cwd>/<session-id>.jsonl, trimmed to the fields
the monitor reads.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

# Fixed "current time" shared by the tests
NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


def iso(moment: datetime) -> str:
    """Timestamp the way Claude Code writes it (millisecond precision, Z suffix)."""
    return moment.astimezone(UTC).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


def ago(seconds: float) -> str:
    return iso(NOW - timedelta(seconds=seconds))


# ==============================================================================
# Content Blocks
# ==============================================================================


def text(value: str) -> dict[str, Any]:
    return {'type': 'text', 'text': value}


def thinking(value: str) -> dict[str, Any]:
    return {'type': 'thinking', 'thinking': value, 'signature': 'sig'}


def tool_use(tool_id: str, name: str, tool_input: Mapping[str, Any] | None = None) -> dict[str, Any]:
    return {'type': 'tool_use', 'id': tool_id, 'name': name, 'input': dict(tool_input or {})}


def tool_result(tool_id: str, content: Any = 'ok', is_error: bool = False) -> dict[str, Any]:
    return {'type': 'tool_result', 'tool_use_id': tool_id, 'content': content, 'is_error': is_error}


# ==============================================================================
# Records
# ==============================================================================


def user_record(content: Any, timestamp: str | None = None, **extra: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        'type': 'user',
        'sessionId': 'session',
        'message': {'role': 'user', 'content': content},
    }
    if timestamp is not None:
        record['timestamp'] = timestamp
    record.update(extra)
    return record


def assistant_record(blocks: Iterable[Mapping[str, Any]], timestamp: str | None = None, **extra: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        'type': 'assistant',
        'sessionId': 'session',
        'message': {
            'role': 'assistant',
            'content': [dict(block) for block in blocks],
            'stop_reason': None,
        },
    }
    if timestamp is not None:
        record['timestamp'] = timestamp
    record.update(extra)
    return record


def progress_record(timestamp: str | None = None) -> dict[str, Any]:
    return {'type': 'progress', 'timestamp': timestamp or iso(NOW), 'data': {'type': 'hook_progress'}}


# ==============================================================================
# Files
# ==============================================================================


def write_jsonl(path: Path, records: Iterable[Mapping[str, Any] | str]) -> Path:
    """Write records one per line. Strings are written verbatim (for malformed lines)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        for record in records:
            f.write(record if isinstance(record, str) else json.dumps(record))
            f.write('\n')
    return path


def set_mtime(path: Path, moment: datetime) -> None:
    timestamp = moment.timestamp()
    os.utime(path, (timestamp, timestamp))
