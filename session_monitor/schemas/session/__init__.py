"""
Session JSONL schema models.

- records.py: raw JSONL record shapes (permissive, only fields we read)
- entries.py: decoded LogEntry union consumed by status inference
- index.py: optional sessions-index.json cache
"""

from __future__ import annotations

from session_monitor.schemas.session.entries import (
    AssistantTurn,
    ContentBlock,
    Informational,
    LogEntry,
    MeaningfulEntry,
    OpaqueBlock,
    TextBlock,
    ThinkingBlock,
    ToolInvocation,
    ToolOutcome,
    UserTurn,
)
from session_monitor.schemas.session.index import (
    SESSIONS_INDEX_FILENAME,
    SessionIndexEntry,
    SessionsIndex,
    SessionsIndexAdapter,
)
from session_monitor.schemas.session.records import (
    RawAssistantRecord,
    RawCustomTitleRecord,
    RawSessionRecord,
    RawSessionRecordAdapter,
    RawTextBlock,
    RawThinkingBlock,
    RawToolResultBlock,
    RawToolUseBlock,
    RawUnknownBlock,
    RawUserRecord,
)

__all__ = [
    # Entries
    'AssistantTurn',
    'ContentBlock',
    'Informational',
    'LogEntry',
    'MeaningfulEntry',
    'OpaqueBlock',
    'TextBlock',
    'ThinkingBlock',
    'ToolInvocation',
    'ToolOutcome',
    'UserTurn',
    # Index
    'SESSIONS_INDEX_FILENAME',
    'SessionIndexEntry',
    'SessionsIndex',
    'SessionsIndexAdapter',
    # Raw records
    'RawAssistantRecord',
    'RawCustomTitleRecord',
    'RawSessionRecord',
    'RawSessionRecordAdapter',
    'RawTextBlock',
    'RawThinkingBlock',
    'RawToolResultBlock',
    'RawToolUseBlock',
    'RawUnknownBlock',
    'RawUserRecord',
]
