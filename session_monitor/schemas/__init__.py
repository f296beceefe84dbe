"""
Schema definitions for claude-session-monitor.

This package contains Pydantic models for various data schemas:
- session: Claude Code session JSONL records, decoded entries, sessions index
- operations: Service operation result schemas (discovery, snapshot, conversation)
- settings: Claude Code settings.json (permission allow-list)
"""

from __future__ import annotations

from session_monitor.schemas.base import StrictModel
from session_monitor.schemas.types import JsonDatetime

__all__ = [
    'StrictModel',
    'JsonDatetime',
]
