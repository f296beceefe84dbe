"""
Operation schemas for service results.

This package contains Pydantic models for operation results returned by services.
These are extracted from service files to enable reuse and cleaner separation.
"""

from __future__ import annotations

from session_monitor.schemas.operations.conversation import Conversation, ConversationMessage, MessageType
from session_monitor.schemas.operations.discovery import DetectedSession, RunningProcess
from session_monitor.schemas.operations.snapshot import (
    MonitorSnapshot,
    NotificationKind,
    SessionNotification,
    SessionSnapshot,
    SessionStatus,
)

__all__ = [
    # Conversation
    'Conversation',
    'ConversationMessage',
    'MessageType',
    # Discovery
    'DetectedSession',
    'RunningProcess',
    # Snapshot
    'MonitorSnapshot',
    'NotificationKind',
    'SessionNotification',
    'SessionSnapshot',
    'SessionStatus',
]
