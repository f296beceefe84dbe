"""
Snapshot operation schemas.

Models published by the poll loop: the per-session status snapshot sent to
every subscriber each cycle, and the notification fired on debounced status
transitions.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from typing import Literal

from session_monitor.schemas.base import StrictModel
from session_monitor.schemas.types import JsonDatetime


class SessionStatus(enum.StrEnum):
    """Inferred live state of a session.

    Recomputed from scratch every cycle; Connecting is both the initial state
    and the answer whenever the log offers nothing to classify.
    """

    WORKING = 'Working'
    NEEDS_PERMISSION = 'NeedsPermission'
    WAITING_FOR_INPUT = 'WaitingForInput'
    CONNECTING = 'Connecting'


NotificationKind = Literal['needs_permission', 'finished']


class SessionSnapshot(StrictModel):
    """
    One detected session enriched with status and display metadata.

    Field ordering:
    - Identity (who)
    - Location (where)
    - Display (what the user sees)
    - Status (current inferred state)
    """

    # Identity
    id: str
    pid: int

    # Location
    project_path: str  # Working directory of the process
    log_file: str

    # Display
    session_name: str
    custom_title: str | None = None
    git_branch: str | None = None
    first_prompt: str
    summary: str | None = None
    message_count: int
    modified: str  # ISO 8601, from the index or the log file mtime

    # Status
    status: SessionStatus
    latest_message: str
    pending_tool_name: str | None = None


class SessionNotification(StrictModel):
    """Fired when a session stops working, either blocked on approval or finished."""

    session_id: str
    pid: int
    project_path: str
    kind: NotificationKind
    title: str
    body: str
    created_at: JsonDatetime


class MonitorSnapshot(StrictModel):
    """Full state published once per poll cycle, whether or not anything changed.

    notifications holds only those fired during this cycle.
    """

    cycle: int
    taken_at: JsonDatetime
    sessions: Sequence[SessionSnapshot] = ()
    notifications: Sequence[SessionNotification] = ()
