"""
Shared exceptions for claude-session-monitor.

Domain-specific exceptions used across services. Only raised on explicit,
on-demand requests; the poll loop degrades instead of raising.

Exception Hierarchy:
    SessionMonitorError (base)
    ├── SessionResolutionError (lookup/resolution failures)
    │   ├── InvalidSessionIdError (id is not an opaque token)
    │   └── SessionNotFoundError (no log file for a valid id)
    └── LogReadError (log file exists but cannot be read)
"""

from __future__ import annotations

from pathlib import Path


class SessionMonitorError(Exception):
    """Base exception for all claude-session-monitor errors."""


class SessionResolutionError(SessionMonitorError):
    """Base exception for session lookup and resolution failures."""


class InvalidSessionIdError(SessionResolutionError):
    """Raised when a session ID contains path separators or traversal sequences."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__('Invalid session ID format')


class SessionNotFoundError(SessionResolutionError):
    """Raised when no project directory holds a log for the session ID."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f'Session {session_id} not found in any project directory')


class LogReadError(SessionMonitorError):
    """Raised when a session log cannot be read on an explicit request."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f'Failed to read session log {path}: {reason}')
