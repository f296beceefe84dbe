"""
Session info service - enriches a detected session into a display snapshot.

Aggregates data from:
- The session log tail (status, latest message, pending tool, branch, custom title)
- sessions-index.json (first prompt, summary, message count, modified, branch)
- A direct scan of the log when the index has no entry for the session
- The log file's mtime (recency override and fallback "modified")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import attrs

from session_monitor.config.base import BaseMonitorSettings
from session_monitor.schemas.operations import DetectedSession, SessionSnapshot, SessionStatus
from session_monitor.schemas.session import (
    AssistantTurn,
    Informational,
    LogEntry,
    SessionIndexEntry,
    UserTurn,
)
from session_monitor.services.discovery import SessionDiscoveryService
from session_monitor.services.parser import SessionLogParser
from session_monitor.services.status import StatusInference, latest_message, truncate

__all__ = [
    'DEFAULT_FIRST_PROMPT',
    'LogMetadata',
    'SessionInfoService',
]

logger = logging.getLogger(__name__)

# Shown when no user prompt is found near the start of the log
DEFAULT_FIRST_PROMPT = '(Active session)'

# The first prompt is searched for only this far into the log
FIRST_PROMPT_SCAN_LINES = 50


@attrs.define(frozen=True)
class LogMetadata:
    """Facts normally cached in sessions-index.json, recomputed from the log."""

    first_prompt: str
    message_count: int
    modified: str


# noinspection PyMethodMayBeStatic
class SessionInfoService:
    """
    Service for building SessionSnapshot values.

    Never raises for a single bad session: unreadable logs degrade to
    Connecting with fallback metadata, and the caller decides what to drop.
    """

    def __init__(
        self,
        settings: BaseMonitorSettings,
        parser: SessionLogParser,
        inference: StatusInference,
        discovery: SessionDiscoveryService,
    ) -> None:
        self.settings = settings
        self.parser = parser
        self.inference = inference
        self.discovery = discovery
        self.file_touch_recency = timedelta(seconds=settings.FILE_TOUCH_RECENCY_SECONDS)

    def build_snapshot(self, detected: DetectedSession, now: datetime) -> SessionSnapshot:
        """
        Classify one session and gather its display metadata.

        Args:
            detected: Correlator output for this cycle
            now: Aware UTC "current time" used for every recency comparison

        Returns:
            SessionSnapshot (message_count may be 0 for a log with no turns yet)
        """
        log_file = detected.log_file_path
        window = self._read_window(log_file)
        modified_at = self._file_mtime(log_file)

        status = self.apply_recency_override(self.inference.infer(window, now), modified_at, now)

        index_entry = self._index_entry(detected)
        if index_entry is not None and index_entry.message_count is not None:
            first_prompt = truncate(
                index_entry.first_prompt or DEFAULT_FIRST_PROMPT, self.settings.FIRST_PROMPT_MAX_CHARS
            )
            message_count = index_entry.message_count
            modified = index_entry.modified or _isoformat(modified_at)
            summary = index_entry.summary
            git_branch = index_entry.git_branch or _last_git_branch(window)
        else:
            metadata = self.scan_log_metadata(log_file, modified_at)
            first_prompt = metadata.first_prompt
            message_count = metadata.message_count
            modified = metadata.modified
            summary = index_entry.summary if index_entry else None
            git_branch = _last_git_branch(window)

        return SessionSnapshot(
            id=detected.session_id,
            pid=detected.process_id,
            project_path=str(detected.working_directory),
            log_file=str(log_file),
            session_name=detected.display_name,
            custom_title=_last_custom_title(window),
            git_branch=git_branch,
            first_prompt=first_prompt,
            summary=summary,
            message_count=message_count,
            modified=modified,
            status=status,
            latest_message=latest_message(window, self.settings.LATEST_MESSAGE_MAX_CHARS),
            pending_tool_name=self.inference.pending_tool_name(window),
        )

    def apply_recency_override(
        self,
        status: SessionStatus,
        modified_at: datetime | None,
        now: datetime,
    ) -> SessionStatus:
        """
        Promote WaitingForInput to Working when the log was written in the last few seconds.

        Progress records decode as Informational and may fall outside the tail
        window; a fresh mtime is the only trace they leave.
        """
        if status is not SessionStatus.WAITING_FOR_INPUT or modified_at is None:
            return status
        if now - modified_at < self.file_touch_recency:
            return SessionStatus.WORKING
        return status

    def scan_log_metadata(self, log_file: Path, modified_at: datetime | None) -> LogMetadata:
        """
        Derive first prompt, message count and modified time by reading the whole log.

        Used when the project's index has no entry for the session.
        """
        first_prompt: str | None = None
        message_count = 0
        try:
            for line_number, entry in enumerate(self.parser.iter_entries(log_file)):
                if not isinstance(entry, (UserTurn, AssistantTurn)):
                    continue
                message_count += 1
                if (
                    first_prompt is None
                    and line_number < FIRST_PROMPT_SCAN_LINES
                    and isinstance(entry, UserTurn)
                    and not entry.is_tool_result
                    and entry.text
                ):
                    first_prompt = truncate(entry.text, self.settings.FIRST_PROMPT_MAX_CHARS)
        except OSError as e:
            logger.warning(f'Cannot scan session log {log_file}: {e}')

        return LogMetadata(
            first_prompt=first_prompt or DEFAULT_FIRST_PROMPT,
            message_count=message_count,
            modified=_isoformat(modified_at),
        )

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _read_window(self, log_file: Path) -> list[LogEntry]:
        try:
            return self.parser.parse_tail(log_file, self.settings.TAIL_ENTRY_COUNT)
        except OSError as e:
            logger.warning(f'Cannot read session log {log_file}: {e}')
            return []

    def _file_mtime(self, log_file: Path) -> datetime | None:
        try:
            return datetime.fromtimestamp(log_file.stat().st_mtime, UTC)
        except OSError:
            return None

    def _index_entry(self, detected: DetectedSession) -> SessionIndexEntry | None:
        index = self.discovery.load_index(detected.project_dir)
        if index is None:
            return None
        return index.find(detected.session_id)


def _isoformat(moment: datetime | None) -> str:
    return moment.isoformat() if moment is not None else ''


def _last_git_branch(window: Sequence[LogEntry]) -> str | None:
    for entry in reversed(window):
        if isinstance(entry, (UserTurn, AssistantTurn)) and entry.git_branch:
            return entry.git_branch
    return None


def _last_custom_title(window: Sequence[LogEntry]) -> str | None:
    for entry in reversed(window):
        if isinstance(entry, Informational) and entry.custom_title:
            return entry.custom_title
    return None
