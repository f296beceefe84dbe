"""
Discovery operation schemas.

Models for process enumeration and process/session correlation results.
Both are rebuilt every poll cycle and never persisted.
"""

from __future__ import annotations

from pathlib import Path

from session_monitor.schemas.base import StrictModel
from session_monitor.schemas.types import JsonDatetime


class RunningProcess(StrictModel):
    """
    A running Claude Code process, as read from the OS process table.

    No identity persists across cycles except the numeric pid.
    cwd is None when the OS refuses to disclose it (permissions, zombie).
    """

    pid: int
    name: str
    cwd: Path | None = None
    started_at: JsonDatetime


class DetectedSession(StrictModel):
    """
    A running process bound to the session log it is writing.

    Session identity across cycles is session_id (the log file stem), not
    the pid: a process may restart onto the same log, and a log may outlive
    its writer.
    """

    process_id: int
    working_directory: Path
    log_file_path: Path
    session_id: str
    display_name: str

    @property
    def project_dir(self) -> Path:
        """The ~/.claude/projects/{encoded}/ folder holding the log."""
        return self.log_file_path.parent
