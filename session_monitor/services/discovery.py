"""
Session discovery service - binds running Claude processes to their session logs.

Searches ~/.claude/projects/ for session files and decides which log each
running process is currently writing. Two evidence sources are combined:

- Direct: sessions-index.json records the authoritative working directory
  (`projectPath`) of each indexed session. When a log's own session has an
  entry, only that path decides: the process cwd must equal it or lie below
  it.
- Encoded name: the directory name is a lossy encoding of a working
  directory. It is only compared against the encoded process cwd, never
  decoded (see paths.py), and only for sessions the index does not list.

Processes are visited newest first; each picks the most recently modified
unclaimed log that matches and was written no earlier than the process
started (minus a grace buffer). A claimed log leaves the pool.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import attrs
import psutil
import pydantic

from session_monitor.config.base import BaseMonitorSettings
from session_monitor.exceptions import InvalidSessionIdError, SessionNotFoundError
from session_monitor.paths import fingerprint_matches
from session_monitor.schemas.operations import DetectedSession, RunningProcess
from session_monitor.schemas.session import SESSIONS_INDEX_FILENAME, SessionsIndex, SessionsIndexAdapter
from session_monitor.services.claude_process import find_claude_processes

__all__ = [
    'LogCandidate',
    'SessionDiscoveryService',
    'validate_session_id',
]

logger = logging.getLogger(__name__)

# Sub-agent transcripts live beside the main log as agent-<id>.jsonl
AGENT_LOG_PREFIX = 'agent-'
SESSION_LOG_SUFFIX = '.jsonl'

# Evidence strength, higher wins before recency is considered
EVIDENCE_NONE = 0
EVIDENCE_INDEX_SUBDIRECTORY = 1
EVIDENCE_FINGERPRINT = 2
EVIDENCE_INDEX_EXACT = 3


def validate_session_id(session_id: str) -> str:
    """
    Reject session IDs that are not opaque tokens.

    Runs before any filesystem access: an ID is only ever joined onto a
    project directory as "<id>.jsonl", so separators and traversal
    sequences are never legitimate.

    Raises:
        InvalidSessionIdError: If the ID is empty or contains '/', '\\', '..' or NUL
    """
    if not session_id or '/' in session_id or '\\' in session_id or '..' in session_id or '\x00' in session_id:
        raise InvalidSessionIdError(session_id)
    return session_id


@attrs.define(frozen=True)
class LogCandidate:
    """A session log eligible for binding, with its own index entry's working directory if any."""

    path: Path
    modified_at: datetime
    indexed_project_path: Path | None = None

    @property
    def project_dir(self) -> Path:
        return self.path.parent

    @property
    def session_id(self) -> str:
        return self.path.stem

    def evidence_for(self, cwd: Path) -> int:
        """How strongly this candidate's session belongs to a working directory."""
        if self.indexed_project_path is not None:
            if cwd == self.indexed_project_path:
                return EVIDENCE_INDEX_EXACT
            if self.indexed_project_path in cwd.parents:
                return EVIDENCE_INDEX_SUBDIRECTORY
            return EVIDENCE_NONE
        if fingerprint_matches(self.project_dir.name, cwd):
            return EVIDENCE_FINGERPRINT
        return EVIDENCE_NONE


class SessionDiscoveryService:
    """
    Service for discovering live Claude Code sessions across all projects.

    Stateless between calls; every detect_sessions() rebuilds its view of
    the process table and the projects directory from scratch.
    """

    def __init__(self, settings: BaseMonitorSettings) -> None:
        self.settings = settings
        self.grace = timedelta(seconds=settings.PROCESS_START_GRACE_SECONDS)

    # ==========================================================================
    # Public API
    # ==========================================================================

    def detect_sessions(self) -> list[DetectedSession]:
        """One-shot: enumerate processes and project directories, then correlate."""
        try:
            processes = find_claude_processes(
                self.settings.PROCESS_NAME,
                exclude_names=[self.settings.MONITOR_PROCESS_NAME],
            )
        except psutil.Error as e:
            logger.warning(f'Cannot enumerate processes: {e}')
            return []

        if not processes:
            return []
        return self.correlate(processes, self.list_project_dirs())

    def correlate(
        self,
        processes: Sequence[RunningProcess],
        project_dirs: Iterable[Path],
    ) -> list[DetectedSession]:
        """
        Bind each process to at most one log file, and each log file to at most one process.

        Args:
            processes: Running Claude processes (any order; sorted here)
            project_dirs: Project directories to draw candidate logs from

        Returns:
            One DetectedSession per bound process, in process visiting order
        """
        pool = self.collect_candidates(project_dirs)
        sessions: list[DetectedSession] = []

        for process in sorted(processes, key=lambda p: p.started_at, reverse=True):
            cwd = process.cwd
            if cwd is None:
                logger.debug(f'Skipping pid {process.pid}: working directory unavailable')
                continue

            candidate = self._select_candidate(cwd, process.started_at, pool)
            if candidate is None:
                logger.debug(f'No session log matches pid {process.pid} ({cwd})')
                continue

            pool.remove(candidate)
            sessions.append(
                DetectedSession(
                    process_id=process.pid,
                    working_directory=cwd,
                    log_file_path=candidate.path,
                    session_id=candidate.session_id,
                    display_name=cwd.name or str(cwd),
                )
            )

        return sessions

    def find_session_file(self, session_id: str) -> Path:
        """
        Locate <session_id>.jsonl in any project directory.

        Raises:
            InvalidSessionIdError: If session_id is not an opaque token (checked first)
            SessionNotFoundError: If no project directory holds the file
        """
        validate_session_id(session_id)

        filename = f'{session_id}{SESSION_LOG_SUFFIX}'
        for project_dir in self.list_project_dirs():
            candidate = project_dir / filename
            if candidate.is_file():
                return candidate

        raise SessionNotFoundError(session_id)

    # ==========================================================================
    # Filesystem Enumeration
    # ==========================================================================

    def list_project_dirs(self) -> list[Path]:
        """Subdirectories of ~/.claude/projects; empty when it is missing or unreadable."""
        projects_dir = self.settings.projects_dir
        try:
            return sorted(path for path in projects_dir.iterdir() if path.is_dir())
        except FileNotFoundError:
            logger.debug(f'Projects directory does not exist: {projects_dir}')
            return []
        except OSError as e:
            logger.warning(f'Cannot list projects directory {projects_dir}: {e}')
            return []

    def list_log_files(self, project_dir: Path) -> list[Path]:
        """
        Main session logs directly inside a project directory.

        Sub-agent transcripts (agent-*.jsonl, or anything under subagents/)
        are derived artifacts and never candidates.
        """
        try:
            return [
                path
                for path in project_dir.glob(f'*{SESSION_LOG_SUFFIX}')
                if path.is_file() and not path.name.startswith(AGENT_LOG_PREFIX)
            ]
        except OSError as e:
            logger.warning(f'Cannot list session logs in {project_dir}: {e}')
            return []

    def load_index(self, project_dir: Path) -> SessionsIndex | None:
        """Read sessions-index.json; None when absent or unparseable."""
        index_path = project_dir / SESSIONS_INDEX_FILENAME
        try:
            return SessionsIndexAdapter.validate_json(index_path.read_bytes())
        except FileNotFoundError:
            return None
        except (OSError, pydantic.ValidationError) as e:
            logger.warning(f'Ignoring unreadable session index {index_path}: {e}')
            return None

    def collect_candidates(self, project_dirs: Iterable[Path]) -> list[LogCandidate]:
        """Every candidate log across the given directories, most recently modified first."""
        candidates: list[LogCandidate] = []
        for project_dir in project_dirs:
            index = self.load_index(project_dir)
            indexed_paths = index.project_paths() if index else {}
            for log_file in self.list_log_files(project_dir):
                modified_at = _file_mtime(log_file)
                if modified_at is None:
                    continue
                candidates.append(
                    LogCandidate(
                        path=log_file,
                        modified_at=modified_at,
                        indexed_project_path=indexed_paths.get(log_file.stem),
                    )
                )

        candidates.sort(key=lambda c: c.modified_at, reverse=True)
        return candidates

    # ==========================================================================
    # Matching
    # ==========================================================================

    def _select_candidate(
        self, cwd: Path, started_at: datetime, pool: Sequence[LogCandidate]
    ) -> LogCandidate | None:
        """Strongest evidence first, then the most recent log (pool is already mtime-descending)."""
        earliest = started_at - self.grace

        best: LogCandidate | None = None
        best_evidence = EVIDENCE_NONE
        for candidate in pool:
            if candidate.modified_at < earliest:
                continue
            evidence = candidate.evidence_for(cwd)
            if evidence > best_evidence:
                best, best_evidence = candidate, evidence
        return best


def _file_mtime(path: Path) -> datetime | None:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, UTC)
    except OSError as e:
        logger.warning(f'Cannot stat session log {path}: {e}')
        return None
