"""Pydantic models for the optional sessions-index.json cache.

Claude Code may write ~/.claude/projects/<encoded-cwd>/sessions-index.json
with precomputed metadata for each session in that project directory.

The index is an optimization, never a requirement: every fact it provides can
be derived by scanning the raw log. Its one unique contribution is
`projectPath`, the authoritative working directory of the session, which
the encoded directory name cannot provide (the encoding is lossy).

USAGE:
    index = SessionsIndexAdapter.validate_json(path.read_bytes())
    entry = index.find('6f1c...')
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pydantic

from session_monitor.schemas.types import PermissiveModel

SESSIONS_INDEX_FILENAME = 'sessions-index.json'


class SessionIndexEntry(PermissiveModel):
    """Precomputed metadata for one session."""

    session_id: str = pydantic.Field(alias='sessionId')
    full_path: str | None = pydantic.Field(default=None, alias='fullPath')
    file_mtime: int | None = pydantic.Field(default=None, alias='fileMtime')
    first_prompt: str | None = pydantic.Field(default=None, alias='firstPrompt')
    summary: str | None = None
    message_count: int | None = pydantic.Field(default=None, alias='messageCount')
    created: str | None = None
    modified: str | None = None
    git_branch: str | None = pydantic.Field(default=None, alias='gitBranch')
    project_path: str | None = pydantic.Field(default=None, alias='projectPath')
    is_sidechain: bool = pydantic.Field(default=False, alias='isSidechain')


class SessionsIndex(PermissiveModel):
    """Container for all entries in sessions-index.json."""

    version: int | None = None
    entries: Sequence[SessionIndexEntry] = ()

    def find(self, session_id: str) -> SessionIndexEntry | None:
        for entry in self.entries:
            if entry.session_id == session_id:
                return entry
        return None

    def project_paths(self) -> dict[str, Path]:
        """Authoritative working directory per session ID, for entries that record one."""
        return {entry.session_id: Path(entry.project_path) for entry in self.entries if entry.project_path}


SessionsIndexAdapter: pydantic.TypeAdapter[SessionsIndex] = pydantic.TypeAdapter(SessionsIndex)
