"""Pydantic models for Claude Code's settings.json (partial - only what we need).

    {"permissions": {"allow": ["Bash(git add:*)", "Bash(npm ci)", "Write", "mcp__github__get_issue"]}}
"""

from __future__ import annotations

from collections.abc import Sequence

import pydantic

from session_monitor.schemas.types import PermissiveModel


class PermissionsSection(PermissiveModel):
    allow: Sequence[str] = ()


class ClaudeSettingsFile(PermissiveModel):
    permissions: PermissionsSection | None = None

    @property
    def allow_patterns(self) -> Sequence[str]:
        return self.permissions.allow if self.permissions else ()


ClaudeSettingsFileAdapter: pydantic.TypeAdapter[ClaudeSettingsFile] = pydantic.TypeAdapter(ClaudeSettingsFile)
