"""
Permission policy - answers "does this tool invocation need human approval?"

Loaded once from Claude Code's settings.json allow-list and read-only after
construction. Injected into StatusInference rather than held as a global, so
tests can build policies from literal pattern lists.

Pattern formats in `permissions.allow`:
    Bash(git add:*)          shell command, prefix match (wildcard)
    Bash(npm ci)             shell command, exact match
    Write                    bare tool name, whole tool allowed
    mcp__server__operation   MCP tool, exact name
    Skill(name)              skill (parsed, not consulted)

Anything else is ignored. A missing or unparseable settings file yields an
empty policy: only the hard-coded read-only tools are approved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import attrs
import pydantic

from session_monitor.schemas.settings import ClaudeSettingsFileAdapter

__all__ = [
    'ALWAYS_APPROVED_TOOLS',
    'AllowPattern',
    'PermissionPolicy',
    'parse_pattern',
]

logger = logging.getLogger(__name__)

# Read-only / inspection tools. Hard-coded because a fresh install has an
# empty allow-list and would otherwise look permission-blocked on every read.
ALWAYS_APPROVED_TOOLS = frozenset(
    {
        'Read',
        'Glob',
        'Grep',
        'WebFetch',
        'WebSearch',
        'Task',
        'TaskList',
        'TaskGet',
        'TaskCreate',
        'TaskUpdate',
        'AskUserQuestion',
    }
)

SHELL_TOOL = 'Bash'
MUTATING_TOOLS = frozenset({'Write', 'Edit', 'NotebookEdit'})
MCP_PREFIX = 'mcp__'


@attrs.define(frozen=True)
class AllowPattern:
    """One parsed allow-list entry.

    kind is 'bash', 'tool', 'mcp' or 'skill'. For 'bash', value is the
    command (or command prefix when wildcard is set); otherwise it is a name.
    """

    kind: str
    value: str
    wildcard: bool = False


def parse_pattern(pattern: str) -> AllowPattern | None:
    """
    Parse an allow-list string into an AllowPattern.

    Returns None for formats the policy does not understand.

    Examples:
        >>> parse_pattern('Bash(git add:*)')
        AllowPattern(kind='bash', value='git add', wildcard=True)
        >>> parse_pattern('Bash(npm ci)')
        AllowPattern(kind='bash', value='npm ci', wildcard=False)
    """
    if pattern.startswith(f'{SHELL_TOOL}(') and pattern.endswith(')'):
        inner = pattern[len(SHELL_TOOL) + 1 : -1]
        if inner.endswith(':*'):
            return AllowPattern(kind='bash', value=inner[:-2], wildcard=True)
        return AllowPattern(kind='bash', value=inner)

    if pattern.startswith(MCP_PREFIX):
        return AllowPattern(kind='mcp', value=pattern)

    if pattern.startswith('Skill(') and pattern.endswith(')'):
        return AllowPattern(kind='skill', value=pattern[len('Skill(') : -1])

    if '(' not in pattern and '__' not in pattern and pattern:
        return AllowPattern(kind='tool', value=pattern)

    return None


@attrs.define(frozen=True)
class PermissionPolicy:
    """Immutable allow-list lookup."""

    patterns: tuple[AllowPattern, ...] = ()

    # ==========================================================================
    # Construction
    # ==========================================================================

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> PermissionPolicy:
        parsed = (parse_pattern(p) for p in patterns)
        return cls(patterns=tuple(p for p in parsed if p is not None))

    @classmethod
    def from_file(cls, path: Path) -> PermissionPolicy:
        """
        Load the allow-list from a settings.json file.

        Missing or unparseable files degrade to an empty policy.
        """
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return cls()
        except OSError as e:
            logger.warning(f'Cannot read settings file {path}: {e}')
            return cls()

        try:
            settings_file = ClaudeSettingsFileAdapter.validate_json(raw)
        except pydantic.ValidationError as e:
            logger.warning(f'Ignoring unparseable settings file {path}: {e}')
            return cls()

        policy = cls.from_patterns(settings_file.allow_patterns)
        logger.info(f'Loaded {len(policy.patterns)} permission patterns from {path}')
        return policy

    # ==========================================================================
    # Queries
    # ==========================================================================

    def is_auto_approved(self, tool_name: str, tool_input: Any) -> bool:
        """
        Check whether a tool invocation runs without asking the user.

        Args:
            tool_name: Tool name (e.g., "Bash", "Read", "mcp__github__get_issue")
            tool_input: The invocation's input object

        Returns:
            True if auto-approved, False if it needs user permission
        """
        if tool_name in ALWAYS_APPROVED_TOOLS:
            return True

        if tool_name == SHELL_TOOL:
            command = tool_input.get('command') if isinstance(tool_input, Mapping) else None
            return self.is_command_allowed(command if isinstance(command, str) else '')

        if tool_name in MUTATING_TOOLS:
            return self._has_pattern('tool', tool_name)

        if tool_name.startswith(MCP_PREFIX):
            return self._has_pattern('mcp', tool_name)

        return False

    def is_command_allowed(self, command: str) -> bool:
        """Any matching shell pattern approves; wildcard is prefix match, otherwise exact."""
        command = command.strip()
        for pattern in self.patterns:
            if pattern.kind != 'bash':
                continue
            if pattern.wildcard:
                if command.startswith(pattern.value):
                    return True
            elif command == pattern.value:
                return True
        return False

    def _has_pattern(self, kind: str, value: str) -> bool:
        return any(p.kind == kind and p.value == value for p in self.patterns)

