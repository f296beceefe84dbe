"""Tests for allow-list parsing and the permission policy."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from session_monitor.services.permissions import ALWAYS_APPROVED_TOOLS, AllowPattern, PermissionPolicy, parse_pattern


@pytest.mark.parametrize(
    ('pattern', 'expected'),
    [
        ('Bash(git add:*)', AllowPattern(kind='bash', value='git add', wildcard=True)),
        ('Bash(npm ci)', AllowPattern(kind='bash', value='npm ci')),
        ('Write', AllowPattern(kind='tool', value='Write')),
        ('mcp__github__get_issue', AllowPattern(kind='mcp', value='mcp__github__get_issue')),
        ('Skill(review)', AllowPattern(kind='skill', value='review')),
        ('WebFetch(domain:example.com)', None),
        ('', None),
    ],
)
def test_parse_pattern(pattern: str, expected: AllowPattern | None) -> None:
    assert parse_pattern(pattern) == expected


class TestIsAutoApproved:
    policy = PermissionPolicy.from_patterns(
        [
            'Bash(git status:*)',
            'Bash(npm ci)',
            'Edit',
            'mcp__github__get_issue',
        ]
    )

    @pytest.mark.parametrize('tool_name', sorted(ALWAYS_APPROVED_TOOLS))
    def test_read_only_tools_always_approved(self, tool_name: str) -> None:
        assert PermissionPolicy().is_auto_approved(tool_name, {})

    @pytest.mark.parametrize(
        ('command', 'approved'),
        [
            ('git status', True),
            ('git status --short', True),
            ('  git status  ', True),
            ('npm ci', True),
            ('npm ci --force', False),
            ('rm -rf /', False),
            ('', False),
        ],
    )
    def test_shell_commands(self, command: str, approved: bool) -> None:
        assert self.policy.is_auto_approved('Bash', {'command': command}) is approved

    def test_shell_without_command_needs_permission(self) -> None:
        assert not self.policy.is_auto_approved('Bash', {})
        assert not self.policy.is_auto_approved('Bash', None)

    def test_mutating_tools_need_explicit_pattern(self) -> None:
        assert self.policy.is_auto_approved('Edit', {'file_path': '/tmp/x'})
        assert not self.policy.is_auto_approved('Write', {'file_path': '/tmp/x'})
        assert not self.policy.is_auto_approved('NotebookEdit', {})

    def test_mcp_tools_match_exact_name(self) -> None:
        assert self.policy.is_auto_approved('mcp__github__get_issue', {})
        assert not self.policy.is_auto_approved('mcp__github__create_issue', {})

    def test_unknown_tools_need_permission(self) -> None:
        assert not self.policy.is_auto_approved('SomeNewTool', {})


class TestFromFile:
    def test_loads_allow_list(self, tmp_path: Path) -> None:
        settings_file = tmp_path / 'settings.json'
        settings_file.write_text(
            json.dumps({'permissions': {'allow': ['Bash(make:*)', 'Write'], 'deny': []}, 'model': 'opus'})
        )

        policy = PermissionPolicy.from_file(settings_file)

        assert policy.is_auto_approved('Bash', {'command': 'make test'})
        assert policy.is_auto_approved('Write', {})

    def test_missing_file_yields_empty_policy(self, tmp_path: Path) -> None:
        policy = PermissionPolicy.from_file(tmp_path / 'missing.json')

        assert policy.patterns == ()
        assert policy.is_auto_approved('Read', {})
        assert not policy.is_auto_approved('Bash', {'command': 'ls'})

    @pytest.mark.parametrize('content', ['{not json', '[]', '{"permissions": {"allow": "Write"}}'])
    def test_unparseable_file_yields_empty_policy(self, tmp_path: Path, content: str) -> None:
        settings_file = tmp_path / 'settings.json'
        settings_file.write_text(content)

        assert PermissionPolicy.from_file(settings_file).patterns == ()
