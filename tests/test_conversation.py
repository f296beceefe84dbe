"""Tests for full-history retrieval and message extraction."""

from __future__ import annotations

from pathlib import Path

import pytest

from session_monitor.config.monitor import MonitorSettings
from session_monitor.exceptions import InvalidSessionIdError, LogReadError, SessionNotFoundError
from session_monitor.schemas.session import (
    AssistantTurn,
    Informational,
    OpaqueBlock,
    TextBlock,
    ThinkingBlock,
    ToolInvocation,
    ToolOutcome,
    UserTurn,
)
from session_monitor.services.conversation import SessionConversationService, extract_messages
from session_monitor.services.discovery import SessionDiscoveryService
from session_monitor.services.parser import SessionLogParser
from tests.helpers import NOW, ago, assistant_record, text, tool_result, tool_use, user_record, write_jsonl


@pytest.fixture
def settings(tmp_path: Path) -> MonitorSettings:
    return MonitorSettings(CLAUDE_HOME=tmp_path / '.claude')


@pytest.fixture
def service(settings: MonitorSettings) -> SessionConversationService:
    return SessionConversationService(SessionDiscoveryService(settings), SessionLogParser())


def test_extract_messages_roles_and_formats() -> None:
    entries = [
        UserTurn(timestamp=NOW, text='List files'),
        Informational(record_type='progress'),
        AssistantTurn(
            timestamp=NOW,
            content_blocks=(
                ThinkingBlock(thinking='use ls'),
                TextBlock(text='Listing.'),
                ToolInvocation(id='toolu_1', name='Bash', input={'command': 'ls'}),
                ToolOutcome(tool_id='toolu_1', output='a.txt'),
                ToolOutcome(tool_id='toolu_2', output='boom', is_error=True),
                OpaqueBlock(block_type='image'),
            ),
        ),
        UserTurn(timestamp=None, text='a.txt', is_tool_result=True),
    ]

    messages = extract_messages(entries)

    assert [(m.message_type, m.content) for m in messages] == [
        ('User', 'List files'),
        ('Thinking', 'use ls'),
        ('Assistant', 'Listing.'),
        ('ToolUse', '[Bash] toolu_1 - {\n  "command": "ls"\n}'),
        ('ToolResult', '[Result] toolu_1: a.txt'),
        ('ToolResult', '[Error] toolu_2: boom'),
        ('ToolResult', 'a.txt'),
    ]
    assert messages[0].timestamp == NOW
    assert messages[-1].timestamp is None


def test_get_conversation_reads_whole_log(settings: MonitorSettings, service: SessionConversationService) -> None:
    write_jsonl(
        settings.projects_dir / '-work-app' / 'abc-123.jsonl',
        [
            user_record('Run the tests', ago(30)),
            assistant_record([text('Running'), tool_use('toolu_1', 'Bash', {'command': 'pytest'})], ago(29)),
            'corrupt line',
            user_record([tool_result('toolu_1', '3 passed')], ago(20)),
            assistant_record([text('All green.')], ago(19)),
        ],
    )

    conversation = service.get_conversation('abc-123')

    assert conversation.session_id == 'abc-123'
    assert [m.message_type for m in conversation.messages] == ['User', 'Assistant', 'ToolUse', 'ToolResult', 'Assistant']
    assert conversation.messages[3].content == '3 passed'


@pytest.mark.parametrize('session_id', ['../../etc/passwd', 'a/b', '..', 'a\\b'])
def test_rejects_traversal(service: SessionConversationService, session_id: str) -> None:
    with pytest.raises(InvalidSessionIdError):
        service.get_conversation(session_id)


def test_unknown_session(settings: MonitorSettings, service: SessionConversationService) -> None:
    (settings.projects_dir / '-work-app').mkdir(parents=True)

    with pytest.raises(SessionNotFoundError, match='not found in any project directory'):
        service.get_conversation('missing')


def test_unreadable_log(
    settings: MonitorSettings, service: SessionConversationService, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_jsonl(settings.projects_dir / '-work-app' / 'abc.jsonl', [user_record('hi')])

    def fail(self: SessionLogParser, file_path: Path) -> list[object]:
        raise PermissionError(13, 'Permission denied')

    monkeypatch.setattr(SessionLogParser, 'parse_all', fail)

    with pytest.raises(LogReadError, match='Permission denied'):
        service.get_conversation('abc')
