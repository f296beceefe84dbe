"""CLI smoke tests via typer's CliRunner against a synthetic ~/.claude tree."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from session_monitor.cli import main as cli_main
from session_monitor.config.monitor import MonitorSettings
from session_monitor.schemas.operations import RunningProcess
from tests.helpers import NOW, ago, assistant_record, set_mtime, text, user_record, write_jsonl

runner = CliRunner()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> MonitorSettings:
    settings = MonitorSettings(CLAUDE_HOME=tmp_path / '.claude', POLL_INTERVAL_SECONDS=0.01)
    monkeypatch.setattr(cli_main, 'settings', settings)
    return settings


@pytest.fixture
def live_session(settings: MonitorSettings, monkeypatch: pytest.MonkeyPatch) -> Path:
    log = write_jsonl(
        settings.projects_dir / '-work-app' / 'abc-123.jsonl',
        [user_record('Refactor the parser', ago(120)), assistant_record([text('Done refactoring.')], ago(100))],
    )
    set_mtime(log, NOW)
    process = RunningProcess(pid=4242, name='claude', cwd=Path('/work/app'), started_at=NOW.replace(hour=11))
    monkeypatch.setattr('session_monitor.services.discovery.find_claude_processes', lambda *a, **k: [process])
    return log


def test_sessions_text(live_session: Path) -> None:
    result = runner.invoke(cli_main.app, ['sessions'])

    assert result.exit_code == 0, result.output
    assert '4242' in result.output
    assert 'abc-123' in result.output
    assert 'Done refactoring.' in result.output


def test_sessions_json(live_session: Path) -> None:
    result = runner.invoke(cli_main.app, ['sessions', '--format', 'json'])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload['cycle'] == 1
    assert [s['id'] for s in payload['sessions']] == ['abc-123']
    assert payload['sessions'][0]['first_prompt'] == 'Refactor the parser'


def test_sessions_none_running(settings: MonitorSettings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('session_monitor.services.discovery.find_claude_processes', lambda *a, **k: [])

    result = runner.invoke(cli_main.app, ['sessions'])

    assert result.exit_code == 0
    assert 'No running Claude Code sessions found.' in result.output


def test_conversation(live_session: Path) -> None:
    result = runner.invoke(cli_main.app, ['conversation', 'abc-123', '--format', 'json'])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [m['message_type'] for m in payload['messages']] == ['User', 'Assistant']


def test_conversation_rejects_traversal(settings: MonitorSettings) -> None:
    result = runner.invoke(cli_main.app, ['conversation', '../../etc/passwd'])

    assert result.exit_code == 1
    assert 'Invalid session ID format' in result.output


def test_conversation_not_found(settings: MonitorSettings) -> None:
    result = runner.invoke(cli_main.app, ['conversation', 'nope'])

    assert result.exit_code == 1
    assert 'not found' in result.output


def test_watch_stops_after_cycles(live_session: Path) -> None:
    result = runner.invoke(cli_main.app, ['watch', '--cycles', '2', '--interval', '0.01'])

    assert result.exit_code == 0, result.output
    assert 'abc-123' in result.output


def test_watch_rejects_non_positive_interval(settings: MonitorSettings) -> None:
    result = runner.invoke(cli_main.app, ['watch', '--interval', '0'])

    assert result.exit_code != 0
