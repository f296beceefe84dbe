"""Tests for snapshot enrichment: index vs log-scan metadata and the mtime override."""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest

from session_monitor.config.monitor import MonitorSettings
from session_monitor.schemas.operations import DetectedSession, SessionStatus
from session_monitor.services.discovery import SessionDiscoveryService
from session_monitor.services.info import DEFAULT_FIRST_PROMPT, SessionInfoService
from session_monitor.services.parser import SessionLogParser
from session_monitor.services.permissions import PermissionPolicy
from session_monitor.services.status import StatusInference
from tests.helpers import (
    NOW,
    ago,
    assistant_record,
    progress_record,
    set_mtime,
    text,
    tool_result,
    tool_use,
    user_record,
    write_jsonl,
)


@pytest.fixture
def settings(tmp_path: Path) -> MonitorSettings:
    return MonitorSettings(CLAUDE_HOME=tmp_path / '.claude')


@pytest.fixture
def info(settings: MonitorSettings) -> SessionInfoService:
    return SessionInfoService(
        settings,
        parser=SessionLogParser(),
        inference=StatusInference(policy=PermissionPolicy()),
        discovery=SessionDiscoveryService(settings),
    )


@pytest.fixture
def project_dir(settings: MonitorSettings) -> Path:
    return settings.projects_dir / '-work-app'


def detected_for(log: Path) -> DetectedSession:
    return DetectedSession(
        process_id=4242,
        working_directory=Path('/work/app'),
        log_file_path=log,
        session_id=log.stem,
        display_name='app',
    )


def test_metadata_from_log_scan(info: SessionInfoService, project_dir: Path) -> None:
    log = write_jsonl(
        project_dir / 's1.jsonl',
        [
            progress_record(ago(120)),
            user_record('Add pagination to the orders endpoint', ago(100), gitBranch='feature/pages'),
            assistant_record([text('Sure.'), tool_use('t1', 'Write', {'file_path': 'orders.py'})], ago(90)),
            {'type': 'custom-title', 'customTitle': 'Orders pagination', 'sessionId': 's1'},
        ],
    )
    set_mtime(log, NOW - timedelta(seconds=60))

    snapshot = info.build_snapshot(detected_for(log), NOW)

    assert snapshot.id == 's1'
    assert snapshot.pid == 4242
    assert snapshot.session_name == 'app'
    assert snapshot.project_path == '/work/app'
    assert snapshot.first_prompt == 'Add pagination to the orders endpoint'
    assert snapshot.message_count == 2
    assert snapshot.modified == (NOW - timedelta(seconds=60)).isoformat()
    assert snapshot.git_branch == 'feature/pages'
    assert snapshot.custom_title == 'Orders pagination'
    assert snapshot.status is SessionStatus.NEEDS_PERMISSION
    assert snapshot.pending_tool_name == 'Write'
    assert snapshot.latest_message == 'Executing Write...'


def test_first_prompt_skips_tool_results_and_truncates(info: SessionInfoService, project_dir: Path) -> None:
    log = write_jsonl(
        project_dir / 's2.jsonl',
        [user_record([tool_result('t0', 'noise')], ago(50)), user_record('y' * 150, ago(40))],
    )

    snapshot = info.build_snapshot(detected_for(log), NOW)

    assert snapshot.first_prompt == 'y' * 100 + '...'


def test_first_prompt_default(info: SessionInfoService, project_dir: Path) -> None:
    log = write_jsonl(project_dir / 's3.jsonl', [assistant_record([text('hello')], ago(50))])

    assert info.build_snapshot(detected_for(log), NOW).first_prompt == DEFAULT_FIRST_PROMPT


def test_metadata_from_index(info: SessionInfoService, project_dir: Path) -> None:
    log = write_jsonl(project_dir / 's4.jsonl', [user_record('from the log', ago(50))])
    (project_dir / 'sessions-index.json').write_text(
        json.dumps(
            {
                'version': 1,
                'entries': [
                    {
                        'sessionId': 's4',
                        'firstPrompt': 'from the index',
                        'summary': 'Indexed summary',
                        'messageCount': 37,
                        'modified': '2026-01-15T11:00:00.000Z',
                        'gitBranch': 'main',
                        'projectPath': '/work/app',
                        'isSidechain': False,
                    }
                ],
            }
        )
    )

    snapshot = info.build_snapshot(detected_for(log), NOW)

    assert snapshot.first_prompt == 'from the index'
    assert snapshot.summary == 'Indexed summary'
    assert snapshot.message_count == 37
    assert snapshot.modified == '2026-01-15T11:00:00.000Z'
    assert snapshot.git_branch == 'main'


@pytest.mark.parametrize(
    ('mtime_seconds_ago', 'expected'),
    [(2, SessionStatus.WORKING), (7.9, SessionStatus.WORKING), (8, SessionStatus.WAITING_FOR_INPUT)],
)
def test_recent_file_touch_overrides_waiting(
    info: SessionInfoService, project_dir: Path, mtime_seconds_ago: float, expected: SessionStatus
) -> None:
    log = write_jsonl(project_dir / 's5.jsonl', [user_record('hi', ago(300)), assistant_record([text('Done.')], ago(60))])
    set_mtime(log, NOW - timedelta(seconds=mtime_seconds_ago))

    assert info.build_snapshot(detected_for(log), NOW).status is expected


def test_override_never_masks_needs_permission(info: SessionInfoService) -> None:
    assert info.apply_recency_override(SessionStatus.NEEDS_PERMISSION, NOW, NOW) is SessionStatus.NEEDS_PERMISSION
    assert info.apply_recency_override(SessionStatus.WAITING_FOR_INPUT, None, NOW) is SessionStatus.WAITING_FOR_INPUT


def test_missing_log_degrades(info: SessionInfoService, project_dir: Path) -> None:
    snapshot = info.build_snapshot(detected_for(project_dir / 'gone.jsonl'), NOW)

    assert snapshot.status is SessionStatus.CONNECTING
    assert snapshot.message_count == 0
    assert snapshot.modified == ''
