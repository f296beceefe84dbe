"""
Status inference - classifies a session from the tail of its log.

Pure function of (recent entries, current time, permission policy). Rules:

1. No entries, or only Informational ones -> Connecting.
2. Last meaningful entry is a UserTurn (prompt or tool result):
   recent (< PROMPT_RECENCY_SECONDS) -> Working, else WaitingForInput.
3. Last meaningful entry is an AssistantTurn:
   - pending tool invocations (no ToolOutcome with the same id in the same
     turn): all auto-approved -> Working, any other -> NeedsPermission
     (immediately, no recency delay)
   - nothing pending: recent (< ACTIVITY_RECENCY_SECONDS) -> Working,
     else WaitingForInput.

HEURISTIC: Claude Code does not reliably write a turn-completion marker
(stop_reason is null in the JSONL even for finished turns), so recency of the
last entry is what separates "still streaming" from "done". This is an
approximation of the protocol, not a guarantee.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

import attrs

from session_monitor.schemas.operations import SessionStatus
from session_monitor.schemas.session import (
    AssistantTurn,
    LogEntry,
    MeaningfulEntry,
    TextBlock,
    ThinkingBlock,
    ToolInvocation,
    UserTurn,
)
from session_monitor.services.permissions import PermissionPolicy

__all__ = [
    'StatusInference',
    'find_last_meaningful',
    'latest_message',
    'truncate',
]


def find_last_meaningful(entries: Sequence[LogEntry]) -> tuple[int, MeaningfulEntry] | None:
    """Index and value of the last UserTurn/AssistantTurn, skipping Informational entries."""
    for index in range(len(entries) - 1, -1, -1):
        entry = entries[index]
        if isinstance(entry, (UserTurn, AssistantTurn)):
            return index, entry
    return None


@attrs.define(frozen=True)
class StatusInference:
    """
    Rule-based classifier over a bounded window of parsed entries.

    The permission policy is injected; there is no process-wide default.
    """

    policy: PermissionPolicy
    prompt_recency: timedelta = timedelta(seconds=30)
    activity_recency: timedelta = timedelta(seconds=20)

    def infer(self, window: Sequence[LogEntry], now: datetime) -> SessionStatus:
        """Classify the session whose most recent entries are `window`."""
        found = find_last_meaningful(window)
        if found is None:
            return SessionStatus.CONNECTING
        _, last = found

        match last:
            case UserTurn():
                # A prompt or a tool result: the model should be answering
                if self._is_recent(last.timestamp, now, self.prompt_recency):
                    return SessionStatus.WORKING
                return SessionStatus.WAITING_FOR_INPUT

            case AssistantTurn():
                pending = last.pending_tool_invocations()
                if pending:
                    if all(self.policy.is_auto_approved(t.name, t.input) for t in pending):
                        return SessionStatus.WORKING
                    return SessionStatus.NEEDS_PERMISSION

                if self._is_recent(last.timestamp, now, self.activity_recency):
                    return SessionStatus.WORKING
                return SessionStatus.WAITING_FOR_INPUT

        return SessionStatus.CONNECTING

    def pending_tool_name(self, window: Sequence[LogEntry]) -> str | None:
        """
        Name of the first pending tool that needs permission.

        Looks at the last assistant turn in the window only. None when there
        is no assistant turn, nothing pending, or every pending tool is approved.
        """
        for entry in reversed(window):
            if isinstance(entry, AssistantTurn):
                for invocation in entry.pending_tool_invocations():
                    if not self.policy.is_auto_approved(invocation.name, invocation.input):
                        return invocation.name
                return None
        return None

    @staticmethod
    def _is_recent(timestamp: datetime | None, now: datetime, threshold: timedelta) -> bool:
        # Unparseable or missing timestamps are never recent
        if timestamp is None:
            return False
        return now - timestamp < threshold


def latest_message(window: Sequence[LogEntry], max_chars: int) -> str:
    """
    Short preview of the latest message for display.

    Tool-result user records are skipped; for assistant turns the last text,
    thinking or tool invocation block wins.
    """
    for entry in reversed(window):
        match entry:
            case UserTurn(is_tool_result=True):
                continue
            case UserTurn():
                return truncate(entry.text, max_chars)
            case AssistantTurn():
                for block in reversed(entry.content_blocks):
                    match block:
                        case TextBlock():
                            return truncate(block.text, max_chars)
                        case ThinkingBlock():
                            return truncate(block.thinking, max_chars)
                        case ToolInvocation():
                            return f'Executing {block.name}...'
    return ''


def truncate(text: str, max_chars: int) -> str:
    """Cut to max_chars characters, marking the cut with '...'."""
    if len(text) <= max_chars:
        return text
    return f'{text[:max_chars]}...'
