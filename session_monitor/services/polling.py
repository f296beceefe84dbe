"""
Poll/notify loop - runs discovery and inference on a fixed interval.

Cycle:
1. Detect sessions and build a snapshot for each (status, metadata).
2. Drop sessions with no user/assistant messages; keep the first of any
   duplicate session ID.
3. First cycle: seed previous statuses silently. Later cycles: notify on
   Working -> NeedsPermission and Working -> WaitingForInput, at most once
   per session per cooldown window.
4. Replace previous statuses with this cycle's; forget sessions that are gone.
5. Publish a MonitorSnapshot to every subscriber, changed or not.

All cross-cycle state lives in PollState, mutated only by the loop. Readers
get frozen MonitorSnapshot values, never the state itself.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import attrs

from session_monitor.config.base import BaseMonitorSettings
from session_monitor.schemas.operations import (
    MonitorSnapshot,
    NotificationKind,
    SessionNotification,
    SessionSnapshot,
    SessionStatus,
)
from session_monitor.services.discovery import SessionDiscoveryService
from session_monitor.services.info import SessionInfoService
from session_monitor.services.parser import SessionLogParser
from session_monitor.services.permissions import PermissionPolicy
from session_monitor.services.status import StatusInference, truncate

__all__ = [
    'PollState',
    'SessionMonitor',
    'Subscription',
    'build_notification',
    'notification_kind',
]

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[MonitorSnapshot], None]
NotifyCallback = Callable[[SessionNotification], None]

# Shown when a NeedsPermission session has no identifiable pending tool
UNKNOWN_TOOL = 'unknown tool'


def _utc_now() -> datetime:
    return datetime.now(UTC)


def notification_kind(previous: SessionStatus | None, current: SessionStatus) -> NotificationKind | None:
    """The notification a status transition warrants, if any."""
    if previous is not SessionStatus.WORKING:
        return None
    if current is SessionStatus.NEEDS_PERMISSION:
        return 'needs_permission'
    if current is SessionStatus.WAITING_FOR_INPUT:
        return 'finished'
    return None


def build_notification(
    session: SessionSnapshot,
    kind: NotificationKind,
    created_at: datetime,
    title_max_chars: int,
) -> SessionNotification:
    """Title is the session's first prompt; body names the session and what happened."""
    if kind == 'needs_permission':
        body = f'{session.session_name}: Needs permission for {session.pending_tool_name or UNKNOWN_TOOL}'
    else:
        body = f'{session.session_name}: Finished working'

    return SessionNotification(
        session_id=session.id,
        pid=session.pid,
        project_path=session.project_path,
        kind=kind,
        title=truncate(session.first_prompt, title_max_chars),
        body=body,
        created_at=created_at,
    )


# ==============================================================================
# Loop State
# ==============================================================================


@attrs.define
class PollState:
    """Cross-cycle memory, keyed by session ID. Owned by exactly one SessionMonitor."""

    previous_status: dict[str, SessionStatus] = attrs.field(factory=dict)
    last_notified_at: dict[str, float] = attrs.field(factory=dict)  # monotonic seconds
    seeded: bool = False
    cycle: int = 0


@attrs.define(eq=False)
class Subscription:
    """
    Bounded, drop-oldest snapshot feed for one subscriber.

    publish() never blocks: when the queue is full the oldest snapshot is
    discarded to make room, so a slow reader only ever falls behind.
    """

    queue: asyncio.Queue[MonitorSnapshot]
    dropped: int = 0

    @classmethod
    def with_capacity(cls, capacity: int) -> Subscription:
        return cls(queue=asyncio.Queue(maxsize=capacity))

    def publish(self, snapshot: MonitorSnapshot) -> None:
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(snapshot)

    async def get(self) -> MonitorSnapshot:
        return await self.queue.get()

    def drain(self) -> list[MonitorSnapshot]:
        """Everything currently queued, oldest first."""
        items: list[MonitorSnapshot] = []
        while not self.queue.empty():
            items.append(self.queue.get_nowait())
        return items


# ==============================================================================
# Monitor
# ==============================================================================


class SessionMonitor:
    """
    The poll/notify loop.

    Per-session work within a cycle is sequential. Blocking file and process
    reads run in a worker thread so an event loop hosting the monitor stays
    responsive; state changes and publishing happen back on the loop.
    """

    def __init__(
        self,
        settings: BaseMonitorSettings,
        discovery: SessionDiscoveryService,
        info: SessionInfoService,
        *,
        on_snapshot: SnapshotCallback | None = None,
        on_notify: NotifyCallback | None = None,
        now: Callable[[], datetime] = _utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.discovery = discovery
        self.info = info
        self.on_snapshot = on_snapshot
        self.on_notify = on_notify
        self.now = now
        self.monotonic = monotonic
        self.state = PollState()
        self.latest: MonitorSnapshot | None = None
        self._subscriptions: list[Subscription] = []

    @classmethod
    def from_settings(cls, settings: BaseMonitorSettings, **kwargs: Any) -> SessionMonitor:
        """Wire parser, policy, inference, discovery and info services from one settings object."""
        discovery = SessionDiscoveryService(settings)
        info = SessionInfoService(
            settings,
            parser=SessionLogParser(),
            inference=build_inference(settings),
            discovery=discovery,
        )
        return cls(settings, discovery, info, **kwargs)

    # ==========================================================================
    # Subscribers
    # ==========================================================================

    def subscribe(self) -> Subscription:
        subscription = Subscription.with_capacity(self.settings.SUBSCRIBER_QUEUE_SIZE)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    # ==========================================================================
    # Cycle
    # ==========================================================================

    def collect_sessions(self, now: datetime) -> list[SessionSnapshot]:
        """
        Detect and enrich every live session (blocking I/O).

        A session whose enrichment fails is logged and left out of this cycle.
        """
        snapshots: list[SessionSnapshot] = []
        seen: set[str] = set()

        for detected in self.discovery.detect_sessions():
            if detected.session_id in seen:
                continue
            seen.add(detected.session_id)
            try:
                snapshot = self.info.build_snapshot(detected, now)
            except Exception:
                logger.exception(f'Failed to build snapshot for session {detected.session_id}')
                continue
            if snapshot.message_count == 0:
                continue
            snapshots.append(snapshot)

        return snapshots

    def process_cycle(self, sessions: Sequence[SessionSnapshot], now: datetime) -> MonitorSnapshot:
        """Diff against the previous cycle, fire notifications, and publish."""
        state = self.state
        state.cycle += 1

        notifications: list[SessionNotification] = []
        if not state.seeded:
            state.seeded = True
            logger.info(f'Seeded status memory with {len(sessions)} sessions')
        else:
            mono_now = self.monotonic()
            for session in sessions:
                kind = notification_kind(state.previous_status.get(session.id), session.status)
                if kind is None or self._on_cooldown(session.id, mono_now):
                    continue
                notifications.append(
                    build_notification(session, kind, now, self.settings.NOTIFICATION_TITLE_MAX_CHARS)
                )
                state.last_notified_at[session.id] = mono_now

        current_ids = {session.id for session in sessions}
        state.previous_status = {session.id: session.status for session in sessions}
        state.last_notified_at = {
            session_id: at for session_id, at in state.last_notified_at.items() if session_id in current_ids
        }

        snapshot = MonitorSnapshot(
            cycle=state.cycle,
            taken_at=now,
            sessions=tuple(sessions),
            notifications=tuple(notifications),
        )
        self.latest = snapshot

        for notification in notifications:
            logger.info(f'Notify {notification.session_id}: {notification.body}')
            self._call(self.on_notify, notification)
        self._publish(snapshot)
        return snapshot

    def run_cycle(self) -> MonitorSnapshot:
        """One complete cycle on the calling thread."""
        now = self.now()
        return self.process_cycle(self.collect_sessions(now), now)

    async def run_forever(self) -> None:
        """
        Cycle every POLL_INTERVAL_SECONDS until cancelled.

        A cycle that raises is logged and skipped; the loop itself only ends
        by cancellation.
        """
        interval = self.settings.POLL_INTERVAL_SECONDS
        logger.info(f'Session monitor started (interval {interval}s)')
        try:
            while True:
                try:
                    now = self.now()
                    sessions = await asyncio.to_thread(self.collect_sessions, now)
                    self.process_cycle(sessions, now)
                except Exception:
                    logger.exception('Poll cycle failed')
                await asyncio.sleep(interval)
        finally:
            logger.info('Session monitor stopped')

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _on_cooldown(self, session_id: str, mono_now: float) -> bool:
        last = self.state.last_notified_at.get(session_id)
        return last is not None and mono_now - last < self.settings.NOTIFICATION_COOLDOWN_SECONDS

    def _publish(self, snapshot: MonitorSnapshot) -> None:
        for subscription in list(self._subscriptions):
            subscription.publish(snapshot)
        self._call(self.on_snapshot, snapshot)

    def _call(self, callback: Callable[[Any], None] | None, value: Any) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception(f'Subscriber callback {callback!r} failed')


def build_inference(settings: BaseMonitorSettings) -> StatusInference:
    """StatusInference with the policy loaded from settings.json and thresholds from settings."""
    return StatusInference(
        policy=PermissionPolicy.from_file(settings.settings_file),
        prompt_recency=timedelta(seconds=settings.PROMPT_RECENCY_SECONDS),
        activity_recency=timedelta(seconds=settings.ACTIVITY_RECENCY_SECONDS),
    )
