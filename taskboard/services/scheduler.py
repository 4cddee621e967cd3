from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Protocol

from taskboard.domain.entities import ReminderEntity
from taskboard.domain.enums import PermissionState, ReminderChannel

from .notifications import NotificationCapability
from .reminder_service import ReminderStore
from .task_service import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 60_000
NOTIFICATION_TITLE = "Task Reminder"
ORPHAN_TASK_TITLE = "Unknown Task"


class IntervalTimer(Protocol):
    def start(self, interval_ms: int, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class ReminderScheduler:
    """Periodically delivers due reminders, at most once each.

    One cycle runs immediately on ``start`` and then on every timer tick.
    A reminder is marked sent once processed, whether or not anything was
    displayed, so a failing delivery is never retried.
    """

    def __init__(
        self,
        reminders: ReminderStore,
        tasks: TaskStore,
        notifier: NotificationCapability,
        timer: IntervalTimer,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        retention: timedelta | None = None,
    ) -> None:
        self._reminders = reminders
        self._tasks = tasks
        self._notifier = notifier
        self._timer = timer
        self._interval_ms = interval_ms
        self._retention = retention
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.info("Reminder scheduler started, interval %d ms", self._interval_ms)
        self._on_tick()
        if self._running:
            self._timer.start(self._interval_ms, self._on_tick)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._timer.stop()
        logger.info("Reminder scheduler stopped")

    def set_enabled(self, enabled: bool) -> None:
        if enabled:
            self.start()
        else:
            self.stop()

    def due_reminders(self) -> list[ReminderEntity]:
        return self._reminders.due_now()

    def upcoming_reminders(self) -> list[ReminderEntity]:
        return self._reminders.upcoming()

    def dismiss_reminder(self, reminder_id: str) -> None:
        self._reminders.mark_sent(reminder_id)

    def check_due_reminders(self) -> int:
        """Run one cycle and return how many reminders it processed."""
        if self._notifier.check_permission() != PermissionState.GRANTED:
            logger.debug("Skipping reminder cycle, notifications not granted")
            return 0

        due = self._reminders.due_now()
        for reminder in due:
            try:
                self._deliver(reminder)
            except Exception:
                logger.exception("Failed to deliver reminder %s", reminder.id)
            try:
                self._reminders.mark_sent(reminder.id)
            except Exception:
                logger.exception("Failed to mark reminder %s as sent", reminder.id)

        if due:
            logger.info("Processed %d due reminders", len(due))
        if self._retention is not None:
            self._reminders.purge_sent(self._retention)
        return len(due)

    def _on_tick(self) -> None:
        if not self._running:
            return
        try:
            self.check_due_reminders()
        except Exception:
            logger.exception("Reminder cycle failed")

    def _deliver(self, reminder: ReminderEntity) -> None:
        if reminder.channel != ReminderChannel.BROWSER:
            # Email reminders are stored but there is no mail transport.
            logger.debug("Reminder %s uses channel %s, nothing to dispatch", reminder.id, reminder.channel.value)
            return
        task = self._tasks.get(reminder.task_id)
        title = task.title if task is not None else ORPHAN_TASK_TITLE
        self._notifier.dispatch(NOTIFICATION_TITLE, f"Reminder: {title}")
