from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable

from taskboard.domain.entities import ReminderEntity, TaskEntity, as_utc, utcnow
from taskboard.domain.enums import ReminderChannel, ReminderLead
from taskboard.infra.repository import (
    REMINDERS_NAMESPACE,
    SnapshotRepository,
    reminder_from_record,
    reminder_to_record,
)

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {"task_id", "fire_date", "channel", "sent"}

_LEAD_DELTAS = {
    ReminderLead.ONE_HOUR: timedelta(hours=1),
    ReminderLead.ONE_DAY: timedelta(days=1),
    ReminderLead.ONE_WEEK: timedelta(weeks=1),
}


def reminder_fire_date(due_date: datetime, lead: ReminderLead | str) -> datetime:
    return due_date - _LEAD_DELTAS[ReminderLead(lead)]


class ReminderStore:
    """Owns reminder records independently of the tasks they point at.

    ``sent`` only ever moves from False to True; edits to a reminder that
    has already been sent are ignored.
    """

    def __init__(
        self,
        snapshots: SnapshotRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
        default_lead: ReminderLead | str = ReminderLead.ONE_DAY,
    ) -> None:
        self._snapshots = snapshots
        self._clock = clock
        self._default_lead = ReminderLead(default_lead)
        self._reminders: dict[str, ReminderEntity] = {}
        if snapshots is not None:
            self._load()

    def add(
        self,
        task_id: str,
        fire_date: datetime,
        channel: ReminderChannel | str = ReminderChannel.BROWSER,
    ) -> str:
        reminder_id = str(uuid.uuid4())
        self._reminders[reminder_id] = ReminderEntity(
            id=reminder_id,
            task_id=task_id,
            fire_date=as_utc(fire_date),
            sent=False,
            channel=ReminderChannel(channel),
        )
        logger.debug("Reminder %s added for task %s at %s", reminder_id, task_id, fire_date)
        self._commit()
        return reminder_id

    def add_for_task(
        self,
        task: TaskEntity,
        channel: ReminderChannel | str = ReminderChannel.BROWSER,
        lead: ReminderLead | str | None = None,
    ) -> str:
        """Schedule a reminder at the task's own reminder date, or ahead of its due date."""
        if task.reminder_date is not None and lead is None:
            fire_date = task.reminder_date
        else:
            fire_date = reminder_fire_date(task.due_date, lead or self._default_lead)
        return self.add(task.id, fire_date, channel)

    def update(self, reminder_id: str, partial: dict) -> None:
        unknown = set(partial) - _EDITABLE_FIELDS
        if "id" in unknown:
            raise ValueError("Cannot update reminder id")
        if unknown:
            raise TypeError(f"Unknown reminder fields: {sorted(unknown)}")

        reminder = self._reminders.get(reminder_id)
        if reminder is None:
            logger.debug("Update ignored, reminder %s not found", reminder_id)
            return
        if reminder.sent:
            logger.info("Update ignored, reminder %s was already sent", reminder_id)
            return

        changes = dict(partial)
        if "channel" in changes:
            changes["channel"] = ReminderChannel(changes["channel"])
        if "sent" in changes:
            changes["sent"] = bool(changes["sent"])
        if "fire_date" in changes:
            changes["fire_date"] = as_utc(changes["fire_date"])
        self._reminders[reminder_id] = replace(reminder, **changes)
        self._commit()

    def delete(self, reminder_id: str) -> None:
        if self._reminders.pop(reminder_id, None) is None:
            logger.debug("Delete ignored, reminder %s not found", reminder_id)
            return
        self._commit()

    def mark_sent(self, reminder_id: str) -> None:
        reminder = self._reminders.get(reminder_id)
        if reminder is None or reminder.sent:
            return
        self._reminders[reminder_id] = replace(reminder, sent=True)
        self._commit()

    def get(self, reminder_id: str) -> ReminderEntity | None:
        return self._reminders.get(reminder_id)

    def all(self) -> list[ReminderEntity]:
        return list(self._reminders.values())

    def for_task(self, task_id: str) -> list[ReminderEntity]:
        return _by_fire_date(r for r in self._reminders.values() if r.task_id == task_id)

    def due_now(self, now: datetime | None = None) -> list[ReminderEntity]:
        now = as_utc(now or self._clock())
        return _by_fire_date(
            r for r in self._reminders.values() if not r.sent and r.fire_date <= now
        )

    def upcoming(self, now: datetime | None = None) -> list[ReminderEntity]:
        now = as_utc(now or self._clock())
        return _by_fire_date(
            r for r in self._reminders.values() if not r.sent and r.fire_date > now
        )

    def purge_sent(self, retention: timedelta, now: datetime | None = None) -> int:
        cutoff = as_utc(now or self._clock()) - retention
        stale = [
            r.id for r in self._reminders.values() if r.sent and r.fire_date < cutoff
        ]
        for reminder_id in stale:
            del self._reminders[reminder_id]
        if stale:
            logger.info("Purged %d sent reminders older than %s", len(stale), cutoff)
            self._commit()
        return len(stale)

    def _load(self) -> None:
        records = self._snapshots.load(REMINDERS_NAMESPACE) or []
        for record in records:
            reminder = reminder_from_record(record)
            self._reminders[reminder.id] = reminder
        logger.info("Loaded %d reminders", len(self._reminders))

    def _commit(self) -> None:
        if self._snapshots is None:
            return
        self._snapshots.save(
            REMINDERS_NAMESPACE,
            [reminder_to_record(r) for r in self._reminders.values()],
        )


def _by_fire_date(reminders) -> list[ReminderEntity]:
    return sorted(reminders, key=lambda reminder: reminder.fire_date)
