from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional

from taskboard.domain.entities import ChecklistItem, ReminderEntity, TaskEntity, as_utc
from taskboard.domain.enums import ReminderChannel, TaskPriority, TaskStatus

from .db import SessionLocal
from .models import SnapshotModel

logger = logging.getLogger(__name__)

TASKS_NAMESPACE = "tasks"
REMINDERS_NAMESPACE = "reminders"


def _encode_datetime(value: Optional[datetime]) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def task_to_record(task: TaskEntity) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "category_id": task.category_id,
        "assignee_ids": sorted(task.assignee_ids),
        "due_date": _encode_datetime(task.due_date),
        "created_at": _encode_datetime(task.created_at),
        "updated_at": _encode_datetime(task.updated_at),
        "checklist": [
            {"id": item.id, "text": item.text, "completed": item.completed}
            for item in task.checklist
        ],
        "reminder_date": _encode_datetime(task.reminder_date),
    }


def task_from_record(record: dict) -> TaskEntity:
    return TaskEntity(
        id=record["id"],
        title=record["title"],
        description=record.get("description", ""),
        status=TaskStatus(record["status"]),
        priority=TaskPriority(record["priority"]),
        category_id=record.get("category_id"),
        assignee_ids=frozenset(record.get("assignee_ids") or ()),
        due_date=as_utc(record["due_date"]),
        created_at=as_utc(record["created_at"]),
        updated_at=as_utc(record["updated_at"]),
        checklist=tuple(
            ChecklistItem(
                id=item["id"],
                text=item.get("text", ""),
                completed=bool(item.get("completed", False)),
            )
            for item in record.get("checklist") or ()
        ),
        reminder_date=as_utc(record.get("reminder_date")),
    )


def reminder_to_record(reminder: ReminderEntity) -> dict:
    return {
        "id": reminder.id,
        "task_id": reminder.task_id,
        "fire_date": _encode_datetime(reminder.fire_date),
        "sent": reminder.sent,
        "channel": reminder.channel.value,
    }


def reminder_from_record(record: dict) -> ReminderEntity:
    return ReminderEntity(
        id=record["id"],
        task_id=record["task_id"],
        fire_date=as_utc(record["fire_date"]),
        sent=bool(record.get("sent", False)),
        channel=ReminderChannel(record.get("channel", ReminderChannel.BROWSER.value)),
    )


class SnapshotRepository:
    """Stores each namespace's record list as one JSON payload row."""

    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def load(self, namespace: str) -> list[dict] | None:
        with self._session_factory() as session:
            snapshot = session.get(SnapshotModel, namespace)
            if not snapshot:
                return None
            records = json.loads(snapshot.payload)
        logger.debug("Loaded %d records from %s", len(records), namespace)
        return records

    def save(self, namespace: str, records: list[dict]) -> None:
        payload = json.dumps(records, ensure_ascii=False)
        with self._session_factory() as session:
            snapshot = session.get(SnapshotModel, namespace)
            if snapshot is None:
                snapshot = SnapshotModel(namespace=namespace, payload=payload)
                session.add(snapshot)
            else:
                snapshot.payload = payload
            session.commit()

