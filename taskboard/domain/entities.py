from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .enums import ReminderChannel, TaskPriority, TaskStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Any) -> datetime | None:
    """Coerce a datetime or ISO string to an aware UTC datetime. Naive values are read as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class ChecklistItem:
    id: str
    text: str
    completed: bool = False


@dataclass(frozen=True)
class TaskEntity:
    id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime
    created_at: datetime
    updated_at: datetime
    description: str = ""
    category_id: str | None = None
    assignee_ids: frozenset[str] = field(default_factory=frozenset)
    checklist: tuple[ChecklistItem, ...] = ()
    reminder_date: Optional[datetime] = None


@dataclass(frozen=True)
class ReminderEntity:
    id: str
    task_id: str
    fire_date: datetime
    sent: bool = False
    channel: ReminderChannel = ReminderChannel.BROWSER
