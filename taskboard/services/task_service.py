from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Iterable

from taskboard.domain.entities import ChecklistItem, TaskEntity, as_utc, utcnow
from taskboard.domain.enums import (
    PRIORITY_RANK,
    STATUS_RANK,
    SortDirection,
    SortField,
    TaskPriority,
    TaskStatus,
)
from taskboard.domain.filters import TaskFilters, TaskSort
from taskboard.infra.repository import (
    TASKS_NAMESPACE,
    SnapshotRepository,
    task_from_record,
    task_to_record,
)

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "created_at"}
_DATE_FIELDS = ("due_date", "reminder_date")


class TaskStore:
    """Owns the canonical task set.

    Missing ids are tolerated everywhere: mutations on an unknown id are
    logged no-ops. Every effective mutation refreshes ``updated_at`` and,
    when a snapshot repository is attached, persists the whole set.
    """

    def __init__(
        self,
        snapshots: SnapshotRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._snapshots = snapshots
        self._clock = clock
        self._tasks: dict[str, TaskEntity] = {}
        if snapshots is not None:
            self._load()

    def add(self, data: dict) -> str:
        task_id = str(uuid.uuid4())
        now = as_utc(self._clock())
        normalized = self._normalize_data(data)
        for key in _IMMUTABLE_FIELDS | {"updated_at"}:
            normalized.pop(key, None)
        self._tasks[task_id] = TaskEntity(
            id=task_id,
            created_at=now,
            updated_at=now,
            **normalized,
        )
        logger.debug("Task %s added", task_id)
        self._commit()
        return task_id

    def update(self, task_id: str, partial: dict) -> None:
        normalized = self._normalize_data(partial)
        blocked = _IMMUTABLE_FIELDS.intersection(normalized)
        if blocked:
            raise ValueError(f"Cannot update immutable task fields: {sorted(blocked)}")
        normalized.pop("updated_at", None)
        self._mutate(task_id, lambda task: replace(task, **normalized))

    def delete(self, task_id: str) -> None:
        if self._tasks.pop(task_id, None) is None:
            logger.debug("Delete ignored, task %s not found", task_id)
            return
        self._commit()

    def move_status(self, task_id: str, status: TaskStatus | str) -> None:
        new_status = TaskStatus(status)
        self._mutate(task_id, lambda task: replace(task, status=new_status))

    def toggle_status(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            logger.debug("Toggle ignored, task %s not found", task_id)
            return
        new_status = TaskStatus.TODO if task.status == TaskStatus.DONE else TaskStatus.DONE
        self.move_status(task_id, new_status)

    def toggle_checklist_item(self, task_id: str, item_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None or not any(item.id == item_id for item in task.checklist):
            logger.debug("Checklist toggle ignored for task %s item %s", task_id, item_id)
            return

        def _toggle(current: TaskEntity) -> TaskEntity:
            checklist = tuple(
                replace(item, completed=not item.completed) if item.id == item_id else item
                for item in current.checklist
            )
            return replace(current, checklist=checklist)

        self._mutate(task_id, _toggle)

    def get(self, task_id: str) -> TaskEntity | None:
        return self._tasks.get(task_id)

    def all(self) -> list[TaskEntity]:
        return list(self._tasks.values())

    def by_status(self, status: TaskStatus | str) -> list[TaskEntity]:
        return [task for task in self._tasks.values() if task.status == status]

    def by_category(self, category_id: str) -> list[TaskEntity]:
        return [task for task in self._tasks.values() if task.category_id == category_id]

    def by_assignee(self, assignee_id: str) -> list[TaskEntity]:
        return [task for task in self._tasks.values() if assignee_id in task.assignee_ids]

    def query(
        self,
        filters: TaskFilters | None = None,
        sort: TaskSort | None = None,
    ) -> list[TaskEntity]:
        filters = filters or TaskFilters()
        filters = replace(
            filters,
            date_from=as_utc(filters.date_from),
            date_to=as_utc(filters.date_to),
        )
        sort = sort or TaskSort()
        matched = [task for task in self._tasks.values() if _matches(task, filters)]
        # sorted() is stable in both directions, so equal keys keep insertion order.
        return sorted(
            matched,
            key=_SORT_KEYS[SortField(sort.field)],
            reverse=SortDirection(sort.direction) == SortDirection.DESC,
        )

    def _mutate(self, task_id: str, change: Callable[[TaskEntity], TaskEntity]) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            logger.debug("Mutation ignored, task %s not found", task_id)
            return
        changed = change(task)
        self._tasks[task_id] = replace(changed, updated_at=self._next_updated_at(task))
        self._commit()

    def _next_updated_at(self, task: TaskEntity) -> datetime:
        now = as_utc(self._clock())
        if now <= task.updated_at:
            return task.updated_at + timedelta(microseconds=1)
        return now

    def _normalize_data(self, data: dict) -> dict:
        normalized = dict(data)
        if normalized.get("status") is not None:
            normalized["status"] = TaskStatus(normalized["status"])
        if normalized.get("priority") is not None:
            normalized["priority"] = TaskPriority(normalized["priority"])
        if "assignee_ids" in normalized:
            normalized["assignee_ids"] = frozenset(normalized["assignee_ids"] or ())
        if "checklist" in normalized:
            normalized["checklist"] = _normalize_checklist(normalized["checklist"] or ())
        for key in _DATE_FIELDS:
            if key in normalized:
                normalized[key] = as_utc(normalized[key])
        return normalized

    def _load(self) -> None:
        records = self._snapshots.load(TASKS_NAMESPACE) or []
        for record in records:
            task = task_from_record(record)
            self._tasks[task.id] = task
        logger.info("Loaded %d tasks", len(self._tasks))

    def _commit(self) -> None:
        if self._snapshots is None:
            return
        self._snapshots.save(TASKS_NAMESPACE, [task_to_record(task) for task in self._tasks.values()])


def _normalize_checklist(items: Iterable) -> tuple[ChecklistItem, ...]:
    normalized = []
    for item in items:
        if isinstance(item, ChecklistItem):
            normalized.append(item)
            continue
        normalized.append(
            ChecklistItem(
                id=item.get("id") or str(uuid.uuid4()),
                text=item.get("text", ""),
                completed=bool(item.get("completed", False)),
            )
        )
    return tuple(normalized)


def _matches(task: TaskEntity, filters: TaskFilters) -> bool:
    if filters.category_id and task.category_id != filters.category_id:
        return False
    if filters.status and task.status != filters.status:
        return False
    if filters.priority and task.priority != filters.priority:
        return False
    if filters.assignee_id and filters.assignee_id not in task.assignee_ids:
        return False
    if filters.date_from is not None and task.due_date < filters.date_from:
        return False
    if filters.date_to is not None and task.due_date > filters.date_to:
        return False
    if filters.search:
        needle = filters.search.casefold()
        return needle in task.title.casefold() or needle in task.description.casefold()
    return True


_SORT_KEYS = {
    SortField.DUE_DATE: lambda task: task.due_date,
    SortField.PRIORITY: lambda task: PRIORITY_RANK[task.priority],
    SortField.STATUS: lambda task: STATUS_RANK[task.status],
    SortField.TITLE: lambda task: task.title.casefold(),
    SortField.CREATED_AT: lambda task: task.created_at,
}
