from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import SortDirection, SortField, TaskPriority, TaskStatus


@dataclass(frozen=True)
class TaskFilters:
    category_id: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: str | None = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: str | None = None


@dataclass(frozen=True)
class TaskSort:
    field: SortField = SortField.DUE_DATE
    direction: SortDirection = SortDirection.ASC
