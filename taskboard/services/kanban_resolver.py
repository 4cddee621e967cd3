"""Drop-event resolution for the kanban board.

A drop lands on one of three kinds of target:

* ``ColumnTarget`` - the column body, carrying the column's status;
* ``TaskTarget`` - another card, whose *current* status wins over the column
  it happens to be drawn in;
* ``RawTarget`` - a bare identifier, accepted only if it names a column.

``resolve_drop`` is pure: it reads the task set and returns a ``StatusMove``
or ``None``. ``apply_drop`` is the convenience used by the board view.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Union

from taskboard.domain.entities import TaskEntity
from taskboard.domain.enums import TaskStatus

logger = logging.getLogger(__name__)

COLUMN_IDS = tuple(status.value for status in TaskStatus)


@dataclass(frozen=True)
class ColumnTarget:
    status: TaskStatus


@dataclass(frozen=True)
class TaskTarget:
    task: TaskEntity


@dataclass(frozen=True)
class RawTarget:
    identifier: str


DropTarget = Union[ColumnTarget, TaskTarget, RawTarget]


@dataclass(frozen=True)
class DropEvent:
    task_id: str
    target: DropTarget | None = None


@dataclass(frozen=True)
class StatusMove:
    task_id: str
    status: TaskStatus


def target_status(target: DropTarget | None) -> TaskStatus | None:
    if target is None:
        return None
    if isinstance(target, ColumnTarget):
        return TaskStatus(target.status)
    if isinstance(target, TaskTarget):
        return target.task.status
    if isinstance(target, RawTarget):
        if target.identifier in COLUMN_IDS:
            return TaskStatus(target.identifier)
        return None
    raise TypeError(f"Unsupported drop target: {target!r}")


def resolve_drop(event: DropEvent, tasks: Mapping[str, TaskEntity]) -> StatusMove | None:
    task = tasks.get(event.task_id)
    if task is None:
        return None
    status = target_status(event.target)
    if status is None or status == task.status:
        return None
    return StatusMove(task_id=task.id, status=status)


def apply_drop(event: DropEvent, store) -> StatusMove | None:
    """Resolve ``event`` against ``store`` and apply the move, if any."""
    move = resolve_drop(event, {task.id: task for task in store.all()})
    if move is None:
        logger.debug("Drop of task %s resolved to no move", event.task_id)
        return None
    store.move_status(move.task_id, move.status)
    logger.info("Task %s moved to %s", move.task_id, move.status.value)
    return move
