from __future__ import annotations

import logging

from PySide6.QtCore import QMimeData, QSize, Qt, QTimer
from PySide6.QtGui import QDrag
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from taskboard.domain.entities import TaskEntity
from taskboard.domain.enums import TaskPriority, TaskStatus
from taskboard.services.kanban_resolver import ColumnTarget, DropEvent, TaskTarget

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}

PRIORITY_COLORS = {
    TaskPriority.LOW: "#7CC4A1",
    TaskPriority.MEDIUM: "#E0B25B",
    TaskPriority.HIGH: "#E57B63",
    TaskPriority.URGENT: "#E24A4A",
}


def _task_id_from_mime(mime: QMimeData) -> str | None:
    if not mime.hasText():
        return None
    text = mime.text()
    if not text.startswith("task:"):
        return None
    return text.split(":", 1)[1] or None


class TaskItemWidget(QWidget):
    def __init__(self, task: TaskEntity):
        super().__init__()
        self.task = task

        self.setObjectName("TaskCard")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setMinimumHeight(64)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 8, 12, 8)
        layout.setSpacing(4)

        title = QLabel(task.title.strip() or "Untitled")
        title.setProperty("class", "task-title")
        title.setWordWrap(True)

        meta_parts = [f"Due: {task.due_date.strftime('%d.%m.%Y')}"]
        if task.checklist:
            done = sum(1 for item in task.checklist if item.completed)
            meta_parts.append(f"Checklist: {done}/{len(task.checklist)}")
        meta = QLabel(" | ".join(meta_parts))
        meta.setProperty("class", "task-meta")
        meta.setWordWrap(True)

        priority = QLabel(task.priority.value)
        priority.setProperty("class", "task-priority")
        priority.setStyleSheet(f"background-color: {PRIORITY_COLORS.get(task.priority, '#9CA3AF')};")
        priority.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)

        header = QHBoxLayout()
        header.setSpacing(8)
        header.addWidget(title, 1)
        header.addWidget(priority, 0, Qt.AlignTop)

        layout.addLayout(header)
        layout.addWidget(meta)


class KanbanListWidget(QListWidget):
    """One board column. Drops are reported as ``DropEvent`` values."""

    def __init__(self, status: TaskStatus, on_drop, parent=None):
        super().__init__(parent)
        self.status = status
        self._on_drop = on_drop
        self.setAcceptDrops(True)
        self.setDragEnabled(True)
        self.setDropIndicatorShown(True)
        self.setDragDropMode(QAbstractItemView.DragDrop)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.sync_item_sizes()

    def sync_item_sizes(self) -> None:
        viewport_width = self.viewport().width()
        for index in range(self.count()):
            item = self.item(index)
            widget = self.itemWidget(item)
            if widget:
                widget.setFixedWidth(viewport_width)
                widget.adjustSize()
                item.setSizeHint(QSize(viewport_width, widget.sizeHint().height()))

    def startDrag(self, supportedActions: Qt.DropActions) -> None:  # type: ignore[name-defined]
        item = self.currentItem()
        if not item:
            return
        task_id = item.data(Qt.UserRole)
        if not task_id:
            return
        mime = QMimeData()
        mime.setText(f"task:{task_id}")
        drag = QDrag(self)
        drag.setMimeData(mime)
        drag.exec(Qt.MoveAction)

    def dragEnterEvent(self, event) -> None:  # type: ignore[override]
        if _task_id_from_mime(event.mimeData()) is not None:
            event.acceptProposedAction()

    def dragMoveEvent(self, event) -> None:  # type: ignore[override]
        if _task_id_from_mime(event.mimeData()) is not None:
            event.acceptProposedAction()

    def dropEvent(self, event) -> None:  # type: ignore[override]
        task_id = _task_id_from_mime(event.mimeData())
        if task_id is None:
            return
        item = self.itemAt(event.position().toPoint())
        card = self.itemWidget(item) if item else None
        if isinstance(card, TaskItemWidget):
            target = TaskTarget(card.task)
        else:
            target = ColumnTarget(self.status)
        event.acceptProposedAction()
        self._on_drop(DropEvent(task_id=task_id, target=target))


class NotificationPopup(QWidget):
    """Frameless always-on-top toast that closes itself after ``timeout_ms``."""

    def __init__(self, title: str, body: str, timeout_ms: int, on_click=None):
        super().__init__()
        self.setWindowFlags(
            Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        self.setObjectName("NotificationPopup")
        self._on_click = on_click

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)
        heading = QLabel(title)
        heading.setProperty("class", "panel-title")
        layout.addWidget(heading)
        layout.addWidget(QLabel(body))

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(timeout_ms)
        self._timer.timeout.connect(self.close)

    def showEvent(self, event) -> None:  # type: ignore[override]
        self._timer.start()
        super().showEvent(event)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if self._on_click is not None:
            self._on_click()
        self.close()

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._timer.stop()
        super().closeEvent(event)
