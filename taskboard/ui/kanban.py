from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QDialog, QHBoxLayout, QLabel, QListWidgetItem, QVBoxLayout

from taskboard.domain.enums import TaskStatus
from taskboard.domain.filters import TaskFilters
from taskboard.services.kanban_resolver import DropEvent, apply_drop
from taskboard.services.task_service import TaskStore

from .widgets import STATUS_LABELS, KanbanListWidget, TaskItemWidget


class KanbanDialog(QDialog):
    def __init__(self, store: TaskStore, parent=None):
        super().__init__(parent)
        self.store = store
        self.setWindowTitle("Event tasks")
        self.resize(1100, 700)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(12)

        self.columns: dict[TaskStatus, KanbanListWidget] = {}
        for status in TaskStatus:
            column = QVBoxLayout()
            label = QLabel(STATUS_LABELS[status])
            label.setProperty("class", "panel-title")
            list_widget = KanbanListWidget(status, self.on_drop)
            list_widget.setObjectName("KanbanList")
            column.addWidget(label)
            column.addWidget(list_widget)
            layout.addLayout(column, 1)
            self.columns[status] = list_widget

        self.refresh()

    def refresh(self) -> None:
        for status, list_widget in self.columns.items():
            list_widget.clear()
            for task in self.store.query(TaskFilters(status=status)):
                item = QListWidgetItem()
                list_widget.addItem(item)
                item.setData(Qt.UserRole, task.id)
                widget = TaskItemWidget(task)
                item.setSizeHint(widget.sizeHint())
                list_widget.setItemWidget(item, widget)
            list_widget.sync_item_sizes()

    def on_drop(self, event: DropEvent) -> None:
        if apply_drop(event, self.store) is not None:
            self.refresh()
