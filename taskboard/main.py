from __future__ import annotations

import logging
import sys
from datetime import timedelta

from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import QApplication, QMessageBox, QStyleFactory

from taskboard.config import SETTINGS
from taskboard.domain.enums import PermissionState
from taskboard.infra.db import init_db
from taskboard.infra.logging import setup_logging
from taskboard.infra.repository import SnapshotRepository
from taskboard.services.notifications import NotificationCapability
from taskboard.services.reminder_service import ReminderStore
from taskboard.services.scheduler import ReminderScheduler
from taskboard.services.task_service import TaskStore
from taskboard.ui.kanban import KanbanDialog
from taskboard.ui.platform import QtIntervalTimer, QtNotificationBackend

logger = logging.getLogger(__name__)


def _apply_dark_palette(app: QApplication) -> None:
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor("#0F172A"))
    palette.setColor(QPalette.WindowText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Base, QColor("#111827"))
    palette.setColor(QPalette.Text, QColor("#E6EDF3"))
    palette.setColor(QPalette.Button, QColor("#202A3B"))
    palette.setColor(QPalette.ButtonText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Highlight, QColor("#2563EB"))
    palette.setColor(QPalette.HighlightedText, QColor("#FFFFFF"))
    app.setPalette(palette)


def main() -> None:
    setup_logging()
    try:
        init_db()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Snapshot database unavailable")
        app = QApplication(sys.argv)
        QMessageBox.critical(None, "DB error", str(exc))
        return

    app = QApplication(sys.argv)
    app.setStyle(QStyleFactory.create("Fusion"))
    _apply_dark_palette(app)
    app.setFont(QFont("Bahnschrift", 10))

    snapshots = SnapshotRepository()
    tasks = TaskStore(snapshots)
    reminders = ReminderStore(snapshots, default_lead=SETTINGS.default_reminder_lead)

    window = KanbanDialog(tasks)

    def _focus_window() -> None:
        window.showNormal()
        window.raise_()
        window.activateWindow()

    notifier = NotificationCapability(
        QtNotificationBackend(),
        timeout_ms=SETTINGS.notification_timeout_ms,
        on_click=_focus_window,
    )
    retention = (
        timedelta(days=SETTINGS.reminder_retention_days)
        if SETTINGS.reminder_retention_days is not None
        else None
    )
    scheduler = ReminderScheduler(
        reminders,
        tasks,
        notifier,
        QtIntervalTimer(),
        interval_ms=SETTINGS.reminder_check_interval_ms,
        retention=retention,
    )
    app.aboutToQuit.connect(scheduler.stop)

    window.show()
    if SETTINGS.reminders_enabled:
        if notifier.permission == PermissionState.DEFAULT:
            notifier.request_permission(lambda _state: scheduler.start())
        else:
            scheduler.start()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
