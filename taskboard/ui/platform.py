"""Qt implementations of the notification backend and the interval timer."""
from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QSettings, QTimer
from PySide6.QtWidgets import QApplication, QMessageBox

from taskboard.domain.enums import PermissionState

from .widgets import NotificationPopup

logger = logging.getLogger(__name__)

_PERMISSION_KEY = "notifications/permission"


class QtNotificationBackend:
    def __init__(self, settings: QSettings | None = None) -> None:
        self._settings = settings or QSettings("taskboard", "taskboard")
        self._popups: list[NotificationPopup] = []
        self._prompt: QMessageBox | None = None

    def is_supported(self) -> bool:
        return QApplication.instance() is not None

    def query_permission(self) -> PermissionState:
        raw = self._settings.value(_PERMISSION_KEY, PermissionState.DEFAULT.value)
        try:
            return PermissionState(raw)
        except ValueError:
            return PermissionState.DEFAULT

    def request_permission(self, on_resolved: Callable[[PermissionState], None]) -> None:
        prompt = QMessageBox(
            QMessageBox.Question,
            "Reminders",
            "Allow task reminders to show desktop notifications?",
            QMessageBox.Yes | QMessageBox.No,
        )

        def _finished(result: int) -> None:
            state = PermissionState.GRANTED if result == QMessageBox.Yes else PermissionState.DENIED
            self._settings.setValue(_PERMISSION_KEY, state.value)
            self._prompt = None
            on_resolved(state)

        prompt.finished.connect(_finished)
        self._prompt = prompt
        prompt.open()

    def show(
        self,
        title: str,
        body: str,
        timeout_ms: int,
        on_click: Callable[[], None] | None = None,
    ) -> None:
        popup = NotificationPopup(title, body, timeout_ms, on_click)
        popup.destroyed.connect(lambda *_: self._forget(popup))
        self._popups.append(popup)
        screen = QApplication.primaryScreen()
        if screen is not None:
            area = screen.availableGeometry()
            popup.adjustSize()
            popup.move(area.right() - popup.width() - 16, area.bottom() - popup.height() - 16)
        popup.show()
        logger.info("Notification shown: %s", title)

    def _forget(self, popup: NotificationPopup) -> None:
        if popup in self._popups:
            self._popups.remove(popup)


class QtIntervalTimer:
    def __init__(self) -> None:
        self._timer = QTimer()
        self._callback: Callable[[], None] | None = None
        self._timer.timeout.connect(self._fire)

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.start(interval_ms)

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        if self._callback is not None:
            self._callback()
