from __future__ import annotations

import logging
from typing import Callable, Protocol

from taskboard.domain.enums import PermissionState

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000


class NotificationBackend(Protocol):
    def is_supported(self) -> bool: ...

    def query_permission(self) -> PermissionState: ...

    def request_permission(self, on_resolved: Callable[[PermissionState], None]) -> None: ...

    def show(
        self,
        title: str,
        body: str,
        timeout_ms: int,
        on_click: Callable[[], None] | None = None,
    ) -> None: ...


class NotificationCapability:
    """Permission-gated access to platform notifications.

    The permission is cached but ``check_permission`` always re-reads the
    backend, because the user may revoke a grant outside this process.
    """

    def __init__(
        self,
        backend: NotificationBackend | None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        on_click: Callable[[], None] | None = None,
    ) -> None:
        self._backend = backend
        self._timeout_ms = timeout_ms
        self._on_click = on_click
        self._request_pending = False
        self._permission = PermissionState.DEFAULT
        if self.is_supported:
            self._permission = PermissionState(backend.query_permission())

    @property
    def is_supported(self) -> bool:
        return self._backend is not None and self._backend.is_supported()

    @property
    def permission(self) -> PermissionState:
        return self._permission

    @property
    def request_pending(self) -> bool:
        return self._request_pending

    def check_permission(self) -> PermissionState:
        if not self.is_supported:
            self._permission = PermissionState.DENIED
        else:
            self._permission = PermissionState(self._backend.query_permission())
        return self._permission

    def request_permission(
        self, on_resolved: Callable[[PermissionState], None] | None = None
    ) -> None:
        if not self.is_supported:
            self._resolve(PermissionState.DENIED, on_resolved)
            return
        if self._request_pending:
            logger.warning("Notification permission requested while a prompt is already open")

        self._request_pending = True

        def _done(state: PermissionState) -> None:
            self._request_pending = False
            self._resolve(PermissionState(state), on_resolved)

        try:
            self._backend.request_permission(_done)
        except Exception:
            logger.exception("Notification permission request failed")
            self._request_pending = False
            self._resolve(PermissionState.DENIED, on_resolved)

    def dispatch(self, title: str, body: str) -> bool:
        if not self.is_supported:
            logger.warning("Notifications are not supported, dropping %r", title)
            return False
        if self._permission != PermissionState.GRANTED:
            logger.warning("Notification permission is %s, dropping %r", self._permission.value, title)
            return False
        try:
            self._backend.show(title, body, self._timeout_ms, self._on_click)
        except Exception:
            logger.exception("Failed to show notification %r", title)
            return False
        return True

    def _resolve(
        self,
        state: PermissionState,
        on_resolved: Callable[[PermissionState], None] | None,
    ) -> None:
        self._permission = state
        logger.info("Notification permission resolved to %s", state.value)
        if on_resolved is not None:
            on_resolved(state)
