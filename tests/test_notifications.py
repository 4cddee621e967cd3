from __future__ import annotations

from taskboard.domain.enums import PermissionState
from taskboard.services.notifications import NotificationCapability


class FakeBackend:
    def __init__(
        self,
        permission: PermissionState = PermissionState.DEFAULT,
        supported: bool = True,
        answer: PermissionState = PermissionState.GRANTED,
    ) -> None:
        self.permission = permission
        self.supported = supported
        self.answer = answer
        self.pending: list = []
        self.shown: list[tuple[str, str, int]] = []
        self.fail_show = False

    def is_supported(self) -> bool:
        return self.supported

    def query_permission(self) -> PermissionState:
        return self.permission

    def request_permission(self, on_resolved) -> None:
        self.pending.append(on_resolved)

    def resolve(self) -> None:
        self.permission = self.answer
        callbacks, self.pending = self.pending, []
        for callback in callbacks:
            callback(self.answer)

    def show(self, title: str, body: str, timeout_ms: int, on_click=None) -> None:
        if self.fail_show:
            raise RuntimeError("display server went away")
        self.shown.append((title, body, timeout_ms))


def test_dispatch_is_a_noop_until_granted() -> None:
    backend = FakeBackend()
    notifier = NotificationCapability(backend)

    assert notifier.permission is PermissionState.DEFAULT
    assert notifier.dispatch("Task Reminder", "Reminder: Tables") is False
    assert backend.shown == []


def test_request_permission_resolves_asynchronously() -> None:
    backend = FakeBackend(answer=PermissionState.GRANTED)
    notifier = NotificationCapability(backend)
    resolved = []

    notifier.request_permission(resolved.append)
    assert notifier.request_pending is True
    assert resolved == []

    backend.resolve()

    assert resolved == [PermissionState.GRANTED]
    assert notifier.request_pending is False
    assert notifier.permission is PermissionState.GRANTED


def test_denied_permission_keeps_dispatch_silent() -> None:
    backend = FakeBackend(answer=PermissionState.DENIED)
    notifier = NotificationCapability(backend)

    notifier.request_permission()
    backend.resolve()

    assert notifier.permission is PermissionState.DENIED
    assert notifier.dispatch("Task Reminder", "Reminder: Tables") is False
    assert backend.shown == []


def test_granted_dispatch_uses_ten_second_window() -> None:
    backend = FakeBackend(permission=PermissionState.GRANTED)
    notifier = NotificationCapability(backend)

    assert notifier.dispatch("Task Reminder", "Reminder: Tables") is True
    assert backend.shown == [("Task Reminder", "Reminder: Tables", 10_000)]


def test_check_permission_rereads_backend() -> None:
    backend = FakeBackend(permission=PermissionState.GRANTED)
    notifier = NotificationCapability(backend)

    backend.permission = PermissionState.DEFAULT
    assert notifier.check_permission() is PermissionState.DEFAULT
    assert notifier.dispatch("Task Reminder", "Reminder: Tables") is False


def test_missing_platform_support_reads_as_denied() -> None:
    for notifier in (
        NotificationCapability(None),
        NotificationCapability(FakeBackend(permission=PermissionState.GRANTED, supported=False)),
    ):
        resolved = []
        assert notifier.is_supported is False
        assert notifier.check_permission() is PermissionState.DENIED
        notifier.request_permission(resolved.append)
        assert resolved == [PermissionState.DENIED]
        assert notifier.dispatch("Task Reminder", "Reminder: Tables") is False


def test_backend_display_errors_are_swallowed_and_logged() -> None:
    backend = FakeBackend(permission=PermissionState.GRANTED)
    backend.fail_show = True
    notifier = NotificationCapability(backend)

    assert notifier.dispatch("Task Reminder", "Reminder: Tables") is False
