from __future__ import annotations

from datetime import datetime, timedelta, timezone

from taskboard.domain.enums import PermissionState
from taskboard.services.notifications import NotificationCapability
from taskboard.services.reminder_service import ReminderStore
from taskboard.services.scheduler import ReminderScheduler
from taskboard.services.task_service import TaskStore

NOW = datetime(2026, 6, 1, 18, 0, tzinfo=timezone.utc)


class FakeBackend:
    def __init__(self, permission: PermissionState = PermissionState.GRANTED) -> None:
        self.permission = permission
        self.shown: list[tuple[str, str]] = []

    def is_supported(self) -> bool:
        return True

    def query_permission(self) -> PermissionState:
        return self.permission

    def request_permission(self, on_resolved) -> None:
        on_resolved(self.permission)

    def show(self, title: str, body: str, timeout_ms: int, on_click=None) -> None:
        self.shown.append((title, body))


class FakeTimer:
    def __init__(self) -> None:
        self.interval_ms: int | None = None
        self.callback = None
        self.stopped = False

    def start(self, interval_ms: int, callback) -> None:
        self.interval_ms = interval_ms
        self.callback = callback
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class ExplodingTasks:
    def __init__(self, tasks: TaskStore, bad_id: str) -> None:
        self._tasks = tasks
        self._bad_id = bad_id

    def get(self, task_id: str):
        if task_id == self._bad_id:
            raise RuntimeError("corrupt task record")
        return self._tasks.get(task_id)


def _setup(permission: PermissionState = PermissionState.GRANTED, **kwargs):
    tasks = TaskStore(clock=lambda: NOW)
    reminders = ReminderStore(clock=lambda: NOW)
    backend = FakeBackend(permission)
    timer = FakeTimer()
    scheduler = ReminderScheduler(
        reminders, kwargs.pop("tasks", tasks), NotificationCapability(backend), timer, **kwargs
    )
    return scheduler, tasks, reminders, backend, timer


def _add_task(tasks: TaskStore, title: str) -> str:
    return tasks.add({"title": title, "status": "todo", "priority": "high", "due_date": NOW})


def test_start_runs_a_cycle_immediately_and_arms_the_timer() -> None:
    scheduler, tasks, reminders, backend, timer = _setup(interval_ms=5_000)
    reminders.add(_add_task(tasks, "Rent tents"), NOW - timedelta(minutes=1))

    scheduler.start()

    assert scheduler.is_running
    assert timer.interval_ms == 5_000
    assert backend.shown == [("Task Reminder", "Reminder: Rent tents")]


def test_cycle_is_skipped_without_permission() -> None:
    scheduler, tasks, reminders, backend, _ = _setup(PermissionState.DENIED)
    reminder_id = reminders.add(_add_task(tasks, "Rent tents"), NOW)

    assert scheduler.check_due_reminders() == 0
    assert backend.shown == []
    assert reminders.get(reminder_id).sent is False


def test_due_reminder_is_dispatched_at_most_once() -> None:
    scheduler, tasks, reminders, backend, _ = _setup()
    reminder_id = reminders.add(_add_task(tasks, "Rent tents"), NOW)

    assert scheduler.check_due_reminders() == 1
    assert reminders.get(reminder_id).sent is True
    assert scheduler.check_due_reminders() == 0
    assert len(backend.shown) == 1


def test_upcoming_reminders_are_left_alone() -> None:
    scheduler, tasks, reminders, backend, _ = _setup()
    reminder_id = reminders.add(_add_task(tasks, "Rent tents"), NOW + timedelta(seconds=1))

    scheduler.check_due_reminders()

    assert backend.shown == []
    assert [r.id for r in scheduler.upcoming_reminders()] == [reminder_id]
    assert scheduler.due_reminders() == []


def test_orphaned_reminder_uses_placeholder_title() -> None:
    scheduler, tasks, reminders, backend, _ = _setup()
    task_id = _add_task(tasks, "Rent tents")
    reminder_id = reminders.add(task_id, NOW - timedelta(hours=1))
    tasks.delete(task_id)

    assert scheduler.check_due_reminders() == 1
    assert backend.shown == [("Task Reminder", "Reminder: Unknown Task")]
    assert reminders.get(reminder_id).sent is True


def test_email_reminders_are_marked_sent_without_dispatch() -> None:
    scheduler, tasks, reminders, backend, _ = _setup()
    reminder_id = reminders.add(_add_task(tasks, "Rent tents"), NOW, channel="email")

    scheduler.check_due_reminders()

    assert backend.shown == []
    assert reminders.get(reminder_id).sent is True


def test_oldest_due_reminder_is_dispatched_first() -> None:
    scheduler, tasks, reminders, backend, _ = _setup()
    reminders.add(_add_task(tasks, "Second"), NOW - timedelta(minutes=1))
    reminders.add(_add_task(tasks, "First"), NOW - timedelta(minutes=30))

    scheduler.check_due_reminders()

    assert [body for _, body in backend.shown] == ["Reminder: First", "Reminder: Second"]


def test_one_failing_reminder_does_not_block_the_rest() -> None:
    tasks = TaskStore(clock=lambda: NOW)
    bad_id = _add_task(tasks, "Broken")
    good_id = _add_task(tasks, "Fine")
    scheduler, _, reminders, backend, _ = _setup(tasks=ExplodingTasks(tasks, bad_id))
    bad = reminders.add(bad_id, NOW - timedelta(minutes=10))
    good = reminders.add(good_id, NOW - timedelta(minutes=5))

    assert scheduler.check_due_reminders() == 2
    assert backend.shown == [("Task Reminder", "Reminder: Fine")]
    assert reminders.get(bad).sent is True
    assert reminders.get(good).sent is True


def test_stop_cancels_future_ticks() -> None:
    scheduler, tasks, reminders, backend, timer = _setup()
    scheduler.start()
    tick = timer.callback

    scheduler.stop()
    reminders.add(_add_task(tasks, "Rent tents"), NOW)
    tick()

    assert timer.stopped is True
    assert scheduler.is_running is False
    assert backend.shown == []


def test_set_enabled_toggles_lifecycle() -> None:
    scheduler, _, _, _, timer = _setup()

    scheduler.set_enabled(True)
    scheduler.set_enabled(True)
    assert scheduler.is_running

    scheduler.set_enabled(False)
    assert not scheduler.is_running
    assert timer.stopped


def test_tick_errors_are_contained() -> None:
    scheduler, _, reminders, _, timer = _setup()

    def _broken(now=None):
        raise RuntimeError("store unavailable")

    reminders.due_now = _broken
    scheduler.start()
    timer.callback()

    assert scheduler.is_running


def test_dismiss_marks_sent_without_dispatch() -> None:
    scheduler, tasks, reminders, backend, _ = _setup()
    reminder_id = reminders.add(_add_task(tasks, "Rent tents"), NOW)

    scheduler.dismiss_reminder(reminder_id)
    scheduler.check_due_reminders()

    assert reminders.get(reminder_id).sent is True
    assert backend.shown == []


def test_retention_compacts_old_sent_reminders_after_a_cycle() -> None:
    scheduler, tasks, reminders, _, _ = _setup(retention=timedelta(days=7))
    task_id = _add_task(tasks, "Rent tents")
    stale = reminders.add(task_id, NOW - timedelta(days=30))
    fresh = reminders.add(task_id, NOW - timedelta(days=1))

    scheduler.check_due_reminders()

    assert reminders.get(stale) is None
    assert reminders.get(fresh).sent is True


def test_naive_fire_date_does_not_stall_the_cycle() -> None:
    scheduler, tasks, reminders, backend, timer = _setup()
    reminders.add(_add_task(tasks, "Aware"), NOW - timedelta(minutes=5))
    reminders.add(_add_task(tasks, "Naive"), (NOW - timedelta(minutes=5)).replace(tzinfo=None))

    scheduler.start()
    timer.callback()

    assert sorted(body for _, body in backend.shown) == ["Reminder: Aware", "Reminder: Naive"]
    assert scheduler.due_reminders() == []
