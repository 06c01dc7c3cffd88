import asyncio
from datetime import datetime, timedelta

import pytest

from memocare.reminders import dispatcher as dispatcher_module
from memocare.reminders.dispatcher import REMINDER_DUE_EVENT, ReminderDispatcher
from memocare.reminders.models import Reminder
from tests.conftest import FakeChannel


NOW = datetime(2026, 3, 2, 9, 0, 0)


def add_reminder(db, user_id=1, title="Take pills", type="medication", next_run_at=NOW, active=True):
    reminder = Reminder(
        user_id=user_id,
        title=title,
        type=type,
        schedule_cron="0 9 * * *",
        next_run_at=next_run_at,
        active=active,
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def next_run_of(session_factory, reminder_id):
    session = session_factory()
    try:
        return session.get(Reminder, reminder_id).next_run_at
    finally:
        session.close()


def run(dispatcher, now=NOW):
    return asyncio.run(dispatcher.run_once(now=now))


def test_due_reminder_is_published_and_rescheduled(db, session_factory):
    reminder = add_reminder(db, next_run_at=NOW - timedelta(minutes=1))
    channel = FakeChannel(online={1})

    report = run(ReminderDispatcher(session_factory, channel))

    assert channel.sent == [
        (1, REMINDER_DUE_EVENT, {"id": reminder.id, "title": "Take pills", "type": "medication"})
    ]
    assert report.scanned == 1
    assert report.notified == [reminder.id]
    assert next_run_of(session_factory, reminder.id) == NOW + timedelta(days=1)


def test_reminder_due_exactly_now_fires(db, session_factory):
    reminder = add_reminder(db, next_run_at=NOW)
    channel = FakeChannel(online={1})

    report = run(ReminderDispatcher(session_factory, channel))

    assert report.notified == [reminder.id]


def test_inactive_and_future_reminders_are_ignored(db, session_factory):
    inactive = add_reminder(db, title="Old", next_run_at=NOW - timedelta(hours=2), active=False)
    future = add_reminder(db, title="Later", next_run_at=NOW + timedelta(seconds=1))
    channel = FakeChannel(online={1})

    report = run(ReminderDispatcher(session_factory, channel))

    assert channel.sent == []
    assert report.scanned == 0
    assert next_run_of(session_factory, inactive.id) == NOW - timedelta(hours=2)
    assert next_run_of(session_factory, future.id) == NOW + timedelta(seconds=1)


def test_each_due_reminder_fires_once_per_tick(db, session_factory):
    first = add_reminder(db, user_id=1, title="Breakfast", type="meal", next_run_at=NOW - timedelta(hours=3))
    second = add_reminder(db, user_id=2, title="Doctor", type="appointment", next_run_at=NOW - timedelta(days=4))
    channel = FakeChannel(online={1, 2})
    dispatcher = ReminderDispatcher(session_factory, channel)

    run(dispatcher)
    # A second tick a minute later finds nothing due
    run(dispatcher, now=NOW + timedelta(minutes=1))

    assert sorted(data["id"] for _, _, data in channel.sent) == sorted([first.id, second.id])
    for reminder_id in (first.id, second.id):
        assert next_run_of(session_factory, reminder_id) > NOW


def test_offline_user_notification_is_dropped_but_rescheduled(db, session_factory):
    reminder = add_reminder(db, user_id=5)
    channel = FakeChannel(online=set())

    report = run(ReminderDispatcher(session_factory, channel))

    assert channel.sent == []
    assert report.dropped == [reminder.id]
    assert next_run_of(session_factory, reminder.id) == NOW + timedelta(days=1)


def test_publish_failure_does_not_stop_other_reminders(db, session_factory):
    broken = add_reminder(db, user_id=1, title="Broken")
    ok = add_reminder(db, user_id=2, title="Fine")
    channel = FakeChannel(online={2}, failing={1})

    report = run(ReminderDispatcher(session_factory, channel))

    assert report.failed == [broken.id]
    assert report.notified == [ok.id]
    assert [data["title"] for _, _, data in channel.sent] == ["Fine"]
    # No retry: the failed reminder still moves to its next slot
    assert next_run_of(session_factory, broken.id) == NOW + timedelta(days=1)


def test_reschedule_failure_does_not_stop_other_reminders(db, session_factory, monkeypatch):
    broken = add_reminder(db, user_id=1, title="Broken", next_run_at=NOW - timedelta(minutes=2))
    ok = add_reminder(db, user_id=1, title="Fine", next_run_at=NOW - timedelta(minutes=1))
    channel = FakeChannel(online={1})
    real_update = dispatcher_module.update_next_run

    def flaky_update(session, reminder_id, next_run_at):
        if reminder_id == broken.id:
            raise RuntimeError("database is locked")
        return real_update(session, reminder_id, next_run_at)

    monkeypatch.setattr(dispatcher_module, "update_next_run", flaky_update)

    report = run(ReminderDispatcher(session_factory, channel))

    assert len(channel.sent) == 2
    assert report.failed == [broken.id]
    assert report.rescheduled == [ok.id]
    assert next_run_of(session_factory, broken.id) == NOW - timedelta(minutes=2)
    assert next_run_of(session_factory, ok.id) == NOW + timedelta(days=1)


def test_query_failure_is_logged_not_raised(session_factory, monkeypatch):
    def boom(session, now):
        raise RuntimeError("no such table")

    monkeypatch.setattr(dispatcher_module, "get_due_reminders", boom)
    channel = FakeChannel(online={1})

    report = run(ReminderDispatcher(session_factory, channel))

    assert report.scanned == 0
    assert channel.sent == []


def test_aware_now_is_normalized_to_utc(db, session_factory):
    from datetime import timezone

    reminder = add_reminder(db, next_run_at=NOW)
    channel = FakeChannel(online={1})
    aware = datetime(2026, 3, 2, 10, 30, tzinfo=timezone(timedelta(hours=1, minutes=30)))

    run(ReminderDispatcher(session_factory, channel), now=aware)

    assert next_run_of(session_factory, reminder.id) == NOW + timedelta(days=1)


def test_reschedule_period_must_be_positive(session_factory):
    with pytest.raises(ValueError):
        ReminderDispatcher(session_factory, FakeChannel(), reschedule_period=timedelta(0))


class StalledChannel(FakeChannel):
    """A channel whose publish for ``stalled`` users never completes."""

    def __init__(self, stalled=(), **kwargs):
        super().__init__(**kwargs)
        self.stalled = set(stalled)

    async def publish(self, user_id, event, data):
        if user_id in self.stalled:
            await asyncio.Event().wait()
        return await super().publish(user_id, event, data)


def test_stalled_publish_times_out_without_blocking_other_reminders(db, session_factory):
    stuck = add_reminder(db, user_id=1, title="Stuck", next_run_at=NOW - timedelta(minutes=2))
    ok = add_reminder(db, user_id=2, title="Fine", next_run_at=NOW - timedelta(minutes=1))
    channel = StalledChannel(stalled={1}, online={2})
    dispatcher = ReminderDispatcher(session_factory, channel, publish_timeout=0.05)

    report = asyncio.run(asyncio.wait_for(dispatcher.run_once(now=NOW), 5))

    assert report.failed == [stuck.id]
    assert report.notified == [ok.id]
    assert [user_id for user_id, _, _ in channel.sent] == [2]
    # Timed-out deliveries still move on to the next slot
    assert report.rescheduled == [stuck.id, ok.id]
    assert next_run_of(session_factory, stuck.id) == NOW + timedelta(days=1)


def test_publish_timeout_must_be_positive(session_factory):
    with pytest.raises(ValueError):
        ReminderDispatcher(session_factory, FakeChannel(), publish_timeout=0)
