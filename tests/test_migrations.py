from reminders.database import ReminderProfile, utcnow
from reminders.migrations import fold_legacy_reminder_times
from reminders.models import CurrentSchedule, LegacySchedule, decode_schedule


def _insert(session_factory, user_id, reminder_time=None, reminder_times=None, **extra):
    session = session_factory()
    now = utcnow()
    session.add(ReminderProfile(
        user_id=user_id,
        active=True,
        reminder_time=reminder_time,
        reminder_times=reminder_times,
        created_at=now,
        updated_at=now,
        **extra,
    ))
    session.commit()
    session.close()


def _row(session_factory, user_id):
    session = session_factory()
    try:
        return session.get(ReminderProfile, user_id)
    finally:
        session.close()


def test_decode_schedule_variants():
    assert decode_schedule(ReminderProfile(reminder_time="21:00")) == LegacySchedule("21:00")
    assert decode_schedule(ReminderProfile(reminder_times=["22:00", "08:00"])) == CurrentSchedule(("08:00", "22:00"))
    assert decode_schedule(ReminderProfile(reminder_time="21:00", reminder_times=[])) == CurrentSchedule(())
    assert decode_schedule(ReminderProfile()) == CurrentSchedule(())


def test_legacy_rows_are_readable_before_migration(session_factory, store):
    _insert(session_factory, "old", reminder_time="21:00", task_refresh_opt_in=None)

    profile = store.get_profile("old")

    assert profile.reminder_times == ("21:00",)
    assert profile.task_refresh_opt_in is True
    assert [p.user_id for p in store.users_due_at(21)] == ["old"]


def test_fold_legacy_rows(session_factory):
    _insert(session_factory, "old", reminder_time="21:00")
    _insert(session_factory, "both", reminder_time="07:00", reminder_times=["09:00"])
    _insert(session_factory, "new", reminder_times=["10:00"])

    assert fold_legacy_reminder_times(session_factory) == 1

    old = _row(session_factory, "old")
    assert old.reminder_times == ["21:00"]
    assert old.reminder_time is None
    both = _row(session_factory, "both")
    assert both.reminder_times == ["09:00"]
    assert both.reminder_time is None


def test_fold_is_idempotent(session_factory):
    _insert(session_factory, "old", reminder_time="21:00")
    fold_legacy_reminder_times(session_factory)
    assert fold_legacy_reminder_times(session_factory) == 0
    assert _row(session_factory, "old").reminder_times == ["21:00"]


def test_adding_time_to_legacy_profile_keeps_old_time(session_factory, store):
    _insert(session_factory, "old", reminder_time="21:00")

    assert store.add_reminder_time("old", "08:00").accepted

    assert store.list_reminder_times("old") == ["08:00", "21:00"]
    assert _row(session_factory, "old").reminder_time is None
