import threading

import pytest

from reminders.database import Base
from reminders.errors import StorageError, ValidationError
from reminders.store import PreferenceStore


# ---------------------------------------------------------------------------
# upsert / deactivate
# ---------------------------------------------------------------------------

def test_upsert_creates_profile_with_default_time(store):
    profile = store.upsert_active(1001)
    assert profile.user_id == "1001"
    assert profile.active is True
    assert profile.reminder_times == ("22:00",)
    assert profile.task_refresh_opt_in is True
    assert profile.external_identity_key is None


def test_upsert_with_explicit_time(store):
    profile = store.upsert_active(1001, "06:30")
    assert profile.reminder_times == ("06:30",)


def test_upsert_preserves_existing_preferences(store):
    store.add_reminder_time(7, "09:00")
    store.add_reminder_time(7, "18:00")
    store.set_task_refresh_opt_in(7, False)
    store.set_external_identity_key(7, "service:x.com:username:alice")
    created_at = store.get_profile(7).created_at
    store.deactivate(7)

    profile = store.upsert_active(7)

    assert profile.active is True
    assert profile.reminder_times == ("09:00", "18:00")
    assert profile.task_refresh_opt_in is False
    assert profile.external_identity_key == "service:x.com:username:alice"
    assert profile.created_at == created_at


def test_upsert_restores_default_when_no_times_left(store):
    store.add_reminder_time(7, "09:00")
    store.remove_reminder_time(7, "09:00")
    assert store.upsert_active(7).reminder_times == ("22:00",)


def test_deactivate_is_soft(store):
    store.upsert_active(5, "08:00")
    store.set_external_identity_key(5, "address:0xabc")

    assert store.deactivate(5) is True

    profile = store.get_profile(5)
    assert profile.active is False
    assert profile.reminder_times == ("08:00",)
    assert profile.external_identity_key == "address:0xabc"


def test_deactivate_unknown_user_is_noop(store):
    assert store.deactivate(404) is False
    assert store.get_profile(404) is None


def test_upsert_rejects_non_canonical_time(store):
    with pytest.raises(ValidationError):
        store.upsert_active(1, "6pm")


# ---------------------------------------------------------------------------
# reminder times
# ---------------------------------------------------------------------------

def test_replace_reminder_time_discards_others(store):
    store.add_reminder_time(3, "09:00")
    store.add_reminder_time(3, "12:00")
    store.replace_reminder_time(3, "20:15")
    assert store.list_reminder_times(3) == ["20:15"]
    assert store.get_profile(3).active is True


def test_add_reminder_time_sorts(store):
    assert store.add_reminder_time(3, "18:00").accepted
    assert store.add_reminder_time(3, "06:00").accepted
    assert store.add_reminder_time(3, "12:30").accepted
    assert store.list_reminder_times(3) == ["06:00", "12:30", "18:00"]


def test_add_fourth_time_is_rejected(store):
    for t in ("06:00", "12:00", "18:00"):
        store.add_reminder_time(3, t)

    result = store.add_reminder_time(3, "21:00")

    assert result.accepted is False
    assert result.reason == "limit reached, max 3"
    assert result.remaining == 0
    assert store.list_reminder_times(3) == ["06:00", "12:00", "18:00"]


def test_add_duplicate_time_is_rejected(store):
    store.add_reminder_time(3, "06:00")
    result = store.add_reminder_time(3, "06:00")
    assert result.accepted is False
    assert result.reason == "duplicate"
    assert result.remaining == 2
    assert store.list_reminder_times(3) == ["06:00"]


def test_add_reactivates_profile(store):
    store.upsert_active(3)
    store.deactivate(3)
    store.add_reminder_time(3, "07:00")
    assert store.get_profile(3).active is True


def test_remove_last_time_soft_deactivates(store):
    store.add_reminder_time(9, "22:00")

    result = store.remove_reminder_time(9, "22:00")

    assert result.accepted is True
    profile = store.get_profile(9)
    assert profile is not None
    assert profile.active is False
    assert profile.reminder_times == ()
    assert store.list_reminder_times(9) == []


def test_remove_keeps_remaining_times_active(store):
    store.add_reminder_time(9, "09:00")
    store.add_reminder_time(9, "22:00")
    assert store.remove_reminder_time(9, "09:00").accepted
    assert store.list_reminder_times(9) == ["22:00"]
    assert store.get_profile(9).active is True


def test_remove_rejections(store):
    assert store.remove_reminder_time(9, "09:00").reason == "no reminders set"
    store.add_reminder_time(9, "22:00")
    result = store.remove_reminder_time(9, "09:00")
    assert result.accepted is False
    assert result.reason == "not found"


def test_list_reminder_times_unknown_user(store):
    assert store.list_reminder_times("nobody") == []


# ---------------------------------------------------------------------------
# task refresh / test messages / identity key
# ---------------------------------------------------------------------------

def test_task_refresh_opt_in_creates_profile_with_default_time(store):
    assert store.get_task_refresh_opt_in(11) is None
    store.set_task_refresh_opt_in(11, False)
    assert store.get_task_refresh_opt_in(11) is False
    assert store.list_reminder_times(11) == ["22:00"]


def test_task_refresh_opt_in_does_not_touch_existing_times(store):
    store.add_reminder_time(11, "08:00")
    store.add_reminder_time(11, "09:00")
    store.set_task_refresh_opt_in(11, False)
    store.set_task_refresh_opt_in(11, True)
    assert store.list_reminder_times(11) == ["08:00", "09:00"]
    assert store.get_task_refresh_opt_in(11) is True


def test_test_messages_default_off(store):
    store.upsert_active(12)
    assert store.get_test_messages_opt_in(12) is False
    store.set_test_messages_opt_in(12, True)
    assert store.get_test_messages_opt_in(12) is True


def test_identity_key_set_and_clear(store):
    assert store.get_external_identity_key(13) is None
    store.set_external_identity_key(13, "address:0x1234")
    assert store.get_external_identity_key(13) == "address:0x1234"

    store.set_external_identity_key(13, "")
    assert store.get_external_identity_key(13) is None

    store.set_external_identity_key(13, "   ")
    assert store.get_external_identity_key(13) is None


def test_identity_key_on_new_profile_defaults_time(store):
    store.set_external_identity_key(14, "address:0x1")
    profile = store.get_profile(14)
    assert profile.active is True
    assert profile.reminder_times == ("22:00",)


# ---------------------------------------------------------------------------
# batch queries
# ---------------------------------------------------------------------------

def test_users_due_at_returns_each_user_once(store):
    store.add_reminder_time("a", "09:00")
    store.add_reminder_time("a", "22:00")
    store.add_reminder_time("a", "22:30")
    store.add_reminder_time("b", "21:00")

    due = store.users_due_at(22)

    assert [p.user_id for p in due] == ["a"]
    assert [p.user_id for p in store.users_due_at(9)] == ["a"]


def test_users_due_at_skips_inactive(store):
    store.upsert_active("a", "22:00")
    store.deactivate("a")
    assert store.users_due_at(22) == []


def test_users_due_at_rejects_bad_hour(store):
    with pytest.raises(ValidationError):
        store.users_due_at(24)


def test_task_refresh_and_test_audiences(store):
    store.upsert_active("a")
    store.upsert_active("b")
    store.set_task_refresh_opt_in("b", False)
    store.upsert_active("c")
    store.set_test_messages_opt_in("c", True)
    store.deactivate("c")

    assert [p.user_id for p in store.all_active_users()] == ["a", "b"]
    assert [p.user_id for p in store.users_opted_into_task_refresh()] == ["a"]
    assert store.users_opted_into_test_messages() == []


def test_reminder_time_histogram_counts_active_users(store):
    store.add_reminder_time("a", "09:00")
    store.add_reminder_time("a", "22:00")
    store.upsert_active("b")
    store.upsert_active("c")
    store.deactivate("c")

    assert store.reminder_time_histogram() == {"09:00": 1, "22:00": 2}


# ---------------------------------------------------------------------------
# concurrency + failures
# ---------------------------------------------------------------------------

def test_concurrent_adds_never_exceed_capacity(store):
    times = ["01:00", "02:00", "03:00", "04:00", "05:00", "06:00"]
    results = []

    def add(t):
        results.append(store.add_reminder_time(42, t))

    threads = [threading.Thread(target=add, args=(t,)) for t in times]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(r.accepted for r in results) == 3
    assert len(store.list_reminder_times(42)) == 3


def test_user_locks_are_released_after_use(store):
    for i in range(50):
        store.deactivate(f"ghost-{i}")
    store.add_reminder_time("real", "09:00")

    assert len(store._locks) == 0


def test_storage_failure_raises_storage_error(session_factory):
    Base.metadata.drop_all(bind=session_factory.kw["bind"])
    store = PreferenceStore(session_factory)

    with pytest.raises(StorageError):
        store.upsert_active(1)
    with pytest.raises(StorageError):
        store.get_profile(1)
