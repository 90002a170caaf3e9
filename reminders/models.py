"""
Plain value types handed out by the store.

Callers never see ORM rows; every read returns an immutable snapshot so the
dispatch loop can work on it after the session is closed.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

from .database import ReminderProfile


# =========================================================
# STORED SCHEDULE (versioned read path)
# =========================================================
@dataclass(frozen=True)
class LegacySchedule:
    """Schema v1: a single reminderTime column."""
    time: str

    @property
    def times(self) -> Tuple[str, ...]:
        return (self.time,)


@dataclass(frozen=True)
class CurrentSchedule:
    """Schema v2: a list of up to three reminder times."""
    times: Tuple[str, ...]


Schedule = Union[LegacySchedule, CurrentSchedule]


def decode_schedule(row: ReminderProfile) -> Schedule:
    """The only place that knows how reminder times are laid out on disk."""
    if isinstance(row.reminder_times, list):
        return CurrentSchedule(times=tuple(sorted(row.reminder_times)))
    if row.reminder_time:
        return LegacySchedule(time=row.reminder_time)
    return CurrentSchedule(times=())


def normalize_identity_key(key: Optional[str]) -> Optional[str]:
    """Empty and blank keys mean "no key"."""
    if key is None:
        return None
    key = key.strip()
    return key or None


# =========================================================
# SNAPSHOTS
# =========================================================
@dataclass(frozen=True)
class UserNotificationProfile:
    user_id: str
    active: bool
    reminder_times: Tuple[str, ...]
    task_refresh_opt_in: bool
    test_messages_opt_in: bool
    external_identity_key: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: ReminderProfile) -> "UserNotificationProfile":
        return cls(
            user_id=row.user_id,
            active=bool(row.active),
            reminder_times=decode_schedule(row).times,
            task_refresh_opt_in=True if row.task_refresh_opt_in is None else bool(row.task_refresh_opt_in),
            test_messages_opt_in=bool(row.test_messages_opt_in),
            external_identity_key=normalize_identity_key(row.external_identity_key),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


@dataclass(frozen=True)
class MutationResult:
    accepted: bool
    reason: Optional[str] = None
    # Free reminder slots left, set when an add is rejected
    remaining: Optional[int] = None
