"""
Preference Store

Durable per-user reminder preferences. Every mutation is a read-modify-write
of a single profile row inside one transaction, serialised per user so two
rapid commands from the same chat cannot interleave.
"""
import logging
import threading
import weakref
from collections import Counter
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .database import ReminderProfile, utcnow
from .errors import CapacityError, DuplicateTimeError, StorageError, ValidationError
from .models import MutationResult, UserNotificationProfile, decode_schedule, normalize_identity_key
from .scheduler_config import DEFAULT_REMINDER_TIME, MAX_REMINDER_TIMES
from .timeutils import hour_of, is_valid_time

logger = logging.getLogger(__name__)

UserId = Union[int, str]


def _key(user_id: UserId) -> str:
    return str(user_id)


def _require_canonical(time24: str) -> str:
    if not is_valid_time(time24):
        raise ValidationError(time24, f"Reminder time must be HH:MM (UTC), got {time24!r}")
    return time24


class PreferenceStore:
    def __init__(
        self,
        session_factory: sessionmaker,
        default_time: str = DEFAULT_REMINDER_TIME,
        max_times: int = MAX_REMINDER_TIMES,
    ) -> None:
        self._session_factory = session_factory
        self.default_time = _require_canonical(default_time)
        self.max_times = max_times
        # Entries disappear once no transaction holds the lock
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    # =========================================================
    # TRANSACTION HELPERS
    # =========================================================
    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            raise StorageError(f"Reminder store read failed: {e}") from e
        finally:
            session.close()

    @contextmanager
    def _profile_txn(self, user_id: UserId) -> Iterator[Tuple[Session, Optional[ReminderProfile]]]:
        """Lock one profile row, hand it to the caller, commit on exit."""
        key = _key(user_id)
        with self._lock_for(key):
            session = self._session_factory()
            try:
                row = (
                    session.query(ReminderProfile)
                    .filter(ReminderProfile.user_id == key)
                    .with_for_update()
                    .first()
                )
                yield session, row
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StorageError(f"Reminder store write failed for user {key}: {e}") from e
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def _new_row(self, session: Session, user_id: UserId, times: List[str]) -> ReminderProfile:
        now = utcnow()
        row = ReminderProfile(
            user_id=_key(user_id),
            active=True,
            reminder_times=sorted(times),
            reminder_time=None,
            task_refresh_opt_in=True,
            test_messages_opt_in=False,
            external_identity_key=None,
            created_at=now,
            updated_at=now,
        )
        session.add(row)
        return row

    @staticmethod
    def _write_times(row: ReminderProfile, times: List[str]) -> None:
        # Assigning a fresh list marks the JSON column dirty; the v1 column is folded away
        row.reminder_times = sorted(times)
        row.reminder_time = None
        row.updated_at = utcnow()

    def _check_can_add(self, current: Tuple[str, ...], time24: str) -> None:
        if time24 in current:
            raise DuplicateTimeError(time24)
        if len(current) >= self.max_times:
            raise CapacityError(self.max_times, len(current))

    # =========================================================
    # MUTATIONS
    # =========================================================
    def upsert_active(self, user_id: UserId, explicit_time: Optional[str] = None) -> UserNotificationProfile:
        """
        Make sure the user has an active profile.

        Existing preferences (identity key, opt-ins, created_at) are kept.
        Times are only replaced when explicit_time is given.
        """
        if explicit_time is not None:
            _require_canonical(explicit_time)

        with self._profile_txn(user_id) as (session, row):
            if row is None:
                row = self._new_row(session, user_id, [explicit_time or self.default_time])
                logger.info(f"Added user {user_id} to reminders at {row.reminder_times} UTC")
            else:
                current = list(decode_schedule(row).times)
                times = [explicit_time] if explicit_time else (current or [self.default_time])
                self._write_times(row, times)
                row.active = True
                logger.info(f"Re-activated reminders for user {user_id} at {row.reminder_times} UTC")
            return UserNotificationProfile.from_row(row)

    def deactivate(self, user_id: UserId) -> bool:
        """Soft deactivation: times and identity key survive for re-activation."""
        with self._profile_txn(user_id) as (session, row):
            if row is None:
                return False
            row.active = False
            row.updated_at = utcnow()
        logger.info(f"Deactivated reminders for user {user_id}")
        return True

    def replace_reminder_time(self, user_id: UserId, time24: str) -> UserNotificationProfile:
        _require_canonical(time24)
        with self._profile_txn(user_id) as (session, row):
            if row is None:
                row = self._new_row(session, user_id, [time24])
            else:
                self._write_times(row, [time24])
                row.active = True
            logger.info(f"Set reminder time for user {user_id} to {time24} UTC")
            return UserNotificationProfile.from_row(row)

    def add_reminder_time(self, user_id: UserId, time24: str) -> MutationResult:
        _require_canonical(time24)
        with self._profile_txn(user_id) as (session, row):
            current = decode_schedule(row).times if row is not None else ()
            try:
                self._check_can_add(current, time24)
            except DuplicateTimeError as e:
                logger.info(f"Rejected reminder time {time24} for user {user_id}: {e}")
                remaining = max(self.max_times - len(current), 0)
                return MutationResult(accepted=False, reason=str(e), remaining=remaining)
            except CapacityError as e:
                logger.info(f"Rejected reminder time {time24} for user {user_id}: {e}")
                return MutationResult(accepted=False, reason=str(e), remaining=e.remaining)

            if row is None:
                row = self._new_row(session, user_id, [time24])
            else:
                self._write_times(row, list(current) + [time24])
                row.active = True
            logger.info(f"Added reminder time {time24} for user {user_id}. Total times: {row.reminder_times}")
        return MutationResult(accepted=True)

    def remove_reminder_time(self, user_id: UserId, time24: str) -> MutationResult:
        _require_canonical(time24)
        with self._profile_txn(user_id) as (session, row):
            if row is None:
                return MutationResult(accepted=False, reason="no reminders set")

            current = decode_schedule(row).times
            if time24 not in current:
                return MutationResult(accepted=False, reason="not found")

            remaining = [t for t in current if t != time24]
            self._write_times(row, remaining)
            if not remaining:
                row.active = False
                logger.info(f"Removed last reminder time for user {user_id}. User deactivated.")
            else:
                logger.info(f"Removed reminder time {time24} for user {user_id}. Remaining times: {remaining}")
        return MutationResult(accepted=True)

    def set_task_refresh_opt_in(self, user_id: UserId, enabled: bool) -> None:
        with self._profile_txn(user_id) as (session, row):
            if row is None:
                row = self._new_row(session, user_id, [self.default_time])
            row.task_refresh_opt_in = enabled
            row.updated_at = utcnow()
        logger.info(f"Updated task refresh notifications for user {user_id} to {enabled}")

    def set_test_messages_opt_in(self, user_id: UserId, enabled: bool) -> None:
        with self._profile_txn(user_id) as (session, row):
            if row is None:
                row = self._new_row(session, user_id, [self.default_time])
            row.test_messages_opt_in = enabled
            row.updated_at = utcnow()
        logger.info(f"Updated test messages for user {user_id} to {enabled}")

    def set_external_identity_key(self, user_id: UserId, key: Optional[str]) -> None:
        """Store the Ethos userkey; an empty key clears it."""
        normalized = normalize_identity_key(key)
        with self._profile_txn(user_id) as (session, row):
            if row is None:
                row = self._new_row(session, user_id, [self.default_time])
            row.external_identity_key = normalized
            row.updated_at = utcnow()
        if normalized:
            logger.info(f"Updated userkey for user {user_id}")
        else:
            logger.info(f"Cleared userkey for user {user_id}")

    # =========================================================
    # SINGLE-USER QUERIES
    # =========================================================
    def get_profile(self, user_id: UserId) -> Optional[UserNotificationProfile]:
        with self._session() as session:
            row = session.get(ReminderProfile, _key(user_id))
            return UserNotificationProfile.from_row(row) if row is not None else None

    def list_reminder_times(self, user_id: UserId) -> List[str]:
        profile = self.get_profile(user_id)
        return list(profile.reminder_times) if profile else []

    def get_task_refresh_opt_in(self, user_id: UserId) -> Optional[bool]:
        """None when the user has never interacted with the notification system."""
        profile = self.get_profile(user_id)
        return profile.task_refresh_opt_in if profile else None

    def get_test_messages_opt_in(self, user_id: UserId) -> Optional[bool]:
        profile = self.get_profile(user_id)
        return profile.test_messages_opt_in if profile else None

    def get_external_identity_key(self, user_id: UserId) -> Optional[str]:
        profile = self.get_profile(user_id)
        return profile.external_identity_key if profile else None

    # =========================================================
    # BATCH QUERIES (dispatch)
    # =========================================================
    def all_active_users(self) -> List[UserNotificationProfile]:
        with self._session() as session:
            rows = (
                session.query(ReminderProfile)
                .filter(ReminderProfile.active.is_(True))
                .order_by(ReminderProfile.user_id)
                .all()
            )
            return [UserNotificationProfile.from_row(row) for row in rows]

    def users_due_at(self, hour_of_day: int) -> List[UserNotificationProfile]:
        """Active users with any reminder time in this hour, each listed once."""
        if not 0 <= hour_of_day <= 23:
            raise ValidationError(str(hour_of_day), f"Hour must be 0-23, got {hour_of_day}")
        return [
            profile for profile in self.all_active_users()
            if any(hour_of(t) == hour_of_day for t in profile.reminder_times)
        ]

    def users_opted_into_task_refresh(self) -> List[UserNotificationProfile]:
        return [p for p in self.all_active_users() if p.task_refresh_opt_in]

    def users_opted_into_test_messages(self) -> List[UserNotificationProfile]:
        return [p for p in self.all_active_users() if p.test_messages_opt_in]

    def reminder_time_histogram(self) -> Dict[str, int]:
        counts = Counter(t for p in self.all_active_users() for t in p.reminder_times)
        return dict(sorted(counts.items()))
