"""
Notification dedup guard.

Remembers the last successful send per (user, kind) and recognises an
identical resend inside the dedup window. Both operations fail open: a
storage outage must never swallow a real notification.
"""
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import NotificationRecord, utcnow
from .enums import NotificationKind
from .scheduler_config import DEDUP_WINDOW_MINUTES

logger = logging.getLogger(__name__)


def fingerprint_message(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _kind_value(kind: Union[NotificationKind, str]) -> str:
    return kind.value if isinstance(kind, NotificationKind) else str(kind)


class DedupGuard:
    def __init__(
        self,
        session_factory: sessionmaker,
        window_minutes: int = DEDUP_WINDOW_MINUTES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.window_minutes = window_minutes
        self._clock = clock

    def was_recently_sent(
        self,
        user_id,
        kind: Union[NotificationKind, str],
        fingerprint: str,
        window_minutes: Optional[int] = None,
    ) -> bool:
        """True only if the same content of this kind went out inside the window."""
        window = self.window_minutes if window_minutes is None else window_minutes
        session = self._session_factory()
        try:
            record = session.get(NotificationRecord, (str(user_id), _kind_value(kind)))
            if record is None:
                return False
            elapsed = self._clock() - record.sent_at
            return elapsed < timedelta(minutes=window) and record.content_fingerprint == fingerprint
        except SQLAlchemyError as e:
            logger.error(f"Error checking recent notification for user {user_id}: {e}")
            return False
        finally:
            session.close()

    def record_sent(self, user_id, kind: Union[NotificationKind, str], fingerprint: str) -> None:
        session = self._session_factory()
        try:
            key = (str(user_id), _kind_value(kind))
            record = session.get(NotificationRecord, key)
            if record is None:
                record = NotificationRecord(user_id=key[0], kind=key[1])
                session.add(record)
            record.sent_at = self._clock()
            record.content_fingerprint = fingerprint
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error recording notification for user {user_id}: {e}")
        finally:
            session.close()
