"""
One-shot migration from the v1 reminder schema.

v1 profiles stored a single `reminder_time`; v2 stores `reminder_times`.
This folds every v1 row into the v2 layout. It is idempotent and runs at
service start-up, before the scheduler is started.
"""
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import ReminderProfile, utcnow
from .errors import StorageError
from .models import LegacySchedule, decode_schedule

logger = logging.getLogger(__name__)


def fold_legacy_reminder_times(session_factory: sessionmaker) -> int:
    """Rewrite v1 rows as v2. Returns the number of rows migrated."""
    session = session_factory()
    migrated = 0
    try:
        rows = (
            session.query(ReminderProfile)
            .filter(ReminderProfile.reminder_time.isnot(None))
            .all()
        )
        for row in rows:
            schedule = decode_schedule(row)
            if isinstance(schedule, LegacySchedule):
                row.reminder_times = list(schedule.times)
                migrated += 1
            row.reminder_time = None
            row.updated_at = utcnow()
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(f"Legacy reminder migration failed: {e}") from e
    finally:
        session.close()

    if migrated:
        logger.info(f"🔄 Migrated {migrated} legacy reminder profiles to multi-time schedule")
    return migrated
