# reminders/database.py
from datetime import datetime, timezone
from sqlalchemy import create_engine, Column, String, Boolean, DateTime, JSON, PrimaryKeyConstraint
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =========================================================
# DATABASE SETUP
# =========================================================
def create_session_factory(database_url: str) -> sessionmaker:
    """
    Build an engine + session factory for the given URL.

    Opened once at process start and handed to the store and dedup guard.
    In-memory SQLite gets a StaticPool so every session sees the same database.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


# =========================================================
# DATABASE MODELS
# =========================================================
class ReminderProfile(Base):
    """Namespace users/reminders, one row per chat id."""
    __tablename__ = "user_reminders"
    user_id = Column(String(64), primary_key=True)
    active = Column(Boolean, nullable=False, default=True)
    reminder_times = Column(JSON, nullable=True)
    # Schema v1 stored a single time; kept readable until folded into reminder_times
    reminder_time = Column(String(5), nullable=True)
    task_refresh_opt_in = Column(Boolean, nullable=True, default=True)
    test_messages_opt_in = Column(Boolean, nullable=True, default=False)
    external_identity_key = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class NotificationRecord(Base):
    """Namespace notifications, one row per (chat id, notification kind)."""
    __tablename__ = "notification_records"
    user_id = Column(String(64), nullable=False)
    kind = Column(String(32), nullable=False)
    sent_at = Column(DateTime, nullable=False, default=utcnow)
    content_fingerprint = Column(String(64), nullable=False)

    __table_args__ = (PrimaryKeyConstraint("user_id", "kind"),)
