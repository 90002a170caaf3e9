"""
Reminder Scheduler

Fires the hourly reminder tick at the top of every UTC hour and the daily
task refresh broadcast at midnight UTC.
"""
import logging
from datetime import datetime
from typing import Optional
import pytz
from apscheduler.schedulers.background import BackgroundScheduler

from .dispatch import DispatchEngine
from .scheduler_config import HOURLY_TICK_MINUTE, TASK_REFRESH_HOUR, TASK_REFRESH_MINUTE

logger = logging.getLogger(__name__)


def run_hourly_job(engine: DispatchEngine, now: Optional[datetime] = None):
    """Hourly job: resolve the current UTC hour and run the reminder tick."""
    now = now or datetime.now(pytz.utc)
    try:
        engine.run_hourly_tick(now.astimezone(pytz.utc).hour)
    except Exception as e:
        logger.error(f"Error in hourly reminder job: {e}", exc_info=True)


def run_daily_job(engine: DispatchEngine):
    try:
        engine.run_daily_tick()
    except Exception as e:
        logger.error(f"Error in daily task refresh job: {e}", exc_info=True)


def build_scheduler(engine: DispatchEngine) -> BackgroundScheduler:
    """
    Create a scheduler with both jobs registered (not started).

    max_instances=1 keeps a slow tick from overlapping the next firing;
    coalesce merges firings missed while the process was down.
    """
    scheduler = BackgroundScheduler(timezone=pytz.utc)

    # Job 1: Reminders (top of every hour)
    scheduler.add_job(
        run_hourly_job,
        'cron',
        minute=HOURLY_TICK_MINUTE,
        args=[engine],
        id='hourly_reminder_job',
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    # Job 2: Task refresh broadcast (midnight UTC)
    scheduler.add_job(
        run_daily_job,
        'cron',
        hour=TASK_REFRESH_HOUR,
        minute=TASK_REFRESH_MINUTE,
        args=[engine],
        id='daily_task_refresh_job',
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def start_scheduler(engine: DispatchEngine) -> BackgroundScheduler:
    scheduler = build_scheduler(engine)
    scheduler.start()
    logger.info(
        f"🚀 Scheduler started: reminders (every hour at :{HOURLY_TICK_MINUTE:02d} UTC) + "
        f"task refresh (at {TASK_REFRESH_HOUR:02d}:{TASK_REFRESH_MINUTE:02d} UTC)"
    )
    return scheduler


def stop_scheduler(scheduler: Optional[BackgroundScheduler]):
    """Stop the scheduler gracefully."""
    if scheduler is None or not scheduler.running:
        return
    scheduler.shutdown(wait=False)
    logger.info("🛑 Scheduler stopped")
