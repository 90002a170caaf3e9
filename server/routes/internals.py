from datetime import datetime
from typing import Optional
import pytz
from fastapi import APIRouter, Body, Depends

from reminders.dispatch import DispatchEngine
from reminders.store import PreferenceStore
from server.dependencies import get_engine, get_store
from server.schemas import (
    DispatchSummaryResponse,
    HourlyTickRequest,
    ReminderStatsResponse,
    ReminderTestRequest,
)

router = APIRouter()

# =========================================================
# INTERNAL ENDPOINTS (No Authentication Required)
# Used by an external scheduler or operators to fire ticks by hand
# =========================================================

@router.post("/ticks/hourly", response_model=DispatchSummaryResponse)
def run_hourly_tick(
    payload: Optional[HourlyTickRequest] = Body(None),
    engine: DispatchEngine = Depends(get_engine)
):
    """Run the reminder tick for the given UTC hour (defaults to the current hour)."""
    hour = payload.hour if payload and payload.hour is not None else datetime.now(pytz.utc).hour
    return engine.run_hourly_tick(hour).as_dict()


@router.post("/ticks/daily", response_model=DispatchSummaryResponse)
def run_daily_tick(engine: DispatchEngine = Depends(get_engine)):
    return engine.run_daily_tick().as_dict()


@router.post("/test-reminder", response_model=DispatchSummaryResponse)
def send_test_reminder(payload: ReminderTestRequest, engine: DispatchEngine = Depends(get_engine)):
    """Send the test reminder to users who opted into test messages."""
    return engine.run_test_reminder(payload.hour).as_dict()


@router.get("/reminder-stats", response_model=ReminderStatsResponse)
def reminder_stats(store: PreferenceStore = Depends(get_store)):
    return ReminderStatsResponse(
        total_active_users=len(store.all_active_users()),
        times=store.reminder_time_histogram(),
    )
