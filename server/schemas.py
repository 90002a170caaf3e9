from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from reminders.models import UserNotificationProfile
from reminders.timeutils import format_time_for_display

# =========================================================
# PYDANTIC SCHEMAS
# =========================================================

# Preference Schemas
class TimeInput(BaseModel):
    time: str  # "6pm", "9:30am", "18:00" ... always UTC

class OptionalTimeInput(BaseModel):
    time: Optional[str] = None

class ToggleInput(BaseModel):
    enabled: bool

class ToggleResponse(BaseModel):
    enabled: Optional[bool]

class IdentityKeyInput(BaseModel):
    handle: str  # Twitter handle or EVM address

class IdentityKeyResponse(BaseModel):
    userkey: Optional[str]

class ReminderTimesResponse(BaseModel):
    times: List[str]
    display: List[str]
    limit: int

    @classmethod
    def build(cls, times: List[str], limit: int) -> "ReminderTimesResponse":
        return cls(times=times, display=[format_time_for_display(t) for t in times], limit=limit)

class ProfileResponse(BaseModel):
    user_id: str
    active: bool
    reminder_times: List[str]
    task_refresh_opt_in: bool
    test_messages_opt_in: bool
    external_identity_key: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: UserNotificationProfile) -> "ProfileResponse":
        return cls(
            user_id=profile.user_id,
            active=profile.active,
            reminder_times=list(profile.reminder_times),
            task_refresh_opt_in=profile.task_refresh_opt_in,
            test_messages_opt_in=profile.test_messages_opt_in,
            external_identity_key=profile.external_identity_key,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )

class DeactivateResponse(BaseModel):
    deactivated: bool

# Dispatch Schemas
class HourlyTickRequest(BaseModel):
    hour: Optional[int] = Field(None, ge=0, le=23)

class ReminderTestRequest(BaseModel):
    hour: int = Field(..., ge=0, le=23)

class DispatchSummaryResponse(BaseModel):
    sent: int
    failed: int
    skipped: int

class ReminderStatsResponse(BaseModel):
    total_active_users: int
    times: Dict[str, int]
