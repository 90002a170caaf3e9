from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Optional

from ethos_api import format_userkey
from reminders.store import PreferenceStore
from reminders.timeutils import require_time
from server.dependencies import get_store
from server.schemas import (
    DeactivateResponse,
    IdentityKeyInput,
    IdentityKeyResponse,
    OptionalTimeInput,
    ProfileResponse,
    ReminderTimesResponse,
    TimeInput,
    ToggleInput,
    ToggleResponse,
)

router = APIRouter()


def _times_response(store: PreferenceStore, user_id: str) -> ReminderTimesResponse:
    return ReminderTimesResponse.build(store.list_reminder_times(user_id), store.max_times)


# =========================================================
# PROFILE + ACTIVATION
# =========================================================
@router.get("/{user_id}", response_model=ProfileResponse)
def get_profile(user_id: str, store: PreferenceStore = Depends(get_store)):
    profile = store.get_profile(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    return ProfileResponse.from_profile(profile)


@router.post("/{user_id}/activate", response_model=ProfileResponse)
def activate_reminders(
    user_id: str,
    payload: Optional[OptionalTimeInput] = Body(None),
    store: PreferenceStore = Depends(get_store)
):
    """Enable reminders; keeps existing times unless a time is given."""
    explicit_time = require_time(payload.time) if payload and payload.time else None
    return ProfileResponse.from_profile(store.upsert_active(user_id, explicit_time))


@router.post("/{user_id}/deactivate", response_model=DeactivateResponse)
def deactivate_reminders(user_id: str, store: PreferenceStore = Depends(get_store)):
    return DeactivateResponse(deactivated=store.deactivate(user_id))


# =========================================================
# REMINDER TIMES
# =========================================================
@router.get("/{user_id}/reminder-times", response_model=ReminderTimesResponse)
def list_reminder_times(user_id: str, store: PreferenceStore = Depends(get_store)):
    return _times_response(store, user_id)


@router.put("/{user_id}/reminder-times", response_model=ReminderTimesResponse)
def set_reminder_time(user_id: str, payload: TimeInput, store: PreferenceStore = Depends(get_store)):
    """Replace all reminder times with a single time."""
    store.replace_reminder_time(user_id, require_time(payload.time))
    return _times_response(store, user_id)


@router.post("/{user_id}/reminder-times", response_model=ReminderTimesResponse)
def add_reminder_time(user_id: str, payload: TimeInput, store: PreferenceStore = Depends(get_store)):
    result = store.add_reminder_time(user_id, require_time(payload.time))
    if not result.accepted:
        raise HTTPException(status_code=409, detail={"reason": result.reason, "remaining": result.remaining})
    return _times_response(store, user_id)


@router.delete("/{user_id}/reminder-times", response_model=ReminderTimesResponse)
def remove_reminder_time(user_id: str, payload: TimeInput, store: PreferenceStore = Depends(get_store)):
    result = store.remove_reminder_time(user_id, require_time(payload.time))
    if not result.accepted:
        raise HTTPException(status_code=409, detail={"reason": result.reason})
    return _times_response(store, user_id)


# =========================================================
# TASK REFRESH + TEST MESSAGES
# =========================================================
@router.get("/{user_id}/task-refresh", response_model=ToggleResponse)
def get_task_refresh(user_id: str, store: PreferenceStore = Depends(get_store)):
    return ToggleResponse(enabled=store.get_task_refresh_opt_in(user_id))


@router.put("/{user_id}/task-refresh", response_model=ToggleResponse)
def set_task_refresh(user_id: str, payload: ToggleInput, store: PreferenceStore = Depends(get_store)):
    store.set_task_refresh_opt_in(user_id, payload.enabled)
    return ToggleResponse(enabled=payload.enabled)


@router.get("/{user_id}/test-messages", response_model=ToggleResponse)
def get_test_messages(user_id: str, store: PreferenceStore = Depends(get_store)):
    return ToggleResponse(enabled=store.get_test_messages_opt_in(user_id))


@router.put("/{user_id}/test-messages", response_model=ToggleResponse)
def set_test_messages(user_id: str, payload: ToggleInput, store: PreferenceStore = Depends(get_store)):
    store.set_test_messages_opt_in(user_id, payload.enabled)
    return ToggleResponse(enabled=payload.enabled)


# =========================================================
# ETHOS USERKEY (smart reminders)
# =========================================================
@router.get("/{user_id}/identity-key", response_model=IdentityKeyResponse)
def get_identity_key(user_id: str, store: PreferenceStore = Depends(get_store)):
    return IdentityKeyResponse(userkey=store.get_external_identity_key(user_id))


@router.put("/{user_id}/identity-key", response_model=IdentityKeyResponse)
def set_identity_key(user_id: str, payload: IdentityKeyInput, store: PreferenceStore = Depends(get_store)):
    if not payload.handle.strip().lstrip("@"):
        raise HTTPException(status_code=400, detail="Please provide a Twitter handle or EVM address.")
    store.set_external_identity_key(user_id, format_userkey(payload.handle))
    return IdentityKeyResponse(userkey=store.get_external_identity_key(user_id))


@router.delete("/{user_id}/identity-key", response_model=IdentityKeyResponse)
def clear_identity_key(user_id: str, store: PreferenceStore = Depends(get_store)):
    store.set_external_identity_key(user_id, "")
    return IdentityKeyResponse(userkey=None)
