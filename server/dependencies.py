from fastapi import Depends, HTTPException, Request

from reminders.dispatch import DispatchEngine
from reminders.services import ReminderServices
from reminders.store import PreferenceStore


def get_services(request: Request) -> ReminderServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Reminder services not initialised")
    return services


def get_store(services: ReminderServices = Depends(get_services)) -> PreferenceStore:
    return services.store


def get_engine(services: ReminderServices = Depends(get_services)) -> DispatchEngine:
    return services.engine
