from fastapi import APIRouter
from . import users, prometheus, internals

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Reminder Preferences"])
router.include_router(prometheus.router, prefix="/metrics", tags=["Metrics"])
router.include_router(internals.router, prefix="/internals", tags=["Internals"])
