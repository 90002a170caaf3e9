import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reminders.config import ReminderConfig
from reminders.errors import StorageError, ValidationError
from reminders.scheduler import start_scheduler, stop_scheduler
from reminders.services import build_services
from server.routes import router
from server.routes.prometheus import metrics_middleware

config = ReminderConfig()
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# =========================================================
# FASTAPI APP
# =========================================================

app = FastAPI(title="Ethos Reminder Service")

# Register Prometheus middleware
app.middleware("http")(metrics_middleware)

# Include API Router
app.include_router(router)


@app.get("/health")
def health():
    return {"status": "ok"}


# =========================================================
# ERROR MAPPING
# =========================================================
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "detail": str(exc),
            "examples": ["6pm", "9:30am", "18:00", "23:45"],
        },
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Reminder storage unavailable, please try again."})


# =========================================================
# SERVICES + SCHEDULER LIFECYCLE
# =========================================================
@app.on_event("startup")
def init_services():
    logger.info("🔄 Initialising reminder services...")
    app.state.services = build_services(config)
    app.state.scheduler = None
    if config.SCHEDULER_ENABLED:
        app.state.scheduler = start_scheduler(app.state.services.engine)
    else:
        logger.info("Scheduler disabled via SCHEDULER_ENABLED")


@app.on_event("shutdown")
def shutdown_scheduler():
    stop_scheduler(getattr(app.state, "scheduler", None))
