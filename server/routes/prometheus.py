import time
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.routing import Match

router = APIRouter()

# HTTP-level metrics; dispatch metrics live in reminders.metrics
HTTP_REQUESTS = Counter(
    "reminder_http_requests_total",
    "HTTP requests served by the reminder API",
    ["method", "endpoint", "http_status"]
)

HTTP_LATENCY = Histogram(
    "reminder_http_request_duration_seconds",
    "Reminder API request latency",
    ["method", "endpoint"]
)

HTTP_EXCEPTIONS = Counter(
    "reminder_http_exceptions_total",
    "Unhandled exceptions raised while serving a request",
    ["endpoint"]
)


def _endpoint_label(request: Request) -> str:
    # Full route template ("/users/{user_id}") keeps chat ids out of the labels
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return request.url.path


@router.get("/")
def metrics():
    """Prometheus scrape endpoint."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


async def metrics_middleware(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        HTTP_EXCEPTIONS.labels(endpoint=_endpoint_label(request)).inc()
        raise

    endpoint = _endpoint_label(request)
    HTTP_LATENCY.labels(method=request.method, endpoint=endpoint).observe(time.perf_counter() - started)
    HTTP_REQUESTS.labels(method=request.method, endpoint=endpoint, http_status=response.status_code).inc()
    return response
