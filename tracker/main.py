import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response

from tracker.api import deps
from tracker.api.routes import (
    attachments,
    auth,
    comments,
    issues,
    notifications,
    projects,
    sprints,
    users,
)
from tracker.core.config import settings
from tracker.core.errors import TrackerError
from tracker.core.limiter import limiter
from tracker.core.logging import client_ip_ctx, configure_logging, request_id_ctx
from tracker.core.metrics import metrics
from tracker.db.repository import Repository
from tracker.services import auth as auth_service
from tracker.services import cascade
from tracker.services.assistant import assistant

configure_logging(settings.log_level, service=settings.app_name)
logger = logging.getLogger("tracker")

MULTIPART_OVERHEAD_BYTES = 64 * 1024
ALLOWED_MEDIA_TYPES = {"application/json", "multipart/form-data"}


def _repository_factory(app: FastAPI) -> Callable[[], Repository]:
    return app.dependency_overrides.get(deps.get_repository, deps.get_repository)


async def sweep_sessions_forever(
    repo_factory: Callable[[], Repository], interval_seconds: int
) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(auth_service.sweep_expired_sessions, repo_factory())
        except Exception:
            logger.exception("Session sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    repo_factory = _repository_factory(app)
    resumed = cascade.resume_pending(repo_factory())
    if resumed:
        logger.warning("Finished interrupted cascades", extra={"event": {"count": resumed}})
    auth_service.sweep_expired_sessions(repo_factory())
    sweeper = asyncio.create_task(
        sweep_sessions_forever(repo_factory, settings.session_sweep_interval_seconds)
    )
    logger.info(
        "Tracker started",
        extra={"event": {"version": settings.app_version, "ai_enabled": assistant.enabled}},
    )

    yield

    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    logger.info("Tracker stopped")


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
rate_limit_enabled = not settings.is_test
if rate_limit_enabled:
    from slowapi.errors import RateLimitExceeded
    from slowapi.middleware import SlowAPIMiddleware

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=settings.allowed_methods,
    allow_headers=settings.allowed_headers,
    max_age=settings.cors_max_age,
)


def _error_body(request: Request, code: str, message, details=None) -> dict:
    error = {
        "code": code,
        "message": message,
        "request_id": getattr(request.state, "request_id", None),
    }
    if details is not None:
        error["details"] = details
    return {"error": error}


def _media_type(request: Request) -> str:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";")[0].strip().lower()


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    request_id_ctx.set(request_id)
    if request.client:
        client_ip_ctx.set(request.client.host)
    start = time.monotonic()
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    duration_ms = int((time.monotonic() - start) * 1000)
    logging.getLogger("access").info(
        "request",
        extra={
            "event": {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
        },
    )
    metrics.record(response.status_code)
    return response


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response: Response = await call_next(request)
    response.headers.setdefault("Content-Security-Policy", "default-src 'self'")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    if settings.env.lower() == "production":
        response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")
    return response


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if _media_type(request) == "multipart/form-data":
            limit = settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
        else:
            limit = settings.max_json_body_bytes
        if int(content_length) > limit:
            return JSONResponse(
                status_code=413,
                content=_error_body(request, "payload_too_large", "Request body too large"),
            )
    return await call_next(request)


@app.middleware("http")
async def enforce_content_type(request: Request, call_next):
    if request.method in {"POST", "PUT", "PATCH"}:
        content_length = request.headers.get("content-length")
        has_body = bool(content_length and content_length.isdigit() and int(content_length) > 0)
        if has_body and _media_type(request) not in ALLOWED_MEDIA_TYPES:
            return JSONResponse(
                status_code=415,
                content=_error_body(
                    request,
                    "unsupported_media_type",
                    "Content-Type must be application/json or multipart/form-data",
                ),
            )
    return await call_next(request)


@app.get("/health/live")
def live():
    return {"status": "ok"}


@app.get("/health/ready")
def ready():
    repo = _repository_factory(app)()
    repo.store.read("projects")
    return {"status": "ready", "storage_backend": settings.storage_backend}


@app.get("/metrics")
def metrics_endpoint():
    return metrics.snapshot()


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.code, exc.message),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logging.getLogger("tracker").exception(
        "Unhandled exception",
        extra={
            "event": {
                "method": request.method,
                "path": request.url.path,
                "request_id": getattr(request.state, "request_id", None),
            }
        },
    )
    message = "Internal server error"
    details = None
    if settings.env.lower() != "production":
        message = f"{exc.__class__.__name__}: {exc}"
        details = [{"type": exc.__class__.__name__}]
    return JSONResponse(
        status_code=500,
        content=_error_body(request, "internal_server_error", message, details),
    )


async def rate_limit_handler(request: Request, exc: Exception):
    retry_after = None
    detail = getattr(exc, "detail", None)
    if isinstance(detail, dict):
        if "retry_after" in detail:
            retry_after = int(detail["retry_after"])
        elif "reset" in detail:
            retry_after = max(0, int(detail["reset"] - time.time()))
    headers = {}
    if retry_after is not None:
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(
        status_code=429,
        headers=headers,
        content=_error_body(request, "rate_limited", "Too many requests"),
    )


if rate_limit_enabled:
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=_error_body(
            request, "validation_error", "Validation error", jsonable_errors(exc)
        ),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, f"http_{exc.status_code}", exc.detail),
    )


for router in (
    auth.router,
    users.router,
    projects.router,
    issues.router,
    sprints.router,
    comments.router,
    attachments.router,
    notifications.router,
):
    app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.env.lower() == "development",
    )
