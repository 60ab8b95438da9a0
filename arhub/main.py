"""
main.py — ARHub API application

Wires logging, startup tasks, the background scheduler, error handlers
and the routers into one FastAPI app.

Business Rules:
- Every response carries an 8-char X-Request-ID; log lines inside the
  request are contextualized with it
- Errors share the ErrorResponse shape (error, status_code, request_id, detail)
- The scheduler loop only starts when SCHEDULING_AGENT_ENABLED is set
  and never under TESTING

Called by: uvicorn (arhub.main:app)
Depends on: config, logging_config, startup, scheduler, routers/*
"""

import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .exceptions import ARHubError
from .http_client import close_clients
from .logging_config import setup_logging
from .routers import briefings_due, scheduling
from .routers import settings as settings_router
from .schemas.errors import ErrorResponse

log = logging.getLogger("arhub.main")

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    from .startup import run_startup_tasks

    run_startup_tasks()

    task = None
    if settings.scheduling_agent_enabled and not os.environ.get("TESTING"):
        from .scheduler import start_scheduler

        task = asyncio.create_task(start_scheduler())

    yield

    if task:
        task.cancel()
    await close_clients()


app = FastAPI(title="ARHub", version=APP_VERSION, lifespan=lifespan)


# ── Middleware ──────────────────────────────────────────────────────────


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Error handlers ──────────────────────────────────────────────────────


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _error(status_code: int, error: str, request: Request, detail: list | None = None):
    body = ErrorResponse(
        error=error,
        status_code=status_code,
        request_id=_request_id(request),
        detail=detail,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    detail = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return _error(422, "Validation error", request, detail)


@app.exception_handler(ARHubError)
async def arhub_exception_handler(request: Request, exc: ARHubError):
    if exc.status_code >= 500:
        log.error(f"{type(exc).__name__}: {exc}")
    return _error(exc.status_code, str(exc), request)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
    return _error(500, "Internal server error", request)


# ── Routes ──────────────────────────────────────────────────────────────

app.include_router(briefings_due.router)
app.include_router(settings_router.router)
app.include_router(scheduling.router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": APP_VERSION}

