"""BPMN Lint Service — upload a process diagram, get the linter's findings back.

Main FastAPI application with lifespan management and request-boundary error handling.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.api.router import api_router
from app.validators.engine import ValidationEngine
from app.validators.exceptions import ConfigurationError, LintServiceError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if get_settings().DEBUG else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO)
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    settings = get_settings()

    # ── Startup ──
    logger.info("app_starting", debug=settings.DEBUG, linter=settings.LINTER_COMMAND)

    app.state.validation_engine = ValidationEngine.from_settings(settings)

    try:
        app.state.validation_engine.initialize()
    except ConfigurationError as e:
        # Requests retry the write and answer with a configuration failure
        logger.error("lint_config_init_failed", error=e.message)

    logger.info("app_started")

    yield

    # ── Shutdown ──
    logger.info("app_stopped")


# ── Create Application ──

app = FastAPI(
    title="BPMN Lint Service",
    description=(
        "Validates uploaded BPMN process diagrams with bpmnlint "
        "and returns a structured report of the problems found."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── Exception Handlers ──

@app.exception_handler(LintServiceError)
async def lint_service_error_handler(request: Request, exc: LintServiceError):
    """Translate known service errors into their JSON error body."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "validation_request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.error,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all error handler for unhandled exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again.",
        },
    )


# ── Routes ──

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint — API info."""
    return {
        "name": "BPMN Lint Service",
        "version": "1.0.0",
        "description": "Structured bpmnlint reports for uploaded BPMN diagrams",
        "docs": "/docs",
        "health": "/health",
        "validate": "/validate",
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL)
