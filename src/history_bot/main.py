"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from history_bot import __version__
from history_bot.api import health, messages
from history_bot.config import get_settings, require_valid_settings
from history_bot.core.exceptions import HistoryBotError
from history_bot.core.logging import get_logger, setup_logging
from history_bot.services.registry import close_bot_services

log = get_logger(__name__)


def turn_error_handler(request: Request, exc: HistoryBotError) -> JSONResponse:
    """Report a failed turn.

    Recognizer and knowledge base failures answer 502, state store
    failures 503. No reply was sent to the user.
    """
    log.error(
        "Turn failed",
        error=str(exc),
        error_code=exc.error_code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def invalid_activity_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject an activity body that cannot be parsed.

    The body uses the same error shape as failed turns, with the
    offending activity fields listed in ``details``.
    """
    fields = {
        ".".join(str(loc) for loc in error["loc"] if loc != "body") or "activity": error["msg"]
        for error in exc.errors()
    }
    log.warning("Invalid activity", fields=list(fields))

    return JSONResponse(
        status_code=422,
        content={
            "error": "INVALID_ACTIVITY",
            "message": "Activity could not be parsed",
            "details": fields,
        },
    )


def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report a bug raised during a turn.

    The exception text is only returned in debug mode.
    """
    log.exception("Unexpected error", error_type=type(exc).__name__)

    message = str(exc) if get_settings().debug else "An internal error occurred"
    return JSONResponse(
        status_code=500,
        content={"error": "HISTORY_BOT_ERROR", "message": message},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = require_valid_settings()

    setup_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        bot_name=settings.bot.name,
    )
    log.info(
        "Starting History Bot",
        version=__version__,
        environment=settings.environment,
        wire_format=settings.bot.wire_format,
        intent_threshold=settings.bot.intent_threshold,
    )

    yield

    log.info("Shutting down History Bot")
    await close_bot_services()


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="Pixel Dr History Bot",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_exception_handler(HistoryBotError, turn_error_handler)
    app.add_exception_handler(RequestValidationError, invalid_activity_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(messages.router, prefix="/api", tags=["Messages"])

    return app


# Create application instance
app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "history_bot.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
