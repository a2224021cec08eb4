"""Structured logging for the history bot.

Records carry the bot name when one is configured. Records emitted while
a turn runs inside ``bind_turn`` also carry the turn's channel, user,
conversation and activity ids.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

import structlog

if TYPE_CHECKING:
    from history_bot.bot.turn import Activity

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _level(level: str) -> int:
    """Resolve a level name, rejecting unknown names."""
    name = level.upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}")
    return getattr(logging, name)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    bot_name: str | None = None,
) -> None:
    """Configure structlog and the standard library loggers.

    Args:
        level: Log level name
        json_output: Render one JSON object per line instead of console output
        bot_name: Added to every record as ``bot``

    Raises:
        ValueError: If the level name is unknown
    """
    threshold = _level(level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=threshold)
    # httpx logs every LUIS and QnA Maker request at INFO
    logging.getLogger("httpx").setLevel(max(threshold, logging.WARNING))

    def add_bot_name(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        if bot_name:
            event_dict.setdefault("bot", bot_name)
        return event_dict

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_bot_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def bind_turn(activity: Activity) -> Iterator[None]:
    """Attach the activity's identifiers to every record logged in the block."""
    with structlog.contextvars.bound_contextvars(
        channel_id=activity.channel_id,
        user_id=activity.user_id,
        conversation_id=activity.conversation_id,
        activity_id=activity.id,
    ):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger, typically with ``__name__``."""
    return structlog.get_logger(name)
