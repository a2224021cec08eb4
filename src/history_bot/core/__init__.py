"""Core infrastructure for the history bot."""

from history_bot.core.exceptions import (
    HistoryBotError,
    IntegrationError,
    RecognizerError,
    KnowledgeBaseError,
    StateStoreError,
    ConfigurationError,
)
from history_bot.core.logging import bind_turn, get_logger, setup_logging

__all__ = [
    # Logging
    "bind_turn",
    "get_logger",
    "setup_logging",
    # Exceptions
    "HistoryBotError",
    "IntegrationError",
    "RecognizerError",
    "KnowledgeBaseError",
    "StateStoreError",
    "ConfigurationError",
]
