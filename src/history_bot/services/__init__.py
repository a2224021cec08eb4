"""Cognitive services the bot calls.

Provides the intent recognizer and knowledge base interfaces, their
LUIS and QnA Maker implementations, offline fallbacks, and the registry
that holds them by name.
"""

from history_bot.services.base import IntentRecognizer, KnowledgeBase
from history_bot.services.local import KeywordIntentRecognizer, LocalKnowledgeBase
from history_bot.services.luis import LuisRecognizer
from history_bot.services.qnamaker import QnAMakerService
from history_bot.services.registry import (
    BotServices,
    build_bot_services,
    close_bot_services,
    get_bot_services,
)

__all__ = [
    # Interfaces
    "IntentRecognizer",
    "KnowledgeBase",
    # Implementations
    "LuisRecognizer",
    "QnAMakerService",
    "KeywordIntentRecognizer",
    "LocalKnowledgeBase",
    # Registry
    "BotServices",
    "build_bot_services",
    "get_bot_services",
    "close_bot_services",
]
