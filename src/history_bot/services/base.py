"""Base cognitive service interfaces.

Defines the abstract interfaces for the intent recognizer and the
knowledge base the turn dispatcher calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from history_bot.bot.state import QueryResult, RecognizerResult


class IntentRecognizer(ABC):
    """Abstract base class for intent recognizers."""

    @abstractmethod
    async def recognize(self, text: str) -> RecognizerResult:
        """Classify an utterance.

        Args:
            text: User utterance

        Returns:
            Intents, entities and sentiment for the utterance
        """
        pass

    async def close(self) -> None:
        """Release underlying resources."""
        return None


class KnowledgeBase(ABC):
    """Abstract base class for question/answer knowledge bases."""

    @abstractmethod
    async def get_answers(self, text: str) -> list[QueryResult]:
        """Look up answers for a question.

        Args:
            text: User question

        Returns:
            Answer candidates ordered by relevance, possibly empty
        """
        pass

    async def close(self) -> None:
        """Release underlying resources."""
        return None
