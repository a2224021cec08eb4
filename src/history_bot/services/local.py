"""Offline cognitive services for development and testing.

Used when LUIS or QnA Maker credentials are not configured so the bot
can still be driven from the CLI.
"""

from __future__ import annotations

import re

from history_bot.bot.state import BotIntent, QueryResult, RecognizerResult
from history_bot.core.logging import get_logger
from history_bot.services.base import IntentRecognizer, KnowledgeBase

log = get_logger(__name__)


# Intent keywords (English)
INTENT_KEYWORDS: dict[BotIntent, list[str]] = {
    BotIntent.RECALL_ADDRESS: [
        "what was the address", "recall the address", "repeat the address",
        "remember the address i", "what address",
    ],
    BotIntent.REMEMBER_ADDRESS: [
        "remember", "memorise", "memorize", "address is",
    ],
}

# House number followed by capitalised street words, e.g. "221B Baker St"
ADDRESS_PATTERN = re.compile(r"\b(\d+[A-Za-z]?(?:\s+[A-Z][\w.']*)+)")


class KeywordIntentRecognizer(IntentRecognizer):
    """Keyword-based recognizer for the AMTS address intents."""

    def __init__(self, address_entity: str = "AMTSAddress"):
        """Initialize recognizer.

        Args:
            address_entity: Entity name to report extracted addresses under
        """
        self.address_entity = address_entity

    async def recognize(self, text: str) -> RecognizerResult:
        """Detect intent from keywords and extract a street address."""
        text_lower = text.lower()
        result = RecognizerResult(text=text)

        for intent, keywords in INTENT_KEYWORDS.items():
            if any(keyword in text_lower for keyword in keywords):
                result.intents[intent.value] = 1.0
                break
        else:
            result.intents[BotIntent.NONE.value] = 1.0

        match = ADDRESS_PATTERN.search(text)
        if match:
            result.entities[self.address_entity] = [match.group(1)]

        log.debug(
            "Keyword recognition",
            intents=result.intents,
            entities=list(result.entities),
        )
        return result


class LocalKnowledgeBase(KnowledgeBase):
    """In-memory knowledge base matching on stored questions."""

    def __init__(self, entries: list[QueryResult] | None = None):
        """Initialize knowledge base.

        Args:
            entries: Answers with the questions they respond to
        """
        self._entries = list(entries or [])

    async def get_answers(self, text: str) -> list[QueryResult]:
        """Return answers whose questions appear in the text."""
        text_lower = text.lower().strip(" ?!.")
        matches = []
        for entry in self._entries:
            questions = [q.lower().strip(" ?!.") for q in entry.questions]
            if any(q and q in text_lower for q in questions):
                matches.append(entry)
        log.debug("Local knowledge base lookup", matches=len(matches))
        return matches
