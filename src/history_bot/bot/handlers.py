"""Intent handlers for the simulated patient.

Each handler builds the response for one branch of the turn and updates
the user's memory record in place where the branch calls for it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from history_bot.bot import responses
from history_bot.bot.state import (
    DEFAULT_ADDRESS_ENTITIES,
    BotResponse,
    RecognizerResult,
    ResponseType,
    UserHistoryState,
)
from history_bot.core.logging import get_logger

if TYPE_CHECKING:
    from history_bot.services.base import KnowledgeBase

log = get_logger(__name__)


class IntentHandlers:
    """Handles recognized intents and the knowledge base fallback."""

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        address_entities: list[str] | None = None,
    ):
        """Initialize handlers.

        Args:
            knowledge_base: Knowledge base used for unmatched input
            address_entities: Entity names that carry the address
        """
        self._knowledge_base = knowledge_base
        self.address_entities = list(
            DEFAULT_ADDRESS_ENTITIES if address_entities is None else address_entities
        )

    def remember_address(
        self,
        result: RecognizerResult,
        memory: UserHistoryState,
        sentiment: float | None = None,
    ) -> BotResponse:
        """Store the address given by the doctor.

        Args:
            result: Recognizer output for the utterance
            memory: User memory, updated when an address was recognized
            sentiment: Sentiment score to carry into the response

        Returns:
            Acknowledgement, or a prompt for the address if none was found
        """
        address = result.first_entity(self.address_entities)

        if not address:
            log.info("Remember intent without address entity")
            return BotResponse(
                type=ResponseType.REMEMBER_ADDRESS,
                text=responses.ask_for_address(),
                sentiment=sentiment,
            )

        memory.patient_amts_address = str(address)
        log.info("Address remembered")

        return BotResponse(
            type=ResponseType.REMEMBER_ADDRESS,
            text=responses.address_remembered(memory.patient_amts_address),
            sentiment=sentiment,
        )

    def recall_address(
        self,
        memory: UserHistoryState,
        sentiment: float | None = None,
    ) -> BotResponse:
        """Repeat the remembered address.

        The "no address" reply keeps the AMTSRememberAddress type that
        existing clients key on.

        Args:
            memory: User memory
            sentiment: Sentiment score to carry into the response

        Returns:
            Response stating the address or that none was given
        """
        if memory.patient_amts_address is not None:
            return BotResponse(
                type=ResponseType.RECALL_ADDRESS,
                text=responses.address_recalled(memory.patient_amts_address),
                sentiment=sentiment,
            )

        return BotResponse(
            type=ResponseType.REMEMBER_ADDRESS,
            text=responses.no_address_given(),
            sentiment=sentiment,
        )

    async def answer_from_knowledge_base(
        self,
        text: str,
        sentiment: float | None = None,
    ) -> BotResponse:
        """Answer from the knowledge base.

        Only the first (most relevant) answer is used.

        Args:
            text: User utterance
            sentiment: Sentiment score to carry into the response

        Returns:
            QnA answer with its metadata, or a no-match response
        """
        answers = await self._knowledge_base.get_answers(text)

        if not answers:
            log.info("Knowledge base had no answer")
            return BotResponse(
                type=ResponseType.NO_MATCH,
                text=responses.not_understood(),
                sentiment=sentiment,
            )

        best = answers[0]
        log.info("Knowledge base answer", score=best.score, candidates=len(answers))

        return BotResponse(
            type=ResponseType.QNA,
            text=best.answer,
            sentiment=sentiment,
            metadata=list(best.metadata),
        )
