"""Turn dispatcher.

Main entry point for every inbound activity. Classifies the message,
routes it to an intent handler or the knowledge base, sends exactly one
response and saves the user's memory when it changed.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from history_bot.bot import wire
from history_bot.bot.handlers import IntentHandlers
from history_bot.bot.state import BotIntent, BotResponse, RecognizerResult, UserHistoryState
from history_bot.bot.turn import TurnContext
from history_bot.core.logging import bind_turn, get_logger

if TYPE_CHECKING:
    from history_bot.config import Settings
    from history_bot.services.registry import BotServices
    from history_bot.storage.state_store import UserStateAccessor

log = get_logger(__name__)


class TurnDispatcher:
    """
    Dispatches conversation turns for the history-taking bot.

    Usage:
        dispatcher = TurnDispatcher(services, UserStateAccessor(MemoryStateStore()))
        context = TurnContext(activity=activity, channel=channel)
        response = await dispatcher.handle_turn(context)

    Turns for the same user must not overlap; the host serializes them.
    """

    def __init__(
        self,
        services: BotServices,
        user_state: UserStateAccessor,
        intent_threshold: float = 0.75,
        wire_format: wire.WireFormat | str = wire.WireFormat.JSON,
        address_entities: list[str] | None = None,
        recognizer_name: str = "PixelDrHistoryBot_General",
        knowledge_base_name: str = "PixelDrHistoryBot",
    ):
        """Initialize dispatcher.

        Args:
            services: Registry holding the recognizer and knowledge base
            user_state: Accessor for per-user memory
            intent_threshold: Top intent must score above this to be handled
            wire_format: Payload format for sent responses
            address_entities: Entity names that carry the address
            recognizer_name: Registry name of the intent recognizer
            knowledge_base_name: Registry name of the knowledge base

        Raises:
            ConfigurationError: If a named service is not registered
        """
        self.intent_threshold = intent_threshold
        self.wire_format = wire.WireFormat(wire_format)
        self._user_state = user_state
        self._recognizer = services.recognizer(recognizer_name)
        self._handlers = IntentHandlers(
            knowledge_base=services.knowledge_base(knowledge_base_name),
            address_entities=address_entities,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        services: BotServices,
        user_state: UserStateAccessor,
    ) -> TurnDispatcher:
        """Create a dispatcher configured from settings."""
        return cls(
            services=services,
            user_state=user_state,
            intent_threshold=settings.bot.intent_threshold,
            wire_format=settings.bot.wire_format,
            address_entities=settings.bot.address_entities,
            recognizer_name=settings.bot.recognizer_name,
            knowledge_base_name=settings.bot.knowledge_base_name,
        )

    async def handle_turn(self, turn_context: TurnContext) -> BotResponse | None:
        """
        Process one inbound activity.

        Recognizer, knowledge base and state store errors are not caught
        here and propagate to the host.

        Args:
            turn_context: Context for the current turn

        Returns:
            The response sent, or None if the turn was ignored
        """
        activity = turn_context.activity

        with bind_turn(activity):
            memory = await self._user_state.get(
                activity.channel_id, activity.user_id, UserHistoryState
            )

            if not activity.is_message or turn_context.responded:
                log.debug("Turn ignored", activity_type=activity.type)
                return None

            before = replace(memory)

            result = await self._recognizer.recognize(activity.text or "")
            intent, score = result.top_intent()
            sentiment = result.sentiment_score

            log.info("Turn classified", intent=intent, score=score)

            if score > self.intent_threshold:
                response = await self._process_intent(
                    intent, result, memory, sentiment, activity.text or ""
                )
            else:
                response = await self._handlers.answer_from_knowledge_base(
                    activity.text or "", sentiment
                )

            if memory != before:
                await self._user_state.set(activity.channel_id, activity.user_id, memory)

            await turn_context.send_activity(wire.serialize(response, self.wire_format))

            log.info("Turn answered", response_type=response.type.value)
            return response

    async def _process_intent(
        self,
        intent: str,
        result: RecognizerResult,
        memory: UserHistoryState,
        sentiment: float | None,
        text: str,
    ) -> BotResponse:
        """Route a confidently recognized intent.

        Args:
            intent: Top intent label
            result: Recognizer output
            memory: User memory
            sentiment: Sentiment score
            text: User utterance

        Returns:
            Handler response
        """
        if intent == BotIntent.REMEMBER_ADDRESS.value:
            return self._handlers.remember_address(result, memory, sentiment)

        elif intent == BotIntent.RECALL_ADDRESS.value:
            return self._handlers.recall_address(memory, sentiment)

        # Unhandled intent: try the knowledge base
        return await self._handlers.answer_from_knowledge_base(text, sentiment)
