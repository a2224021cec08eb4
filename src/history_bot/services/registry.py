"""Cognitive services registry.

Holds the configured intent recognizers and knowledge bases by name and
builds them from settings.

Supported providers:
- luis / qnamaker: Azure cognitive services, used when credentials are set
- local: keyword recognizer and in-memory knowledge base otherwise
"""

from __future__ import annotations

from history_bot.config import Settings, get_settings
from history_bot.core.exceptions import ConfigurationError
from history_bot.core.logging import get_logger
from history_bot.services.base import IntentRecognizer, KnowledgeBase
from history_bot.services.local import KeywordIntentRecognizer, LocalKnowledgeBase

log = get_logger(__name__)


class BotServices:
    """Named intent recognizers and knowledge bases."""

    def __init__(
        self,
        luis_services: dict[str, IntentRecognizer] | None = None,
        qna_services: dict[str, KnowledgeBase] | None = None,
    ):
        """Initialize registry.

        Args:
            luis_services: Intent recognizers by name
            qna_services: Knowledge bases by name
        """
        self.luis_services: dict[str, IntentRecognizer] = dict(luis_services or {})
        self.qna_services: dict[str, KnowledgeBase] = dict(qna_services or {})

    def recognizer(self, name: str) -> IntentRecognizer:
        """Get an intent recognizer by name.

        Raises:
            ConfigurationError: If no recognizer is registered under the name
        """
        try:
            return self.luis_services[name]
        except KeyError:
            raise ConfigurationError(
                f"Intent recognizer '{name}' is not configured",
                details={"available": sorted(self.luis_services)},
            ) from None

    def knowledge_base(self, name: str) -> KnowledgeBase:
        """Get a knowledge base by name.

        Raises:
            ConfigurationError: If no knowledge base is registered under the name
        """
        try:
            return self.qna_services[name]
        except KeyError:
            raise ConfigurationError(
                f"Knowledge base '{name}' is not configured",
                details={"available": sorted(self.qna_services)},
            ) from None

    async def close(self) -> None:
        """Close all registered services."""
        for recognizer in self.luis_services.values():
            await recognizer.close()
        for knowledge_base in self.qna_services.values():
            await knowledge_base.close()


def build_bot_services(settings: Settings) -> BotServices:
    """Create services from settings.

    Falls back to local services when credentials are missing.

    Args:
        settings: Application settings

    Returns:
        Populated registry
    """
    recognizer: IntentRecognizer
    knowledge_base: KnowledgeBase

    if settings.luis_configured:
        from history_bot.services.luis import LuisRecognizer

        recognizer = LuisRecognizer(
            app_id=settings.luis.app_id,
            subscription_key=settings.luis.subscription_key,
            region=settings.luis.region,
            endpoint=settings.luis.endpoint or None,
            staging=settings.luis.staging,
            verbose=settings.luis.verbose,
            timezone_offset=settings.luis.timezone_offset,
            timeout=settings.luis.timeout,
        )
        log.info("LUIS recognizer initialized", region=settings.luis.region)
    else:
        log.warning("LUIS credentials not configured, using keyword recognizer")
        recognizer = KeywordIntentRecognizer(
            address_entity=settings.bot.address_entities[0]
            if settings.bot.address_entities
            else "AMTSAddress",
        )

    if settings.qna_configured:
        from history_bot.services.qnamaker import QnAMakerService

        knowledge_base = QnAMakerService(
            knowledge_base_id=settings.qna.knowledge_base_id,
            endpoint_key=settings.qna.endpoint_key,
            host=settings.qna.host,
            top=settings.qna.top,
            score_threshold=settings.qna.score_threshold,
            timeout=settings.qna.timeout,
        )
        log.info("QnA Maker knowledge base initialized", host=settings.qna.host)
    else:
        log.warning("QnA Maker credentials not configured, using local knowledge base")
        knowledge_base = LocalKnowledgeBase()

    return BotServices(
        luis_services={settings.bot.recognizer_name: recognizer},
        qna_services={settings.bot.knowledge_base_name: knowledge_base},
    )


# Singleton instance
_bot_services: BotServices | None = None


def get_bot_services() -> BotServices:
    """Get the configured services registry."""
    global _bot_services
    if _bot_services is None:
        _bot_services = build_bot_services(get_settings())
    return _bot_services


async def close_bot_services() -> None:
    """Close and reset the services registry."""
    global _bot_services
    if _bot_services is not None:
        await _bot_services.close()
        _bot_services = None
