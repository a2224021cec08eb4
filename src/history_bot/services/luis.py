"""LUIS Intent Recognizer Implementation.

Calls the LUIS v2 prediction endpoint and maps the reply onto a
RecognizerResult.

API Documentation:
https://westus.dev.cognitive.microsoft.com/docs/services/5819c76f40a6350ce09de1ac

Response mapping:
- intents / topScoringIntent -> RecognizerResult.intents
- entities -> grouped by type, text sliced from the query
- sentimentAnalysis -> sentiment_label / sentiment_score
"""

from __future__ import annotations

from typing import Any

import httpx

from history_bot.bot.state import RecognizerResult
from history_bot.core.exceptions import RecognizerError
from history_bot.core.logging import get_logger
from history_bot.services.base import IntentRecognizer

log = get_logger(__name__)


class LuisRecognizer(IntentRecognizer):
    """LUIS intent recognizer.

    Attributes:
        app_id: LUIS application ID
        subscription_key: Endpoint subscription key
        region: Azure region hosting the endpoint
    """

    def __init__(
        self,
        app_id: str,
        subscription_key: str,
        region: str = "westus",
        endpoint: str | None = None,
        staging: bool = False,
        verbose: bool = True,
        timezone_offset: float = 0.0,
        timeout: float = 10.0,
    ):
        """Initialize LUIS recognizer.

        Args:
            app_id: LUIS application ID
            subscription_key: Endpoint subscription key
            region: Azure region (westus, westeurope, ...)
            endpoint: Custom endpoint host, overrides region
            staging: Query the staging slot instead of production
            verbose: Request scores for all intents
            timezone_offset: Offset in minutes for datetime entities
            timeout: HTTP request timeout
        """
        self.app_id = app_id
        self.subscription_key = subscription_key
        self.region = region
        self.staging = staging
        self.verbose = verbose
        self.timezone_offset = timezone_offset
        self.timeout = timeout

        host = endpoint or f"https://{region}.api.cognitive.microsoft.com"
        self._client = httpx.AsyncClient(
            base_url=f"{host.rstrip('/')}/luis/v2.0/apps",
            timeout=timeout,
            headers={
                "Accept": "application/json",
            },
        )

    async def recognize(self, text: str) -> RecognizerResult:
        """Send the utterance to LUIS.

        Args:
            text: User utterance

        Returns:
            Parsed recognizer result

        Raises:
            RecognizerError: If the request fails or LUIS returns an error
        """
        if not text or not text.strip():
            return RecognizerResult(text=text or "")

        params = {
            "q": text,
            "subscription-key": self.subscription_key,
            "verbose": "true" if self.verbose else "false",
            "timezoneOffset": str(self.timezone_offset),
            "staging": "true" if self.staging else "false",
        }

        try:
            response = await self._client.get(f"/{self.app_id}", params=params)
        except httpx.TimeoutException as e:
            log.error("LUIS timeout", app_id=self.app_id)
            raise RecognizerError(
                "LUIS request timed out",
                details={"app_id": self.app_id},
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            log.error("LUIS HTTP error", app_id=self.app_id, error=str(e))
            raise RecognizerError(
                "LUIS request failed",
                details={"app_id": self.app_id},
                cause=e,
            ) from e

        if response.status_code != 200:
            try:
                error_data = response.json() if response.content else {}
            except (ValueError, TypeError):
                error_data = {}
            error_message = _error_message(error_data) or f"HTTP {response.status_code}"

            log.error(
                "LUIS recognition failed",
                status_code=response.status_code,
                error=error_message,
            )
            raise RecognizerError(
                error_message,
                details={"app_id": self.app_id, "status_code": response.status_code},
            )

        result = parse_luis_response(response.json(), text)

        top_intent, score = result.top_intent()
        log.info(
            "LUIS recognition",
            top_intent=top_intent,
            score=score,
            entities=list(result.entities),
        )
        return result

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def parse_luis_response(data: dict[str, Any], text: str) -> RecognizerResult:
    """Map a LUIS v2 response body onto a RecognizerResult.

    Args:
        data: Decoded JSON response
        text: Utterance that was sent

    Returns:
        Recognizer result
    """
    query = data.get("query") or text
    result = RecognizerResult(text=query)

    for item in data.get("intents") or []:
        if "intent" in item:
            result.intents[item["intent"]] = float(item.get("score") or 0.0)

    top = data.get("topScoringIntent")
    if top and top.get("intent") and top["intent"] not in result.intents:
        result.intents[top["intent"]] = float(top.get("score") or 0.0)

    for entity in data.get("entities") or []:
        name = _entity_name(entity.get("type", ""))
        if not name:
            continue
        result.entities.setdefault(name, []).append(_entity_text(entity, query))

    sentiment = data.get("sentimentAnalysis")
    if sentiment:
        result.sentiment_label = sentiment.get("label")
        if sentiment.get("score") is not None:
            result.sentiment_score = float(sentiment["score"])

    return result


def _entity_name(entity_type: str) -> str:
    """Normalize LUIS entity type names (builtin.number -> number)."""
    if entity_type.startswith("builtin."):
        entity_type = entity_type[len("builtin."):]
    return entity_type.replace(".", "_")


def _entity_text(entity: dict[str, Any], query: str) -> str:
    """Get entity text as typed by the user.

    LUIS lower-cases the ``entity`` field, so the original span is cut
    from the query when indices are available.
    """
    start = entity.get("startIndex")
    end = entity.get("endIndex")
    if isinstance(start, int) and isinstance(end, int) and 0 <= start <= end < len(query):
        return query[start:end + 1]
    return entity.get("entity", "")


def _error_message(error_data: dict[str, Any]) -> str | None:
    """Extract an error message from a LUIS error body."""
    error = error_data.get("error")
    if isinstance(error, dict):
        return error.get("message")
    return error_data.get("message")
