"""QnA Maker Knowledge Base Implementation.

Calls the QnA Maker runtime ``generateAnswer`` endpoint.

API Documentation:
https://docs.microsoft.com/azure/cognitive-services/qnamaker/how-to/metadata-generateanswer-usage

QnA Maker scores answers from 0 to 100. Scores are normalized to 0..1
and answers below the threshold are dropped, including the
"No good match found in KB." placeholder returned with score 0.
"""

from __future__ import annotations

from typing import Any

import httpx

from history_bot.bot.state import MetadataPair, QueryResult
from history_bot.core.exceptions import KnowledgeBaseError
from history_bot.core.logging import get_logger
from history_bot.services.base import KnowledgeBase

log = get_logger(__name__)


class QnAMakerService(KnowledgeBase):
    """QnA Maker knowledge base client.

    Attributes:
        knowledge_base_id: Knowledge base ID
        host: Runtime host, e.g. https://<name>.azurewebsites.net/qnamaker
        top: Maximum number of answers to request
        score_threshold: Minimum normalized score to keep an answer
    """

    def __init__(
        self,
        knowledge_base_id: str,
        endpoint_key: str,
        host: str,
        top: int = 1,
        score_threshold: float = 0.3,
        timeout: float = 10.0,
    ):
        """Initialize QnA Maker client.

        Args:
            knowledge_base_id: Knowledge base ID
            endpoint_key: Runtime endpoint key
            host: Runtime host URL
            top: Maximum number of answers to request
            score_threshold: Minimum score in 0..1
            timeout: HTTP request timeout
        """
        if not 0.0 <= score_threshold <= 1.0:
            raise ValueError("score_threshold must be between 0 and 1")
        if top < 1:
            raise ValueError("top must be at least 1")

        self.knowledge_base_id = knowledge_base_id
        self.host = host
        self.top = top
        self.score_threshold = score_threshold
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            base_url=host.rstrip("/"),
            timeout=timeout,
            headers={
                "Authorization": f"EndpointKey {endpoint_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def get_answers(self, text: str) -> list[QueryResult]:
        """Query the knowledge base.

        Args:
            text: User question

        Returns:
            Answers above the score threshold, best first

        Raises:
            KnowledgeBaseError: If the request fails or QnA Maker returns an error
        """
        if not text or not text.strip():
            return []

        try:
            response = await self._client.post(
                f"/knowledgebases/{self.knowledge_base_id}/generateAnswer",
                json={"question": text, "top": self.top},
            )
        except httpx.TimeoutException as e:
            log.error("QnA Maker timeout", knowledge_base_id=self.knowledge_base_id)
            raise KnowledgeBaseError(
                "QnA Maker request timed out",
                details={"knowledge_base_id": self.knowledge_base_id},
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            log.error(
                "QnA Maker HTTP error",
                knowledge_base_id=self.knowledge_base_id,
                error=str(e),
            )
            raise KnowledgeBaseError(
                "QnA Maker request failed",
                details={"knowledge_base_id": self.knowledge_base_id},
                cause=e,
            ) from e

        if response.status_code != 200:
            try:
                error_data = response.json() if response.content else {}
            except (ValueError, TypeError):
                error_data = {}
            error = error_data.get("error") or {}
            error_message = (
                error.get("message") if isinstance(error, dict) else None
            ) or f"HTTP {response.status_code}"

            log.error(
                "QnA Maker query failed",
                status_code=response.status_code,
                error=error_message,
            )
            raise KnowledgeBaseError(
                error_message,
                details={
                    "knowledge_base_id": self.knowledge_base_id,
                    "status_code": response.status_code,
                },
            )

        answers = parse_answers(response.json(), self.score_threshold)

        log.info(
            "QnA Maker query",
            answers=len(answers),
            top_score=answers[0].score if answers else None,
        )
        return answers

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def parse_answers(data: dict[str, Any], score_threshold: float = 0.0) -> list[QueryResult]:
    """Map a generateAnswer response body onto query results.

    Args:
        data: Decoded JSON response
        score_threshold: Minimum normalized score to keep

    Returns:
        Results sorted by descending score
    """
    results: list[QueryResult] = []

    for item in data.get("answers") or []:
        score = float(item.get("score") or 0.0) / 100.0
        if score <= 0.0 or score < score_threshold:
            continue

        results.append(
            QueryResult(
                answer=item.get("answer", ""),
                score=score,
                metadata=[
                    MetadataPair(name=str(pair.get("name", "")), value=str(pair.get("value", "")))
                    for pair in item.get("metadata") or []
                ],
                questions=list(item.get("questions") or []),
                source=item.get("source"),
                id=item.get("id"),
            )
        )

    results.sort(key=lambda result: result.score, reverse=True)
    return results
