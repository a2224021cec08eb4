"""Health check endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from history_bot import __version__
from history_bot.config import get_settings
from history_bot.services.local import KeywordIntentRecognizer, LocalKnowledgeBase
from history_bot.services.registry import get_bot_services


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    environment: str
    checks: dict[str, Any]


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str
    checks: dict[str, str]


@router.get("/health")
async def health_check() -> HealthResponse:
    """Perform health check.

    Components checked:
    - API: Always ok if reachable
    - Recognizer: LUIS or local keyword fallback
    - Knowledge base: QnA Maker or local fallback
    """
    settings = get_settings()
    services = get_bot_services()

    recognizer = services.luis_services.get(settings.bot.recognizer_name)
    knowledge_base = services.qna_services.get(settings.bot.knowledge_base_name)

    checks: dict[str, Any] = {
        "api": "ok",
        "recognizer": _service_status(recognizer, KeywordIntentRecognizer),
        "knowledge_base": _service_status(knowledge_base, LocalKnowledgeBase),
    }

    return HealthResponse(
        status=_determine_overall_status(checks),
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/ready")
async def readiness_check() -> ReadinessResponse:
    """Readiness check: both collaborators are registered."""
    settings = get_settings()
    services = get_bot_services()

    checks = {
        "recognizer": "ok" if settings.bot.recognizer_name in services.luis_services else "missing",
        "knowledge_base": "ok" if settings.bot.knowledge_base_name in services.qna_services else "missing",
    }
    status = "ready" if all(value == "ok" for value in checks.values()) else "not_ready"

    return ReadinessResponse(status=status, checks=checks)


def _service_status(service: object | None, fallback_type: type) -> str:
    """Describe a collaborator's state."""
    if service is None:
        return "missing"
    if isinstance(service, fallback_type):
        return "local"
    return "ok"


def _determine_overall_status(checks: dict[str, Any]) -> str:
    """Derive overall status from component checks."""
    values = list(checks.values())
    if "missing" in values:
        return "unhealthy"
    if "local" in values:
        return "degraded"
    return "healthy"
