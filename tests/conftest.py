"""Pytest configuration and fixtures for History Bot tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Set test environment
os.environ["HISTORY_BOT_ENV"] = "development"
os.environ["HISTORY_BOT_DEBUG"] = "true"

from history_bot.bot.state import (  # noqa: E402
    MetadataPair,
    QueryResult,
    RecognizerResult,
)
from history_bot.bot.turn import Activity, CollectingChannel, TurnContext  # noqa: E402
from history_bot.services.base import IntentRecognizer, KnowledgeBase  # noqa: E402


class FakeRecognizer(IntentRecognizer):
    """Recognizer returning a preset result and recording calls."""

    def __init__(self, result: RecognizerResult | None = None):
        self.result = result
        self.calls: list[str] = []

    async def recognize(self, text: str) -> RecognizerResult:
        self.calls.append(text)
        if self.result is None:
            return RecognizerResult(text=text)
        return self.result


class FakeKnowledgeBase(KnowledgeBase):
    """Knowledge base returning preset answers and recording calls."""

    def __init__(self, answers: list[QueryResult] | None = None):
        self.answers = list(answers or [])
        self.calls: list[str] = []

    async def get_answers(self, text: str) -> list[QueryResult]:
        self.calls.append(text)
        return list(self.answers)


def make_result(
    intent: str,
    score: float,
    entities: dict[str, list[str]] | None = None,
    sentiment: float | None = 0.5,
    text: str = "",
) -> RecognizerResult:
    """Build a recognizer result with a single scored intent."""
    return RecognizerResult(
        text=text,
        intents={intent: score},
        entities=entities or {},
        sentiment_label="neutral" if sentiment is not None else None,
        sentiment_score=sentiment,
    )


def make_context(
    text: str | None,
    user_id: str = "student-1",
    activity_type: str = "message",
    channel_id: str = "direct",
) -> TurnContext:
    """Build a turn context for a message from a user."""
    return TurnContext(
        activity=Activity(
            type=activity_type,
            user_id=user_id,
            text=text,
            channel_id=channel_id,
            conversation_id="conv-1",
        ),
        channel=CollectingChannel(),
    )


@pytest.fixture
def recognizer():
    """Fake intent recognizer."""
    return FakeRecognizer()


@pytest.fixture
def knowledge_base():
    """Fake knowledge base with two answers."""
    return FakeKnowledgeBase([
        QueryResult(
            answer="I was born in 1942.",
            score=0.92,
            metadata=[
                MetadataPair(name="category", value="amts"),
                MetadataPair(name="question", value="dob"),
            ],
            questions=["When were you born?"],
        ),
        QueryResult(
            answer="It is 1942.",
            score=0.41,
            metadata=[MetadataPair(name="category", value="other")],
            questions=["What year?"],
        ),
    ])


@pytest.fixture
def services(recognizer, knowledge_base):
    """Services registry holding the fakes."""
    from history_bot.services.registry import BotServices

    return BotServices(
        luis_services={"PixelDrHistoryBot_General": recognizer},
        qna_services={"PixelDrHistoryBot": knowledge_base},
    )


@pytest.fixture
def state_store():
    """Empty in-process state store."""
    from history_bot.storage.state_store import MemoryStateStore

    return MemoryStateStore()


@pytest.fixture
def user_state(state_store):
    """User state accessor over the state store."""
    from history_bot.storage.state_store import UserStateAccessor

    return UserStateAccessor(state_store)


@pytest.fixture
def dispatcher(services, user_state):
    """Turn dispatcher using the fakes and JSON payloads."""
    from history_bot.bot.dispatcher import TurnDispatcher

    return TurnDispatcher(services=services, user_state=user_state)


@pytest.fixture
def mock_settings(monkeypatch):
    """Settings without cloud credentials."""
    from history_bot.config import Settings

    settings = Settings(
        environment="test",
        debug=True,
    )

    from history_bot import config

    monkeypatch.setattr(config, "get_settings", lambda: settings)
    return settings
