"""Tests for the turn dispatcher."""

import json

import pytest

from conftest import FakeKnowledgeBase, FakeRecognizer, make_context, make_result
from history_bot.bot.dispatcher import TurnDispatcher
from history_bot.bot.handlers import IntentHandlers
from history_bot.bot.state import DEFAULT_ADDRESS_ENTITIES, BotIntent, ResponseType, UserHistoryState
from history_bot.config import BotSettings
from history_bot.core.exceptions import ConfigurationError, KnowledgeBaseError, RecognizerError
from history_bot.services.registry import BotServices


class TestConfidenceThreshold:
    """Low-confidence turns always go to the knowledge base."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [0.0, 0.5, 0.75])
    async def test_low_confidence_uses_knowledge_base(self, dispatcher, recognizer, knowledge_base, score):
        """Test that confidence <= 0.75 skips intent dispatch."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, score, {"AMTSAddress": ["10 Downing St"]}
        )
        context = make_context("remember 10 Downing St")

        response = await dispatcher.handle_turn(context)

        assert response.type == ResponseType.QNA
        assert knowledge_base.calls == ["remember 10 Downing St"]

    @pytest.mark.asyncio
    async def test_low_confidence_does_not_touch_memory(self, dispatcher, recognizer, user_state):
        """Test that a low-confidence remember does not store the address."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.6, {"AMTSAddress": ["10 Downing St"]}
        )

        await dispatcher.handle_turn(make_context("remember 10 Downing St"))

        memory = await user_state.get("direct", "student-1")
        assert memory.patient_amts_address is None

    @pytest.mark.asyncio
    async def test_custom_threshold(self, services, user_state, recognizer):
        """Test that the threshold is configurable."""
        dispatcher = TurnDispatcher(services=services, user_state=user_state, intent_threshold=0.5)
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.6)

        response = await dispatcher.handle_turn(make_context("what was the address?"))

        assert response.text == "I don't think you told me an address Doctor."


class TestRememberAddress:
    """Tests for the AMTSRememberAddress intent."""

    @pytest.mark.asyncio
    async def test_stores_address(self, dispatcher, recognizer, user_state):
        """Test that a recognized address is stored."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.95, {"AMTSAddress": ["221B Baker St"]}
        )

        response = await dispatcher.handle_turn(make_context("remember 221B Baker St"))

        memory = await user_state.get("direct", "student-1")
        assert memory.patient_amts_address == "221B Baker St"
        assert response.type == ResponseType.REMEMBER_ADDRESS
        assert response.text == "Okay Doctor, 221B Baker St, I'll remember it."

    @pytest.mark.asyncio
    async def test_uses_first_address(self, dispatcher, recognizer, user_state):
        """Test that only the first extracted address is stored."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value,
            0.9,
            {"AMTSAddress": ["42 West Street", "7 Elm Road"]},
        )

        await dispatcher.handle_turn(make_context("remember 42 West Street or 7 Elm Road"))

        memory = await user_state.get("direct", "student-1")
        assert memory.patient_amts_address == "42 West Street"

    @pytest.mark.asyncio
    async def test_missing_address_asks_again(self, dispatcher, recognizer, user_state, state_store):
        """Test that no address entity prompts for one without storing."""
        recognizer.result = make_result(BotIntent.REMEMBER_ADDRESS.value, 0.9)
        context = make_context("I want you to remember an address")

        response = await dispatcher.handle_turn(context)

        assert response.type == ResponseType.REMEMBER_ADDRESS
        assert response.text == "Sure Doctor, what's the address?"
        assert state_store.keys() == []

    @pytest.mark.asyncio
    async def test_unrelated_entity_is_not_an_address(self, dispatcher, recognizer, state_store):
        """Test that other entities do not count as an address."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.9, {"number": ["10"], "other": ["x"]}
        )

        response = await dispatcher.handle_turn(make_context("remember 10"))

        assert response.text == "Sure Doctor, what's the address?"
        assert state_store.keys() == []

    @pytest.mark.asyncio
    async def test_empty_address_list_asks_again(self, dispatcher, recognizer):
        """Test that an empty address entity list is treated as missing."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.9, {"AMTSAddress": []}
        )

        response = await dispatcher.handle_turn(make_context("remember"))

        assert response.text == "Sure Doctor, what's the address?"

    @pytest.mark.asyncio
    async def test_end_to_end_downing_street(self, dispatcher, recognizer, user_state):
        """Test remembering an address given under the generic entity name."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value,
            0.9,
            {"address": ["10 Downing St"], "other": ["x"]},
        )
        context = make_context("remember 10 Downing St")

        response = await dispatcher.handle_turn(context)

        memory = await user_state.get("direct", "student-1")
        assert memory.patient_amts_address == "10 Downing St"

        payload = json.loads(context.sent[0])
        assert payload["type"] == "AMTSRememberAddress"
        assert "10 Downing St" in payload["text"]
        assert response.type == ResponseType.REMEMBER_ADDRESS

    def test_default_address_entities(self, knowledge_base):
        """Test that handlers accept both address entity names by default."""
        handlers = IntentHandlers(knowledge_base=knowledge_base)

        assert handlers.address_entities == list(DEFAULT_ADDRESS_ENTITIES)
        assert handlers.address_entities == BotSettings().address_entities

    def test_custom_address_entities(self, knowledge_base):
        """Test that an explicit entity list replaces the defaults."""
        handlers = IntentHandlers(knowledge_base=knowledge_base, address_entities=["street"])
        memory = UserHistoryState()

        response = handlers.remember_address(
            make_result(BotIntent.REMEMBER_ADDRESS.value, 0.9, {"address": ["10 Downing St"]}),
            memory,
        )

        assert response.text == "Sure Doctor, what's the address?"
        assert memory.patient_amts_address is None


class TestRecallAddress:
    """Tests for the AMTSRecallAddress intent."""

    @pytest.mark.asyncio
    async def test_recall_without_address(self, dispatcher, recognizer):
        """Test the reply when no address was given.

        The response keeps the AMTSRememberAddress type.
        """
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9)

        response = await dispatcher.handle_turn(make_context("what was the address?"))

        assert response.text == "I don't think you told me an address Doctor."
        assert response.type == ResponseType.REMEMBER_ADDRESS

    @pytest.mark.asyncio
    async def test_recall_is_idempotent(self, dispatcher, recognizer):
        """Test that two recalls in a row give identical payloads."""
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9)

        first = make_context("what was the address?")
        second = make_context("what was the address?")
        await dispatcher.handle_turn(first)
        await dispatcher.handle_turn(second)

        assert first.sent == second.sent

    @pytest.mark.asyncio
    async def test_remember_then_recall(self, dispatcher, recognizer):
        """Test that a remembered address is recalled on a later turn."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.9, {"AMTSAddress": ["42 West Street"]}
        )
        await dispatcher.handle_turn(make_context("remember 42 West Street"))

        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9)
        response = await dispatcher.handle_turn(make_context("what was the address?"))

        assert response.type == ResponseType.RECALL_ADDRESS
        assert response.text == "I think it was 42 West Street."

    @pytest.mark.asyncio
    async def test_memory_is_per_user(self, dispatcher, recognizer):
        """Test that one user's address is not visible to another."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.9, {"AMTSAddress": ["42 West Street"]}
        )
        await dispatcher.handle_turn(make_context("remember 42 West Street", user_id="alice"))

        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9)
        response = await dispatcher.handle_turn(make_context("what was the address?", user_id="bob"))

        assert response.text == "I don't think you told me an address Doctor."

    @pytest.mark.asyncio
    async def test_memory_is_per_channel(self, dispatcher, recognizer, state_store):
        """Test that the same user id on another channel has its own memory."""
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.9, {"AMTSAddress": ["10 Downing St"]}
        )
        await dispatcher.handle_turn(make_context("remember 10 Downing St", channel_id="webchat"))

        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9)
        response = await dispatcher.handle_turn(make_context("what was it?", channel_id="emulator"))

        assert response.text == "I don't think you told me an address Doctor."
        assert state_store.keys() == ["webchat/users/student-1"]

    @pytest.mark.asyncio
    async def test_recall_reads_stored_memory(self, dispatcher, recognizer, user_state):
        """Test that memory written by an earlier session is used."""
        await user_state.set("direct", "student-1", UserHistoryState(patient_amts_address="7 Elm Road"))
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.99)

        response = await dispatcher.handle_turn(make_context("what was it?"))

        assert response.text == "I think it was 7 Elm Road."


class TestKnowledgeBaseFallback:
    """Tests for the knowledge base path."""

    @pytest.mark.asyncio
    async def test_no_answers(self, services, user_state, recognizer, knowledge_base):
        """Test that an empty result gives NoMatchFound."""
        knowledge_base.answers = []
        dispatcher = TurnDispatcher(services=services, user_state=user_state)
        recognizer.result = make_result(BotIntent.NONE.value, 0.3)

        response = await dispatcher.handle_turn(make_context("what is your favourite colour?"))

        assert response.type == ResponseType.NO_MATCH
        assert response.text == "Sorry Doctor, I'm not sure what you mean."
        assert response.metadata is None

    @pytest.mark.asyncio
    async def test_only_first_answer_used(self, dispatcher, recognizer):
        """Test that the first answer's text and metadata are used."""
        recognizer.result = make_result(BotIntent.NONE.value, 0.2)
        context = make_context("When were you born?")

        response = await dispatcher.handle_turn(context)

        assert response.type == ResponseType.QNA
        assert response.text == "I was born in 1942."
        assert [pair.name for pair in response.metadata] == ["category", "question"]

        payload = json.loads(context.sent[0])
        assert payload["metadata"] == {"category": "amts", "question": "dob"}

    @pytest.mark.asyncio
    async def test_unknown_confident_intent_falls_back(self, dispatcher, recognizer, knowledge_base):
        """Test that a confident but unhandled intent uses the knowledge base."""
        recognizer.result = make_result("AMTSAge", 0.97)

        response = await dispatcher.handle_turn(make_context("How old are you?"))

        assert response.type == ResponseType.QNA
        assert knowledge_base.calls == ["How old are you?"]

    @pytest.mark.asyncio
    async def test_intent_path_skips_knowledge_base(self, dispatcher, recognizer, knowledge_base):
        """Test that handled intents never query the knowledge base."""
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9)

        await dispatcher.handle_turn(make_context("what was the address?"))

        assert knowledge_base.calls == []


class TestTurnGuards:
    """Tests for ignored turns and the one-response invariant."""

    @pytest.mark.asyncio
    async def test_non_message_ignored(self, dispatcher, recognizer):
        """Test that non-message activities are ignored."""
        context = make_context(None, activity_type="conversationUpdate")

        response = await dispatcher.handle_turn(context)

        assert response is None
        assert context.sent == []
        assert recognizer.calls == []

    @pytest.mark.asyncio
    async def test_empty_text_ignored(self, dispatcher, recognizer):
        """Test that a message without text is ignored."""
        context = make_context("")

        assert await dispatcher.handle_turn(context) is None
        assert recognizer.calls == []

    @pytest.mark.asyncio
    async def test_already_responded_ignored(self, dispatcher, recognizer):
        """Test that a turn is not processed twice."""
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9)
        context = make_context("what was the address?")

        await dispatcher.handle_turn(context)
        await dispatcher.handle_turn(context)

        assert len(context.sent) == 1
        assert len(recognizer.calls) == 1

    @pytest.mark.asyncio
    async def test_exactly_one_response(self, dispatcher, recognizer):
        """Test that every handled turn sends one payload."""
        for intent, score in [
            (BotIntent.REMEMBER_ADDRESS.value, 0.9),
            (BotIntent.RECALL_ADDRESS.value, 0.9),
            ("Other", 0.9),
            (BotIntent.NONE.value, 0.1),
        ]:
            recognizer.result = make_result(intent, score)
            context = make_context("hello")
            await dispatcher.handle_turn(context)
            assert len(context.sent) == 1
            assert context.responded


class TestSentiment:
    """Tests for sentiment carried into responses."""

    @pytest.mark.asyncio
    async def test_sentiment_carried(self, dispatcher, recognizer):
        """Test that the sentiment score is copied to the payload."""
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9, sentiment=0.83)
        context = make_context("what was the address?")

        await dispatcher.handle_turn(context)

        assert json.loads(context.sent[0])["sentiment"] == 0.83

    @pytest.mark.asyncio
    async def test_missing_sentiment_is_null(self, dispatcher, recognizer):
        """Test that a missing sentiment does not break the turn."""
        recognizer.result = make_result(BotIntent.RECALL_ADDRESS.value, 0.9, sentiment=None)
        context = make_context("what was the address?")

        await dispatcher.handle_turn(context)

        assert json.loads(context.sent[0])["sentiment"] is None


class TestLegacyWireFormat:
    """Tests for dispatching with the legacy payload shape."""

    @pytest.mark.asyncio
    async def test_legacy_payload_sent(self, services, user_state, recognizer):
        """Test that the legacy format is used when configured."""
        dispatcher = TurnDispatcher(services=services, user_state=user_state, wire_format="legacy")
        recognizer.result = make_result(
            BotIntent.REMEMBER_ADDRESS.value, 0.9, {"AMTSAddress": ["10 Downing St"]}, sentiment=0.5
        )
        context = make_context("remember 10 Downing St")

        await dispatcher.handle_turn(context)

        assert context.sent == [
            '{"sentiment":0.5, "text":"Okay Doctor, 10 Downing St, I\'ll remember it.", '
            '"type":"AMTSRememberAddress"}'
        ]


class TestErrorPropagation:
    """Collaborator failures are not caught by the dispatcher."""

    @pytest.mark.asyncio
    async def test_recognizer_error_propagates(self, user_state):
        """Test that recognizer errors reach the caller without a reply."""

        class FailingRecognizer(FakeRecognizer):
            async def recognize(self, text):
                raise RecognizerError("LUIS request failed")

        services = BotServices(
            luis_services={"PixelDrHistoryBot_General": FailingRecognizer()},
            qna_services={"PixelDrHistoryBot": FakeKnowledgeBase()},
        )
        dispatcher = TurnDispatcher(services=services, user_state=user_state)
        context = make_context("hello")

        with pytest.raises(RecognizerError):
            await dispatcher.handle_turn(context)

        assert context.sent == []

    @pytest.mark.asyncio
    async def test_knowledge_base_error_propagates(self, user_state):
        """Test that knowledge base errors reach the caller."""

        class FailingKnowledgeBase(FakeKnowledgeBase):
            async def get_answers(self, text):
                raise KnowledgeBaseError("QnA Maker request failed")

        services = BotServices(
            luis_services={"PixelDrHistoryBot_General": FakeRecognizer(make_result("None", 0.1))},
            qna_services={"PixelDrHistoryBot": FailingKnowledgeBase()},
        )
        dispatcher = TurnDispatcher(services=services, user_state=user_state)

        with pytest.raises(KnowledgeBaseError):
            await dispatcher.handle_turn(make_context("hello"))

    def test_missing_service_rejected(self, user_state):
        """Test that an unregistered recognizer fails at construction."""
        with pytest.raises(ConfigurationError):
            TurnDispatcher(services=BotServices(), user_state=user_state)
