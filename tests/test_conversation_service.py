"""Tests for conversation context tracking and the conversation service."""

import pytest

from app.models.conversation import ConversationContext
from app.models.conversation import MessageRole
from app.services.conversation_service import apply_drift
from app.utils.errors import AiServiceFailure
from app.utils.errors import InputValidationError
from app.utils.errors import NotFoundError

from .conftest import USER_ID


async def _start(analysis_service, conversation_service):
    record = await analysis_service.analyze(USER_ID, text="Whole grain oats, sugar, salt")
    await analysis_service.drain_background_tasks()
    return record, await conversation_service.start(USER_ID, record.id)


class TestDrift:
    def test_concern_messages_keep_most_recent_five(self):
        context = ConversationContext()
        messages = [f"I have a concern about additive number {i}" for i in range(6)]
        for message in messages:
            context = apply_drift(context, message)

        assert len(context.main_concerns) == 5
        assert context.main_concerns == [m[:50] for m in messages[1:]]

    def test_concern_snippet_is_deduplicated(self):
        context = apply_drift(ConversationContext(), "I'm worried about sugar")
        context = apply_drift(context, "I'm worried about sugar")
        assert context.main_concerns == ["I'm worried about sugar"]

    def test_snippet_is_first_fifty_characters(self):
        message = "I worry that " + "x" * 100
        context = apply_drift(ConversationContext(), message)
        assert context.main_concerns == [message[:50]]

    def test_alternatives_switch_intent(self):
        context = apply_drift(ConversationContext(), "What could I eat INSTEAD?")
        assert context.user_intent == "seeking-alternatives"
        assert context.main_concerns == []

    def test_both_heuristics_apply(self):
        context = apply_drift(ConversationContext(), "Any alternative? I'm worried about dyes")
        assert context.user_intent == "seeking-alternatives"
        assert len(context.main_concerns) == 1

    def test_input_context_is_not_mutated(self):
        original = ConversationContext()
        apply_drift(original, "concern")
        assert original.main_concerns == []


class TestConversationService:
    @pytest.mark.asyncio
    async def test_start_seeds_context(self, analysis_service, conversation_service, store):
        record, conversation = await _start(analysis_service, conversation_service)

        assert conversation.analysis_id == record.id
        assert conversation.context.product_name == record.extracted_text.cleaned[:50]
        assert conversation.context.main_concerns == ["Added sugar", "Artificial color"]
        assert conversation.context.user_intent == "check-sugar"
        assert conversation.context.key_ingredients == ["Oats", "Sugar"]
        assert conversation.messages[0].role is MessageRole.SYSTEM
        assert conversation.messages[0].content == f"Conversation started for analysis {record.id}"
        assert await store.get_conversation(conversation.id, USER_ID) is not None

    @pytest.mark.asyncio
    async def test_start_for_unknown_analysis(self, conversation_service):
        with pytest.raises(NotFoundError):
            await conversation_service.start(USER_ID, "missing")

    @pytest.mark.asyncio
    async def test_start_for_other_users_analysis(self, analysis_service, conversation_service):
        record = await analysis_service.analyze(USER_ID, text="Oats, sugar, salt")
        with pytest.raises(NotFoundError):
            await conversation_service.start("someone-else", record.id)

    @pytest.mark.asyncio
    async def test_send_message_appends_both_messages(
        self, analysis_service, conversation_service, llm_client, store
    ):
        _, conversation = await _start(analysis_service, conversation_service)

        reply = await conversation_service.send_message(
            USER_ID, conversation.id, "Is there an alternative with less sugar?"
        )

        assert reply["reply"] == "Happy to help with that."
        assert reply["reasoning"]["confidence"] == 0.85
        assert isinstance(reply["processingTime"], int)

        stored = await store.get_conversation(conversation.id, USER_ID)
        assert [m.role for m in stored.messages] == [
            MessageRole.SYSTEM,
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert stored.messages[2].metadata.model == "fake-model"
        assert stored.context.user_intent == "seeking-alternatives"

        chat_calls = llm_client.calls_of("chat")
        assert len(chat_calls) == 1
        assert chat_calls[0][2] == 0.8
        assert "user: Is there an alternative with less sugar?" in chat_calls[0][1]

    @pytest.mark.asyncio
    async def test_ai_failure_leaves_conversation_unchanged(
        self, analysis_service, conversation_service, llm_client, store
    ):
        _, conversation = await _start(analysis_service, conversation_service)
        llm_client.replies["chat"] = ConnectionError("provider down")

        with pytest.raises(AiServiceFailure):
            await conversation_service.send_message(USER_ID, conversation.id, "I'm worried about salt")

        stored = await store.get_conversation(conversation.id, USER_ID)
        assert len(stored.messages) == 1
        assert stored.context == conversation.context

    @pytest.mark.asyncio
    async def test_concern_snippet_comes_from_raw_message(
        self, analysis_service, conversation_service, store
    ):
        _, conversation = await _start(analysis_service, conversation_service)
        message = "I'm  worried   about\tthe sugar   in this"

        await conversation_service.send_message(USER_ID, conversation.id, message)

        stored = await store.get_conversation(conversation.id, USER_ID)
        assert stored.messages[1].content == "I'm worried about the sugar in this"
        assert stored.context.main_concerns[-1] == message[:50]

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, conversation_service):
        with pytest.raises(InputValidationError):
            await conversation_service.send_message(USER_ID, "any", " \x00 \n ")

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, conversation_service):
        with pytest.raises(NotFoundError):
            await conversation_service.send_message(USER_ID, "missing", "hello")

    @pytest.mark.asyncio
    async def test_list_conversations_paginates(self, analysis_service, conversation_service):
        record = await analysis_service.analyze(USER_ID, text="Oats, sugar, salt")
        for _ in range(3):
            await conversation_service.start(USER_ID, record.id)

        page = await conversation_service.list_conversations(USER_ID, page=2, limit=2)

        assert len(page["conversations"]) == 1
        assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
