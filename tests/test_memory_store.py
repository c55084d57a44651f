"""Tests for the in-memory store."""

from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from app.database.base import page_count
from app.database.base import page_window
from app.models.analysis import AnalysisRecord
from app.models.analysis import AnalysisResult
from app.models.analysis import Feedback
from app.models.conversation import ConversationContext
from app.models.conversation import ConversationState
from app.models.conversation import Message
from app.models.conversation import MessageRole
from app.models.user import UserPreferences
from app.utils.errors import PersistenceFailure


def _record(record_id: str, user_id: str = "u1", minutes: int = 0) -> AnalysisRecord:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return AnalysisRecord(id=record_id, user_id=user_id, created_at=created, result=AnalysisResult())


def test_page_helpers():
    assert page_window(1, 10) == (0, 10)
    assert page_window(3, 5) == (10, 15)
    assert page_window(0, 5) == (0, 5)
    assert page_count(0, 10) == 0
    assert page_count(11, 10) == 2


class TestAnalyses:
    @pytest.mark.asyncio
    async def test_owner_scoped_lookup(self, store):
        await store.create_analysis(_record("a1"))

        assert (await store.get_analysis("a1", "u1")).id == "a1"
        assert await store.get_analysis("a1", "u2") is None
        assert await store.get_analysis("missing", "u1") is None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store):
        for i in range(5):
            await store.create_analysis(_record(f"a{i}", minutes=i))
        await store.create_analysis(_record("other", user_id="u2"))

        records, total = await store.list_analyses("u1", page=1, limit=3)

        assert total == 5
        assert [r.id for r in records] == ["a4", "a3", "a2"]

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store):
        await store.create_analysis(_record("a1"))
        fetched = await store.get_analysis("a1", "u1")
        fetched.result.concerns.append("mutated")

        assert (await store.get_analysis("a1", "u1")).result.concerns == []

    @pytest.mark.asyncio
    async def test_feedback(self, store):
        await store.create_analysis(_record("a1"))

        updated = await store.set_feedback("a1", "u1", Feedback(helpful=False, rating=2))
        assert updated.feedback.rating == 2
        assert await store.set_feedback("a1", "u2", Feedback(helpful=True)) is None


class TestUsers:
    @pytest.mark.asyncio
    async def test_unknown_user(self, store):
        assert await store.get_user("nobody") is None

    @pytest.mark.asyncio
    async def test_upsert_and_increment(self, store):
        await store.upsert_preferences("u1", UserPreferences(health_goals=["low sodium"]))
        await store.increment_scan_pattern("u1", "night")
        await store.increment_scan_pattern("u1", "night")

        user = await store.get_user("u1")
        assert user.preferences.health_goals == ["low sodium"]
        assert user.behavior_profile.scan_patterns.night == 2

    @pytest.mark.asyncio
    async def test_preferences_replace_previous(self, store):
        await store.upsert_preferences("u1", UserPreferences(allergens=["milk"]))
        await store.upsert_preferences("u1", UserPreferences(dietary_restrictions=["vegan"]))

        user = await store.get_user("u1")
        assert user.preferences.allergens == []
        assert user.preferences.dietary_restrictions == ["vegan"]


class TestConversations:
    @pytest.mark.asyncio
    async def test_append_and_context(self, store):
        conversation = ConversationState(id="c1", user_id="u1", analysis_id="a1")
        await store.create_conversation(conversation)

        later = datetime.now(timezone.utc) + timedelta(minutes=5)
        await store.append_messages(
            "c1",
            [
                Message(role=MessageRole.USER, content="hi"),
                Message(role=MessageRole.ASSISTANT, content="hello", timestamp=later),
            ],
        )
        await store.save_conversation_context(
            "c1", ConversationContext(user_intent="seeking-alternatives"), later
        )

        stored = await store.get_conversation("c1", "u1")
        assert [m.content for m in stored.messages] == ["hi", "hello"]
        assert stored.context.user_intent == "seeking-alternatives"
        assert stored.last_message_at == later
        assert await store.get_conversation("c1", "u2") is None

    @pytest.mark.asyncio
    async def test_list_by_last_message(self, store):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, offset in enumerate([3, 1, 2]):
            await store.create_conversation(
                ConversationState(
                    id=f"c{i}",
                    user_id="u1",
                    analysis_id="a1",
                    last_message_at=base + timedelta(hours=offset),
                )
            )

        conversations, total = await store.list_conversations("u1")
        assert total == 3
        assert [c.id for c in conversations] == ["c0", "c2", "c1"]

    @pytest.mark.asyncio
    async def test_append_to_missing_conversation(self, store):
        with pytest.raises(PersistenceFailure):
            await store.append_messages("missing", [Message(role=MessageRole.USER, content="hi")])
