"""In-process store used for development and tests."""

from __future__ import annotations

from datetime import datetime

from app.database.base import BaseStore
from app.database.base import page_window
from app.models.analysis import AnalysisRecord
from app.models.analysis import Feedback
from app.models.conversation import ConversationContext
from app.models.conversation import ConversationState
from app.models.conversation import Message
from app.models.user import UserPreferences
from app.models.user import UserRecord
from app.utils.errors import PersistenceFailure


class InMemoryStore(BaseStore):
    """Dictionary-backed store.

    Every method completes without yielding to the event loop, so each call is atomic with
    respect to other requests. Records are copied on the way in and out.
    """

    def __init__(self):
        self.analyses: dict[str, AnalysisRecord] = {}
        self.conversations: dict[str, ConversationState] = {}
        self.users: dict[str, UserRecord] = {}

    async def create_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        self.analyses[record.id] = record.model_copy(deep=True)
        return record

    async def get_analysis(self, analysis_id: str, user_id: str) -> AnalysisRecord | None:
        record = self.analyses.get(analysis_id)
        if record is None or record.user_id != user_id:
            return None
        return record.model_copy(deep=True)

    async def list_analyses(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> tuple[list[AnalysisRecord], int]:
        owned = sorted(
            (r for r in self.analyses.values() if r.user_id == user_id),
            key=lambda r: r.created_at,
            reverse=True,
        )
        start, stop = page_window(page, limit)
        return [r.model_copy(deep=True) for r in owned[start:stop]], len(owned)

    async def set_feedback(
        self, analysis_id: str, user_id: str, feedback: Feedback
    ) -> AnalysisRecord | None:
        record = self.analyses.get(analysis_id)
        if record is None or record.user_id != user_id:
            return None
        record.feedback = feedback.model_copy()
        return record.model_copy(deep=True)

    async def get_user(self, user_id: str) -> UserRecord | None:
        user = self.users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def upsert_preferences(self, user_id: str, preferences: UserPreferences) -> UserRecord:
        user = self.users.setdefault(user_id, UserRecord(id=user_id))
        user.preferences = UserPreferences.model_validate(preferences.model_dump())
        return user.model_copy(deep=True)

    async def increment_scan_pattern(self, user_id: str, slot: str, amount: int = 1) -> None:
        user = self.users.setdefault(user_id, UserRecord(id=user_id))
        patterns = user.behavior_profile.scan_patterns
        setattr(patterns, slot, getattr(patterns, slot) + amount)

    async def create_conversation(self, conversation: ConversationState) -> ConversationState:
        self.conversations[conversation.id] = conversation.model_copy(deep=True)
        return conversation

    async def get_conversation(
        self, conversation_id: str, user_id: str
    ) -> ConversationState | None:
        conversation = self.conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return None
        return conversation.model_copy(deep=True)

    async def list_conversations(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> tuple[list[ConversationState], int]:
        owned = sorted(
            (c for c in self.conversations.values() if c.user_id == user_id),
            key=lambda c: c.last_message_at,
            reverse=True,
        )
        start, stop = page_window(page, limit)
        return [c.model_copy(deep=True) for c in owned[start:stop]], len(owned)

    def _stored_conversation(self, conversation_id: str) -> ConversationState:
        try:
            return self.conversations[conversation_id]
        except KeyError:
            raise PersistenceFailure(
                f"Conversation {conversation_id} does not exist", details={"id": conversation_id}
            ) from None

    async def append_messages(self, conversation_id: str, messages: list[Message]) -> None:
        conversation = self._stored_conversation(conversation_id)
        conversation.messages.extend(m.model_copy(deep=True) for m in messages)
        if messages:
            conversation.last_message_at = messages[-1].timestamp

    async def save_conversation_context(
        self, conversation_id: str, context: ConversationContext, last_message_at: datetime
    ) -> None:
        conversation = self._stored_conversation(conversation_id)
        conversation.context = context.model_copy(deep=True)
        conversation.last_message_at = last_message_at
