from __future__ import annotations

import math
from abc import ABC
from abc import abstractmethod
from datetime import datetime

from app.models.analysis import AnalysisRecord
from app.models.analysis import Feedback
from app.models.conversation import ConversationContext
from app.models.conversation import ConversationState
from app.models.conversation import Message
from app.models.user import UserPreferences
from app.models.user import UserRecord


def page_window(page: int, limit: int) -> tuple[int, int]:
    """Return the (start, stop) slice for a 1-based page."""
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    return start, start + limit


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


class BaseStore(ABC):
    """Storage boundary for analyses, conversations and users.

    Implementations raise `PersistenceFailure` when the backend is unreachable. Lookups that
    take an owner return None when the record is missing or belongs to someone else.
    """

    # Analyses

    @abstractmethod
    async def create_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        """Persist a new analysis."""

    @abstractmethod
    async def get_analysis(self, analysis_id: str, user_id: str) -> AnalysisRecord | None:
        """Return an analysis owned by `user_id`."""

    @abstractmethod
    async def list_analyses(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> tuple[list[AnalysisRecord], int]:
        """Return one page of the user's analyses, newest first, and the total count."""

    @abstractmethod
    async def set_feedback(
        self, analysis_id: str, user_id: str, feedback: Feedback
    ) -> AnalysisRecord | None:
        """Attach feedback to an analysis."""

    # Users

    @abstractmethod
    async def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user's preferences and behavior profile, or None if unknown."""

    @abstractmethod
    async def upsert_preferences(self, user_id: str, preferences: UserPreferences) -> UserRecord:
        """Replace the user's preferences, creating the user when missing."""

    @abstractmethod
    async def increment_scan_pattern(self, user_id: str, slot: str, amount: int = 1) -> None:
        """Atomically increment `behaviorProfile.scanPatterns.<slot>`."""

    # Conversations

    @abstractmethod
    async def create_conversation(self, conversation: ConversationState) -> ConversationState:
        """Persist a new conversation."""

    @abstractmethod
    async def get_conversation(
        self, conversation_id: str, user_id: str
    ) -> ConversationState | None:
        """Return a conversation owned by `user_id`, including its messages."""

    @abstractmethod
    async def list_conversations(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> tuple[list[ConversationState], int]:
        """Return one page of conversations ordered by last message, newest first."""

    @abstractmethod
    async def append_messages(self, conversation_id: str, messages: list[Message]) -> None:
        """Atomically append messages to the conversation's message list."""

    @abstractmethod
    async def save_conversation_context(
        self, conversation_id: str, context: ConversationContext, last_message_at: datetime
    ) -> None:
        """Overwrite the conversation context (last write wins)."""

    # Lifecycle

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        """Release backend connections."""
