"""Conversation state models for follow-up dialogue about an analysis."""

from __future__ import annotations

from datetime import datetime
from datetime import timezone
from enum import Enum

from pydantic import Field

from app.models.analysis import CamelModel

MAX_TRACKED_CONCERNS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"


class MessageReasoning(CamelModel):
    visible: bool = True
    steps: list[str] = Field(default_factory=list)
    confidence: float = 0.85


class MessageMetadata(CamelModel):
    model: str = ""
    processing_time: int = Field(0, alias="processingTime")


class Message(CamelModel):
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    reasoning: MessageReasoning | None = None
    metadata: MessageMetadata | None = None


class ConversationContext(CamelModel):
    product_name: str = Field("", alias="productName")
    main_concerns: list[str] = Field(default_factory=list, alias="mainConcerns")
    user_intent: str = Field("general-inquiry", alias="userIntent")
    key_ingredients: list[str] = Field(default_factory=list, alias="keyIngredients")


class ConversationState(CamelModel):
    id: str
    user_id: str = Field(..., alias="userId")
    analysis_id: str = Field(..., alias="analysisId")
    status: ConversationStatus = ConversationStatus.ACTIVE
    messages: list[Message] = Field(default_factory=list)
    context: ConversationContext = Field(default_factory=ConversationContext)
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    last_message_at: datetime = Field(default_factory=_utcnow, alias="lastMessageAt")
