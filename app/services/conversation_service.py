"""Follow-up conversations about a completed analysis."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
from typing import Any

from app.database.base import BaseStore
from app.database.base import page_count
from app.llm.base import BaseLLMClient
from app.models.analysis import AnalysisRecord
from app.models.conversation import MAX_TRACKED_CONCERNS
from app.models.conversation import ConversationContext
from app.models.conversation import ConversationState
from app.models.conversation import Message
from app.models.conversation import MessageMetadata
from app.models.conversation import MessageRole
from app.parsers.structured import parse_chat_response
from app.prompts.templates import build_chat_prompt
from app.utils.errors import InputValidationError
from app.utils.errors import NotFoundError
from app.utils.input_sanitization import sanitize_chat_message
from app.utils.logger import get_logger

logger = get_logger("services.conversation")

CONCERN_CUES = ("concern", "worried", "worry")
ALTERNATIVE_CUES = ("alternative", "instead")


def seed_context(analysis: AnalysisRecord) -> ConversationContext:
    """Initial conversation context derived from the parent analysis."""
    return ConversationContext(
        product_name=analysis.extracted_text.cleaned[:50],
        main_concerns=analysis.result.concerns[-MAX_TRACKED_CONCERNS:],
        user_intent=analysis.inferred_intent.primary_goal,
        key_ingredients=[i.name for i in analysis.result.ingredients[:5]],
    )


def apply_drift(context: ConversationContext, user_message: str) -> ConversationContext:
    """Return a new context updated by the concern and alternatives heuristics."""
    updated = context.model_copy(deep=True)
    lowered = user_message.lower()

    if any(cue in lowered for cue in CONCERN_CUES):
        snippet = user_message[:50]
        if snippet not in updated.main_concerns:
            updated.main_concerns.append(snippet)
        updated.main_concerns = updated.main_concerns[-MAX_TRACKED_CONCERNS:]

    if any(cue in lowered for cue in ALTERNATIVE_CUES):
        updated.user_intent = "seeking-alternatives"

    return updated


@dataclass
class TurnResult:
    user_message: Message
    assistant_message: Message
    context: ConversationContext
    processing_time: int


class ConversationContextTracker:
    """Runs one chat turn against a conversation without mutating it.

    The caller persists the returned messages and context. When the AI call fails nothing is
    returned and the stored conversation stays as it was.
    """

    def __init__(
        self, llm_client: BaseLLMClient, temperature: float = 0.8, history_limit: int = 10
    ):
        self.llm_client = llm_client
        self.temperature = temperature
        self.history_limit = history_limit

    async def take_turn(
        self,
        conversation: ConversationState,
        analysis: AnalysisRecord | None,
        text: str,
        raw_text: str | None = None,
    ) -> TurnResult:
        """Run one chat turn; drift heuristics read `raw_text` when given, else `text`."""
        user_message = Message(role=MessageRole.USER, content=text)
        history = [*conversation.messages, user_message]

        prompt = build_chat_prompt(
            text,
            history,
            analysis=analysis.result if analysis else None,
            main_concerns=conversation.context.main_concerns,
            history_limit=self.history_limit,
        )

        started = time.perf_counter()
        reply = await self.llm_client.agenerate(prompt, temperature=self.temperature)
        processing_time = int((time.perf_counter() - started) * 1000)

        content, reasoning = parse_chat_response(reply)
        assistant_message = Message(
            role=MessageRole.ASSISTANT,
            content=content,
            reasoning=reasoning,
            metadata=MessageMetadata(
                model=self.llm_client.model_name, processing_time=processing_time
            ),
        )
        return TurnResult(
            user_message=user_message,
            assistant_message=assistant_message,
            context=apply_drift(conversation.context, text if raw_text is None else raw_text),
            processing_time=processing_time,
        )


class ConversationService:
    def __init__(self, store: BaseStore, tracker: ConversationContextTracker):
        self.store = store
        self.tracker = tracker

    async def start(self, user_id: str, analysis_id: str) -> ConversationState:
        analysis = await self.store.get_analysis(analysis_id, user_id)
        if analysis is None:
            raise NotFoundError("Analysis not found", details={"analysisId": analysis_id})

        now = datetime.now(timezone.utc)
        conversation = ConversationState(
            id=uuid.uuid4().hex,
            user_id=user_id,
            analysis_id=analysis_id,
            context=seed_context(analysis),
            messages=[
                Message(
                    role=MessageRole.SYSTEM,
                    content=f"Conversation started for analysis {analysis_id}",
                    timestamp=now,
                )
            ],
            created_at=now,
            last_message_at=now,
        )
        await self.store.create_conversation(conversation)
        logger.info(
            "Conversation started",
            extra={"conversation_id": conversation.id, "analysis_id": analysis_id},
        )
        return conversation

    async def send_message(self, user_id: str, conversation_id: str, message: str) -> dict[str, Any]:
        text = sanitize_chat_message(message)
        if not text:
            raise InputValidationError("Message cannot be empty")

        conversation = await self.store.get_conversation(conversation_id, user_id)
        if conversation is None:
            raise NotFoundError("Conversation not found", details={"conversationId": conversation_id})
        analysis = await self.store.get_analysis(conversation.analysis_id, user_id)

        turn = await self.tracker.take_turn(conversation, analysis, text, raw_text=message)

        await self.store.append_messages(
            conversation_id, [turn.user_message, turn.assistant_message]
        )
        await self.store.save_conversation_context(
            conversation_id, turn.context, turn.assistant_message.timestamp
        )
        logger.info(
            "Chat turn completed",
            extra={"conversation_id": conversation_id, "processing_time": turn.processing_time},
        )
        return {
            "reply": turn.assistant_message.content,
            "reasoning": turn.assistant_message.reasoning.model_dump(by_alias=True),
            "processingTime": turn.processing_time,
        }

    async def get(self, user_id: str, conversation_id: str) -> ConversationState:
        conversation = await self.store.get_conversation(conversation_id, user_id)
        if conversation is None:
            raise NotFoundError("Conversation not found", details={"conversationId": conversation_id})
        return conversation

    async def list_conversations(self, user_id: str, page: int = 1, limit: int = 20) -> dict[str, Any]:
        conversations, total = await self.store.list_conversations(user_id, page, limit)
        return {
            "conversations": [c.model_dump(by_alias=True, mode="json") for c in conversations],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": page_count(total, limit),
            },
        }
