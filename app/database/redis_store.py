"""Redis-backed store.

Key layout:
- ``analysis:{id}``                  analysis record JSON
- ``user:{uid}:analyses``            ZSET of analysis ids scored by creation time
- ``user:{uid}``                     preferences and common concerns JSON
- ``user:{uid}:scan_patterns``       HASH of time-slot counters
- ``conversation:{id}``              conversation JSON without messages
- ``conversation:{id}:messages``     LIST of message JSON
- ``user:{uid}:conversations``       ZSET of conversation ids scored by last message time
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import datetime

from redis.exceptions import RedisError

from app.database.base import BaseStore
from app.database.base import page_window
from app.database.redis_client import RedisManager
from app.models.analysis import AnalysisRecord
from app.models.analysis import Feedback
from app.models.conversation import ConversationContext
from app.models.conversation import ConversationState
from app.models.conversation import Message
from app.models.user import TIME_SLOTS
from app.models.user import BehaviorProfile
from app.models.user import ScanPatterns
from app.models.user import UserPreferences
from app.models.user import UserRecord
from app.utils.errors import PersistenceFailure
from app.utils.logger import get_logger

logger = get_logger("database.redis_store")


def _dump(model) -> str:
    return model.model_dump_json(by_alias=True)


class RedisStore(BaseStore):
    def __init__(self, manager: RedisManager, analysis_ttl_seconds: int = 0):
        self.manager = manager
        self.analysis_ttl_seconds = analysis_ttl_seconds

    @asynccontextmanager
    async def _client(self, operation: str):
        try:
            client = await self.manager.get_client()
            yield client
        except RedisError as e:
            self.manager.mark_unhealthy()
            logger.error(f"Redis {operation} failed: {e}", extra={"operation": operation})
            raise PersistenceFailure(
                f"Storage operation '{operation}' failed", details={"error": str(e)}
            ) from e

    # Analyses

    async def create_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        async with self._client("create_analysis") as client:
            async with client.pipeline(transaction=True) as pipe:
                if self.analysis_ttl_seconds > 0:
                    pipe.set(f"analysis:{record.id}", _dump(record), ex=self.analysis_ttl_seconds)
                else:
                    pipe.set(f"analysis:{record.id}", _dump(record))
                pipe.zadd(
                    f"user:{record.user_id}:analyses", {record.id: record.created_at.timestamp()}
                )
                await pipe.execute()
        return record

    async def _load_analysis(self, client, analysis_id: str, user_id: str) -> AnalysisRecord | None:
        raw = await client.get(f"analysis:{analysis_id}")
        if raw is None:
            return None
        record = AnalysisRecord.model_validate_json(raw)
        return record if record.user_id == user_id else None

    async def get_analysis(self, analysis_id: str, user_id: str) -> AnalysisRecord | None:
        async with self._client("get_analysis") as client:
            return await self._load_analysis(client, analysis_id, user_id)

    async def list_analyses(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> tuple[list[AnalysisRecord], int]:
        key = f"user:{user_id}:analyses"
        start, stop = page_window(page, limit)
        async with self._client("list_analyses") as client:
            total = await client.zcard(key)
            ids = await client.zrevrange(key, start, stop - 1)
            if not ids:
                return [], total
            raws = await client.mget([f"analysis:{i}" for i in ids])
        # Expired analyses leave dangling ids in the index
        records = [AnalysisRecord.model_validate_json(r) for r in raws if r is not None]
        return records, total

    async def set_feedback(
        self, analysis_id: str, user_id: str, feedback: Feedback
    ) -> AnalysisRecord | None:
        async with self._client("set_feedback") as client:
            record = await self._load_analysis(client, analysis_id, user_id)
            if record is None:
                return None
            record.feedback = feedback
            await client.set(f"analysis:{analysis_id}", _dump(record), keepttl=True)
        return record

    # Users

    async def get_user(self, user_id: str) -> UserRecord | None:
        async with self._client("get_user") as client:
            raw = await client.get(f"user:{user_id}")
            counters = await client.hgetall(f"user:{user_id}:scan_patterns")
        if raw is None and not counters:
            return None

        data = json.loads(raw) if raw else {}
        patterns = ScanPatterns(**{slot: int(counters.get(slot, 0)) for slot in TIME_SLOTS})
        return UserRecord(
            id=user_id,
            preferences=UserPreferences.model_validate(data.get("preferences") or {}),
            behavior_profile=BehaviorProfile(
                scan_patterns=patterns, common_concerns=data.get("commonConcerns") or []
            ),
        )

    async def upsert_preferences(self, user_id: str, preferences: UserPreferences) -> UserRecord:
        async with self._client("upsert_preferences") as client:
            raw = await client.get(f"user:{user_id}")
            data = json.loads(raw) if raw else {}
            data["preferences"] = preferences.model_dump(by_alias=True)
            await client.set(f"user:{user_id}", json.dumps(data))
        return await self.get_user(user_id) or UserRecord(id=user_id, preferences=preferences)

    async def increment_scan_pattern(self, user_id: str, slot: str, amount: int = 1) -> None:
        if slot not in TIME_SLOTS:
            raise ValueError(f"Unknown time slot '{slot}'")
        async with self._client("increment_scan_pattern") as client:
            await client.hincrby(f"user:{user_id}:scan_patterns", slot, amount)

    # Conversations

    async def create_conversation(self, conversation: ConversationState) -> ConversationState:
        header = conversation.model_copy(update={"messages": []})
        async with self._client("create_conversation") as client:
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(f"conversation:{conversation.id}", _dump(header))
                messages_key = f"conversation:{conversation.id}:messages"
                pipe.delete(messages_key)
                if conversation.messages:
                    pipe.rpush(messages_key, *[_dump(m) for m in conversation.messages])
                pipe.zadd(
                    f"user:{conversation.user_id}:conversations",
                    {conversation.id: conversation.last_message_at.timestamp()},
                )
                await pipe.execute()
        return conversation

    async def get_conversation(
        self, conversation_id: str, user_id: str
    ) -> ConversationState | None:
        async with self._client("get_conversation") as client:
            raw = await client.get(f"conversation:{conversation_id}")
            if raw is None:
                return None
            conversation = ConversationState.model_validate_json(raw)
            if conversation.user_id != user_id:
                return None
            messages = await client.lrange(f"conversation:{conversation_id}:messages", 0, -1)
        conversation.messages = [Message.model_validate_json(m) for m in messages]
        return conversation

    async def list_conversations(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> tuple[list[ConversationState], int]:
        key = f"user:{user_id}:conversations"
        start, stop = page_window(page, limit)
        async with self._client("list_conversations") as client:
            total = await client.zcard(key)
            ids = await client.zrevrange(key, start, stop - 1)
            if not ids:
                return [], total
            raws = await client.mget([f"conversation:{i}" for i in ids])
        return [ConversationState.model_validate_json(r) for r in raws if r is not None], total

    async def _require_conversation(self, client, conversation_id: str) -> ConversationState:
        raw = await client.get(f"conversation:{conversation_id}")
        if raw is None:
            raise PersistenceFailure(
                f"Conversation {conversation_id} does not exist", details={"id": conversation_id}
            )
        return ConversationState.model_validate_json(raw)

    async def append_messages(self, conversation_id: str, messages: list[Message]) -> None:
        if not messages:
            return
        async with self._client("append_messages") as client:
            conversation = await self._require_conversation(client, conversation_id)
            conversation.last_message_at = messages[-1].timestamp
            async with client.pipeline(transaction=True) as pipe:
                pipe.rpush(
                    f"conversation:{conversation_id}:messages", *[_dump(m) for m in messages]
                )
                pipe.set(f"conversation:{conversation_id}", _dump(conversation))
                pipe.zadd(
                    f"user:{conversation.user_id}:conversations",
                    {conversation_id: conversation.last_message_at.timestamp()},
                )
                await pipe.execute()

    async def save_conversation_context(
        self, conversation_id: str, context: ConversationContext, last_message_at: datetime
    ) -> None:
        async with self._client("save_conversation_context") as client:
            conversation = await self._require_conversation(client, conversation_id)
            conversation.context = context
            conversation.last_message_at = last_message_at
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(f"conversation:{conversation_id}", _dump(conversation))
                pipe.zadd(
                    f"user:{conversation.user_id}:conversations",
                    {conversation_id: last_message_at.timestamp()},
                )
                await pipe.execute()

    # Lifecycle

    async def ping(self) -> bool:
        return await self.manager.ping()

    async def close(self) -> None:
        await self.manager.close()
