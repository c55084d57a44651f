"""Analysis orchestration: analyze, history, lookups, feedback and preferences."""

from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime
from typing import Any

from app.database.base import BaseStore
from app.database.base import page_count
from app.graphs.analysis_graph import AnalysisGraph
from app.models.analysis import AnalysisRecord
from app.models.analysis import ExtractedText
from app.models.analysis import Feedback
from app.models.analysis import ProcessingTime
from app.models.user import UserPreferences
from app.models.user import UserRecord
from app.services.behavior import current_time_slot
from app.utils.errors import NotFoundError
from app.utils.logger import get_logger

logger = get_logger("services.analysis")


class AnalysisService:
    def __init__(self, store: BaseStore, graph: AnalysisGraph, model_name: str = ""):
        self.store = store
        self.graph = graph
        self.model_name = model_name
        self._background_tasks: set[asyncio.Task] = set()

    async def analyze(
        self, user_id: str, image_data: str | None = None, text: str | None = None
    ) -> AnalysisRecord:
        """Run the full pipeline and persist the result.

        Raises `InputValidationError`, `InsufficientTextError`, `OcrFailure`,
        `AiServiceFailure` or `PersistenceFailure`. An unparseable model reply is not an
        error; the record is stored with the fallback analysis and `usedFallback` set.
        """
        started = time.perf_counter()
        state = await self.graph.run(user_id, image_data=image_data, text=text)
        total_ms = int((time.perf_counter() - started) * 1000)

        record = AnalysisRecord(
            id=uuid.uuid4().hex,
            user_id=user_id,
            extracted_text=ExtractedText(
                raw=state["raw_text"],
                cleaned=state["cleaned_text"],
                ocr_confidence=state.get("ocr_confidence"),
            ),
            result=state["result"],
            inferred_intent=state["intent"],
            processing_time=ProcessingTime(
                ocr=state.get("ocr_ms", 0), ai=state.get("ai_ms", 0), total=total_ms
            ),
            model=self.model_name,
            used_fallback=state.get("used_fallback", False),
            confidence=state.get("confidence", 0.5),
        )
        await self.store.create_analysis(record)
        logger.info(
            "Analysis completed",
            extra={
                "analysis_id": record.id,
                "verdict": record.result.verdict.value,
                "used_fallback": record.used_fallback,
                "processing_ms": total_ms,
            },
        )

        self._schedule_behavior_update(user_id)
        return record

    def _schedule_behavior_update(self, user_id: str, now: datetime | None = None) -> None:
        slot = current_time_slot(now)
        task = asyncio.create_task(self.store.increment_scan_pattern(user_id, slot))
        self._background_tasks.add(task)
        task.add_done_callback(self._on_behavior_update_done)

    def _on_behavior_update_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Behavior profile update failed: {exc}")

    async def drain_background_tasks(self) -> None:
        """Wait for pending behavior updates; their failures are already logged."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def history(self, user_id: str, page: int = 1, limit: int = 10) -> dict[str, Any]:
        records, total = await self.store.list_analyses(user_id, page, limit)
        return {
            "analyses": [r.model_dump(by_alias=True, mode="json") for r in records],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": page_count(total, limit),
            },
        }

    async def get(self, user_id: str, analysis_id: str) -> AnalysisRecord:
        record = await self.store.get_analysis(analysis_id, user_id)
        if record is None:
            raise NotFoundError("Analysis not found", details={"analysisId": analysis_id})
        return record

    async def submit_feedback(
        self,
        user_id: str,
        analysis_id: str,
        helpful: bool,
        rating: int | None = None,
        comments: str | None = None,
    ) -> AnalysisRecord:
        feedback = Feedback(helpful=helpful, rating=rating, comments=comments)
        record = await self.store.set_feedback(analysis_id, user_id, feedback)
        if record is None:
            raise NotFoundError("Analysis not found", details={"analysisId": analysis_id})
        logger.info("Feedback recorded", extra={"analysis_id": analysis_id, "helpful": helpful})
        return record

    async def update_preferences(self, user_id: str, preferences: UserPreferences) -> UserRecord:
        return await self.store.upsert_preferences(user_id, preferences)
