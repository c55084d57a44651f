"""LangGraph pipeline for ingredient analysis.

- extract_text -> OCR for image input, passthrough for text input
- normalize -> cleans the text and rejects inputs too short to analyze
- load_context -> user preferences and behavior profile
- infer_intent -> best-effort intent guess
- analyze -> analysis prompt, AI call, parse or fallback
- classify -> product type and risk level
"""

from __future__ import annotations

import time
from typing import Any

from langgraph.graph import END
from langgraph.graph import StateGraph

from app.graphs.states import AnalysisState
from app.llm.base import BaseLLMClient
from app.ocr.base import BaseOCRClient
from app.parsers.structured import compute_confidence
from app.parsers.structured import parse_analysis_response
from app.parsers.structured import to_analysis_result
from app.prompts.templates import build_analysis_prompt
from app.services.behavior import current_time_slot
from app.services.classifiers import classify_product_type
from app.services.classifiers import classify_risk_level
from app.services.intent_service import IntentInferencer
from app.services.user_context import UserContextAssembler
from app.utils.errors import InputValidationError
from app.utils.errors import InsufficientTextError
from app.utils.logger import get_logger
from app.utils.text import excerpt
from app.utils.text import normalize_text

logger = get_logger("graphs.analysis")

INTENT_CUE_PREFIX = "Analyzing ingredient list: "


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class AnalysisGraph:
    """Compiled analysis workflow bound to its collaborators."""

    def __init__(
        self,
        llm_client: BaseLLMClient,
        ocr_client: BaseOCRClient,
        context_assembler: UserContextAssembler,
        intent_inferencer: IntentInferencer,
        analysis_temperature: float = 0.7,
        max_output_tokens: int = 2048,
        min_text_length: int = 5,
        risk_low_threshold: int = 80,
        risk_medium_threshold: int = 50,
    ):
        self.llm_client = llm_client
        self.ocr_client = ocr_client
        self.context_assembler = context_assembler
        self.intent_inferencer = intent_inferencer
        self.analysis_temperature = analysis_temperature
        self.max_output_tokens = max_output_tokens
        self.min_text_length = min_text_length
        self.risk_low_threshold = risk_low_threshold
        self.risk_medium_threshold = risk_medium_threshold
        self.compiled = self._build()

    def _build(self):
        graph = StateGraph(AnalysisState)
        graph.add_node("extract_text", self.node_extract_text)
        graph.add_node("normalize", self.node_normalize)
        graph.add_node("load_context", self.node_load_context)
        graph.add_node("infer_intent", self.node_infer_intent)
        graph.add_node("analyze", self.node_analyze)
        graph.add_node("classify", self.node_classify)

        graph.set_entry_point("extract_text")
        graph.add_edge("extract_text", "normalize")
        graph.add_edge("normalize", "load_context")
        graph.add_edge("load_context", "infer_intent")
        graph.add_edge("infer_intent", "analyze")
        graph.add_edge("analyze", "classify")
        graph.add_edge("classify", END)
        return graph.compile()

    async def node_extract_text(self, state: AnalysisState) -> dict[str, Any]:
        image_data = state.get("image_data")
        if image_data:
            started = time.perf_counter()
            ocr = await self.ocr_client.extract_text(image_data)
            logger.info("OCR completed", extra={"chars": len(ocr.text), "confidence": ocr.confidence})
            return {"raw_text": ocr.text, "ocr_confidence": ocr.confidence, "ocr_ms": _elapsed_ms(started)}

        text = state.get("text")
        if not text:
            raise InputValidationError("Either imageData or text is required")
        return {"raw_text": text, "ocr_confidence": None, "ocr_ms": 0}

    async def node_normalize(self, state: AnalysisState) -> dict[str, Any]:
        cleaned = normalize_text(state.get("raw_text"))
        if len(cleaned) < self.min_text_length:
            logger.info("Rejected input with insufficient text", extra={"length": len(cleaned)})
            raise InsufficientTextError(details={"length": len(cleaned)})
        return {"cleaned_text": cleaned}

    async def node_load_context(self, state: AnalysisState) -> dict[str, Any]:
        return {"user_context": await self.context_assembler.assemble(state["user_id"])}

    async def node_infer_intent(self, state: AnalysisState) -> dict[str, Any]:
        cue = INTENT_CUE_PREFIX + excerpt(state["cleaned_text"], 100)
        intent = await self.intent_inferencer.infer(
            cue, state.get("user_context"), time_of_day=current_time_slot()
        )
        return {"intent": intent}

    async def node_analyze(self, state: AnalysisState) -> dict[str, Any]:
        prompt = build_analysis_prompt(
            state["cleaned_text"], state.get("user_context"), state.get("intent")
        )
        started = time.perf_counter()
        reply = await self.llm_client.agenerate(
            prompt,
            temperature=self.analysis_temperature,
            max_output_tokens=self.max_output_tokens,
        )
        ai_ms = _elapsed_ms(started)

        raw_analysis, used_fallback = parse_analysis_response(reply)
        return {
            "raw_analysis": raw_analysis,
            "used_fallback": used_fallback,
            "confidence": compute_confidence(raw_analysis),
            "ai_ms": ai_ms,
        }

    async def node_classify(self, state: AnalysisState) -> dict[str, Any]:
        result = to_analysis_result(state["raw_analysis"])
        result.product_type = classify_product_type(state["cleaned_text"])
        result.risk_level = classify_risk_level(
            result.verdict, result.score, self.risk_low_threshold, self.risk_medium_threshold
        )
        intent = state.get("intent")
        if intent is not None:
            result.intended_use = intent.primary_goal
        return {"result": result}

    async def run(
        self, user_id: str, image_data: str | None = None, text: str | None = None
    ) -> AnalysisState:
        initial: AnalysisState = {"user_id": user_id, "image_data": image_data, "text": text}
        return await self.compiled.ainvoke(initial)
