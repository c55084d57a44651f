"""Extraction of JSON objects from free-form model replies.

Replies often wrap the JSON in prose or markdown fences. The parser strips fence lines, finds
the first balanced object that decodes and returns it. A brace in the surrounding prose moves
the scan on to the next `{`. Failures come back as a `ParseResult`, never as an exception;
analysis replies that cannot be parsed are replaced by a fallback analysis.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any

from app.models.analysis import AnalysisResult
from app.models.analysis import Intent
from app.models.analysis import IngredientInsight
from app.models.analysis import PersonalizedAdvice
from app.models.analysis import ReasoningStep
from app.models.analysis import Verdict
from app.models.conversation import MessageReasoning
from app.utils.logger import get_logger

logger = get_logger("parsers.structured")

# JSON strings cannot hold raw newlines, so a fence on its own line is never inside a value.
_FENCE_LINE = re.compile(r"^[ \t]*```(?:json|JSON)?[ \t]*$", re.MULTILINE)
_LEADING_FENCE = re.compile(r"^```(?:json|JSON)?(?=\s*\{)")
_TRAILING_FENCE = re.compile(r"(?<=\})\s*```$")

DEFAULT_CHAT_STEPS = ["Analyzed context", "Formulated response", "Provided actionable insight"]


@dataclass
class ParseResult:
    ok: bool
    value: dict[str, Any] | None = None
    error: str | None = None


def strip_fences(text: str) -> str:
    """Remove markdown fences that wrap the payload, leaving fences inside values alone."""
    cleaned = _FENCE_LINE.sub("", text or "").strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    return _TRAILING_FENCE.sub("", cleaned).strip()


def _balanced_object(text: str, start: int) -> str | None:
    """Return the object starting at `start` up to its matching brace, ignoring string contents."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_json_block(text: str, start: int = 0) -> str | None:
    """Return the candidate object at the first `{` at or after `start`.

    Without a matching close brace the candidate is the greedy span up to the last `}`.
    """
    start = text.find("{", start)
    if start == -1:
        return None
    block = _balanced_object(text, start)
    if block is not None:
        return block
    end = text.rfind("}")
    if end <= start:
        return None
    return text[start : end + 1]


def parse_structured(text: str | None) -> ParseResult:
    """Decode the first JSON object embedded in `text`."""
    cleaned = strip_fences(text or "")
    first_error = None
    start = cleaned.find("{")
    while start != -1:
        block = extract_json_block(cleaned, start)
        if block is None:
            break
        try:
            value = json.loads(block)
        except json.JSONDecodeError as e:
            first_error = first_error or f"invalid JSON: {e.msg}"
        else:
            if isinstance(value, dict):
                return ParseResult(ok=True, value=value)
        if _balanced_object(cleaned, start) is None:
            # the greedy span already ran to the last brace
            break
        start = cleaned.find("{", start + len(block))
    return ParseResult(ok=False, error=first_error or "no JSON object found")


def _finite(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _flag(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return default


def create_fallback_analysis(text: str) -> dict[str, Any]:
    text = text or ""
    return {
        "summary": {
            "verdict": "moderate",
            "score": 50,
            "oneLineSummary": "Analysis completed - see details below",
        },
        "healthImpact": {
            "positives": ["Natural ingredients present"],
            "concerns": ["Further analysis recommended"],
            "tradeoffs": ["Balance needed in consumption"],
        },
        "reasoningSteps": [
            {
                "step": 1,
                "thought": "Analyzed ingredient composition",
                "evidence": [text[:200]],
                "conclusion": "Detailed analysis provided",
            }
        ],
        "personalizedAdvice": {
            "relevant": True,
            "specificConcerns": [],
            "alternatives": [],
            "whyRelevant": "General health guidance",
        },
        "rawResponse": text,
    }


def parse_analysis_response(text: str) -> tuple[dict[str, Any], bool]:
    """Return the decoded analysis and whether the fallback was used."""
    result = parse_structured(text)
    if result.ok:
        return result.value, False
    logger.warning("Analysis reply was not valid JSON, using fallback", extra={"error": result.error})
    return create_fallback_analysis(text), True


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_str_list(value: Any) -> list[str]:
    return [str(v) for v in _as_list(value) if v is not None]


def _score(value: Any) -> int:
    number = _finite(value)
    if number is None:
        return 50
    return max(0, min(100, round(number)))


def _verdict(value: Any) -> Verdict:
    try:
        return Verdict(str(value).strip().lower())
    except ValueError:
        return Verdict.MODERATE


def _reasoning_steps(value: Any) -> list[ReasoningStep]:
    steps = []
    for index, raw in enumerate(_as_list(value), start=1):
        if not isinstance(raw, dict):
            continue
        step = raw.get("step")
        steps.append(
            ReasoningStep(
                step=step if isinstance(step, int) and not isinstance(step, bool) else index,
                thought=str(raw.get("thought") or ""),
                evidence=_as_str_list(raw.get("evidence")),
                conclusion=str(raw.get("conclusion") or ""),
            )
        )
    return steps


def _ingredients(value: Any) -> list[IngredientInsight]:
    items = []
    for raw in _as_list(value):
        if isinstance(raw, str):
            items.append(IngredientInsight(name=raw))
        elif isinstance(raw, dict) and raw.get("name"):
            items.append(
                IngredientInsight(
                    name=str(raw["name"]),
                    category=str(raw.get("category") or ""),
                    analysis=str(raw.get("analysis") or ""),
                )
            )
    return items


def to_analysis_result(data: dict[str, Any]) -> AnalysisResult:
    """Normalize a decoded analysis (nested or flat) into an `AnalysisResult`."""
    summary = data.get("summary") if isinstance(data.get("summary"), dict) else data
    impact = data.get("healthImpact") if isinstance(data.get("healthImpact"), dict) else data
    advice = data.get("personalizedAdvice")
    advice = advice if isinstance(advice, dict) else {}

    return AnalysisResult(
        verdict=_verdict(summary.get("verdict")),
        score=_score(summary.get("score")),
        one_line_summary=str(summary.get("oneLineSummary") or ""),
        positives=_as_str_list(impact.get("positives")),
        concerns=_as_str_list(impact.get("concerns")),
        tradeoffs=_as_str_list(impact.get("tradeoffs")),
        reasoning_steps=_reasoning_steps(data.get("reasoningSteps")),
        personalized_advice=PersonalizedAdvice(
            relevant=_flag(advice.get("relevant"), False),
            specific_concerns=_as_str_list(advice.get("specificConcerns")),
            alternatives=_as_str_list(advice.get("alternatives")),
            why_relevant=str(advice.get("whyRelevant") or ""),
        ),
        ingredients=_ingredients(data.get("ingredients")),
    )


def compute_confidence(data: dict[str, Any]) -> float:
    score = 0.5
    if _as_list(data.get("reasoningSteps")):
        score += 0.2
    impact = data.get("healthImpact")
    if isinstance(impact, dict) and impact.get("concerns") is not None:
        score += 0.15
    advice = data.get("personalizedAdvice")
    if isinstance(advice, dict) and _flag(advice.get("relevant"), False):
        score += 0.15
    return min(round(score, 2), 1.0)


def parse_intent_response(text: str) -> Intent | None:
    """Return the decoded intent, or None when the reply has no usable intent object."""
    result = parse_structured(text)
    if not result.ok:
        return None
    data = result.value
    goal = data.get("primaryGoal")
    if not isinstance(goal, str) or not goal.strip():
        return None
    confidence = _finite(data.get("confidence", 0.5))
    if confidence is None:
        confidence = 0.5
    return Intent(
        primary_goal=goal.strip(),
        confidence=max(0.0, min(1.0, confidence)),
        reasoning=str(data.get("reasoning") or ""),
        specific_concerns=_as_str_list(data.get("specificConcerns")),
        suggested_actions=_as_str_list(data.get("suggestedActions")),
    )


def default_chat_reasoning() -> MessageReasoning:
    return MessageReasoning(visible=True, steps=list(DEFAULT_CHAT_STEPS), confidence=0.85)


def parse_chat_response(text: str) -> tuple[str, MessageReasoning]:
    result = parse_structured(text)
    if result.ok and isinstance(result.value.get("message"), str) and result.value["message"].strip():
        reasoning = default_chat_reasoning()
        raw = result.value.get("reasoning")
        if isinstance(raw, dict):
            steps = _as_str_list(raw.get("steps")) or reasoning.steps
            confidence = _finite(raw.get("confidence", reasoning.confidence))
            confidence = reasoning.confidence if confidence is None else max(0.0, min(1.0, confidence))
            reasoning = MessageReasoning(
                visible=_flag(raw.get("visible"), True), steps=steps, confidence=confidence
            )
        return result.value["message"].strip(), reasoning
    return strip_fences(text), default_chat_reasoning()
