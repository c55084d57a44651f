"""Analysis result, intent and stored analysis record models."""

from __future__ import annotations

from datetime import datetime
from datetime import timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class Verdict(str, Enum):
    HEALTHY = "healthy"
    MODERATE = "moderate"
    CONCERNING = "concerning"
    AVOID = "avoid"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CamelModel(BaseModel):
    """Base model that accepts and emits the camelCase keys used on the wire."""

    model_config = ConfigDict(populate_by_name=True)


class ReasoningStep(CamelModel):
    step: int
    thought: str = ""
    evidence: list[str] = Field(default_factory=list)
    conclusion: str = ""


class PersonalizedAdvice(CamelModel):
    relevant: bool = False
    specific_concerns: list[str] = Field(default_factory=list, alias="specificConcerns")
    alternatives: list[str] = Field(default_factory=list)
    why_relevant: str = Field("", alias="whyRelevant")


class IngredientInsight(CamelModel):
    name: str
    category: str = ""
    analysis: str = ""


class AnalysisResult(CamelModel):
    """Structured, explainable health assessment of one product."""

    verdict: Verdict = Verdict.MODERATE
    score: int = Field(50, ge=0, le=100)
    one_line_summary: str = Field("", alias="oneLineSummary")
    positives: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    tradeoffs: list[str] = Field(default_factory=list)
    reasoning_steps: list[ReasoningStep] = Field(default_factory=list, alias="reasoningSteps")
    personalized_advice: PersonalizedAdvice = Field(
        default_factory=PersonalizedAdvice, alias="personalizedAdvice"
    )
    ingredients: list[IngredientInsight] = Field(default_factory=list)
    product_type: str = Field("general", alias="productType")
    risk_level: RiskLevel = Field(RiskLevel.MEDIUM, alias="riskLevel")
    intended_use: str = Field("general-inquiry", alias="intendedUse")


class Intent(CamelModel):
    primary_goal: str = Field("general-inquiry", alias="primaryGoal")
    confidence: float = Field(0.3, ge=0.0, le=1.0)
    reasoning: str = ""
    specific_concerns: list[str] = Field(default_factory=list, alias="specificConcerns")
    suggested_actions: list[str] = Field(default_factory=list, alias="suggestedActions")

    @classmethod
    def default(cls) -> Intent:
        """Safe intent used whenever inference fails."""
        return cls(
            primary_goal="general-inquiry",
            confidence=0.3,
            reasoning="Unable to infer specific intent",
            suggested_actions=["analyze-ingredients", "ask-question"],
        )


class ExtractedText(CamelModel):
    raw: str = ""
    cleaned: str = ""
    ocr_confidence: float | None = Field(None, alias="ocrConfidence")


class ProcessingTime(CamelModel):
    ocr: int = 0
    ai: int = 0
    total: int = 0


class Feedback(CamelModel):
    helpful: bool
    rating: int | None = Field(None, ge=1, le=5)
    comments: str | None = None
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="submittedAt"
    )


class AnalysisRecord(CamelModel):
    """A completed analysis as handed to storage."""

    id: str
    user_id: str = Field(..., alias="userId")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )
    extracted_text: ExtractedText = Field(default_factory=ExtractedText, alias="extractedText")
    result: AnalysisResult
    inferred_intent: Intent = Field(default_factory=Intent.default, alias="inferredIntent")
    processing_time: ProcessingTime = Field(
        default_factory=ProcessingTime, alias="processingTime"
    )
    model: str = ""
    prompt_version: str = Field("v1.0", alias="promptVersion")
    used_fallback: bool = Field(False, alias="usedFallback")
    confidence: float = 0.5
    feedback: Feedback | None = None

    def summary(self) -> dict[str, Any]:
        """Compact representation returned by the analyze endpoint."""
        return {
            "analysisId": self.id,
            "extractedText": self.extracted_text.cleaned,
            "ocrConfidence": self.extracted_text.ocr_confidence,
            "insights": self.result.model_dump(by_alias=True, mode="json"),
            "inferredIntent": self.inferred_intent.model_dump(by_alias=True, mode="json"),
            "processingTime": self.processing_time.model_dump(by_alias=True),
            "usedFallback": self.used_fallback,
        }
