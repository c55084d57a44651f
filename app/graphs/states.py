"""Graph state for the ingredient analysis pipeline.

Each node reads the fields produced by earlier nodes and returns a partial update.
"""

from __future__ import annotations

from typing import Any
from typing import TypedDict

from app.models.analysis import AnalysisResult
from app.models.analysis import Intent
from app.models.user import UserContext


class AnalysisState(TypedDict, total=False):
    """State container for one analyze request.

    Input fields:
    - user_id: Owner of the analysis
    - image_data: Base64 label image, when the request carries one
    - text: Raw ingredient text, when the request carries no image

    Produced fields:
    - raw_text / cleaned_text: OCR (or submitted) text before and after normalization
    - ocr_confidence: Mean OCR word confidence, None for text input
    - user_context: Preferences and behavior profile snapshot
    - intent: Inferred intent (default intent on failure)
    - raw_analysis: Decoded model reply (or fallback) before normalization
    - used_fallback: Whether the model reply could not be parsed
    - result: Final classified analysis result
    - ocr_ms / ai_ms: Stage timings in milliseconds
    """

    user_id: str
    image_data: str | None
    text: str | None

    raw_text: str
    cleaned_text: str
    ocr_confidence: float | None
    user_context: UserContext
    intent: Intent
    raw_analysis: dict[str, Any]
    used_fallback: bool
    confidence: float
    result: AnalysisResult

    ocr_ms: int
    ai_ms: int
