"""Rule-based product type and risk classification."""

from __future__ import annotations

import re

from app.models.analysis import RiskLevel
from app.models.analysis import Verdict

# Evaluated in order; the first rule with a whole-word keyword hit wins.
PRODUCT_TYPE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("breakfast", ("cereal", "oats", "oat", "granola", "muesli")),
    ("snack", ("snack", "snacks", "chips", "crisps", "crackers", "popcorn")),
    ("condiment", ("sauce", "dressing", "ketchup", "mayonnaise", "mustard", "vinegar")),
    ("beverage", ("drink", "beverage", "juice", "soda", "tea", "coffee")),
    ("dairy", ("milk", "cheese", "yogurt", "yoghurt", "butter", "whey")),
)

_RULE_PATTERNS = [
    (product_type, re.compile(r"\b(?:" + "|".join(keywords) + r")\b"))
    for product_type, keywords in PRODUCT_TYPE_RULES
]


def classify_product_type(text: str) -> str:
    lowered = (text or "").lower()
    for product_type, pattern in _RULE_PATTERNS:
        if pattern.search(lowered):
            return product_type
    return "general"


def classify_risk_level(
    verdict: Verdict | str, score: int, low_threshold: int = 80, medium_threshold: int = 50
) -> RiskLevel:
    verdict = Verdict(verdict)
    if verdict is Verdict.AVOID:
        return RiskLevel.HIGH
    if verdict is Verdict.CONCERNING:
        return RiskLevel.MEDIUM
    if score >= low_threshold:
        return RiskLevel.LOW
    if score >= medium_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH
