"""Input hygiene for chat messages forwarded to the AI service.

Cleans control characters and whitespace, caps the length and flags likely prompt injection.
Injection hits are logged as warnings; the message is still forwarded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from dataclasses import field

from app.utils.logger import get_logger

logger = get_logger("utils.input_sanitization")

MAX_CHAT_MESSAGE_LENGTH = 2000

# C0 control characters except tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RUN = re.compile(r"\s+")

INJECTION_PATTERNS = [
    re.compile(
        r"(?i)\b(ignore|forget|disregard)\s+(all\s+)?(previous|prior|earlier|above)\s+"
        r"(instructions?|prompts?|rules?)"
    ),
    re.compile(r"(?i)\b(act\s+as|pretend\s+to\s+be|roleplay\s+as)\s+"),
    re.compile(r"(?i)^\s*(system|assistant)\s*:"),
    re.compile(r"(?i)\b(end\s+of\s+prompt|stop\s+assistant)"),
    re.compile(r"(?i)new\s+(instructions?|rules?|guidelines?)"),
    re.compile(r"(?i)developer\s+mode|jailbreak"),
]


@dataclass
class SanitizationResult:
    sanitized_text: str
    warnings: list[str] = field(default_factory=list)
    original_length: int = 0


class InputSanitizer:
    def __init__(self, max_length: int = MAX_CHAT_MESSAGE_LENGTH):
        self.max_length = max_length

    def _detect_prompt_injection(self, text: str) -> list[str]:
        warnings = []
        for pattern in INJECTION_PATTERNS:
            if pattern.search(text):
                warnings.append(f"Potential prompt injection detected: '{pattern.pattern[:50]}'")
        return warnings

    def sanitize(self, text: str | None) -> SanitizationResult:
        if not text:
            return SanitizationResult(sanitized_text="")

        original_length = len(text)
        cleaned = _CONTROL_CHARS.sub("", text)
        cleaned = _WHITESPACE_RUN.sub(" ", cleaned).strip()

        warnings = []
        if len(cleaned) > self.max_length:
            warnings.append(f"Input truncated from {len(cleaned)} to {self.max_length} characters")
            cleaned = cleaned[: self.max_length]

        warnings.extend(self._detect_prompt_injection(cleaned))
        return SanitizationResult(
            sanitized_text=cleaned, warnings=warnings, original_length=original_length
        )


_sanitizer = InputSanitizer()


def sanitize_chat_message(text: str | None) -> str:
    """Return the cleaned message, logging any warnings raised along the way."""
    result = _sanitizer.sanitize(text)
    for warning in result.warnings:
        logger.warning(warning, extra={"original_length": result.original_length})
    return result.sanitized_text
