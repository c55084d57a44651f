"""Cleanup of raw OCR output into analyzable ingredient text."""

from __future__ import annotations

import re

# Anything that is not a word character, whitespace or one of , . : ( ) % -
_DISALLOWED_CHARS = re.compile(r"[^\w\s,.:()%-]")
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_text(raw: str | None) -> str:
    """Strip disallowed characters, collapse whitespace and trim.

    Never raises; ``None`` or empty input yields an empty string.
    """
    if not raw:
        return ""
    if not isinstance(raw, str):
        raw = str(raw)

    text = _DISALLOWED_CHARS.sub("", raw)
    text = _WHITESPACE_RUN.sub(" ", text)
    return text.strip()


def excerpt(text: str, limit: int) -> str:
    """Return the first ``limit`` characters of ``text``."""
    return (text or "")[:limit]
