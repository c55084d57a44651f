from __future__ import annotations

import base64
import binascii
from abc import ABC
from abc import abstractmethod
from dataclasses import dataclass

from app.utils.errors import InputValidationError


@dataclass
class OcrResult:
    """Text extracted from a label image and the engine's confidence (0-100)."""

    text: str
    confidence: float


def decode_image(image: bytes | str) -> bytes:
    """Return raw image bytes from bytes, a base64 string, or a ``data:`` URI."""
    if isinstance(image, bytes | bytearray):
        data = bytes(image)
    else:
        payload = image.strip()
        if payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InputValidationError(
                "Image data must be base64 encoded", details={"field": "imageData"}
            ) from e

    if not data:
        raise InputValidationError("Image data is required", details={"field": "imageData"})
    return data


class BaseOCRClient(ABC):
    """Abstract OCR engine boundary."""

    @abstractmethod
    async def extract_text(self, image: bytes | str) -> OcrResult:
        """Extract text from an image; raise `OcrFailure` when the engine fails."""

    def health_check(self) -> bool:
        return True
