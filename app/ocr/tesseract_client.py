"""Tesseract OCR engine via pytesseract."""

from __future__ import annotations

import asyncio
import io

import pytesseract
from PIL import Image
from PIL import UnidentifiedImageError

from app.ocr.base import BaseOCRClient
from app.ocr.base import OcrResult
from app.ocr.base import decode_image
from app.utils.errors import InputValidationError
from app.utils.errors import OcrFailure
from app.utils.logger import get_logger

logger = get_logger("ocr.tesseract")


class TesseractOCRClient(BaseOCRClient):
    def __init__(self, language: str = "eng", timeout: float = 30.0, tesseract_cmd: str = ""):
        self.language = language
        self.timeout = timeout
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def _recognize(self, data: bytes) -> OcrResult:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            text = pytesseract.image_to_string(img, lang=self.language)
            words = pytesseract.image_to_data(
                img, lang=self.language, output_type=pytesseract.Output.DICT
            )

        # Tesseract reports -1 for non-word boxes.
        confidences = [float(c) for c in words.get("conf", []) if float(c) >= 0]
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return OcrResult(text=text or "", confidence=round(confidence, 2))

    async def extract_text(self, image: bytes | str) -> OcrResult:
        data = decode_image(image)
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self._recognize, data), timeout=self.timeout
            )
        except UnidentifiedImageError as e:
            raise InputValidationError(
                "Image data is not a supported image format", details={"field": "imageData"}
            ) from e
        except TimeoutError:
            logger.error("OCR timed out", extra={"timeout": self.timeout})
            raise OcrFailure(f"Text extraction timed out after {self.timeout} seconds") from None
        except Exception as e:
            logger.error("OCR failed", extra={"error": f"{type(e).__name__}: {e}"})
            raise OcrFailure(details={"error": str(e)}) from e

        logger.info(
            "OCR completed",
            extra={"characters": len(result.text), "confidence": result.confidence},
        )
        return result

    def health_check(self) -> bool:
        try:
            pytesseract.get_tesseract_version()
            return True
        except Exception:
            return False
