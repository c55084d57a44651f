from app.ocr.base import BaseOCRClient
from app.ocr.base import OcrResult

__all__ = ["BaseOCRClient", "OcrResult"]
