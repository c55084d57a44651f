"""Tests for image decoding and the Tesseract client error mapping."""

import base64
from unittest.mock import patch

import pytest

from app.ocr.base import OcrResult
from app.ocr.base import decode_image
from app.ocr.tesseract_client import TesseractOCRClient
from app.utils.errors import InputValidationError
from app.utils.errors import OcrFailure

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


class TestDecodeImage:
    def test_plain_base64(self):
        assert decode_image(base64.b64encode(PNG_HEADER).decode()) == PNG_HEADER

    def test_data_uri(self):
        uri = "data:image/png;base64," + base64.b64encode(PNG_HEADER).decode()
        assert decode_image(uri) == PNG_HEADER

    def test_raw_bytes(self):
        assert decode_image(PNG_HEADER) == PNG_HEADER

    def test_invalid_base64(self):
        with pytest.raises(InputValidationError):
            decode_image("not base64 !!")

    def test_empty(self):
        with pytest.raises(InputValidationError):
            decode_image(b"")


class TestTesseractClient:
    @pytest.mark.asyncio
    async def test_unreadable_image_is_invalid_input(self):
        client = TesseractOCRClient()
        with pytest.raises(InputValidationError):
            await client.extract_text(b"definitely not an image")

    @pytest.mark.asyncio
    async def test_engine_error_is_ocr_failure(self):
        client = TesseractOCRClient()
        with patch.object(client, "_recognize", side_effect=OSError("tesseract not installed")):
            with pytest.raises(OcrFailure):
                await client.extract_text(PNG_HEADER)

    @pytest.mark.asyncio
    async def test_success(self):
        client = TesseractOCRClient()
        with patch.object(client, "_recognize", return_value=OcrResult("Oats, Salt", 88.0)):
            result = await client.extract_text(base64.b64encode(PNG_HEADER).decode())
        assert result.text == "Oats, Salt"
        assert result.confidence == 88.0
