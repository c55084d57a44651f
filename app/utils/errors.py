"""Structured API error definitions.

This module centralizes all error codes, default messages, and HTTP statuses.
Use `raise Error(ErrorCode.XYZ, details=...)` for ad-hoc errors, or one of the
typed pipeline errors below (`InsufficientTextError`, `AiServiceFailure`, ...)
when the failure belongs to the analysis taxonomy.
"""

from enum import Enum
from typing import Any
from typing import TypedDict


class ErrorDef(TypedDict):
    message: str
    http_status: int
    numeric_code: int


class ErrorCode(str, Enum):
    INVALID_INPUT = "invalid_input"
    INSUFFICIENT_TEXT = "insufficient_text"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    REQUEST_TOO_LARGE = "request_too_large"
    INTERNAL_ERROR = "internal_error"
    OCR_ERROR = "ocr_error"
    LLM_ERROR = "llm_error"
    STORAGE_ERROR = "storage_error"


ERROR_REGISTRY: dict[ErrorCode, ErrorDef] = {
    ErrorCode.INVALID_INPUT: {
        "message": "Invalid input provided.",
        "http_status": 400,
        "numeric_code": 1001,
    },
    ErrorCode.INSUFFICIENT_TEXT: {
        "message": (
            "Could not extract readable text from image. "
            "Please ensure the image is clear and well-lit."
        ),
        "http_status": 400,
        "numeric_code": 1002,
    },
    ErrorCode.NOT_FOUND: {
        "message": "Requested resource not found.",
        "http_status": 404,
        "numeric_code": 1003,
    },
    ErrorCode.UNAUTHORIZED: {
        "message": "Authentication credentials were not provided or are invalid.",
        "http_status": 401,
        "numeric_code": 1004,
    },
    ErrorCode.FORBIDDEN: {
        "message": "You do not have permission to perform this action.",
        "http_status": 403,
        "numeric_code": 1005,
    },
    ErrorCode.REQUEST_TOO_LARGE: {
        "message": "Request body too large.",
        "http_status": 413,
        "numeric_code": 1006,
    },
    ErrorCode.INTERNAL_ERROR: {
        "message": "Internal server error.",
        "http_status": 500,
        "numeric_code": 1007,
    },
    ErrorCode.OCR_ERROR: {
        "message": "Text extraction service unavailable.",
        "http_status": 502,
        "numeric_code": 1008,
    },
    ErrorCode.LLM_ERROR: {
        "message": "AI analysis service unavailable.",
        "http_status": 502,
        "numeric_code": 1009,
    },
    ErrorCode.STORAGE_ERROR: {
        "message": "Failed to access stored data.",
        "http_status": 500,
        "numeric_code": 1010,
    },
}


class APIError(Exception):
    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Any | None = None,
        http_status: int = 400,
        numeric_code: int | None = None,
    ):
        super().__init__(message)
        self.code = code.value if isinstance(code, ErrorCode) else str(code)
        self.message = message
        self.details = details
        self.http_status = http_status
        self.numeric_code = numeric_code


def Error(code: ErrorCode, details: Any | None = None, message: str | None = None) -> APIError:
    """Factory to create an APIError using the registry defaults.

    The optional `message` overrides the default message in the registry.
    """
    reg = ERROR_REGISTRY.get(code, {"message": "Unknown error.", "http_status": 500})
    return APIError(
        code=code,
        message=message or reg["message"],
        details=details,
        http_status=reg["http_status"],
        numeric_code=reg.get("numeric_code"),
    )


class PipelineError(APIError):
    """Base for errors raised by the analysis and chat pipeline.

    Subclasses bind an `ErrorCode`; status and default message come from the registry.
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str | None = None, details: Any | None = None):
        reg = ERROR_REGISTRY[self.error_code]
        super().__init__(
            code=self.error_code,
            message=message or reg["message"],
            details=details,
            http_status=reg["http_status"],
            numeric_code=reg["numeric_code"],
        )


class InputValidationError(PipelineError):
    error_code = ErrorCode.INVALID_INPUT


class InsufficientTextError(PipelineError):
    error_code = ErrorCode.INSUFFICIENT_TEXT


class NotFoundError(PipelineError):
    error_code = ErrorCode.NOT_FOUND


class OcrFailure(PipelineError):
    error_code = ErrorCode.OCR_ERROR


class AiServiceFailure(PipelineError):
    error_code = ErrorCode.LLM_ERROR


class PersistenceFailure(PipelineError):
    error_code = ErrorCode.STORAGE_ERROR


def to_error_dict(err: APIError) -> dict[str, Any]:
    return {
        "code": err.code,
        "numeric_code": getattr(err, "numeric_code", None),
        "message": err.message,
        "details": err.details,
    }
