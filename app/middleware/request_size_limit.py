"""Request size limiting middleware for FastAPI."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi import Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.errors import Error
from app.utils.errors import ErrorCode
from app.utils.errors import to_error_dict
from app.utils.logger import get_logger

logger = get_logger("middleware.request_size")


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies larger than the limit before they reach the handlers.

    Label images arrive base64 encoded inside JSON, so the limit applies to the encoded size.
    """

    def __init__(
        self,
        app: Any,
        max_size_bytes: int = 10 * 1024 * 1024,
        exclude_paths: list[str] | None = None,
    ):
        super().__init__(app)
        self.max_size_bytes = max_size_bytes
        self.exclude_paths = exclude_paths or ["/health", "/docs", "/openapi.json"]
        logger.info(
            f"Request size limit middleware initialized with max size: {max_size_bytes} bytes"
        )

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        if request.method == "GET" or any(
            request.url.path.startswith(path) for path in self.exclude_paths
        ):
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                logger.warning(f"Invalid Content-Length header: {content_length}")
            else:
                if size > self.max_size_bytes:
                    logger.warning(
                        f"Request rejected: Content-Length {size} exceeds limit {self.max_size_bytes}",
                        extra={
                            "path": request.url.path,
                            "method": request.method,
                            "content_length": size,
                            "limit": self.max_size_bytes,
                        },
                    )
                    return self._create_error_response()

        return await call_next(request)

    def _create_error_response(self) -> JSONResponse:
        error = Error(
            ErrorCode.REQUEST_TOO_LARGE,
            message=f"Request body too large. Maximum size: {self._format_bytes(self.max_size_bytes)}",
            details={"max_size_bytes": self.max_size_bytes},
        )
        return JSONResponse(
            status_code=error.http_status,
            content={"success": False, "message": error.message, "error": to_error_dict(error)},
        )

    @staticmethod
    def _format_bytes(bytes_value: float) -> str:
        for unit in ["B", "KB", "MB", "GB"]:
            if bytes_value < 1024.0:
                return f"{bytes_value:.1f} {unit}"
            bytes_value /= 1024.0
        return f"{bytes_value:.1f} TB"
