"""Standard response and error models for API endpoints."""

from typing import Any

from pydantic import BaseModel


class ErrorModel(BaseModel):
    code: str
    message: str
    details: Any | None = None
    numeric_code: int | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class Response(BaseModel):
    success: bool
    message: str | None = None
    data: Any | None = None
    meta: dict | None = None
    error: ErrorModel | None = None
