"""Middleware package for the ingredient copilot application."""

from .request_size_limit import RequestSizeLimitMiddleware

__all__ = ["RequestSizeLimitMiddleware"]
