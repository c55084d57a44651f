"""API key and caller identity dependencies for FastAPI endpoints."""


from fastapi import Request
from fastapi import Security
from fastapi.security.api_key import APIKeyHeader

from app.config import get_allowed_api_keys
from app.config import settings
from app.utils.errors import Error
from app.utils.errors import ErrorCode

api_key_header = APIKeyHeader(name=settings.api_key_header_name, auto_error=False)

MAX_USER_ID_LENGTH = 128


async def require_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """FastAPI dependency to require a valid API key.

    Looks up allowed keys from environment/config and raises `APIError` when missing/invalid.
    Disabled unless `require_api_key` is set.
    """
    if not settings.require_api_key:
        return ""

    if not api_key:
        raise Error(ErrorCode.UNAUTHORIZED, details={"reason": "missing_api_key"})

    allowed = get_allowed_api_keys()
    if api_key not in allowed:
        raise Error(ErrorCode.FORBIDDEN, details={"reason": "invalid_api_key"})

    return api_key


async def get_current_user_id(request: Request) -> str:
    """Identify the caller from the user id header.

    Authentication happens upstream; this service only scopes data by the given id.
    """
    user_id = (request.headers.get(settings.user_id_header_name) or "").strip()
    if not user_id:
        raise Error(ErrorCode.UNAUTHORIZED, details={"reason": "missing_user_id"})
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise Error(ErrorCode.INVALID_INPUT, details={"reason": "user_id_too_long"})
    return user_id
