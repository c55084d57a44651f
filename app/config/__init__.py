from app.config.config import get_allowed_api_keys
from app.config.config import settings

__all__ = ["settings", "get_allowed_api_keys"]
