from __future__ import annotations

from app.database.base import BaseStore
from app.models.user import UserContext
from app.utils.logger import get_logger

logger = get_logger("services.user_context")


class UserContextAssembler:
    """Builds the personalization snapshot for one request.

    A user without a stored record gets an empty context. Storage outages propagate as
    `PersistenceFailure`.
    """

    def __init__(self, store: BaseStore):
        self.store = store

    async def assemble(self, user_id: str) -> UserContext:
        user = await self.store.get_user(user_id)
        if user is None:
            logger.debug("No stored profile for user", extra={"user_id": user_id})
            return UserContext()
        return UserContext(preferences=user.preferences, behavior_profile=user.behavior_profile)
