"""User profile service."""

from src.models.principal import Principal, ProfileUpdate
from src.utils.errors import NotFoundError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


class UserService:
    """Self-service profile reads and updates. The password hash is never read."""

    def __init__(self, store):
        self.store = store

    async def get_profile(self, principal: Principal) -> dict:
        user = await self.store.get_user(principal.id)
        if not user:
            raise NotFoundError("User not found")
        return Principal.model_validate(user).to_api()

    async def update_profile(self, principal: Principal, payload: ProfileUpdate) -> dict:
        updates = payload.to_row()
        if not updates:
            return await self.get_profile(principal)

        user = await self.store.update_user(principal.id, updates)
        if not user:
            raise NotFoundError("User not found")

        logger.info("Profile updated", user_id=mask_user_id(principal.id), fields=sorted(updates))
        return Principal.model_validate(user).to_api()
