"""Authorization guard: role and ownership checks.

Pure functions with no I/O. Callers look the resource up first (and raise
NotFoundError if it's missing); once the resource exists, any denial here is
a ForbiddenError.
"""

from typing import Iterable, Optional

from src.models.principal import Principal, Role
from src.utils.errors import ForbiddenError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def require_role(principal: Principal, role: Role, message: Optional[str] = None) -> None:
    """Allow only principals holding ``role``."""
    if principal.role != role:
        logger.info(
            "Role check denied",
            user_id=mask_user_id(principal.id),
            role=principal.role.value,
            required_role=role.value
        )
        raise ForbiddenError(message or f"Access denied. {role.value.capitalize()} role required.")


def require_ownership(principal: Principal, owner_ids: Iterable[Optional[str]], message: Optional[str] = None) -> None:
    """Allow only principals whose id is one of ``owner_ids``."""
    allowed = {owner_id for owner_id in owner_ids if owner_id}
    if principal.id not in allowed:
        logger.info("Ownership check denied", user_id=mask_user_id(principal.id))
        raise ForbiddenError(message or "Not authorized")
