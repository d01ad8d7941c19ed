"""Tests for role and ownership checks."""

import pytest

from src.models.principal import Principal, Role
from src.services.authorization import require_ownership, require_role
from src.utils.errors import ForbiddenError


def _principal(role: Role, user_id: str = "user-1") -> Principal:
    return Principal(id=user_id, role=role)


@pytest.mark.unit
def test_require_role_allows_matching_role():
    """Test a matching role passes silently."""
    require_role(_principal(Role.LANDLORD), Role.LANDLORD)


@pytest.mark.unit
def test_require_role_denies_other_role():
    """Test other roles get ForbiddenError with the default message."""
    with pytest.raises(ForbiddenError) as exc_info:
        require_role(_principal(Role.CUSTOMER), Role.LANDLORD)

    assert exc_info.value.message == "Access denied. Landlord role required."
    assert exc_info.value.status_code == 403


@pytest.mark.unit
def test_require_role_custom_message():
    """Test callers can supply the denial message."""
    with pytest.raises(ForbiddenError) as exc_info:
        require_role(_principal(Role.LANDLORD), Role.CUSTOMER, "Only customers can book appointments")

    assert exc_info.value.message == "Only customers can book appointments"


@pytest.mark.unit
def test_require_ownership_allows_any_listed_owner():
    """Test the principal may be any one of the owners."""
    require_ownership(_principal(Role.CUSTOMER, "c-1"), ("c-1", "l-1"))
    require_ownership(_principal(Role.LANDLORD, "l-1"), ("c-1", "l-1"))


@pytest.mark.unit
def test_require_ownership_denies_stranger():
    """Test principals outside the owner set are refused."""
    with pytest.raises(ForbiddenError):
        require_ownership(_principal(Role.CUSTOMER, "c-2"), ("c-1", "l-1"))


@pytest.mark.unit
def test_require_ownership_ignores_missing_ids():
    """Test empty owner ids never match."""
    with pytest.raises(ForbiddenError) as exc_info:
        require_ownership(_principal(Role.LANDLORD, "l-1"), (None, ""), "Not authorized to update this listing")

    assert exc_info.value.message == "Not authorized to update this listing"
