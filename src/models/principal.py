"""Principal and user profile models."""

from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from src.models.base import CamelModel

# Column list for every users-table read; the password hash is never selected.
PUBLIC_USER_COLUMNS = "id, name, email, phone, role"
CONTACT_COLUMNS = "id, name, email, phone"


class Role(str, Enum):
    """Marketplace roles."""
    CUSTOMER = "customer"
    LANDLORD = "landlord"


class UserSummary(CamelModel):
    """Public contact fields of a user, embedded in listings and appointments."""
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Principal(CamelModel):
    """Authenticated caller, resolved per request."""
    id: str = Field(..., description="User ID")
    role: Role = Field(..., description="customer or landlord")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def is_landlord(self) -> bool:
        return self.role == Role.LANDLORD


class ProfileUpdate(CamelModel):
    """Self-service profile update. Only name and phone are writable."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, max_length=120)
    phone: Optional[str] = Field(None, max_length=40)

    @field_validator("name", "phone")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    def to_row(self) -> dict:
        """Column updates, skipping blank values."""
        return {key: value for key, value in self.model_dump().items() if value}
