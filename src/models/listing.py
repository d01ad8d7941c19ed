"""Listing models.

Listings are stored flattened (address/city/state/... columns) and the nested
``location`` object is rebuilt at the API boundary.
"""

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import ConfigDict, Field, ValidationError, field_validator, model_validator

from src.models.base import CamelModel, describe_validation_error
from src.models.principal import UserSummary
from src.utils.errors import InvalidInputError


class PropertyType(str, Enum):
    """Supported property types."""
    APARTMENT = "apartment"
    HOUSE = "house"
    CONDO = "condo"
    STUDIO = "studio"
    TOWNHOUSE = "townhouse"


class Coordinates(CamelModel):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)


class Location(CamelModel):
    """Street location of a listing."""
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Optional["Location"]:
        if not row.get("address") and not row.get("city"):
            return None
        coordinates = None
        if row.get("latitude") is not None or row.get("longitude") is not None:
            coordinates = Coordinates(lat=row.get("latitude"), lng=row.get("longitude"))
        return cls.model_construct(
            address=row.get("address") or "",
            city=row.get("city") or "",
            state=row.get("state") or "",
            zip_code=row.get("zip_code"),
            coordinates=coordinates,
        )

    def to_row(self) -> dict[str, Any]:
        row = {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }
        if self.coordinates is not None:
            row["latitude"] = self.coordinates.lat
            row["longitude"] = self.coordinates.lng
        return row


class LocationUpdate(CamelModel):
    """Partial location update."""
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = Field(None, min_length=1)
    zip_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None

    def to_row(self) -> dict[str, Any]:
        row = self.model_dump(exclude_unset=True, exclude={"coordinates"})
        if self.coordinates is not None:
            row["latitude"] = self.coordinates.lat
            row["longitude"] = self.coordinates.lng
        return row


class ContactInfo(CamelModel):
    phone: Optional[str] = None
    email: Optional[str] = None


class Listing(CamelModel):
    """Rentable property record as returned by the API."""
    id: str
    owner_id: str
    title: str
    description: str = ""
    location: Optional[Location] = None
    price: float = Field(..., ge=0)
    bedrooms: int = Field(..., ge=0)
    bathrooms: float = Field(..., ge=0)
    area: float = Field(..., ge=0)
    property_type: PropertyType
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    available: bool = True
    contact_info: Optional[ContactInfo] = None
    owner: Optional[UserSummary] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Listing":
        """Build from a flattened listings row (optionally joined with ``owner``)."""
        contact_info = None
        if row.get("contact_phone") or row.get("contact_email"):
            contact_info = ContactInfo(phone=row.get("contact_phone"), email=row.get("contact_email"))

        owner = row.get("owner")
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            title=row.get("title") or "",
            description=row.get("description") or "",
            location=Location.from_row(row),
            price=row.get("price") or 0,
            bedrooms=row.get("bedrooms") or 0,
            bathrooms=row.get("bathrooms") or 0,
            area=row.get("area") or 0,
            property_type=row["property_type"],
            amenities=row.get("amenities") or [],
            images=row.get("images") or [],
            available=row.get("available", True),
            contact_info=contact_info,
            owner=UserSummary(**owner) if owner else None,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


class ListingSummary(CamelModel):
    """Listing fields embedded in an appointment."""
    id: str
    title: Optional[str] = None
    location: Optional[Location] = None
    price: Optional[float] = None
    images: list[str] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ListingSummary":
        return cls(
            id=row["id"],
            title=row.get("title"),
            location=Location.from_row(row),
            price=row.get("price"),
            images=row.get("images") or [],
        )


class ListingCreate(CamelModel):
    """Body of POST /listings. Owner is always the caller."""
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    location: Location
    price: float = Field(..., ge=0)
    bedrooms: int = Field(..., ge=0)
    bathrooms: float = Field(..., ge=0)
    area: float = Field(..., ge=0)
    property_type: PropertyType
    amenities: list[str] = Field(default_factory=list)
    available: bool = True
    contact_info: Optional[ContactInfo] = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    def to_row(self, owner_id: str) -> dict[str, Any]:
        row = {
            "owner_id": owner_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area": self.area,
            "property_type": self.property_type.value,
            "amenities": self.amenities,
            "images": [],
            "available": self.available,
        }
        row.update(self.location.to_row())
        if self.contact_info is not None:
            row["contact_phone"] = self.contact_info.phone
            row["contact_email"] = self.contact_info.email
        return row


class ListingUpdate(CamelModel):
    """Body of PUT /listings/{id}. ``id``, ``ownerId`` and ``images`` are not writable here."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[LocationUpdate] = None
    price: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    area: Optional[float] = Field(None, ge=0)
    property_type: Optional[PropertyType] = None
    amenities: Optional[list[str]] = None
    available: Optional[bool] = None
    contact_info: Optional[ContactInfo] = None

    def to_row(self) -> dict[str, Any]:
        row = self.model_dump(
            exclude_unset=True,
            exclude={"location", "contact_info"},
            mode="json",
        )
        # Explicit nulls for non-nullable columns are dropped rather than written
        row = {key: value for key, value in row.items() if value is not None}
        if self.location is not None:
            row.update(self.location.to_row())
        if self.contact_info is not None:
            row["contact_phone"] = self.contact_info.phone
            row["contact_email"] = self.contact_info.email
        return row


class ListingFilters(CamelModel):
    """Query-string filters for GET /listings. All predicates are conjunctive."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    min_bedrooms: Optional[int] = Field(None, ge=0)
    max_bedrooms: Optional[int] = Field(None, ge=0)
    property_type: Optional[PropertyType] = None
    available: bool = True
    search: Optional[str] = None

    @field_validator("location", "city", "state", "search", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_ranges(self) -> "ListingFilters":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice must not exceed maxPrice")
        if (
            self.min_bedrooms is not None
            and self.max_bedrooms is not None
            and self.min_bedrooms > self.max_bedrooms
        ):
            raise ValueError("minBedrooms must not exceed maxBedrooms")
        return self

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "ListingFilters":
        """Parse query parameters, raising InvalidInputError on bad values."""
        cleaned = {key: value for key, value in params.items() if value != ""}
        try:
            return cls.model_validate(cleaned)
        except ValidationError as e:
            raise InvalidInputError(describe_validation_error(e))

