"""Tests for listing models."""

import pytest
from pydantic import ValidationError

from src.models.listing import (
    Listing,
    ListingCreate,
    ListingFilters,
    ListingUpdate,
    PropertyType,
)
from src.utils.errors import InvalidInputError
from tests.utils.factories import create_listing_payload, create_listing_row


@pytest.mark.unit
def test_listing_from_row_rebuilds_location():
    """Test flattened columns come back as a nested camelCase location."""
    row = create_listing_row(
        address="12 Riverside Drive",
        city="Nairobi",
        state="Nairobi County",
        zip_code="00100",
        latitude=-1.27,
        longitude=36.8,
    )

    payload = Listing.from_row(row).to_api()

    assert payload["location"] == {
        "address": "12 Riverside Drive",
        "city": "Nairobi",
        "state": "Nairobi County",
        "zipCode": "00100",
        "coordinates": {"lat": -1.27, "lng": 36.8},
    }
    assert payload["ownerId"] == row["owner_id"]
    assert payload["propertyType"] == "apartment"
    assert "owner_id" not in payload


@pytest.mark.unit
def test_listing_from_row_with_owner_and_contact():
    """Test joined owner and contact columns are exposed."""
    row = create_listing_row(contact_phone="+254700000000", contact_email=None)
    row["owner"] = {"id": row["owner_id"], "name": "Jane", "email": "jane@example.com", "phone": None}

    payload = Listing.from_row(row).to_api()

    assert payload["owner"]["name"] == "Jane"
    assert payload["contactInfo"] == {"phone": "+254700000000", "email": None}


@pytest.mark.unit
def test_listing_from_row_without_location():
    """Test a row without address or city has no location."""
    row = create_listing_row(address=None, city=None, state=None)

    assert Listing.from_row(row).location is None


@pytest.mark.unit
def test_listing_create_to_row_flattens():
    """Test create payload becomes a flattened row owned by the caller."""
    payload = ListingCreate.model_validate(create_listing_payload(
        contactInfo={"phone": "0711", "email": "owner@example.com"},
    ))

    row = payload.to_row(owner_id="owner-1")

    assert row["owner_id"] == "owner-1"
    assert row["images"] == []
    assert row["property_type"] == "apartment"
    assert row["zip_code"] == payload.location.zip_code
    assert row["contact_phone"] == "0711"
    assert "location" not in row


@pytest.mark.unit
def test_listing_create_ignores_owner_and_images():
    """Test caller-supplied ownerId and images are ignored."""
    data = create_listing_payload(ownerId="someone-else", images=["http://evil/1.jpg"])

    row = ListingCreate.model_validate(data).to_row(owner_id="owner-1")

    assert row["owner_id"] == "owner-1"
    assert row["images"] == []


@pytest.mark.unit
def test_listing_create_rejects_blank_title():
    """Test whitespace-only titles are rejected."""
    with pytest.raises(ValidationError):
        ListingCreate.model_validate(create_listing_payload(title="   "))


@pytest.mark.unit
def test_listing_create_rejects_negative_price():
    """Test negative prices are rejected."""
    with pytest.raises(ValidationError):
        ListingCreate.model_validate(create_listing_payload(price=-1))


@pytest.mark.unit
def test_listing_create_rejects_unknown_property_type():
    """Test property type is a closed set."""
    with pytest.raises(ValidationError):
        ListingCreate.model_validate(create_listing_payload(propertyType="castle"))


@pytest.mark.unit
def test_listing_update_only_sets_provided_fields():
    """Test partial update rows carry only what was sent."""
    update = ListingUpdate.model_validate({"price": 60000, "location": {"city": "Mombasa"}})

    assert update.to_row() == {"price": 60000, "city": "Mombasa"}


@pytest.mark.unit
def test_listing_update_drops_protected_fields():
    """Test id, ownerId and images can't be changed through an update."""
    update = ListingUpdate.model_validate({
        "id": "new-id",
        "ownerId": "hijack",
        "images": [],
        "title": "Renamed",
    })

    assert update.to_row() == {"title": "Renamed"}


@pytest.mark.unit
def test_listing_update_drops_explicit_nulls():
    """Test explicit nulls are not written to non-nullable columns."""
    update = ListingUpdate.model_validate({"title": None, "available": False})

    assert update.to_row() == {"available": False}


@pytest.mark.unit
def test_listing_filters_from_query_parses_numbers():
    """Test query-string values are coerced."""
    filters = ListingFilters.from_query({
        "city": "Nairobi",
        "minPrice": "20000",
        "maxPrice": "60000",
        "bedrooms": "",
        "propertyType": "house",
    })

    assert filters.city == "Nairobi"
    assert filters.min_price == 20000
    assert filters.max_price == 60000
    assert filters.property_type == PropertyType.HOUSE
    assert filters.available is True


@pytest.mark.unit
def test_listing_filters_blank_values_are_ignored():
    """Test empty and whitespace-only filters mean no filter."""
    filters = ListingFilters.from_query({"city": "  ", "search": "", "location": ""})

    assert filters.city is None
    assert filters.search is None
    assert filters.location is None


@pytest.mark.unit
def test_listing_filters_rejects_non_numeric_price():
    """Test malformed numbers become InvalidInputError."""
    with pytest.raises(InvalidInputError) as exc_info:
        ListingFilters.from_query({"minPrice": "cheap"})

    assert "minPrice" in exc_info.value.message


@pytest.mark.unit
def test_listing_filters_rejects_inverted_range():
    """Test minPrice greater than maxPrice is invalid input."""
    with pytest.raises(InvalidInputError) as exc_info:
        ListingFilters.from_query({"minPrice": "90000", "maxPrice": "10000"})

    assert "minPrice must not exceed maxPrice" in exc_info.value.message
