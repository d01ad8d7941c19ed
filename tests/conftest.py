"""Shared pytest fixtures and configuration."""

import os

import pytest
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("NODE_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from src.app import create_app  # noqa: E402
from src.config import AppConfig  # noqa: E402
from tests.utils.factories import create_listing_row, create_user_data  # noqa: E402
from tests.utils.fakes import InMemoryImageStorage, InMemoryStore  # noqa: E402


@pytest.fixture
def config():
    """Test configuration; no Supabase credentials are used."""
    return AppConfig(
        environment="test",
        jwt_secret="test-jwt-secret",
        cors_origins=["http://localhost:3000"],
        datastore_retry_delay_seconds=0,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def image_storage():
    return InMemoryImageStorage()


@pytest.fixture
def app(config, store, image_storage):
    """Application wired to in-memory collaborators."""
    return create_app(config=config, store=store, image_storage=image_storage)


@pytest.fixture
def landlord(store):
    return store.add_user(create_user_data(role="landlord"))


@pytest.fixture
def other_landlord(store):
    return store.add_user(create_user_data(role="landlord"))


@pytest.fixture
def customer(store):
    return store.add_user(create_user_data(role="customer"))


@pytest.fixture
def other_customer(store):
    return store.add_user(create_user_data(role="customer"))


@pytest.fixture
def listing(store, landlord):
    return store.add_listing(create_listing_row(
        owner_id=landlord["id"],
        title="Modern 2BR in Westlands",
        city="Nairobi",
        state="Nairobi County",
        price=50000,
        bedrooms=2,
    ))


@pytest.fixture
def landlord_principal(landlord):
    from src.models.principal import Principal
    return Principal.model_validate(landlord)


@pytest.fixture
def customer_principal(customer):
    from src.models.principal import Principal
    return Principal.model_validate(customer)


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2025-03-10 12:00:00") as frozen_time:
        yield frozen_time
