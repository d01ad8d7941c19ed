"""Route table for the Keja Hunt API."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.models.appointment import AppointmentCreate
from src.models.base import describe_validation_error
from src.models.listing import ListingCreate, ListingFilters, ListingUpdate
from src.models.principal import Principal, ProfileUpdate
from src.utils.errors import InvalidInputError
from src.web.request import Request
from src.web.router import Router

if TYPE_CHECKING:
    from src.app import Application

ModelT = TypeVar("ModelT", bound=BaseModel)

IMAGE_FIELD = "images"


def parse_body(model: Type[ModelT], request: Request) -> ModelT:
    try:
        return model.model_validate(request.json())
    except ValidationError as e:
        raise InvalidInputError(describe_validation_error(e))


def build_router(app: "Application") -> Router:
    router = Router()

    async def authenticate(request: Request) -> Principal:
        request.principal = await app.identity.resolve_header(request.header("Authorization"))
        return request.principal

    # Health

    @router.route("GET", "/api/health")
    async def health(request: Request):
        return {
            "status": "OK",
            "message": "Keja Hunt API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": app.config.api_version,
        }

    # Listings (literal paths before templated ones)

    @router.route("GET", "/api/listings")
    async def search_listings(request: Request):
        return await app.listings.search(ListingFilters.from_query(request.query))

    @router.route("GET", "/api/listings/mine")
    async def my_listings(request: Request):
        principal = await authenticate(request)
        return await app.listings.list_mine(principal)

    @router.route("GET", "/api/listings/{listing_id}")
    async def get_listing(request: Request):
        return await app.listings.get(request.path_params["listing_id"])

    @router.route("POST", "/api/listings", status=201)
    async def create_listing(request: Request):
        principal = await authenticate(request)
        return await app.listings.create(principal, parse_body(ListingCreate, request))

    @router.route("PUT", "/api/listings/{listing_id}")
    async def update_listing(request: Request):
        principal = await authenticate(request)
        return await app.listings.update(
            principal, request.path_params["listing_id"], parse_body(ListingUpdate, request)
        )

    @router.route("DELETE", "/api/listings/{listing_id}")
    async def delete_listing(request: Request):
        principal = await authenticate(request)
        return await app.listings.delete(principal, request.path_params["listing_id"])

    @router.route("POST", "/api/listings/{listing_id}/images")
    async def upload_listing_images(request: Request):
        principal = await authenticate(request)
        return await app.listings.add_images(
            principal, request.path_params["listing_id"], request.files(IMAGE_FIELD)
        )

    @router.route("DELETE", "/api/listings/{listing_id}/images/{index}")
    async def delete_listing_image(request: Request):
        principal = await authenticate(request)
        return await app.listings.remove_image(
            principal, request.path_params["listing_id"], request.path_params["index"]
        )

    # Appointments

    @router.route("POST", "/api/appointments", status=201)
    async def book_appointment(request: Request):
        principal = await authenticate(request)
        return await app.appointments.create(principal, parse_body(AppointmentCreate, request))

    @router.route("GET", "/api/appointments/mine")
    async def my_appointments(request: Request):
        principal = await authenticate(request)
        return await app.appointments.list_mine(principal)

    @router.route("PUT", "/api/appointments/{appointment_id}/status")
    async def update_appointment_status(request: Request):
        principal = await authenticate(request)
        # Status is validated after the role and ownership checks
        return await app.appointments.update_status(
            principal, request.path_params["appointment_id"], request.json().get("status")
        )

    @router.route("PUT", "/api/appointments/{appointment_id}/cancel")
    async def cancel_appointment(request: Request):
        principal = await authenticate(request)
        return await app.appointments.cancel(principal, request.path_params["appointment_id"])

    @router.route("GET", "/api/appointments/{appointment_id}")
    async def get_appointment(request: Request):
        principal = await authenticate(request)
        return await app.appointments.get(principal, request.path_params["appointment_id"])

    # Notifications

    @router.route("GET", "/api/notifications")
    async def list_notifications(request: Request):
        principal = await authenticate(request)
        return await app.notifications.list_recent(principal)

    @router.route("GET", "/api/notifications/unread-count")
    async def unread_count(request: Request):
        principal = await authenticate(request)
        return await app.notifications.unread_count(principal)

    @router.route("PUT", "/api/notifications/mark-all-read")
    async def mark_all_read(request: Request):
        principal = await authenticate(request)
        return await app.notifications.mark_all_read(principal)

    @router.route("PUT", "/api/notifications/{notification_id}/read")
    async def mark_read(request: Request):
        principal = await authenticate(request)
        return await app.notifications.mark_read(principal, request.path_params["notification_id"])

    @router.route("DELETE", "/api/notifications/{notification_id}")
    async def delete_notification(request: Request):
        principal = await authenticate(request)
        return await app.notifications.delete(principal, request.path_params["notification_id"])

    # Users

    @router.route("GET", "/api/users/profile")
    async def get_profile(request: Request):
        principal = await authenticate(request)
        return await app.users.get_profile(principal)

    @router.route("PUT", "/api/users/profile")
    async def update_profile(request: Request):
        principal = await authenticate(request)
        return await app.users.update_profile(principal, parse_body(ProfileUpdate, request))

    return router
