"""Listing service: search, CRUD and image management."""

from dataclasses import dataclass
from datetime import datetime, timezone

from src.models.listing import Listing, ListingCreate, ListingFilters, ListingUpdate
from src.models.principal import Principal, Role
from src.services.authorization import require_ownership, require_role
from src.services.image_storage import MAX_IMAGE_BYTES, MAX_IMAGES_PER_UPLOAD
from src.utils.errors import InvalidInputError, NotFoundError
from src.utils.ids import generate_id
from src.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)


@dataclass
class ImageUpload:
    """One file from a multipart upload."""
    filename: str
    content_type: str
    content: bytes


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_image_index(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidInputError("Invalid image index")


def validate_uploads(files: list[ImageUpload]) -> None:
    if not files:
        raise InvalidInputError("No images uploaded")
    if len(files) > MAX_IMAGES_PER_UPLOAD:
        raise InvalidInputError(f"At most {MAX_IMAGES_PER_UPLOAD} images per upload")
    for upload in files:
        if not upload.content_type.startswith("image/"):
            raise InvalidInputError(f"{upload.filename or 'file'} is not an image")
        if len(upload.content) > MAX_IMAGE_BYTES:
            raise InvalidInputError(f"{upload.filename or 'file'} exceeds {MAX_IMAGE_BYTES // (1024 * 1024)}MB")
        if not upload.content:
            raise InvalidInputError(f"{upload.filename or 'file'} is empty")


class ListingService:
    """Listing operations. Mutations require the landlord role and ownership."""

    def __init__(self, store, image_storage):
        self.store = store
        self.image_storage = image_storage

    async def _load_owned(self, principal: Principal, listing_id: str, action: str) -> dict:
        require_role(principal, Role.LANDLORD)
        row = await self.store.get_listing(listing_id)
        if not row:
            raise NotFoundError("Listing not found")
        require_ownership(principal, (row["owner_id"],), f"Not authorized to {action} this listing")
        return row

    async def _cleanup_images(self, listing_id: str, urls: list[str]) -> None:
        """Best-effort removal of stored objects; failures are only logged."""
        if not urls:
            return
        try:
            await self.image_storage.remove(urls)
        except Exception as e:
            logger.warning(
                "Failed to remove listing images (non-fatal)",
                listing_id=listing_id,
                image_count=len(urls),
                error=str(e)
            )

    @timed("search listings")
    async def search(self, filters: ListingFilters) -> list[dict]:
        rows = await self.store.search_listings(filters)
        return [Listing.from_row(row).to_api() for row in rows]

    async def get(self, listing_id: str) -> dict:
        row = await self.store.get_listing(listing_id)
        if not row:
            raise NotFoundError("Listing not found")
        return Listing.from_row(row).to_api()

    async def list_mine(self, principal: Principal) -> list[dict]:
        require_role(principal, Role.LANDLORD)
        rows = await self.store.listings_by_owner(principal.id)
        return [Listing.from_row(row).to_api() for row in rows]

    async def create(self, principal: Principal, payload: ListingCreate) -> dict:
        require_role(principal, Role.LANDLORD)

        now = _now()
        row = payload.to_row(owner_id=principal.id)
        row.update({"id": generate_id(), "created_at": now, "updated_at": now})

        created = await self.store.insert_listing(row)
        logger.info("Listing created", listing_id=row["id"], owner_id=mask_user_id(principal.id))
        return Listing.from_row(created).to_api()

    async def update(self, principal: Principal, listing_id: str, payload: ListingUpdate) -> dict:
        current = await self._load_owned(principal, listing_id, "update")

        updates = payload.to_row()
        if not updates:
            return Listing.from_row(current).to_api()
        updates["updated_at"] = _now()

        updated = await self.store.update_listing(listing_id, updates, owner_id=principal.id)
        if not updated:
            raise NotFoundError("Listing not found")

        logger.info("Listing updated", listing_id=listing_id, fields=sorted(updates))
        return Listing.from_row(updated).to_api()

    async def delete(self, principal: Principal, listing_id: str) -> dict:
        current = await self._load_owned(principal, listing_id, "delete")

        if not await self.store.delete_listing(listing_id, owner_id=principal.id):
            raise NotFoundError("Listing not found")

        logger.info("Listing deleted", listing_id=listing_id, owner_id=mask_user_id(principal.id))
        await self._cleanup_images(listing_id, current.get("images") or [])
        return {"message": "Listing deleted successfully"}

    async def add_images(self, principal: Principal, listing_id: str, files: list[ImageUpload]) -> dict:
        current = await self._load_owned(principal, listing_id, "upload images for")
        validate_uploads(files)

        uploaded: list[str] = []
        try:
            for upload in files:
                uploaded.append(
                    await self.image_storage.upload(listing_id, upload.filename, upload.content, upload.content_type)
                )
            images = list(current.get("images") or []) + uploaded
            updated = await self.store.update_listing(
                listing_id,
                {"images": images, "updated_at": _now()},
                owner_id=principal.id,
            )
            if not updated:
                raise NotFoundError("Listing not found")
        except Exception:
            # Uploaded objects go away when the write fails
            await self._cleanup_images(listing_id, uploaded)
            raise

        logger.info("Listing images added", listing_id=listing_id, added=len(uploaded), total=len(images))
        return {"images": updated.get("images") or images}

    async def remove_image(self, principal: Principal, listing_id: str, raw_index: str) -> dict:
        current = await self._load_owned(principal, listing_id, "remove images from")

        index = parse_image_index(raw_index)
        images = list(current.get("images") or [])
        if index < 0 or index >= len(images):
            raise InvalidInputError("Invalid image index")

        removed = images.pop(index)
        updated = await self.store.update_listing(
            listing_id,
            {"images": images, "updated_at": _now()},
            owner_id=principal.id,
        )
        if not updated:
            raise NotFoundError("Listing not found")

        await self._cleanup_images(listing_id, [removed])
        return {"images": updated.get("images") or images}
