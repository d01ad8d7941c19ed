"""Listing image storage on Supabase Storage."""

import asyncio
import mimetypes
from typing import Optional

import httpx
from supabase import Client

from src.services.supabase_client import get_supabase_client
from src.utils.errors import StorageError, UnavailableError
from src.utils.ids import generate_id
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_IMAGES_PER_UPLOAD = 10


def object_key(listing_id: str, filename: str, content_type: str) -> str:
    """Storage path for a new image: ``<listing_id>/<ulid><ext>``."""
    ext = ""
    if "." in filename:
        ext = "." + filename.rsplit(".", 1)[-1].lower()
    if not ext or len(ext) > 6:
        ext = mimetypes.guess_extension(content_type) or ""
    return f"{listing_id}/{generate_id()}{ext}"


class SupabaseImageStorage:
    """Uploads, resolves and deletes listing images in one public bucket."""

    def __init__(self, client: Optional[Client] = None, bucket: str = "listing-images", timeout_seconds: float = 30.0):
        self._client = client
        self.bucket = bucket
        self.timeout_seconds = timeout_seconds

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    async def _call(self, operation: str, func, *args, **kwargs):
        try:
            with log_timing(operation, logger=logger, bucket=self.bucket):
                return await asyncio.wait_for(
                    asyncio.to_thread(func, *args, **kwargs),
                    timeout=self.timeout_seconds,
                )
        except asyncio.TimeoutError:
            raise UnavailableError(f"Image storage timed out during {operation}")
        except httpx.TransportError as e:
            raise UnavailableError(f"Image storage unreachable during {operation}: {e}")
        except Exception as e:
            raise StorageError(f"Failed to {operation}: {e}")

    async def upload(self, listing_id: str, filename: str, content: bytes, content_type: str) -> str:
        """Upload one image and return its public URL."""
        path = object_key(listing_id, filename, content_type)
        bucket = self.client.storage.from_(self.bucket)
        await self._call(
            "upload image",
            bucket.upload,
            path,
            content,
            {"content-type": content_type, "upsert": "false"},
        )
        url = bucket.get_public_url(path)
        logger.info("Listing image uploaded", listing_id=listing_id, path=path, size_bytes=len(content))
        return url.rstrip("?")

    def path_from_url(self, url: str) -> Optional[str]:
        """Object path inside this bucket for a public URL, or None if it isn't ours."""
        marker = f"/object/public/{self.bucket}/"
        if marker not in url:
            return None
        path = url.split(marker, 1)[1].split("?", 1)[0]
        return path or None

    async def remove(self, urls: list[str]) -> int:
        """Delete the stored objects behind ``urls``. Foreign URLs are skipped."""
        paths = [path for path in (self.path_from_url(url) for url in urls) if path]
        if not paths:
            return 0
        await self._call("remove images", self.client.storage.from_(self.bucket).remove, paths)
        logger.info("Listing images removed", bucket=self.bucket, count=len(paths))
        return len(paths)
