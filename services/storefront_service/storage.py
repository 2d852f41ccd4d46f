"""Product image storage on Supabase Storage."""

import asyncio
import secrets
import time
import uuid
from functools import lru_cache
from typing import Optional, Tuple

from libs.common.config import get_settings
from libs.common.errors import NetworkError, ValidationError
from libs.common.logging import get_logger
from supabase import Client, create_client

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "avif", "gif"}


def build_storage_path(product_id: Optional[uuid.UUID], filename: str) -> str:
    """``{product_id}/{millis}-{random}.{ext}``; unsaved products go under ``temp``."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
    folder = str(product_id) if product_id else "temp"
    return f"{folder}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"


def validate_image_upload(
    content_type: Optional[str], size: int, filename: str, *, max_bytes: int
) -> None:
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Please upload an image file.")
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext and ext not in ALLOWED_EXTENSIONS:
        raise ValidationError("This file type is not supported.")
    if size > max_bytes:
        raise ValidationError(
            f"Image is too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
        )


class StorageService:
    """Upload and delete objects in the product images bucket."""

    def __init__(self, client: Optional[Client] = None, bucket: Optional[str] = None):
        settings = get_settings()
        self._client = client
        self.bucket = bucket or settings.PRODUCT_IMAGES_BUCKET

    @property
    def client(self) -> Client:
        if self._client is None:
            settings = get_settings()
            self._client = create_client(
                settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
            )
        return self._client

    def _upload(self, path: str, data: bytes, content_type: str) -> str:
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(path=path, file=data, file_options={"content-type": content_type})
        return bucket.get_public_url(path)

    async def upload_product_image(
        self,
        product_id: Optional[uuid.UUID],
        filename: str,
        data: bytes,
        content_type: str,
    ) -> Tuple[str, str]:
        """Store an image; returns ``(public_url, storage_path)``."""
        path = build_storage_path(product_id, filename)
        try:
            url = await asyncio.to_thread(self._upload, path, data, content_type)
        except Exception as exc:
            logger.error("Image upload to %s/%s failed: %s", self.bucket, path, exc)
            raise NetworkError("Image upload failed. Please try again.") from exc
        logger.info("Uploaded product image %s/%s", self.bucket, path)
        return url, path

    async def delete_object(self, path: str) -> bool:
        """Best-effort removal; a failure is logged and reported as False."""
        try:
            await asyncio.to_thread(self.client.storage.from_(self.bucket).remove, [path])
        except Exception as exc:
            logger.warning("Failed to delete %s/%s: %s", self.bucket, path, exc)
            return False
        return True


@lru_cache
def get_storage_service() -> StorageService:
    """FastAPI dependency; override in tests."""
    return StorageService()
