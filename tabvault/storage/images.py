"""Download remote preview images and keep a stored copy."""

import logging
from typing import List, Optional, Tuple

import httpx
from pydantic import BaseModel

from ..config import ImageConfig
from .blob import BlobStorage

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/avif": "avif",
}


class StoredImage(BaseModel):
    """Result of storing an image."""

    success: bool
    url: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None


def extension_for(content_type: str) -> str:
    """File extension for an image content type (jpg when unknown)."""
    return CONTENT_TYPE_EXTENSIONS.get(content_type.split(";")[0].strip().lower(), "jpg")


def filename_from_url(image_url: Optional[str]) -> Optional[str]:
    """Stored filename at the end of a stored image URL."""
    if not image_url:
        return None
    name = image_url.rstrip("/").rsplit("/", 1)[-1]
    return name or None


class ImageStore:
    """Persist a copy of a capture's preview image in blob storage."""

    def __init__(
        self,
        blob_storage: BlobStorage,
        config: Optional[ImageConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.blob_storage = blob_storage
        self.config = config or ImageConfig()
        self.transport = transport

    async def store_image(self, image_url: str, capture_id: str) -> StoredImage:
        """Download ``image_url`` and store it as ``<capture_id>.<ext>``."""
        if not image_url:
            return StoredImage(success=False, error="No image URL provided")

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout,
                follow_redirects=True,
                headers={"User-Agent": "Mozilla/5.0 (compatible; TabVault/1.0)"},
                transport=self.transport,
            ) as client:
                response = await client.get(image_url)
        except httpx.HTTPError as e:
            return StoredImage(success=False, error=f"Download failed: {e}")
        except (httpx.InvalidURL, ValueError) as e:
            return StoredImage(success=False, error=f"Invalid image URL: {e}")

        if response.status_code >= 400:
            return StoredImage(success=False, error=f"Failed to download: {response.status_code}")

        content_type = response.headers.get("content-type", "image/jpeg")
        if not content_type.startswith("image/"):
            return StoredImage(success=False, error=f"Not an image: {content_type}")

        data = response.content
        if len(data) > self.config.max_bytes:
            return StoredImage(
                success=False, error=f"Image too large: {len(data) // (1024 * 1024)}MB"
            )

        filename = f"{capture_id}.{extension_for(content_type)}"
        try:
            url = await self.blob_storage.upload(filename, data, content_type.split(";")[0])
        except Exception as e:
            return StoredImage(success=False, error=f"Upload failed: {e}")

        logger.info("Stored image %s (%dKB)", filename, len(data) // 1024)
        return StoredImage(success=True, url=url, filename=filename)

    async def delete_images(self, filenames: List[str]) -> Tuple[int, int]:
        """Bulk delete stored images; returns (deleted, failed)."""
        if not filenames:
            return 0, 0
        try:
            deleted, failed = await self.blob_storage.delete(filenames)
        except Exception as e:
            logger.error("Bulk image delete failed: %s", e)
            return 0, len(filenames)
        logger.info("Deleted %d images (%d failed)", deleted, failed)
        return deleted, failed
