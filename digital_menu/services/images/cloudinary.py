"""
Cloudinary Image Service Implementation

Production implementation using the official Cloudinary Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET

The SDK is synchronous, so uploads and deletes run in a worker thread.

Version: 1.0.0
"""

import asyncio
import io
import logging
from typing import Optional

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from digital_menu.core.config import Settings
from digital_menu.services.images.base import (
    BaseImageService,
    DEFAULT_FOLDER,
    IMAGE_PRESETS,
    ImageUploadError,
    UploadResult,
)

logger = logging.getLogger(__name__)


class CloudinaryImageService(BaseImageService):
    """Cloudinary-backed image host."""

    def __init__(self, settings: Settings):
        self._configured = settings.cloudinary_configured
        if self._configured:
            # Configure Cloudinary SDK
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )
            logger.info(f"CloudinaryImageService initialized (cloud={settings.cloudinary_cloud_name})")
        else:
            logger.warning("CloudinaryImageService created without credentials, uploads disabled")

    @property
    def provider_name(self) -> str:
        return "cloudinary"

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def upload(
        self,
        content: bytes,
        folder: str = DEFAULT_FOLDER,
        preset: str = "product",
        public_id: Optional[str] = None,
    ) -> UploadResult:
        if not self._configured:
            raise ImageUploadError("Cloudinary is not configured")

        options = {
            "folder": folder,
            "resource_type": "image",
            "transformation": [IMAGE_PRESETS[preset]],
        }
        if public_id:
            options.update(public_id=public_id, overwrite=True)

        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload, io.BytesIO(content), **options
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary upload failed: {e}")
            raise ImageUploadError(str(e)) from e

        return UploadResult(
            url=result["secure_url"],
            public_id=result["public_id"],
            width=result.get("width"),
            height=result.get("height"),
            bytes=result.get("bytes"),
        )

    async def delete(self, public_id: str) -> bool:
        if not self._configured:
            logger.warning("Cloudinary not configured, skipping delete")
            return False
        try:
            result = await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
            return result.get("result") == "ok"
        except CloudinaryError as e:
            logger.error(f"Failed to delete image {public_id}: {e}")
            return False

    async def health_check(self) -> bool:
        if not self._configured:
            return False
        try:
            result = await asyncio.to_thread(cloudinary.api.ping)
            return result.get("status") == "ok"
        except CloudinaryError as e:
            logger.error(f"Cloudinary health check failed: {e}")
            return False
