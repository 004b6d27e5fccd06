"""
Image Service Factory

Environment Switching:
    - ENV_MODE=development → MockImageService (in-memory)
    - ENV_MODE=staging/production → CloudinaryImageService

Version: 1.0.0
"""

import logging

from digital_menu.core.config import Settings
from digital_menu.services.images.base import (
    ALLOWED_MIME_TYPES,
    BaseImageService,
    DEFAULT_FOLDER,
    IMAGE_PRESETS,
    ImageUploadError,
    UploadResult,
    extract_public_id,
    transformation_string,
)
from digital_menu.services.images.cloudinary import CloudinaryImageService
from digital_menu.services.images.mock import MockImageService

logger = logging.getLogger(__name__)


def create_image_service(settings: Settings) -> BaseImageService:
    if not settings.use_real_services:
        logger.info("Image Service: Using MockImageService (development mode)")
        return MockImageService()

    logger.info(f"Image Service: Using CloudinaryImageService ({settings.env_mode.value} mode)")
    return CloudinaryImageService(settings)


__all__ = [
    "create_image_service",
    "ALLOWED_MIME_TYPES",
    "BaseImageService",
    "DEFAULT_FOLDER",
    "IMAGE_PRESETS",
    "ImageUploadError",
    "UploadResult",
    "extract_public_id",
    "transformation_string",
    "CloudinaryImageService",
    "MockImageService",
]
