"""
Mock Image Service Implementation

Keeps uploads in memory and hands back Cloudinary-shaped URLs.
Used in development mode (ENV_MODE=development) and by the test suite.

Version: 1.0.0
"""

import logging
import uuid
from typing import Optional

from digital_menu.services.images.base import (
    BaseImageService,
    DEFAULT_FOLDER,
    IMAGE_PRESETS,
    UploadResult,
    transformation_string,
)

logger = logging.getLogger(__name__)


class MockImageService(BaseImageService):
    """
    In-memory image host.

    Attributes:
        uploads: Stored image bytes keyed by public id
        cloud_name: Cloud segment used in generated URLs
    """

    def __init__(self, cloud_name: str = "mock-cloud"):
        self.cloud_name = cloud_name
        self.uploads: dict[str, bytes] = {}
        logger.info("MockImageService initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def upload(
        self,
        content: bytes,
        folder: str = DEFAULT_FOLDER,
        preset: str = "product",
        public_id: Optional[str] = None,
    ) -> UploadResult:
        if preset not in IMAGE_PRESETS:
            raise ValueError(f"Unknown image preset: {preset}")

        public_id = f"{folder}/{public_id or uuid.uuid4().hex[:20]}"
        self.uploads[public_id] = content
        options = IMAGE_PRESETS[preset]
        logger.info(f"[MOCK] Stored image {public_id} ({len(content)} bytes, preset={preset})")
        return UploadResult(
            url=(
                f"https://res.cloudinary.com/{self.cloud_name}/image/upload/"
                f"{transformation_string(preset)}/v1/{public_id}.png"
            ),
            public_id=public_id,
            width=options["width"],
            height=options["height"],
            bytes=len(content),
        )

    async def delete(self, public_id: str) -> bool:
        return self.uploads.pop(public_id, None) is not None

    async def health_check(self) -> bool:
        return True
