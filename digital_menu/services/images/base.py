"""
Image Host Abstract Base Class

Uploads owner images (product photos, promotion banners, logos) to a
hosted image service that applies a named transformation preset.

Version: 1.0.0
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

# Transformation presets, expressed in Cloudinary option names
IMAGE_PRESETS: dict[str, dict[str, Any]] = {
    "product": {
        "width": 400,
        "height": 400,
        "crop": "fill",
        "gravity": "auto",
        "quality": "auto",
        "fetch_format": "auto",
    },
    "productThumbnail": {
        "width": 150,
        "height": 150,
        "crop": "fill",
        "gravity": "auto",
        "quality": "auto",
        "fetch_format": "auto",
    },
    "promotion": {
        "width": 1200,
        "height": 600,
        "crop": "fill",
        "gravity": "auto",
        "quality": "auto",
        "fetch_format": "auto",
    },
    "logo": {
        "width": 200,
        "height": 200,
        "crop": "limit",
        "quality": "auto",
        "fetch_format": "auto",
    },
}

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
DEFAULT_FOLDER = "digital-menu"

_PUBLIC_ID_PATTERN = re.compile(r"/v\d+/(.+)\.\w+$")

# Cloudinary URL parameter abbreviations
_TRANSFORM_KEYS = {
    "crop": "c",
    "fetch_format": "f",
    "gravity": "g",
    "height": "h",
    "quality": "q",
    "width": "w",
}


def transformation_string(preset: str) -> str:
    """
    Render a preset as a URL transformation segment.

    Example:
        >>> transformation_string("logo")
        'c_limit,f_auto,h_200,q_auto,w_200'
    """
    options = IMAGE_PRESETS[preset]
    parts = [f"{_TRANSFORM_KEYS[k]}_{v}" for k, v in options.items()]
    return ",".join(sorted(parts))


def extract_public_id(url: str) -> Optional[str]:
    """
    Recover the public id from a delivery URL.

    Example:
        >>> extract_public_id("https://res.cloudinary.com/demo/image/upload/v17/digital-menu/u1/abc.jpg")
        'digital-menu/u1/abc'
    """
    match = _PUBLIC_ID_PATTERN.search(url or "")
    return match.group(1) if match else None


@dataclass
class UploadResult:
    """
    Standardized result from an upload.

    Attributes:
        url: HTTPS delivery URL
        public_id: Identifier used for later deletes and URL building
    """
    url: str
    public_id: str
    width: Optional[int] = None
    height: Optional[int] = None
    bytes: Optional[int] = None


class ImageUploadError(Exception):
    """Raised when the image host rejects or fails an upload."""


class BaseImageService(ABC):
    """Abstract base class for image hosts."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @property
    def is_configured(self) -> bool:
        """Whether credentials are present; uploads fail fast when False."""
        return True

    @abstractmethod
    async def upload(
        self,
        content: bytes,
        folder: str = DEFAULT_FOLDER,
        preset: str = "product",
        public_id: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload an image and apply a transformation preset.

        Raises:
            ImageUploadError: If the host rejects the upload
        """
        pass

    @abstractmethod
    async def delete(self, public_id: str) -> bool:
        """Delete an uploaded image. Returns False on failure."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def close(self) -> None:
        """Release HTTP connections."""
        return None
