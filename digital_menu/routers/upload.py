"""
Image upload for product photos, promotion banners and logos.

Accepts multipart form data:
    - file: JPEG, PNG, WebP or GIF, up to UPLOAD_MAX_BYTES
    - preset: product | productThumbnail | promotion | logo
    - folder: optional, defaults to ``digital-menu/{userId}``
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from digital_menu.core.config import get_settings
from digital_menu.dependencies import get_current_user
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import User
from digital_menu.schemas import ApiResponse, ErrorResponse, UploadResponse
from digital_menu.services import ServiceContainer, get_services
from digital_menu.services.images import (
    ALLOWED_MIME_TYPES,
    DEFAULT_FOLDER,
    IMAGE_PRESETS,
    ImageUploadError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])


def _too_large(max_bytes: int) -> ApiError:
    return ApiError.validation(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB")


@router.post(
    "",
    response_model=ApiResponse[UploadResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Upload Image",
)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    preset: str = Form("product"),
    folder: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[UploadResponse]:
    images = services.images
    if not images.is_configured:
        raise ApiError(
            ErrorCode.INTERNAL_ERROR,
            "Image upload is not configured",
            status_code=500,
        )

    if file is None:
        raise ApiError.validation("No file provided")

    if file.content_type not in ALLOWED_MIME_TYPES:
        raise ApiError.validation(
            "Invalid file type. Allowed types: JPEG, PNG, WebP, GIF",
            details={"allowed": list(ALLOWED_MIME_TYPES)},
        )

    max_bytes = get_settings().upload_max_bytes
    # Size is known from the multipart parser; only read files that fit
    if file.size is not None and file.size > max_bytes:
        raise _too_large(max_bytes)

    content = await file.read()
    if len(content) > max_bytes:
        raise _too_large(max_bytes)

    if preset not in IMAGE_PRESETS:
        raise ApiError.validation(
            f"Invalid preset. Must be one of: {', '.join(IMAGE_PRESETS)}"
        )

    try:
        result = await images.upload(
            content,
            folder=folder or f"{DEFAULT_FOLDER}/{user.id}",
            preset=preset,
        )
    except ImageUploadError as e:
        logger.error(f"Upload for user {user.id} failed: {e}")
        raise ApiError(ErrorCode.UPLOAD_ERROR, "Failed to upload image", status_code=500)

    logger.info(f"User {user.id} uploaded {result.public_id} ({len(content)} bytes)")
    return ApiResponse(data=UploadResponse(url=result.url, public_id=result.public_id))
