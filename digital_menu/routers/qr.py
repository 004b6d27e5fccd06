"""
QR code download for a menu's public URL.

Query parameters:
    - format: png | svg (default png)
    - size: small | medium | large (default medium)
    - download: "true" adds an attachment Content-Disposition
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.core.config import get_settings
from digital_menu.database import get_db
from digital_menu.dependencies import get_current_user
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import Menu, User
from digital_menu.schemas import ErrorResponse
from digital_menu.services.qr import (
    is_valid_format,
    is_valid_size,
    public_menu_url,
    render_qr_code,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/qr", tags=["QR"])


@router.get(
    "/{menu_id}",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}, "image/svg+xml": {}}},
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Menu QR Code",
)
async def get_qr_code(
    menu_id: str,
    fmt: str = Query("png", alias="format"),
    size: str = Query("medium"),
    download: str = Query("false"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Render the QR code pointing at ``{APP_BASE_URL}/m/{slug}``."""
    if not is_valid_format(fmt):
        raise ApiError.validation('Invalid format. Must be "png" or "svg"')
    if not is_valid_size(size):
        raise ApiError.validation('Invalid size. Must be "small", "medium", or "large"')

    result = await db.execute(
        select(Menu).where(Menu.id == menu_id, Menu.user_id == user.id)
    )
    menu = result.scalar_one_or_none()
    if menu is None:
        raise ApiError.not_found(ErrorCode.MENU_NOT_FOUND, "Menu not found")

    qr = await render_qr_code(public_menu_url(get_settings().app_base_url, menu.slug), fmt, size)

    headers = {"Cache-Control": "public, max-age=3600"}
    if download == "true":
        headers["Content-Disposition"] = f'attachment; filename="{qr.filename}"'

    logger.debug(f"QR code rendered for menu {menu.id} ({fmt}, {size})")
    return Response(content=qr.data, media_type=qr.content_type, headers=headers)
