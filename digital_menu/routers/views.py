"""
Public view tracking for published menus.

Every call records one view; device and browser are derived from the
User-Agent and the client IP from proxy headers.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.database import get_db
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import Menu, MenuStatus, MenuView
from digital_menu.schemas import ApiResponse, ErrorResponse, ViewTracked
from digital_menu.services.analytics import classify_browser, classify_device, client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menus/{menu_id}/views", tags=["Views"])


@router.post(
    "",
    response_model=ApiResponse[ViewTracked],
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Track Menu View",
)
async def track_view(
    menu_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ViewTracked]:
    menu = await db.get(Menu, menu_id)
    if menu is None:
        raise ApiError.not_found(ErrorCode.MENU_NOT_FOUND, "Menu not found")
    if menu.status != MenuStatus.PUBLISHED:
        raise ApiError.forbidden("Cannot track views for unpublished menus")

    user_agent = request.headers.get("user-agent") or None
    view = MenuView(
        menu_id=menu.id,
        user_agent=user_agent[:500] if user_agent else None,
        ip_address=client_ip(request.headers),
        device=classify_device(user_agent),
        browser=classify_browser(user_agent),
    )
    db.add(view)
    await db.commit()

    logger.debug(f"View {view.id} recorded for menu {menu.id} ({view.device}/{view.browser})")
    return ApiResponse(data=ViewTracked(view_id=view.id))
