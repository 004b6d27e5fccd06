"""
Guest-facing menu endpoint.

Cache-aside read by slug: a hit returns the cached shape unchanged, a
miss loads the published menu, returns it and stores it in the
background. Drafts and unknown slugs are 404 and never cached.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.core.config import get_settings
from digital_menu.database import get_db
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.queries import fetch_public_menu
from digital_menu.schemas import ApiResponse, ErrorResponse, PublicMenu
from digital_menu.services import ServiceContainer, get_services
from digital_menu.services.cache import CacheKeys

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menus/public", tags=["Public"])


@router.get(
    "/{slug}",
    response_model=ApiResponse[PublicMenu],
    responses={404: {"model": ErrorResponse}},
    summary="Get Published Menu",
)
async def get_public_menu(
    slug: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> dict:
    menu = await services.cache.get_or_set(
        CacheKeys.public_menu(slug),
        lambda: fetch_public_menu(db, slug),
        ttl=get_settings().cache_public_menu_ttl,
        schedule=background_tasks.add_task,
    )
    if menu is None:
        raise ApiError.not_found(ErrorCode.MENU_NOT_FOUND, "Menu not found")

    return {"success": True, "data": menu}
