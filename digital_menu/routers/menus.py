"""
Menu endpoints: owner CRUD and the publish workflow.

Publishing requires at least one category. Publishing writes the guest
view to the cache and unpublishing removes it, both before the response
is sent, so the public path never serves a stale status.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.core.config import get_settings
from digital_menu.database import get_db
from digital_menu.dependencies import (
    MenuOwnerGuard,
    get_current_user,
    require_menu_quota,
    view_menu,
)
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import Menu, MenuStatus, User, utcnow
from digital_menu.queries import (
    build_menu_detail,
    count_categories,
    load_menu_tree,
    menu_count_columns,
    menu_counts,
    public_payload,
    with_counts,
)
from digital_menu.routers.common import (
    apply_updates,
    broadcast,
    invalidate_menu_cache,
    page_offset,
)
from digital_menu.schemas import (
    ApiResponse,
    Deleted,
    ErrorResponse,
    MenuCreate,
    MenuDetail,
    MenuResponse,
    MenuUpdate,
    PaginatedResponse,
    Pagination,
    PublishRequest,
)
from digital_menu.services import ServiceContainer, get_services
from digital_menu.services.cache import CacheKeys
from digital_menu.services.realtime import MenuEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menus", tags=["Menus"])

update_menu_guard = MenuOwnerGuard("update")
delete_menu_guard = MenuOwnerGuard("delete")
publish_menu_guard = MenuOwnerGuard("publish")

SLUG_TAKEN = "A menu with this slug already exists. Please choose a different slug."


async def _slug_taken(db: AsyncSession, slug: str) -> bool:
    result = await db.execute(select(Menu.id).where(Menu.slug == slug))
    return result.scalar_one_or_none() is not None


async def _menu_detail(db: AsyncSession, menu_id: str) -> MenuDetail:
    menu = await load_menu_tree(db, Menu.id == menu_id)
    return build_menu_detail(menu, await menu_counts(db, menu_id))


# =============================================================================
# COLLECTION
# =============================================================================

@router.get(
    "",
    response_model=PaginatedResponse[MenuResponse],
    responses={401: {"model": ErrorResponse}},
    summary="List Menus",
)
async def list_menus(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status_filter: Optional[MenuStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[MenuResponse]:
    """The caller's menus, newest first, with category and view counts."""
    categories, views = menu_count_columns()
    query = select(Menu, categories, views).where(Menu.user_id == user.id)
    count_query = select(func.count(Menu.id)).where(Menu.user_id == user.id)

    if status_filter is not None:
        query = query.where(Menu.status == status_filter)
        count_query = count_query.where(Menu.status == status_filter)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(Menu.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )

    return PaginatedResponse(
        data=[with_counts(menu, c or 0, v or 0) for menu, c, v in result.all()],
        pagination=Pagination.build(page, limit, total),
    )


@router.post(
    "",
    response_model=ApiResponse[MenuResponse],
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create Menu",
)
async def create_menu(
    payload: MenuCreate,
    user: User = Depends(require_menu_quota),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[MenuResponse]:
    if await _slug_taken(db, payload.slug):
        raise ApiError(ErrorCode.SLUG_EXISTS, SLUG_TAKEN, status_code=409)

    menu = Menu(user_id=user.id, status=MenuStatus.DRAFT, **payload.model_dump())
    db.add(menu)
    await db.commit()

    logger.info(f"Menu {menu.id} ({menu.slug}) created by user {user.id}")
    return ApiResponse(data=with_counts(menu, 0, 0))


# =============================================================================
# SINGLE MENU
# =============================================================================

@router.get(
    "/{menu_id}",
    response_model=ApiResponse[MenuDetail],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get Menu",
)
async def get_menu(
    menu: Menu = Depends(view_menu),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[MenuDetail]:
    """Full owner view: categories, products, variations and live promotions."""
    return ApiResponse(data=await _menu_detail(db, menu.id))


@router.put(
    "/{menu_id}",
    response_model=ApiResponse[MenuResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Update Menu",
)
async def update_menu(
    payload: MenuUpdate,
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(update_menu_guard),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[MenuResponse]:
    old_slug = menu.slug
    if payload.slug and payload.slug != old_slug and await _slug_taken(db, payload.slug):
        raise ApiError(ErrorCode.SLUG_EXISTS, SLUG_TAKEN, status_code=409)

    apply_updates(menu, payload, required=("name", "slug"))
    await db.commit()

    if menu.slug != old_slug:
        await invalidate_menu_cache(services, menu, old_slug)
    await invalidate_menu_cache(services, menu)

    counts = await menu_counts(db, menu.id)
    response = with_counts(menu, counts.categories, counts.views)
    broadcast(background_tasks, services, menu.id, MenuEvent.MENU_UPDATED, response)
    return ApiResponse(data=response)


@router.delete(
    "/{menu_id}",
    response_model=ApiResponse[Deleted],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete Menu",
)
async def delete_menu(
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(delete_menu_guard),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[Deleted]:
    """Delete a menu; categories, products, promotions and views cascade."""
    menu_id, slug = menu.id, menu.slug
    await db.delete(menu)
    await db.commit()

    await services.cache.invalidate_menu(menu_id, slug)
    broadcast(background_tasks, services, menu_id, MenuEvent.MENU_DELETED, {"id": menu_id})

    logger.info(f"Menu {menu_id} deleted")
    return ApiResponse(data=Deleted())


# =============================================================================
# PUBLISHING
# =============================================================================

@router.post(
    "/{menu_id}/publish",
    response_model=ApiResponse[MenuDetail],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Publish or Unpublish Menu",
)
async def publish_menu(
    payload: PublishRequest,
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(publish_menu_guard),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[MenuDetail]:
    """
    Move a menu between DRAFT and PUBLISHED.

    A menu without categories cannot be published (400, status unchanged).
    """
    if payload.publish and await count_categories(db, menu.id) == 0:
        raise ApiError.validation(
            "Cannot publish a menu without any categories. Please add at least one category first."
        )

    if payload.publish:
        menu.status = MenuStatus.PUBLISHED
        menu.published_at = utcnow()
    else:
        menu.status = MenuStatus.DRAFT
        menu.published_at = None
    await db.commit()

    await invalidate_menu_cache(services, menu)

    tree = await load_menu_tree(db, Menu.id == menu.id)
    detail = build_menu_detail(tree, await menu_counts(db, menu.id))

    if payload.publish:
        await services.cache.set(
            CacheKeys.public_menu(menu.slug),
            public_payload(tree),
            get_settings().cache_public_menu_ttl,
        )
        event = MenuEvent.MENU_PUBLISHED
    else:
        event = MenuEvent.MENU_UNPUBLISHED

    broadcast(background_tasks, services, menu.id, event, detail)
    logger.info(f"Menu {menu.id} is now {menu.status.value}")
    return ApiResponse(data=detail)
