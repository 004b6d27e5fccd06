"""
Category endpoints, nested under a menu.

All routes require the caller to own the menu. Reordering validates the
whole batch against the menu before touching any row and commits once.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from digital_menu.database import get_db
from digital_menu.dependencies import (
    edit_menu,
    get_owned_category,
    require_category_quota,
    view_menu,
)
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import Category, Menu, Product
from digital_menu.queries import list_categories
from digital_menu.routers.common import apply_updates, broadcast, invalidate_menu_cache
from digital_menu.schemas import (
    ApiResponse,
    CategoryCounts,
    CategoryCreate,
    CategoryDetail,
    CategoryReorder,
    CategoryResponse,
    CategoryUpdate,
    Deleted,
    ErrorResponse,
)
from digital_menu.services import ServiceContainer, get_services
from digital_menu.services.realtime import MenuEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menus/{menu_id}/categories", tags=["Categories"])


async def _with_product_count(db: AsyncSession, category: Category) -> CategoryResponse:
    count = await db.scalar(
        select(func.count(Product.id)).where(Product.category_id == category.id)
    )
    return CategoryResponse.model_validate(category).model_copy(
        update={"counts": CategoryCounts(products=count or 0)}
    )


@router.get("", response_model=ApiResponse[list[CategoryResponse]], summary="List Categories")
async def get_categories(
    menu: Menu = Depends(view_menu),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[CategoryResponse]]:
    return ApiResponse(data=await list_categories(db, menu.id))


@router.post(
    "",
    response_model=ApiResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
    summary="Create Category",
)
async def create_category(
    payload: CategoryCreate,
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(require_category_quota),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[CategoryResponse]:
    """Create a category; without ``sortOrder`` it goes to the end."""
    data = payload.model_dump()
    if data["sort_order"] is None:
        data["sort_order"] = await db.scalar(
            select(func.count(Category.id)).where(Category.menu_id == menu.id)
        ) or 0

    category = Category(menu_id=menu.id, **data)
    db.add(category)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    response = CategoryResponse.model_validate(category)
    broadcast(background_tasks, services, menu.id, MenuEvent.CATEGORY_CREATED, response)
    return ApiResponse(data=response)


@router.post(
    "/reorder",
    response_model=ApiResponse[list[CategoryResponse]],
    responses={400: {"model": ErrorResponse}},
    summary="Reorder Categories",
)
async def reorder_categories(
    payload: CategoryReorder,
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[list[CategoryResponse]]:
    """
    Apply a batch of sort orders.

    Every id must belong to this menu, otherwise nothing changes.
    """
    ids = [item.id for item in payload.categories]
    result = await db.execute(
        select(Category).where(Category.id.in_(ids), Category.menu_id == menu.id)
    )
    categories = {category.id: category for category in result.scalars()}

    missing = [category_id for category_id in ids if category_id not in categories]
    if missing:
        raise ApiError(
            ErrorCode.CATEGORY_NOT_FOUND,
            "One or more categories do not belong to this menu",
            status_code=400,
            details={"ids": missing},
        )

    for item in payload.categories:
        categories[item.id].sort_order = item.sort_order
    await db.commit()

    await invalidate_menu_cache(services, menu)
    ordered = await list_categories(db, menu.id)
    broadcast(background_tasks, services, menu.id, MenuEvent.CATEGORY_REORDERED, ordered)
    return ApiResponse(data=ordered)


@router.get(
    "/{category_id}",
    response_model=ApiResponse[CategoryDetail],
    responses={404: {"model": ErrorResponse}},
    summary="Get Category",
)
async def get_category(
    category: Category = Depends(get_owned_category),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CategoryDetail]:
    """Category with its products and their variations."""
    loaded = await db.scalar(
        select(Category)
        .where(Category.id == category.id)
        .options(selectinload(Category.products).selectinload(Product.variations))
        .execution_options(populate_existing=True)
    )
    return ApiResponse(data=CategoryDetail.model_validate(loaded))


@router.put(
    "/{category_id}",
    response_model=ApiResponse[CategoryResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Update Category",
)
async def update_category(
    payload: CategoryUpdate,
    background_tasks: BackgroundTasks,
    category: Category = Depends(get_owned_category),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[CategoryResponse]:
    apply_updates(category, payload, required=("name_ka", "sort_order"))
    await db.commit()

    await invalidate_menu_cache(services, menu)
    response = await _with_product_count(db, category)
    broadcast(background_tasks, services, menu.id, MenuEvent.CATEGORY_UPDATED, response)
    return ApiResponse(data=response)


@router.delete(
    "/{category_id}",
    response_model=ApiResponse[Deleted],
    responses={404: {"model": ErrorResponse}},
    summary="Delete Category",
)
async def delete_category(
    background_tasks: BackgroundTasks,
    category: Category = Depends(get_owned_category),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[Deleted]:
    """Delete a category and, by cascade, its products and variations."""
    category_id = category.id
    await db.delete(category)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    broadcast(background_tasks, services, menu.id, MenuEvent.CATEGORY_DELETED, {"id": category_id})
    logger.info(f"Category {category_id} deleted from menu {menu.id}")
    return ApiResponse(data=Deleted())
