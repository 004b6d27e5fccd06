"""
Product endpoints, nested under a menu.

Products belong to a category of the same menu. Allergen tagging is a
PRO feature; the product quota counts products across the whole menu.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from digital_menu.database import get_db
from digital_menu.dependencies import (
    edit_menu,
    ensure_feature,
    get_current_user,
    get_owned_product,
    require_product_quota,
    view_menu,
)
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import Category, Menu, Product, User
from digital_menu.queries import load_product
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
    PaginatedResponse,
    Pagination,
    ProductCreate,
    ProductDetail,
    ProductReorder,
    ProductUpdate,
)
from digital_menu.services import ServiceContainer, get_services
from digital_menu.services.realtime import MenuEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menus/{menu_id}/products", tags=["Products"])


def _menu_products(menu_id: str):
    """Products of a menu in display order (category, then product)."""
    return (
        select(Product)
        .join(Category, Product.category_id == Category.id)
        .where(Category.menu_id == menu_id)
        .order_by(Category.sort_order, Product.sort_order, Product.created_at)
        .options(selectinload(Product.variations), selectinload(Product.category))
        .execution_options(populate_existing=True)
    )


async def _ensure_category_in_menu(db: AsyncSession, category_id: str, menu: Menu) -> None:
    result = await db.execute(
        select(Category.id).where(Category.id == category_id, Category.menu_id == menu.id)
    )
    if result.scalar_one_or_none() is None:
        raise ApiError(
            ErrorCode.CATEGORY_NOT_FOUND,
            "Category not found or does not belong to this menu",
            status_code=400,
        )


def _ensure_allergens_allowed(user: User, allergens: Optional[list]) -> None:
    if allergens:
        ensure_feature(user, "allergens", "Allergens")


@router.get("", response_model=PaginatedResponse[ProductDetail], summary="List Products")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    is_available: Optional[bool] = Query(None, alias="isAvailable"),
    menu: Menu = Depends(view_menu),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[ProductDetail]:
    query = _menu_products(menu.id)
    count_query = (
        select(func.count(Product.id))
        .join(Category, Product.category_id == Category.id)
        .where(Category.menu_id == menu.id)
    )
    if category_id:
        query = query.where(Product.category_id == category_id)
        count_query = count_query.where(Product.category_id == category_id)
    if is_available is not None:
        query = query.where(Product.is_available == is_available)
        count_query = count_query.where(Product.is_available == is_available)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.offset(page_offset(page, limit)).limit(limit))

    return PaginatedResponse(
        data=[ProductDetail.model_validate(product) for product in result.scalars()],
        pagination=Pagination.build(page, limit, total),
    )


@router.post(
    "",
    response_model=ApiResponse[ProductDetail],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Create Product",
)
async def create_product(
    payload: ProductCreate,
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(require_product_quota),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[ProductDetail]:
    """Create a product; without ``sortOrder`` it goes to the end of its category."""
    await _ensure_category_in_menu(db, payload.category_id, menu)
    _ensure_allergens_allowed(user, payload.allergens)

    data = payload.model_dump()
    if data["sort_order"] is None:
        data["sort_order"] = await db.scalar(
            select(func.count(Product.id)).where(Product.category_id == payload.category_id)
        ) or 0

    product = Product(**data)
    db.add(product)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    response = ProductDetail.model_validate(await load_product(db, product.id))
    broadcast(background_tasks, services, menu.id, MenuEvent.PRODUCT_CREATED, response)
    logger.info(f"Product {product.id} created in menu {menu.id}")
    return ApiResponse(data=response)


@router.post(
    "/reorder",
    response_model=ApiResponse[list[ProductDetail]],
    responses={400: {"model": ErrorResponse}},
    summary="Reorder Products",
)
async def reorder_products(
    payload: ProductReorder,
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[list[ProductDetail]]:
    """Apply a batch of sort orders; every id must belong to this menu."""
    ids = [item.id for item in payload.products]
    result = await db.execute(
        select(Product)
        .join(Category, Product.category_id == Category.id)
        .where(Product.id.in_(ids), Category.menu_id == menu.id)
    )
    products = {product.id: product for product in result.scalars()}

    missing = [product_id for product_id in ids if product_id not in products]
    if missing:
        raise ApiError(
            ErrorCode.PRODUCT_NOT_FOUND,
            "One or more products do not belong to this menu",
            status_code=400,
            details={"ids": missing},
        )

    for item in payload.products:
        products[item.id].sort_order = item.sort_order
    await db.commit()

    await invalidate_menu_cache(services, menu)
    result = await db.execute(_menu_products(menu.id))
    ordered = [ProductDetail.model_validate(product) for product in result.scalars()]
    broadcast(background_tasks, services, menu.id, MenuEvent.PRODUCT_REORDERED, ordered)
    return ApiResponse(data=ordered)


@router.get(
    "/{product_id}",
    response_model=ApiResponse[ProductDetail],
    responses={404: {"model": ErrorResponse}},
    summary="Get Product",
)
async def get_product(product: Product = Depends(get_owned_product)) -> ApiResponse[ProductDetail]:
    return ApiResponse(data=ProductDetail.model_validate(product))


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductDetail],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update Product",
)
async def update_product(
    payload: ProductUpdate,
    background_tasks: BackgroundTasks,
    product: Product = Depends(get_owned_product),
    menu: Menu = Depends(edit_menu),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[ProductDetail]:
    if payload.category_id and payload.category_id != product.category_id:
        await _ensure_category_in_menu(db, payload.category_id, menu)
    _ensure_allergens_allowed(user, payload.allergens)

    apply_updates(
        product,
        payload,
        required=("category_id", "name_ka", "price", "currency", "is_available", "allergens", "sort_order"),
    )
    await db.commit()

    await invalidate_menu_cache(services, menu)
    response = ProductDetail.model_validate(await load_product(db, product.id))
    broadcast(background_tasks, services, menu.id, MenuEvent.PRODUCT_UPDATED, response)
    return ApiResponse(data=response)


@router.delete(
    "/{product_id}",
    response_model=ApiResponse[Deleted],
    responses={404: {"model": ErrorResponse}},
    summary="Delete Product",
)
async def delete_product(
    background_tasks: BackgroundTasks,
    product: Product = Depends(get_owned_product),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[Deleted]:
    product_id = product.id
    await db.delete(product)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    broadcast(background_tasks, services, menu.id, MenuEvent.PRODUCT_DELETED, {"id": product_id})
    return ApiResponse(data=Deleted())
