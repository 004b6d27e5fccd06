"""
Product variation endpoints (sizes, portions), nested under a product.

Variation changes are announced as ``product:updated`` on the menu channel.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.database import get_db
from digital_menu.dependencies import edit_menu, get_owned_product, get_owned_variation
from digital_menu.errors import ApiError
from digital_menu.models import Menu, Product, ProductVariation
from digital_menu.routers.common import apply_updates, broadcast, invalidate_menu_cache
from digital_menu.schemas import (
    ApiResponse,
    Deleted,
    ErrorResponse,
    VariationCreate,
    VariationReorder,
    VariationResponse,
    VariationUpdate,
)
from digital_menu.services import ServiceContainer, get_services
from digital_menu.services.realtime import MenuEvent

router = APIRouter(
    prefix="/api/menus/{menu_id}/products/{product_id}/variations",
    tags=["Variations"],
)


async def _variations_of(db: AsyncSession, product_id: str) -> list[VariationResponse]:
    result = await db.execute(
        select(ProductVariation)
        .where(ProductVariation.product_id == product_id)
        .order_by(ProductVariation.sort_order, ProductVariation.created_at)
        .execution_options(populate_existing=True)
    )
    return [VariationResponse.model_validate(v) for v in result.scalars()]


@router.get("", response_model=ApiResponse[list[VariationResponse]], summary="List Variations")
async def list_variations(
    product: Product = Depends(get_owned_product),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[VariationResponse]]:
    return ApiResponse(data=await _variations_of(db, product.id))


@router.post(
    "",
    response_model=ApiResponse[VariationResponse],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
    summary="Create Variation",
)
async def create_variation(
    payload: VariationCreate,
    background_tasks: BackgroundTasks,
    product: Product = Depends(get_owned_product),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[VariationResponse]:
    """Add a variation; without ``sortOrder`` it follows the current last one."""
    data = payload.model_dump()
    if data["sort_order"] is None:
        highest = await db.scalar(
            select(func.max(ProductVariation.sort_order))
            .where(ProductVariation.product_id == product.id)
        )
        data["sort_order"] = 0 if highest is None else highest + 1

    variation = ProductVariation(product_id=product.id, **data)
    db.add(variation)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    broadcast(background_tasks, services, menu.id, MenuEvent.PRODUCT_UPDATED, {"id": product.id})
    return ApiResponse(data=VariationResponse.model_validate(variation))


@router.post(
    "/reorder",
    response_model=ApiResponse[list[VariationResponse]],
    responses={400: {"model": ErrorResponse}},
    summary="Reorder Variations",
)
async def reorder_variations(
    payload: VariationReorder,
    background_tasks: BackgroundTasks,
    product: Product = Depends(get_owned_product),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[list[VariationResponse]]:
    ids = [item.id for item in payload.variations]
    result = await db.execute(
        select(ProductVariation).where(
            ProductVariation.id.in_(ids),
            ProductVariation.product_id == product.id,
        )
    )
    variations = {variation.id: variation for variation in result.scalars()}

    missing = [variation_id for variation_id in ids if variation_id not in variations]
    if missing:
        raise ApiError.validation(
            "One or more variations do not belong to this product",
            details={"ids": missing},
        )

    for item in payload.variations:
        variations[item.id].sort_order = item.sort_order
    await db.commit()

    await invalidate_menu_cache(services, menu)
    broadcast(background_tasks, services, menu.id, MenuEvent.PRODUCT_UPDATED, {"id": product.id})
    return ApiResponse(data=await _variations_of(db, product.id))


@router.get(
    "/{variation_id}",
    response_model=ApiResponse[VariationResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Get Variation",
)
async def get_variation(
    variation: ProductVariation = Depends(get_owned_variation),
) -> ApiResponse[VariationResponse]:
    return ApiResponse(data=VariationResponse.model_validate(variation))


@router.put(
    "/{variation_id}",
    response_model=ApiResponse[VariationResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Update Variation",
)
async def update_variation(
    payload: VariationUpdate,
    background_tasks: BackgroundTasks,
    variation: ProductVariation = Depends(get_owned_variation),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[VariationResponse]:
    apply_updates(variation, payload, required=("name_ka", "price", "sort_order"))
    await db.commit()

    await invalidate_menu_cache(services, menu)
    broadcast(
        background_tasks, services, menu.id, MenuEvent.PRODUCT_UPDATED, {"id": variation.product_id}
    )
    return ApiResponse(data=VariationResponse.model_validate(variation))


@router.delete(
    "/{variation_id}",
    response_model=ApiResponse[Deleted],
    responses={404: {"model": ErrorResponse}},
    summary="Delete Variation",
)
async def delete_variation(
    background_tasks: BackgroundTasks,
    variation: ProductVariation = Depends(get_owned_variation),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[Deleted]:
    product_id = variation.product_id
    await db.delete(variation)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    broadcast(background_tasks, services, menu.id, MenuEvent.PRODUCT_UPDATED, {"id": product_id})
    return ApiResponse(data=Deleted())
