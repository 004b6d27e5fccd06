"""
Promotion endpoints, nested under a menu.

Creating promotions requires the ``promotions`` plan feature. Dates are
stored in UTC and every change keeps ``endDate`` after ``startDate``.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.database import get_db
from digital_menu.dependencies import FeatureGate, edit_menu, get_owned_promotion, view_menu
from digital_menu.errors import ApiError
from digital_menu.models import Menu, Promotion, User, as_utc, utcnow
from digital_menu.routers.common import apply_updates, broadcast, invalidate_menu_cache
from digital_menu.schemas import (
    ApiResponse,
    Deleted,
    ErrorResponse,
    PromotionCreate,
    PromotionResponse,
    PromotionUpdate,
)
from digital_menu.services import ServiceContainer, get_services
from digital_menu.services.realtime import MenuEvent

router = APIRouter(prefix="/api/menus/{menu_id}/promotions", tags=["Promotions"])

require_promotions = FeatureGate("promotions", "Promotions")


@router.get("", response_model=ApiResponse[list[PromotionResponse]], summary="List Promotions")
async def list_promotions(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    include_expired: bool = Query(False, alias="includeExpired"),
    menu: Menu = Depends(view_menu),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[PromotionResponse]]:
    """Promotions of a menu, latest start first. Ended ones are hidden by default."""
    query = select(Promotion).where(Promotion.menu_id == menu.id)
    if is_active is not None:
        query = query.where(Promotion.is_active == is_active)
    if not include_expired:
        query = query.where(Promotion.end_date >= utcnow())

    result = await db.execute(query.order_by(Promotion.start_date.desc()))
    return ApiResponse(data=[PromotionResponse.model_validate(p) for p in result.scalars()])


@router.post(
    "",
    response_model=ApiResponse[PromotionResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Create Promotion",
)
async def create_promotion(
    payload: PromotionCreate,
    background_tasks: BackgroundTasks,
    menu: Menu = Depends(edit_menu),
    user: User = Depends(require_promotions),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[PromotionResponse]:
    data = payload.model_dump()
    data["start_date"] = as_utc(data["start_date"])
    data["end_date"] = as_utc(data["end_date"])

    promotion = Promotion(menu_id=menu.id, **data)
    db.add(promotion)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    response = PromotionResponse.model_validate(promotion)
    broadcast(background_tasks, services, menu.id, MenuEvent.PROMOTION_CREATED, response)
    return ApiResponse(data=response)


@router.get(
    "/{promotion_id}",
    response_model=ApiResponse[PromotionResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Get Promotion",
)
async def get_promotion(
    promotion: Promotion = Depends(get_owned_promotion),
) -> ApiResponse[PromotionResponse]:
    return ApiResponse(data=PromotionResponse.model_validate(promotion))


@router.put(
    "/{promotion_id}",
    response_model=ApiResponse[PromotionResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update Promotion",
)
async def update_promotion(
    payload: PromotionUpdate,
    background_tasks: BackgroundTasks,
    promotion: Promotion = Depends(get_owned_promotion),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[PromotionResponse]:
    """Partial update; the merged date window is checked against stored values."""
    start = as_utc(payload.start_date or promotion.start_date)
    end = as_utc(payload.end_date or promotion.end_date)
    if end <= start:
        raise ApiError.validation(
            "Invalid request data",
            details={"endDate": ["End date must be after start date"]},
        )

    apply_updates(
        promotion,
        payload,
        required=("title_ka", "start_date", "end_date", "is_active"),
    )
    if payload.start_date:
        promotion.start_date = start
    if payload.end_date:
        promotion.end_date = end
    await db.commit()

    await invalidate_menu_cache(services, menu)
    response = PromotionResponse.model_validate(promotion)
    broadcast(background_tasks, services, menu.id, MenuEvent.PROMOTION_UPDATED, response)
    return ApiResponse(data=response)


@router.delete(
    "/{promotion_id}",
    response_model=ApiResponse[Deleted],
    responses={404: {"model": ErrorResponse}},
    summary="Delete Promotion",
)
async def delete_promotion(
    background_tasks: BackgroundTasks,
    promotion: Promotion = Depends(get_owned_promotion),
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[Deleted]:
    promotion_id = promotion.id
    await db.delete(promotion)
    await db.commit()

    await invalidate_menu_cache(services, menu)
    broadcast(background_tasks, services, menu.id, MenuEvent.PROMOTION_DELETED, {"id": promotion_id})
    return ApiResponse(data=Deleted())
