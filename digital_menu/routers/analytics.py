"""
Menu analytics: view overview, zero-filled daily series and device /
browser breakdowns over a selectable period.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.database import get_db
from digital_menu.dependencies import MenuOwnerGuard
from digital_menu.errors import ApiError
from digital_menu.models import Menu, MenuView, utcnow
from digital_menu.schemas import (
    AnalyticsOverview,
    AnalyticsPeriod,
    AnalyticsReport,
    ApiResponse,
    BrowserShare,
    DailyViews,
    DeviceShare,
    ErrorResponse,
)
from digital_menu.services.analytics import (
    ANALYTICS_PERIODS,
    average_daily,
    daily_view_series,
    end_of_day,
    overview_windows,
    percentage,
    resolve_period,
)

router = APIRouter(prefix="/api/menus/{menu_id}/analytics", tags=["Analytics"])

analytics_guard = MenuOwnerGuard("view analytics for")

TOP_BROWSERS = 10


async def _count_views(db: AsyncSession, menu_id: str, *criteria) -> int:
    return await db.scalar(
        select(func.count(MenuView.id)).where(MenuView.menu_id == menu_id, *criteria)
    ) or 0


async def _breakdown(db: AsyncSession, column, menu_id: str, in_period, limit: Optional[int] = None):
    views = func.count(MenuView.id)
    query = (
        select(column, views)
        .where(MenuView.menu_id == menu_id, *in_period)
        .group_by(column)
        .order_by(views.desc())
    )
    if limit:
        query = query.limit(limit)
    return (await db.execute(query)).all()


@router.get(
    "",
    response_model=ApiResponse[AnalyticsReport],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Menu Analytics",
)
async def get_analytics(
    period: str = Query("30d", description=" | ".join(ANALYTICS_PERIODS)),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    menu: Menu = Depends(analytics_guard),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AnalyticsReport]:
    now = utcnow()
    try:
        window = resolve_period(period, now, start_date, end_date)
    except ValueError as e:
        raise ApiError.validation("Invalid request data", details={"period": [str(e)]})

    # Overview
    starts = overview_windows(now)
    until_tonight = MenuView.viewed_at <= end_of_day(now)
    total_views = await _count_views(db, menu.id)
    views_today = await _count_views(db, menu.id, MenuView.viewed_at >= starts["today"], until_tonight)
    views_week = await _count_views(db, menu.id, MenuView.viewed_at >= starts["week"], until_tonight)
    views_month = await _count_views(db, menu.id, MenuView.viewed_at >= starts["month"], until_tonight)

    # Period series
    in_period = (MenuView.viewed_at >= window.start, MenuView.viewed_at <= window.end)
    result = await db.execute(
        select(MenuView.viewed_at).where(MenuView.menu_id == menu.id, *in_period)
    )
    series = daily_view_series(result.scalars().all(), window)
    views_in_period = sum(day["views"] for day in series)

    devices = await _breakdown(db, MenuView.device, menu.id, in_period)
    browsers = await _breakdown(db, MenuView.browser, menu.id, in_period, limit=TOP_BROWSERS)

    report = AnalyticsReport(
        overview=AnalyticsOverview(
            total_views=total_views,
            views_today=views_today,
            views_this_week=views_week,
            views_this_month=views_month,
            average_daily=average_daily(series),
        ),
        daily_views=[DailyViews(**day) for day in series],
        device_breakdown=[
            DeviceShare(
                device=device or "Unknown",
                count=count,
                percentage=percentage(count, views_in_period),
            )
            for device, count in devices
        ],
        browser_breakdown=[
            BrowserShare(
                browser=browser or "Unknown",
                count=count,
                percentage=percentage(count, views_in_period),
            )
            for browser, count in browsers
        ],
        period=AnalyticsPeriod(
            start=window.start.date().isoformat(),
            end=window.end.date().isoformat(),
            days=window.days,
        ),
    )
    return ApiResponse(data=report)
