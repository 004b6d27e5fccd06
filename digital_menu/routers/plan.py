"""
Plan summary for the current user: limits, feature flags and menu usage.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.core.plans import PLAN_FEATURES, PLAN_LIMITS, get_remaining
from digital_menu.database import get_db
from digital_menu.dependencies import get_current_user
from digital_menu.models import Menu, Plan, User
from digital_menu.schemas import ApiResponse, PlanResponse

router = APIRouter(prefix="/api/plan", tags=["Plan"])


@router.get("", response_model=ApiResponse[PlanResponse], summary="Current Plan")
async def get_plan(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PlanResponse]:
    """
    Limits and features of the caller's tier.

    Category and product limits apply per menu, so only the menu quota
    is reported as usage.
    """
    plan = Plan(user.plan)
    menus = await db.scalar(select(func.count(Menu.id)).where(Menu.user_id == user.id)) or 0

    return ApiResponse(
        data=PlanResponse(
            plan=plan,
            limits=dict(PLAN_LIMITS[plan]),
            features=dict(PLAN_FEATURES[plan]),
            usage={"menu": menus},
            remaining={"menu": get_remaining(plan, "menu", menus)},
        )
    )
