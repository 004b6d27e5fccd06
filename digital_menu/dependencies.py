"""
Request Dependencies

Authentication, ownership and plan checks shared by every router.
FastAPI resolves these before the request body is validated, so the
order of failures is always: 401 → 404/403 → plan limit → 400.

Ownership guard:
    ``MenuOwnerGuard`` loads the menu named by the ``menu_id`` path
    parameter and distinguishes a missing menu (404) from someone
    else's menu (403). Child loaders scope their lookups to the
    guarded menu, so a child id from another tenant is simply not found.
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from digital_menu.core.plans import (
    Feature,
    Resource,
    can_create,
    get_limit,
    has_feature,
)
from digital_menu.core.security import decode_access_token
from digital_menu.database import get_db
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import (
    Category,
    Menu,
    Product,
    ProductVariation,
    Promotion,
    User,
)
from digital_menu.queries import count_categories, count_products_in_menu

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

RESOURCE_LABELS = {"menu": "menus", "category": "categories", "product": "products"}


# =============================================================================
# AUTHENTICATION
# =============================================================================

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user or fail with 401."""
    if credentials is None:
        raise ApiError.unauthorized("You must be logged in")

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise ApiError.unauthorized("Invalid or expired session")

    user = await db.get(User, claims["sub"])
    if user is None:
        raise ApiError.unauthorized("Invalid or expired session")
    return user


# =============================================================================
# OWNERSHIP
# =============================================================================

class MenuOwnerGuard:
    """
    Dependency that returns the caller's menu for ``menu_id``.

    Args:
        action: Verb used in the 403 message ("view", "modify", ...)
    """

    def __init__(self, action: str = "modify"):
        self.action = action

    async def __call__(
        self,
        menu_id: str,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> Menu:
        menu = await db.get(Menu, menu_id)
        if menu is None:
            raise ApiError.not_found(ErrorCode.MENU_NOT_FOUND, "Menu not found")
        if menu.user_id != user.id:
            logger.warning(f"User {user.id} tried to {self.action} menu {menu_id}")
            raise ApiError.forbidden(f"You do not have permission to {self.action} this menu")
        return menu


view_menu = MenuOwnerGuard("view")
edit_menu = MenuOwnerGuard("modify")


async def get_owned_category(
    category_id: str,
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
) -> Category:
    category = await db.scalar(
        select(Category).where(Category.id == category_id, Category.menu_id == menu.id)
    )
    if category is None:
        raise ApiError.not_found(ErrorCode.CATEGORY_NOT_FOUND, "Category not found")
    return category


async def get_owned_product(
    product_id: str,
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
) -> Product:
    product = await db.scalar(
        select(Product)
        .join(Category, Product.category_id == Category.id)
        .where(Product.id == product_id, Category.menu_id == menu.id)
        .options(selectinload(Product.variations), selectinload(Product.category))
    )
    if product is None:
        raise ApiError.not_found(ErrorCode.PRODUCT_NOT_FOUND, "Product not found")
    return product


async def get_owned_variation(
    variation_id: str,
    product: Product = Depends(get_owned_product),
    db: AsyncSession = Depends(get_db),
) -> ProductVariation:
    variation = await db.scalar(
        select(ProductVariation).where(
            ProductVariation.id == variation_id,
            ProductVariation.product_id == product.id,
        )
    )
    if variation is None:
        raise ApiError.not_found(ErrorCode.VARIATION_NOT_FOUND, "Variation not found")
    return variation


async def get_owned_promotion(
    promotion_id: str,
    menu: Menu = Depends(edit_menu),
    db: AsyncSession = Depends(get_db),
) -> Promotion:
    promotion = await db.scalar(
        select(Promotion).where(Promotion.id == promotion_id, Promotion.menu_id == menu.id)
    )
    if promotion is None:
        raise ApiError.not_found(ErrorCode.PROMOTION_NOT_FOUND, "Promotion not found")
    return promotion


# =============================================================================
# PLAN LIMITS & FEATURES
# =============================================================================

def ensure_quota(user: User, resource: Resource, current_count: int) -> None:
    """Raise 403 PLAN_LIMIT_REACHED when one more ``resource`` would exceed the plan."""
    if can_create(user.plan, resource, current_count):
        return
    limit = get_limit(user.plan, resource)
    scope = "" if resource == "menu" else " per menu"
    raise ApiError.forbidden(
        f"Your {user.plan.value} plan allows up to {limit} {RESOURCE_LABELS[resource]}{scope}. "
        f"Upgrade your plan to create more.",
        code=ErrorCode.PLAN_LIMIT_REACHED,
    )


def ensure_feature(user: User, feature: Feature, label: str) -> None:
    if not has_feature(user.plan, feature):
        raise ApiError.forbidden(
            f"{label} are not available on the {user.plan.value} plan",
            code=ErrorCode.FEATURE_NOT_AVAILABLE,
        )


async def require_menu_quota(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    count = await db.scalar(select(func.count(Menu.id)).where(Menu.user_id == user.id))
    ensure_quota(user, "menu", count or 0)
    return user


async def require_category_quota(
    menu: Menu = Depends(edit_menu),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Menu:
    ensure_quota(user, "category", await count_categories(db, menu.id))
    return menu


async def require_product_quota(
    menu: Menu = Depends(edit_menu),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Menu:
    ensure_quota(user, "product", await count_products_in_menu(db, menu.id))
    return menu


class FeatureGate:
    """Dependency that requires a plan feature, e.g. ``FeatureGate("promotions", "Promotions")``."""

    def __init__(self, feature: Feature, label: str):
        self.feature = feature
        self.label = label

    async def __call__(self, user: User = Depends(get_current_user)) -> User:
        ensure_feature(user, self.feature, self.label)
        return user
