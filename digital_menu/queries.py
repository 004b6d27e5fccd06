"""
Menu Queries & Shaping

Loading helpers shared by the admin and public routers, and the two
read models built from a loaded menu tree:

    - build_menu_detail: owner view (every product, active promotions)
    - build_public_menu: guest view (available products, running promotions)

Relationships are always loaded eagerly here; response schemas never
trigger lazy loads on the async session.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from digital_menu.models import (
    Category,
    Menu,
    MenuStatus,
    MenuView,
    Product,
    as_utc,
    utcnow,
)
from digital_menu.schemas import (
    CategoryCounts,
    CategoryResponse,
    MenuCounts,
    MenuDetail,
    MenuResponse,
    PublicCategory,
    PublicMenu,
    PublicProduct,
    PublicPromotion,
)

logger = logging.getLogger(__name__)


# =============================================================================
# LOADERS
# =============================================================================

def menu_tree_options() -> tuple:
    return (
        selectinload(Menu.categories)
        .selectinload(Category.products)
        .selectinload(Product.variations),
        selectinload(Menu.promotions),
    )


async def load_menu_tree(db: AsyncSession, *criteria) -> Optional[Menu]:
    """Load one menu with categories → products → variations and promotions."""
    return await db.scalar(
        select(Menu)
        .where(*criteria)
        .options(*menu_tree_options())
        .execution_options(populate_existing=True)
    )


async def load_product(db: AsyncSession, product_id: str) -> Optional[Product]:
    """Reload a product with its variations and parent category."""
    return await db.scalar(
        select(Product)
        .where(Product.id == product_id)
        .options(selectinload(Product.variations), selectinload(Product.category))
        .execution_options(populate_existing=True)
    )


async def count_categories(db: AsyncSession, menu_id: str) -> int:
    return await db.scalar(
        select(func.count(Category.id)).where(Category.menu_id == menu_id)
    ) or 0


async def count_products_in_menu(db: AsyncSession, menu_id: str) -> int:
    return await db.scalar(
        select(func.count(Product.id))
        .join(Category, Product.category_id == Category.id)
        .where(Category.menu_id == menu_id)
    ) or 0


async def menu_counts(db: AsyncSession, menu_id: str) -> MenuCounts:
    views = await db.scalar(
        select(func.count(MenuView.id)).where(MenuView.menu_id == menu_id)
    ) or 0
    return MenuCounts(categories=await count_categories(db, menu_id), views=views)


def menu_count_columns() -> tuple:
    """Correlated category and view counts for listing menus."""
    categories = (
        select(func.count(Category.id))
        .where(Category.menu_id == Menu.id)
        .correlate(Menu)
        .scalar_subquery()
    )
    views = (
        select(func.count(MenuView.id))
        .where(MenuView.menu_id == Menu.id)
        .correlate(Menu)
        .scalar_subquery()
    )
    return categories, views


def with_counts(menu: Menu, categories: int, views: int) -> MenuResponse:
    return MenuResponse.model_validate(menu).model_copy(
        update={"counts": MenuCounts(categories=categories, views=views)}
    )


async def list_categories(db: AsyncSession, menu_id: str) -> list[CategoryResponse]:
    """Categories of a menu in display order, each with its product count."""
    product_count = (
        select(func.count(Product.id))
        .where(Product.category_id == Category.id)
        .correlate(Category)
        .scalar_subquery()
    )
    rows = await db.execute(
        select(Category, product_count)
        .where(Category.menu_id == menu_id)
        .order_by(Category.sort_order, Category.created_at)
        .execution_options(populate_existing=True)
    )
    return [
        CategoryResponse.model_validate(category).model_copy(
            update={"counts": CategoryCounts(products=count or 0)}
        )
        for category, count in rows.all()
    ]


# =============================================================================
# SHAPING
# =============================================================================

def build_menu_detail(menu: Menu, counts: MenuCounts, now: Optional[datetime] = None) -> MenuDetail:
    """
    Owner view of a loaded menu tree.

    Promotions are limited to active ones that have not ended yet.
    """
    now = now or utcnow()
    detail = MenuDetail.model_validate(menu)
    promotions = [
        promo for promo in detail.promotions
        if promo.is_active and as_utc(promo.end_date) >= now
    ]
    return detail.model_copy(update={"counts": counts, "promotions": promotions})


def build_public_menu(menu: Menu, now: Optional[datetime] = None) -> PublicMenu:
    """
    Guest view of a loaded menu tree.

    Unavailable products are dropped; promotions must be active and
    inside their window at ``now``.
    """
    now = now or utcnow()
    categories = [
        PublicCategory.model_validate(category).model_copy(
            update={
                "products": [
                    PublicProduct.model_validate(product)
                    for product in category.products
                    if product.is_available
                ]
            }
        )
        for category in menu.categories
    ]
    promotions = [
        PublicPromotion.model_validate(promo)
        for promo in menu.promotions
        if promo.is_running(now)
    ]
    return PublicMenu.model_validate(menu).model_copy(
        update={"categories": categories, "promotions": promotions}
    )


def public_payload(menu: Menu, now: Optional[datetime] = None) -> dict[str, Any]:
    """Public menu in its wire (camelCase JSON) form, as stored in the cache."""
    return build_public_menu(menu, now).model_dump(mode="json", by_alias=True)


async def fetch_public_menu(db: AsyncSession, slug: str) -> Optional[dict[str, Any]]:
    """Load and shape a published menu by slug. None when missing or a draft."""
    menu = await load_menu_tree(
        db,
        Menu.slug == slug,
        Menu.status == MenuStatus.PUBLISHED,
    )
    if menu is None:
        logger.debug(f"No published menu for slug {slug}")
        return None
    return public_payload(menu)
