"""
SQLAlchemy Database Models

Multi-tenant digital menu data model:
- Users own menus (plan tier gates how many)
- Menus own categories, promotions and view events
- Categories own products, products own variations
- Every name/description is stored per locale (ka, en, ru)

Deletes cascade in the store (ON DELETE CASCADE), the ORM never loads
children just to delete them.

Version: 1.0.0
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
    Enum,
    Boolean,
    JSON,
    ForeignKey,
)
from sqlalchemy.orm import relationship

from digital_menu.database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC (SQLite hands back naive values)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Plan(str, enum.Enum):
    """Subscription tiers, ordered by capability."""
    FREE = "FREE"
    STARTER = "STARTER"
    PRO = "PRO"


class MenuStatus(str, enum.Enum):
    """Menu publish workflow."""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class Allergen(str, enum.Enum):
    GLUTEN = "GLUTEN"
    DAIRY = "DAIRY"
    EGGS = "EGGS"
    NUTS = "NUTS"
    SEAFOOD = "SEAFOOD"
    SOY = "SOY"
    PORK = "PORK"


class User(Base):
    """
    Menu owner account.

    ``password`` holds a bcrypt hash and is empty for OAuth-only accounts.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=True)
    image = Column(String(500), nullable=True)
    plan = Column(Enum(Plan), default=Plan.FREE, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    menus = relationship("Menu", back_populates="owner", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.plan.value})>"


class Menu(Base):
    """
    A restaurant menu.

    Publicly resolvable by ``slug`` only while PUBLISHED. A menu can only
    be published while it owns at least one category.
    """
    __tablename__ = "menus"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String(100), nullable=False)
    slug = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    # =========================================================================
    # PUBLISHING
    # =========================================================================
    status = Column(Enum(MenuStatus), default=MenuStatus.DRAFT, nullable=False, index=True)
    published_at = Column(DateTime(timezone=True), nullable=True)

    # =========================================================================
    # BRANDING
    # =========================================================================
    logo_url = Column(String(500), nullable=True)
    primary_color = Column(String(7), nullable=True)
    accent_color = Column(String(7), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="menus")
    categories = relationship(
        "Category",
        back_populates="menu",
        order_by="Category.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    promotions = relationship(
        "Promotion",
        back_populates="menu",
        order_by="Promotion.start_date",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Menu {self.slug} ({self.status.value})>"


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(32), primary_key=True, default=generate_id)
    menu_id = Column(
        String(32),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name_ka = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=True)
    name_ru = Column(String(100), nullable=True)
    description_ka = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    description_ru = Column(Text, nullable=True)

    sort_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    menu = relationship("Menu", back_populates="categories")
    products = relationship(
        "Product",
        back_populates="category",
        order_by="Product.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Product(Base):
    """A menu item. Prices are stored in ``currency`` units with 2 decimals."""
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=generate_id)
    category_id = Column(
        String(32),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name_ka = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=True)
    name_ru = Column(String(100), nullable=True)
    description_ka = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    description_ru = Column(Text, nullable=True)

    # =========================================================================
    # PRICING & AVAILABILITY
    # =========================================================================
    price = Column(Float, nullable=False)
    currency = Column(String(3), default="GEL", nullable=False)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    allergens = Column(JSON, default=list, nullable=False)

    sort_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship("Category", back_populates="products")
    variations = relationship(
        "ProductVariation",
        back_populates="product",
        order_by="ProductVariation.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ProductVariation(Base):
    """Size/portion variant of a product with its own price."""
    __tablename__ = "product_variations"

    id = Column(String(32), primary_key=True, default=generate_id)
    product_id = Column(
        String(32),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name_ka = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=True)
    name_ru = Column(String(100), nullable=True)
    price = Column(Float, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    product = relationship("Product", back_populates="variations")


class Promotion(Base):
    """
    Time-boxed promotion banner.

    Shown publicly only when ``is_active`` and ``start_date <= now <= end_date``.
    """
    __tablename__ = "promotions"

    id = Column(String(32), primary_key=True, default=generate_id)
    menu_id = Column(
        String(32),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title_ka = Column(String(100), nullable=False)
    title_en = Column(String(100), nullable=True)
    title_ru = Column(String(100), nullable=True)
    description_ka = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    description_ru = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    menu = relationship("Menu", back_populates="promotions")

    def is_running(self, now: datetime) -> bool:
        """Whether the promotion is switched on and its window contains ``now``."""
        return (
            bool(self.is_active)
            and as_utc(self.start_date) <= now <= as_utc(self.end_date)
        )


class MenuView(Base):
    """
    Append-only page view event for a published menu.

    Device and browser are derived from the user agent at write time.
    """
    __tablename__ = "menu_views"

    id = Column(String(32), primary_key=True, default=generate_id)
    menu_id = Column(
        String(32),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    viewed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    user_agent = Column(String(500), nullable=True)
    ip_address = Column(String(45), nullable=True)
    device = Column(String(20), nullable=True)
    browser = Column(String(50), nullable=True)
