"""
Pydantic Schemas for API Request/Response Validation

Request bodies accept camelCase keys (``nameKa``, ``sortOrder``) as well
as the snake_case field names, and every response is serialized in
camelCase inside the standard envelope:

    {"success": true, "data": ...}
    {"success": true, "data": [...], "pagination": {...}}
"""

import math
import re
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from digital_menu.models import Allergen, MenuStatus, Plan, as_utc

T = TypeVar("T")

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
MAX_PRICE = 99999.99


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RequestModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# SHARED VALIDATORS
# =============================================================================

def _check_price(value: Optional[float]) -> Optional[float]:
    if value is None:
        return value
    if not math.isfinite(value):
        raise ValueError("Price must be a finite number")
    if round(value, 2) != value:
        raise ValueError("Price can have at most 2 decimal places")
    return value


def _check_http_url(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    if not value.startswith(("http://", "https://")):
        raise ValueError("Must be a valid http(s) URL")
    return value


def _check_unique_ids(items: list["ReorderItem"]) -> list["ReorderItem"]:
    ids = [item.id for item in items]
    if len(ids) != len(set(ids)):
        raise ValueError("Each id may appear only once")
    return items


# =============================================================================
# ENVELOPES
# =============================================================================

class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope."""
    success: bool = True
    data: T


class PaginatedResponse(CamelModel, Generic[T]):
    """Success envelope for paged collections."""
    success: bool = True
    data: list[T]
    pagination: Pagination


class Deleted(CamelModel):
    deleted: bool = True


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error envelope (documentation only, built by the exception handlers)."""
    success: bool = False
    error: ErrorDetail


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class RegisterRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    confirm_password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def check_complexity(cls, v: str) -> str:
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", v):
            raise ValueError("Password must contain at least one number")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    plan: Plan
    created_at: datetime


class RegisterResponse(CamelModel):
    user: UserResponse


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Seconds until the token expires")
    user: UserResponse


class PlanResponse(CamelModel):
    plan: Plan
    limits: dict[str, Optional[int]]
    features: dict[str, bool]
    usage: dict[str, int]
    remaining: dict[str, Optional[int]]


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=3, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    accent_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        if not SLUG_PATTERN.match(v):
            raise ValueError("Slug can only contain lowercase letters, numbers and single hyphens")
        return v

    @field_validator("logo_url")
    @classmethod
    def validate_logo_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_http_url(v)


class MenuUpdate(RequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=3, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    accent_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not SLUG_PATTERN.match(v):
            raise ValueError("Slug can only contain lowercase letters, numbers and single hyphens")
        return v

    @field_validator("logo_url")
    @classmethod
    def validate_logo_url(cls, v: Optional[str]) -> Optional[str]:
        return _check_http_url(v)


class PublishRequest(RequestModel):
    publish: bool


class MenuCounts(CamelModel):
    categories: int = 0
    views: int = 0


class MenuResponse(CamelModel):
    id: str
    user_id: str
    name: str
    slug: str
    description: Optional[str] = None
    status: MenuStatus
    published_at: Optional[datetime] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    accent_color: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    counts: MenuCounts = Field(default_factory=MenuCounts, alias="_count")


# =============================================================================
# CATEGORY SCHEMAS
# =============================================================================

class CategoryCreate(RequestModel):
    name_ka: str = Field(..., min_length=1, max_length=100)
    name_en: Optional[str] = Field(None, max_length=100)
    name_ru: Optional[str] = Field(None, max_length=100)
    description_ka: Optional[str] = Field(None, max_length=500)
    description_en: Optional[str] = Field(None, max_length=500)
    description_ru: Optional[str] = Field(None, max_length=500)
    sort_order: Optional[int] = Field(None, ge=0)


class CategoryUpdate(RequestModel):
    name_ka: Optional[str] = Field(None, min_length=1, max_length=100)
    name_en: Optional[str] = Field(None, max_length=100)
    name_ru: Optional[str] = Field(None, max_length=100)
    description_ka: Optional[str] = Field(None, max_length=500)
    description_en: Optional[str] = Field(None, max_length=500)
    description_ru: Optional[str] = Field(None, max_length=500)
    sort_order: Optional[int] = Field(None, ge=0)


class ReorderItem(RequestModel):
    id: str = Field(..., min_length=1)
    sort_order: int = Field(..., ge=0)


class CategoryReorder(RequestModel):
    categories: list[ReorderItem]

    unique_ids = field_validator("categories")(_check_unique_ids)


class ProductReorder(RequestModel):
    products: list[ReorderItem]

    unique_ids = field_validator("products")(_check_unique_ids)


class VariationReorder(RequestModel):
    variations: list[ReorderItem]

    unique_ids = field_validator("variations")(_check_unique_ids)


class CategorySummary(CamelModel):
    id: str
    name_ka: str
    name_en: Optional[str] = None
    name_ru: Optional[str] = None


class CategoryCounts(CamelModel):
    products: int = 0


class CategoryResponse(CamelModel):
    id: str
    menu_id: str
    name_ka: str
    name_en: Optional[str] = None
    name_ru: Optional[str] = None
    description_ka: Optional[str] = None
    description_en: Optional[str] = None
    description_ru: Optional[str] = None
    sort_order: int
    created_at: datetime
    updated_at: datetime
    counts: CategoryCounts = Field(default_factory=CategoryCounts, alias="_count")


# =============================================================================
# PRODUCT & VARIATION SCHEMAS
# =============================================================================

class VariationCreate(RequestModel):
    name_ka: str = Field(..., min_length=1, max_length=100)
    name_en: Optional[str] = Field(None, max_length=100)
    name_ru: Optional[str] = Field(None, max_length=100)
    price: float = Field(..., gt=0, le=MAX_PRICE)
    sort_order: Optional[int] = Field(None, ge=0)

    valid_price = field_validator("price")(_check_price)


class VariationUpdate(RequestModel):
    name_ka: Optional[str] = Field(None, min_length=1, max_length=100)
    name_en: Optional[str] = Field(None, max_length=100)
    name_ru: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, gt=0, le=MAX_PRICE)
    sort_order: Optional[int] = Field(None, ge=0)

    valid_price = field_validator("price")(_check_price)


class VariationResponse(CamelModel):
    id: str
    product_id: str
    name_ka: str
    name_en: Optional[str] = None
    name_ru: Optional[str] = None
    price: float
    sort_order: int
    created_at: datetime
    updated_at: datetime


class ProductCreate(RequestModel):
    category_id: str = Field(..., min_length=1)
    name_ka: str = Field(..., min_length=1, max_length=100)
    name_en: Optional[str] = Field(None, max_length=100)
    name_ru: Optional[str] = Field(None, max_length=100)
    description_ka: Optional[str] = Field(None, max_length=500)
    description_en: Optional[str] = Field(None, max_length=500)
    description_ru: Optional[str] = Field(None, max_length=500)
    price: float = Field(..., gt=0, le=MAX_PRICE)
    currency: str = Field("GEL", min_length=3, max_length=3)
    image_url: Optional[str] = None
    is_available: bool = True
    allergens: list[Allergen] = Field(default_factory=list)
    sort_order: Optional[int] = Field(None, ge=0)

    valid_price = field_validator("price")(_check_price)
    valid_image_url = field_validator("image_url")(_check_http_url)


class ProductUpdate(RequestModel):
    category_id: Optional[str] = Field(None, min_length=1)
    name_ka: Optional[str] = Field(None, min_length=1, max_length=100)
    name_en: Optional[str] = Field(None, max_length=100)
    name_ru: Optional[str] = Field(None, max_length=100)
    description_ka: Optional[str] = Field(None, max_length=500)
    description_en: Optional[str] = Field(None, max_length=500)
    description_ru: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, gt=0, le=MAX_PRICE)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    image_url: Optional[str] = None
    is_available: Optional[bool] = None
    allergens: Optional[list[Allergen]] = None
    sort_order: Optional[int] = Field(None, ge=0)

    valid_price = field_validator("price")(_check_price)
    valid_image_url = field_validator("image_url")(_check_http_url)


class ProductCounts(CamelModel):
    variations: int = 0


class ProductResponse(CamelModel):
    id: str
    category_id: str
    name_ka: str
    name_en: Optional[str] = None
    name_ru: Optional[str] = None
    description_ka: Optional[str] = None
    description_en: Optional[str] = None
    description_ru: Optional[str] = None
    price: float
    currency: str
    image_url: Optional[str] = None
    is_available: bool
    allergens: list[Allergen] = Field(default_factory=list)
    sort_order: int
    created_at: datetime
    updated_at: datetime
    variations: list[VariationResponse] = Field(default_factory=list)
    counts: ProductCounts = Field(default_factory=ProductCounts, alias="_count")

    @model_validator(mode="after")
    def count_variations(self) -> "ProductResponse":
        self.counts = ProductCounts(variations=len(self.variations))
        return self


class ProductDetail(ProductResponse):
    """Product with its parent category summary (requires ``category`` loaded)."""
    category: CategorySummary


class CategoryDetail(CategoryResponse):
    products: list[ProductResponse] = Field(default_factory=list)

    @model_validator(mode="after")
    def count_products(self) -> "CategoryDetail":
        self.counts = CategoryCounts(products=len(self.products))
        return self


# =============================================================================
# PROMOTION SCHEMAS
# =============================================================================

class PromotionCreate(RequestModel):
    title_ka: str = Field(..., min_length=1, max_length=100)
    title_en: Optional[str] = Field(None, max_length=100)
    title_ru: Optional[str] = Field(None, max_length=100)
    description_ka: Optional[str] = Field(None, max_length=500)
    description_en: Optional[str] = Field(None, max_length=500)
    description_ru: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    valid_image_url = field_validator("image_url")(_check_http_url)

    @model_validator(mode="after")
    def check_window(self) -> "PromotionCreate":
        if as_utc(self.end_date) <= as_utc(self.start_date):
            raise ValueError("End date must be after start date")
        return self


class PromotionUpdate(RequestModel):
    title_ka: Optional[str] = Field(None, min_length=1, max_length=100)
    title_en: Optional[str] = Field(None, max_length=100)
    title_ru: Optional[str] = Field(None, max_length=100)
    description_ka: Optional[str] = Field(None, max_length=500)
    description_en: Optional[str] = Field(None, max_length=500)
    description_ru: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None

    valid_image_url = field_validator("image_url")(_check_http_url)


class PromotionResponse(CamelModel):
    id: str
    menu_id: str
    title_ka: str
    title_en: Optional[str] = None
    title_ru: Optional[str] = None
    description_ka: Optional[str] = None
    description_en: Optional[str] = None
    description_ru: Optional[str] = None
    image_url: Optional[str] = None
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_at: datetime
    updated_at: datetime


class MenuDetail(MenuResponse):
    """Owner view of a menu with its full category tree."""
    categories: list[CategoryDetail] = Field(default_factory=list)
    promotions: list[PromotionResponse] = Field(default_factory=list)


# =============================================================================
# PUBLIC MENU SCHEMAS
# =============================================================================

class PublicVariation(CamelModel):
    id: str
    name_ka: str
    name_en: Optional[str] = None
    name_ru: Optional[str] = None
    price: float


class PublicProduct(CamelModel):
    id: str
    name_ka: str
    name_en: Optional[str] = None
    name_ru: Optional[str] = None
    description_ka: Optional[str] = None
    description_en: Optional[str] = None
    description_ru: Optional[str] = None
    price: float
    currency: str
    image_url: Optional[str] = None
    allergens: list[Allergen] = Field(default_factory=list)
    variations: list[PublicVariation] = Field(default_factory=list)


class PublicCategory(CamelModel):
    id: str
    name_ka: str
    name_en: Optional[str] = None
    name_ru: Optional[str] = None
    description_ka: Optional[str] = None
    description_en: Optional[str] = None
    description_ru: Optional[str] = None
    products: list[PublicProduct] = Field(default_factory=list)


class PublicPromotion(CamelModel):
    id: str
    title_ka: str
    title_en: Optional[str] = None
    title_ru: Optional[str] = None
    description_ka: Optional[str] = None
    description_en: Optional[str] = None
    description_ru: Optional[str] = None
    image_url: Optional[str] = None
    start_date: datetime
    end_date: datetime


class PublicMenu(CamelModel):
    """Published menu as served to guests (and cached by slug)."""
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    accent_color: Optional[str] = None
    published_at: Optional[datetime] = None
    categories: list[PublicCategory] = Field(default_factory=list)
    promotions: list[PublicPromotion] = Field(default_factory=list)


# =============================================================================
# VIEWS & ANALYTICS SCHEMAS
# =============================================================================

class ViewTracked(CamelModel):
    tracked: bool = True
    view_id: str


class AnalyticsOverview(CamelModel):
    total_views: int
    views_today: int
    views_this_week: int
    views_this_month: int
    average_daily: float


class DailyViews(CamelModel):
    date: str
    views: int


class DeviceShare(CamelModel):
    device: str
    count: int
    percentage: float


class BrowserShare(CamelModel):
    browser: str
    count: int
    percentage: float


class AnalyticsPeriod(CamelModel):
    start: str
    end: str
    days: int


class AnalyticsReport(CamelModel):
    overview: AnalyticsOverview
    daily_views: list[DailyViews]
    device_breakdown: list[DeviceShare]
    browser_breakdown: list[BrowserShare]
    period: AnalyticsPeriod


# =============================================================================
# UPLOAD SCHEMAS
# =============================================================================

class UploadResponse(CamelModel):
    url: str
    public_id: str


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================

class DatabaseCheck(BaseModel):
    status: str
    latency: Optional[float] = Field(None, description="Round trip in milliseconds")
    error: Optional[str] = None


class MemoryCheck(BaseModel):
    status: str
    used: int = Field(..., description="Used memory in MB")
    total: int = Field(..., description="Total memory in MB")
    percentage: float


class HealthChecks(BaseModel):
    database: DatabaseCheck
    memory: MemoryCheck
    services: dict[str, str] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response (not wrapped in the envelope)."""
    status: str = Field(..., description="healthy, degraded or unhealthy")
    timestamp: datetime
    version: str
    uptime: int = Field(..., description="Seconds since process start")
    checks: HealthChecks
