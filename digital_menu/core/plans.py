"""
Subscription Plan Policy

Static tables mapping a subscription tier to resource limits and feature
flags, plus pure lookup functions consulted before create operations.

Tiers are ordered FREE < STARTER < PRO with non-decreasing limits.
A limit of ``None`` means unbounded.

Usage:
    from digital_menu.core.plans import can_create, has_feature

    if not can_create(user.plan, "menu", menu_count):
        raise ApiError(...)
"""

from typing import Literal, Optional

from digital_menu.models import Plan

Resource = Literal["menu", "category", "product"]
Feature = Literal[
    "basicQR",
    "promotions",
    "customBranding",
    "customColors",
    "multilingual",
    "allergens",
    "analytics",
    "qrWithLogo",
]

UNLIMITED = None


# =============================================================================
# LIMITS
# =============================================================================

# Categories and products are counted per menu.
PLAN_LIMITS: dict[Plan, dict[Resource, Optional[int]]] = {
    Plan.FREE: {"menu": 1, "category": 3, "product": 15},
    Plan.STARTER: {"menu": 3, "category": UNLIMITED, "product": UNLIMITED},
    Plan.PRO: {"menu": UNLIMITED, "category": UNLIMITED, "product": UNLIMITED},
}


# =============================================================================
# FEATURES
# =============================================================================

PLAN_FEATURES: dict[Plan, dict[Feature, bool]] = {
    Plan.FREE: {
        "basicQR": True,
        "promotions": False,
        "customBranding": False,
        "customColors": False,
        "multilingual": False,
        "allergens": False,
        "analytics": False,
        "qrWithLogo": False,
    },
    Plan.STARTER: {
        "basicQR": True,
        "promotions": True,
        "customBranding": True,
        "customColors": True,
        "multilingual": False,
        "allergens": False,
        "analytics": False,
        "qrWithLogo": False,
    },
    Plan.PRO: {
        "basicQR": True,
        "promotions": True,
        "customBranding": True,
        "customColors": True,
        "multilingual": True,
        "allergens": True,
        "analytics": True,
        "qrWithLogo": True,
    },
}


# =============================================================================
# POLICY FUNCTIONS
# =============================================================================

def get_limit(plan: Plan, resource: Resource) -> Optional[int]:
    """Return the tier limit for a resource, or None when unbounded."""
    return PLAN_LIMITS[Plan(plan)][resource]


def can_create(plan: Plan, resource: Resource, current_count: int) -> bool:
    """Check whether one more resource fits within the tier limit."""
    limit = get_limit(plan, resource)
    return limit is UNLIMITED or current_count < limit


def get_remaining(plan: Plan, resource: Resource, current_count: int) -> Optional[int]:
    """Remaining quota for a resource (never negative), None when unbounded."""
    limit = get_limit(plan, resource)
    if limit is UNLIMITED:
        return None
    return max(0, limit - current_count)


def has_feature(plan: Plan, feature: Feature) -> bool:
    return PLAN_FEATURES[Plan(plan)][feature]


def can_create_menu(plan: Plan, current_count: int) -> bool:
    return can_create(plan, "menu", current_count)


def can_create_category(plan: Plan, current_count: int) -> bool:
    return can_create(plan, "category", current_count)


def can_create_product(plan: Plan, current_count: int) -> bool:
    return can_create(plan, "product", current_count)


__all__ = [
    "PLAN_LIMITS",
    "PLAN_FEATURES",
    "UNLIMITED",
    "Resource",
    "Feature",
    "get_limit",
    "can_create",
    "get_remaining",
    "has_feature",
    "can_create_menu",
    "can_create_category",
    "can_create_product",
]
