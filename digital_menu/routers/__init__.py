"""
API routers, in registration order.

The public slug route is registered before the ``/api/menus/{menu_id}``
routes so ``/api/menus/public/...`` never resolves as a menu id.
"""

from digital_menu.routers import (
    analytics,
    auth,
    categories,
    health,
    menus,
    plan,
    products,
    promotions,
    public,
    qr,
    upload,
    variations,
    views,
)

ROUTERS = [
    health.router,
    auth.router,
    plan.router,
    public.router,
    menus.router,
    categories.router,
    products.router,
    variations.router,
    promotions.router,
    views.router,
    analytics.router,
    qr.router,
    upload.router,
]

__all__ = ["ROUTERS"]
