"""
FastAPI Application Entry Point

Digital Menu - multi-tenant QR menu platform.
Supports both Mock services (development) and Real APIs (production).

Endpoints:
    - /api/auth/*: Registration, login, current user
    - /api/plan: Plan limits and feature flags
    - /api/menus/*: Owner CRUD for menus, categories, products,
      variations and promotions, publishing, analytics
    - POST /api/menus/{id}/views: Public view tracking
    - GET /api/menus/public/{slug}: Published menu (cached)
    - GET /api/qr/{menuId}: QR code for a menu
    - POST /api/upload: Image upload
    - GET /api/health: System health check

Version: 1.0.0
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from digital_menu.core.config import get_settings, setup_logging
from digital_menu.database import engine, init_db
from digital_menu.errors import register_exception_handlers
from digital_menu.routers import ROUTERS
from digital_menu.services import build_services

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    services = build_services(settings)
    app.state.services = services
    logger.info(f"✅ Cache: {services.cache.provider_name}")
    logger.info(f"✅ Broadcaster: {services.broadcaster.provider_name}")
    logger.info(f"✅ Image Host: {services.images.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await services.close()
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Multi-tenant digital menu platform. Restaurant owners manage "
        "multilingual menus; guests read published menus by slug or QR code."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app, debug=settings.debug)

for router in ROUTERS:
    app.include_router(router)


# =============================================================================
# ROOT
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/api/health",
    }

