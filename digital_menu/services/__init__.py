"""
                        Services Module

Contains the external integrations with the hybrid architecture pattern.
Each service has a Mock (development) and a Real (production)
implementation, selected by ENV_MODE.

Services:
    - cache: Redis cache-aside store for published menus
    - realtime: Pusher broadcaster for menu change events
    - images: Cloudinary image host for uploads
    - qr: QR code rendering (local library, no mock needed)
    - analytics: view classification and aggregation helpers

The lifespan builds one ``ServiceContainer`` per process and stores it on
``app.state.services``; handlers receive it via ``Depends(get_services)``.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from digital_menu.core.config import Settings
from digital_menu.services.cache import BaseCacheService, create_cache_service
from digital_menu.services.images import BaseImageService, create_image_service
from digital_menu.services.realtime import BaseBroadcaster, create_broadcaster

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Process-wide handles to the external services."""
    cache: BaseCacheService
    broadcaster: BaseBroadcaster
    images: BaseImageService

    async def health(self) -> dict[str, str]:
        """Provider name and health of each service, for the health report."""
        report = {}
        for label, service in (
            ("cache", self.cache),
            ("realtime", self.broadcaster),
            ("images", self.images),
        ):
            healthy = await service.health_check()
            report[label] = f"{service.provider_name}: {'healthy' if healthy else 'unhealthy'}"
        return report

    async def close(self) -> None:
        await self.cache.close()
        await self.broadcaster.close()
        await self.images.close()


def build_services(settings: Settings) -> ServiceContainer:
    """Construct every service for the configured environment."""
    return ServiceContainer(
        cache=create_cache_service(settings),
        broadcaster=create_broadcaster(settings),
        images=create_image_service(settings),
    )


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the services built at startup."""
    return request.app.state.services


__all__ = ["ServiceContainer", "build_services", "get_services"]
