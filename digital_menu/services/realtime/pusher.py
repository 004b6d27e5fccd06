"""
Pusher Broadcaster Implementation

Production implementation using the official Pusher Channels Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - PUSHER_APP_ID, PUSHER_KEY, PUSHER_SECRET (and PUSHER_CLUSTER)

The SDK is synchronous, so every call is pushed to a worker thread.

Version: 1.0.0
"""

import asyncio
import logging

import pusher

from digital_menu.core.config import Settings
from digital_menu.services.realtime.base import BaseBroadcaster, BroadcastEvent

logger = logging.getLogger(__name__)


class PusherBroadcaster(BaseBroadcaster):
    """
    Pusher Channels broadcaster.

    Batches are split into chunks of ``BATCH_LIMIT`` events, the most
    Pusher accepts per ``trigger_batch`` request.
    """

    BATCH_LIMIT = 10

    def __init__(self, settings: Settings, timeout: int = 5):
        """
        Raises:
            ValueError: If Pusher credentials are not configured
        """
        if not settings.pusher_configured:
            raise ValueError(
                "PUSHER_APP_ID, PUSHER_KEY and PUSHER_SECRET are required for production mode. "
                "Set them in your .env file or environment variables."
            )

        self._client = pusher.Pusher(
            app_id=settings.pusher_app_id,
            key=settings.pusher_key,
            secret=settings.pusher_secret,
            cluster=settings.pusher_cluster,
            ssl=True,
            timeout=timeout,
        )
        logger.info(f"PusherBroadcaster initialized (cluster={settings.pusher_cluster})")

    @property
    def provider_name(self) -> str:
        return "pusher"

    async def _send(self, event: BroadcastEvent) -> None:
        await asyncio.to_thread(self._client.trigger, event.channel, event.event, event.data)

    async def _send_batch(self, events: list[BroadcastEvent]) -> None:
        for start in range(0, len(events), self.BATCH_LIMIT):
            batch = [
                {"channel": e.channel, "name": e.event, "data": e.data}
                for e in events[start:start + self.BATCH_LIMIT]
            ]
            await asyncio.to_thread(self._client.trigger_batch, batch)

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(self._client.channels_info)
            return True
        except Exception as e:
            logger.error(f"Pusher health check failed: {e}")
            return False
