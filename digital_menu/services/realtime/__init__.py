"""
Real-time Broadcaster Factory

Environment Switching:
    - ENV_MODE=development → MockBroadcaster (records events in memory)
    - ENV_MODE=staging/production → PusherBroadcaster

Version: 1.0.0
"""

import logging

from digital_menu.core.config import Settings
from digital_menu.services.realtime.base import (
    BaseBroadcaster,
    BroadcastEvent,
    MenuEvent,
    menu_channel,
)
from digital_menu.services.realtime.mock import MockBroadcaster
from digital_menu.services.realtime.pusher import PusherBroadcaster

logger = logging.getLogger(__name__)


def create_broadcaster(settings: Settings) -> BaseBroadcaster:
    """
    Build the configured broadcaster.

    Raises:
        ValueError: If real services are requested but Pusher is not configured
    """
    if not settings.use_real_services:
        logger.info("Broadcaster: Using MockBroadcaster (development mode)")
        return MockBroadcaster()

    logger.info(f"Broadcaster: Using PusherBroadcaster ({settings.env_mode.value} mode)")
    return PusherBroadcaster(settings)


__all__ = [
    "create_broadcaster",
    "BaseBroadcaster",
    "BroadcastEvent",
    "MenuEvent",
    "menu_channel",
    "MockBroadcaster",
    "PusherBroadcaster",
]
