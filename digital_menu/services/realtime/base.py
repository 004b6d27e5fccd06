"""
Real-time Broadcaster Abstract Base Class

Publishes named events to per-menu channels so open admin tabs and
guest screens can refresh. No subscriber logic lives on the server.

Channels:
    - menu-{menuId}: every change to a menu and its children

Failure policy:
    Broadcasting is best-effort. ``trigger`` and friends log failures and
    return False; they never raise into a request.

Version: 1.0.0
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class MenuEvent(str, Enum):
    """Event names sent on menu channels."""
    MENU_UPDATED = "menu:updated"
    MENU_PUBLISHED = "menu:published"
    MENU_UNPUBLISHED = "menu:unpublished"
    MENU_DELETED = "menu:deleted"

    CATEGORY_CREATED = "category:created"
    CATEGORY_UPDATED = "category:updated"
    CATEGORY_DELETED = "category:deleted"
    CATEGORY_REORDERED = "category:reordered"

    PRODUCT_CREATED = "product:created"
    PRODUCT_UPDATED = "product:updated"
    PRODUCT_DELETED = "product:deleted"
    PRODUCT_REORDERED = "product:reordered"

    PROMOTION_CREATED = "promotion:created"
    PROMOTION_UPDATED = "promotion:updated"
    PROMOTION_DELETED = "promotion:deleted"


def menu_channel(menu_id: str) -> str:
    return f"menu-{menu_id}"


@dataclass
class BroadcastEvent:
    """A single channel/event/payload triple."""
    channel: str
    event: str
    data: Any = field(default_factory=dict)


class BaseBroadcaster(ABC):
    """
    Abstract base class for real-time broadcasters.

    Subclasses implement the raw ``_send``/``_send_batch`` calls; the
    public methods add logging and the never-raise guarantee.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., "mock", "pusher")."""
        pass

    @abstractmethod
    async def _send(self, event: BroadcastEvent) -> None:
        pass

    @abstractmethod
    async def _send_batch(self, events: list[BroadcastEvent]) -> None:
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def close(self) -> None:
        """Release HTTP connections."""
        return None

    async def trigger(self, channel: str, event: str, data: Any) -> bool:
        """Send one event. Returns False (and logs) on failure."""
        name = event.value if isinstance(event, MenuEvent) else event
        try:
            await self._send(BroadcastEvent(channel, name, data))
            logger.debug(f"Broadcast {name} on {channel}")
            return True
        except Exception as e:
            logger.error(f"Broadcast {name} on {channel} failed: {e}")
            return False

    async def trigger_menu_event(self, menu_id: str, event: MenuEvent, data: Any) -> bool:
        return await self.trigger(menu_channel(menu_id), event, data)

    async def trigger_batch(self, events: list[BroadcastEvent]) -> bool:
        """Send several events in one round trip. Returns False on failure."""
        if not events:
            return True
        try:
            await self._send_batch(events)
            return True
        except Exception as e:
            logger.error(f"Batch broadcast of {len(events)} events failed: {e}")
            return False
