"""
Mock Broadcaster Implementation

Records every event in memory instead of calling Pusher. Used in
development mode (ENV_MODE=development) and by the test suite to
assert what was broadcast.

Behavior:
    - Simulates a short network round trip
    - ``failure_rate`` simulates a pub/sub outage (events are not recorded)

Version: 1.0.0
"""

import asyncio
import logging
import random

from digital_menu.services.realtime.base import BaseBroadcaster, BroadcastEvent

logger = logging.getLogger(__name__)


class MockBroadcaster(BaseBroadcaster):
    """
    In-memory broadcaster.

    Attributes:
        failure_rate: Probability of a simulated delivery failure (0.0-1.0)
        latency: Simulated round trip in seconds
        sent: Events delivered so far, oldest first

    Example:
        >>> broadcaster = MockBroadcaster()
        >>> await broadcaster.trigger_menu_event("abc", MenuEvent.MENU_UPDATED, {})
        >>> broadcaster.sent[-1].channel
        'menu-abc'
    """

    def __init__(self, failure_rate: float = 0.0, latency: float = 0.0):
        self.failure_rate = failure_rate
        self.latency = latency
        self.sent: list[BroadcastEvent] = []
        logger.info(f"MockBroadcaster initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_round_trip(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.failure_rate and random.random() < self.failure_rate:
            raise ConnectionError("Simulated Pusher outage")

    async def _send(self, event: BroadcastEvent) -> None:
        await self._simulate_round_trip()
        self.sent.append(event)

    async def _send_batch(self, events: list[BroadcastEvent]) -> None:
        await self._simulate_round_trip()
        self.sent.extend(events)

    def events_named(self, name: str) -> list[BroadcastEvent]:
        return [e for e in self.sent if e.event == name]

    async def health_check(self) -> bool:
        return self.failure_rate < 1.0
