"""
Shared router helpers: post-commit side effects and pagination.

Side effects after a successful write:
    - cache invalidation is awaited inline (the cache logs and swallows errors)
    - broadcasts and cache population run as background tasks after the
      response is sent, so an outage never fails the request
"""

import logging
from typing import Any, Optional

from fastapi import BackgroundTasks
from pydantic import BaseModel

from digital_menu.models import Menu
from digital_menu.services import ServiceContainer
from digital_menu.services.realtime import MenuEvent

logger = logging.getLogger(__name__)


def to_payload(value: Any) -> Any:
    """Wire form of a schema (or list of schemas) for broadcasting."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [to_payload(item) for item in value]
    return value


async def invalidate_menu_cache(services: ServiceContainer, menu: Menu, slug: Optional[str] = None) -> None:
    await services.cache.invalidate_menu(menu.id, slug or menu.slug)


def broadcast(
    background_tasks: BackgroundTasks,
    services: ServiceContainer,
    menu_id: str,
    event: MenuEvent,
    data: Any,
) -> None:
    """Queue a menu channel event to be sent after the response."""
    background_tasks.add_task(
        services.broadcaster.trigger_menu_event,
        menu_id,
        event,
        to_payload(data),
    )


def apply_updates(instance: Any, payload: BaseModel, required: tuple[str, ...] = ()) -> dict[str, Any]:
    """
    Copy the fields the client sent onto ``instance``.

    Explicit nulls for ``required`` columns are ignored. Returns the
    applied changes.
    """
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if not (value is None and field in required)
    }
    for field, value in changes.items():
        setattr(instance, field, value)
    return changes


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
