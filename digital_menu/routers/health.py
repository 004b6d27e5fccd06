"""
Health check endpoint (not wrapped in the response envelope).

Status:
    - unhealthy (503): the database check failed
    - degraded (200): memory above the warning threshold or an external
      service reports unhealthy
    - healthy (200): everything else
"""

import logging
import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.core.config import get_settings
from digital_menu.database import get_db
from digital_menu.schemas import DatabaseCheck, HealthChecks, HealthResponse, MemoryCheck
from digital_menu.services import ServiceContainer, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["Health"])

STARTED_AT = time.monotonic()
MB = 1024 * 1024


def memory_snapshot() -> tuple[int, int, float]:
    """Used MB, total MB and percent used of system memory."""
    memory = psutil.virtual_memory()
    return memory.used // MB, memory.total // MB, float(memory.percent)


async def check_database(db: AsyncSession) -> DatabaseCheck:
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return DatabaseCheck(status="unhealthy", error=str(e))
    return DatabaseCheck(
        status="healthy",
        latency=round((time.perf_counter() - started) * 1000, 2),
    )


def check_memory() -> MemoryCheck:
    settings = get_settings()
    used, total, percent = memory_snapshot()
    if percent > settings.memory_critical_percent:
        status = "critical"
    elif percent > settings.memory_warning_percent:
        status = "warning"
    else:
        status = "healthy"
    return MemoryCheck(status=status, used=used, total=total, percentage=round(percent, 1))


@router.get("", response_model=HealthResponse, summary="System Health Check")
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> HealthResponse:
    """Verify the database, process memory and external services."""
    database = await check_database(db)
    memory = check_memory()
    service_report = await services.health()

    if database.status != "healthy":
        overall = "unhealthy"
        response.status_code = 503
    elif memory.status != "healthy" or any(
        not state.endswith(": healthy") for state in service_report.values()
    ):
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        timestamp=datetime.now(timezone.utc),
        version=get_settings().app_version,
        uptime=int(time.monotonic() - STARTED_AT),
        checks=HealthChecks(database=database, memory=memory, services=service_report),
    )
