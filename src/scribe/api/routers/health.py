"""Health check endpoints for Scribe.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks the database, reports page cache size)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from scribe.api.deps import PageCacheDep
from scribe.persistence.db import Database, get_database

router = APIRouter(tags=["health"])


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def check_database(database: Database) -> ComponentHealth:
    """Check database connectivity."""
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(database.health_check(), timeout=5.0)
        latency = (time.monotonic() - start) * 1000
        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
            latency_ms=latency,
            message=None if healthy else "Database check failed",
        )
    except asyncio.TimeoutError:
        latency = (time.monotonic() - start) * 1000
        return ComponentHealth(
            name="database",
            status=HealthStatus.UNHEALTHY,
            latency_ms=latency,
            message="Database check timed out",
        )


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe.

    Returns OK if the process is running.
    """
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(
    cache: PageCacheDep, db: Database = Depends(get_database)
) -> JSONResponse:
    """Readiness probe.

    Returns 200 when the database answers, 503 otherwise. The page cache
    size is reported for information only.
    """
    database = await check_database(db)
    healthy = database.status == HealthStatus.HEALTHY
    result = {
        "status": database.status.value,
        "components": [database.to_dict()],
        "page_cache": {
            "enabled": cache is not None,
            "entries": len(cache) if cache is not None else 0,
        },
    }
    return JSONResponse(content=result, status_code=200 if healthy else 503)
