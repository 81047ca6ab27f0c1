import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette import status
from structlog import get_logger

from inkwell.adapters.api.v1.dependencies import Resources
from inkwell.core.resources import HealthCheck

logger = get_logger(__name__)
router = APIRouter()

CHECK_TIMEOUT_SECONDS = 5.0


class ServiceHealth(BaseModel):
    status: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    redis: ServiceHealth
    database: ServiceHealth
    storage: ServiceHealth
    queue: ServiceHealth
    smtp: ServiceHealth
    environment: str
    timestamp: datetime
    pool: Optional[Dict[str, Any]] = None


async def probe(name: str, check: HealthCheck) -> ServiceHealth:
    """Run one dependency check; any failure is reported, never raised."""
    try:
        await asyncio.wait_for(check(), timeout=CHECK_TIMEOUT_SECONDS)
    except Exception as e:
        error = str(e) or type(e).__name__
        logger.error("health_check_failed", service=name, error=error)
        return ServiceHealth(status="error", error=error)
    return ServiceHealth(status="connected")


def overall_status(services: Dict[str, ServiceHealth]) -> str:
    connected = sum(1 for s in services.values() if s.status == "connected")
    if connected == len(services):
        return "ok"
    return "degraded" if connected else "error"


@router.get("", response_model=HealthResponse)
async def health_check(resources: Resources):
    """
    Checks Redis, PostgreSQL, object storage, the email broker and SMTP concurrently.

    Responds 200 when everything is connected and 503 otherwise. The body is
    returned as-is, outside the response envelope, so probes can read it directly.
    """
    checks = resources.health_checks()
    results = await asyncio.gather(*(probe(name, check) for name, check in checks.items()))
    services = dict(zip(checks, results))

    try:
        pool = resources.pool_stats()
    except Exception as e:
        logger.warning("pool_stats_unavailable", error=str(e))
        pool = None

    body = HealthResponse(
        status=overall_status(services),
        environment=resources.settings.APP_ENV,
        timestamp=datetime.now(timezone.utc),
        pool=pool,
        **services,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if body.status == "ok" else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(mode="json"),
    )
