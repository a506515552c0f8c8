"""
Health Endpoints.

    GET /health         liveness: the process answers
    GET /health/ready   readiness: the database answers within timeouts.database

Load balancers should route webhook traffic only to ready instances; a
webhook that cannot reach the database would acknowledge updates it never
recorded.
"""

import asyncio
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from botbuilder.backend.core.config import get_app_config
from botbuilder.backend.core.dependencies import DbSession
from botbuilder.backend.core.logging import get_logger
from botbuilder.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database(db: DbSession) -> dict[str, Any]:
    """Run SELECT 1; report latency, or the error when it fails or times out."""
    started = utc_now()
    try:
        async with asyncio.timeout(get_app_config().application.timeouts.database):
            await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "latency_ms": int((utc_now() - started).total_seconds() * 1000),
    }


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness check. No dependencies are touched."""
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(db: DbSession) -> dict[str, Any]:
    """Readiness check: 200 when every dependency is healthy, 503 otherwise."""
    checks = {"database": await check_database(db)}
    body = {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }

    failing = [name for name, check in checks.items() if check["status"] != "healthy"]
    if failing:
        logger.warning("Readiness check failed", extra={"unhealthy": failing})
        raise HTTPException(status_code=503, detail={**body, "status": "unhealthy"})

    return body
