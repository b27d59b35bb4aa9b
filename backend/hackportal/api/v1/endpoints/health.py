"""
Health Check Endpoints

- /health       - liveness plus store backend and connected observers
- /health/ready - readiness: the store answers a snapshot read
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import time

from hackportal.api.deps import get_portal
from hackportal.core.exceptions import PortalError
from hackportal.core.logging_config import logger
from hackportal.services.container import PortalServices
from hackportal.store.base import bounded
from hackportal.store.records import utc_now_iso


router = APIRouter(prefix="/health", tags=["Health Checks"])


@router.get("")
async def health_check(portal: PortalServices = Depends(get_portal)):
    """Simple health check endpoint"""
    return {
        "status": "OK",
        "timestamp": utc_now_iso(),
        "uptime": round(portal.uptime, 3),
        "store": portal.store.backend_name,
        "observers": portal.broadcaster.observer_count,
    }


@router.get("/ready")
async def readiness_check(portal: PortalServices = Depends(get_portal)):
    """Verify the store is reachable before accepting traffic"""
    start = time.time()
    try:
        statements, registrations = await bounded(
            portal.store.snapshot(), "health_snapshot", portal.config.STORE_TIMEOUT_SECONDS
        )
    except PortalError as e:
        logger.error(f"[HealthCheck] Store check failed: {e.message}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "store": portal.store.backend_name, "error": e.message}
        )

    return {
        "status": "healthy",
        "store": portal.store.backend_name,
        "latency_ms": round((time.time() - start) * 1000, 2),
        "problemStatements": len(statements),
        "registrations": len(registrations),
    }
