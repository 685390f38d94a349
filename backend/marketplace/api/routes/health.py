"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if the ledger store is unreachable (readiness)
    - GET /healthz kept for existing load-balancer checks
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from marketplace.api.dependencies import ServiceContainer, get_container
from marketplace.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz():
    return {"ok": True}


@router.get("/api/v1/health/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "p2p-marketplace",
        "version": "1.0.0",
    }


@router.get("/api/v1/health/ready")
async def readiness_check(container: ServiceContainer = Depends(get_container)):
    """Readiness probe — includes ledger store connectivity."""
    try:
        await container.ledger.read()
    except StoreUnavailableError as e:
        logger.error(
            f"Readiness check failed: {e.message}",
            extra={"error_code": e.code, "path": "/api/v1/health/ready"},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "store_unavailable",
            },
        )
    return {"status": "ready", "checks": {"store": "healthy"}}
