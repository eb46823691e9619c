"""Health Routes — liveness and readiness of the SmartLoan API.

Invariants:
    - GET /health/ always returns 200 while the process serves requests (liveness)
    - GET /health/ready returns 503 when the memo database is unreachable (readiness)

Design Decisions:
    - Validation, offers and adjustment need no database, so only readiness checks it:
      memo acceptance and history are what a lost database breaks
    - db_manager read through the module at call time: it is assigned during startup
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from smartloan.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness. Returns 200 while the process is up."""
    return {
        "status": "healthy",
        "service": "smartloan-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness: the memo database answers SELECT 1."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
