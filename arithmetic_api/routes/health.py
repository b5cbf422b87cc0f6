"""Health check endpoints for monitoring and readiness probes.

Provides endpoints to verify the API is running and MongoDB is accessible.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException

from arithmetic_api.services import database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Basic liveness check.

    Returns:
        Dictionary with status and timestamp.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().astimezone().isoformat(),
    }


@router.get("/health/ready")
def readiness_check() -> dict:
    """Readiness check verifying database accessibility.

    Returns:
        Dictionary with status and individual check results.

    Raises:
        HTTPException: If the database check fails.
    """
    checks = {}

    # Check MongoDB connection
    try:
        db = database.get_database()
        # Simple ping to verify connection
        db.command("ping")
        checks["database"] = "ok"
    except Exception as e:
        logger.error("Database readiness check failed: %s", e)
        checks["database"] = "error"

    if any(check != "ok" for check in checks.values()):
        raise HTTPException(
            status_code=503,
            detail={"status": "not ready", "checks": checks},
        )

    return {
        "status": "ready",
        "checks": checks,
    }
