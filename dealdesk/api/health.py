"""
Health check endpoints for monitoring and container orchestration.
"""
from datetime import datetime, UTC

from fastapi import APIRouter

from dealdesk.api.errors import error_response
from dealdesk.core.config import settings
from dealdesk.core.deps import DealRepo
from dealdesk.core.errors import DealError, ErrorKind

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness with a server timestamp."""
    return {"status": "OK", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/health/live")
async def liveness_check():
    """
    Liveness check - simple check that app is running.
    Used by Kubernetes for pod liveness.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(repo: DealRepo):
    """
    Readiness check - verifies the store answers.
    Used by Kubernetes for pod readiness.
    """
    try:
        await repo.ping()
    except DealError:
        return error_response(ErrorKind.UNAVAILABLE, "Database unavailable")
    return {
        "status": "ready",
        "database": "connected",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }
