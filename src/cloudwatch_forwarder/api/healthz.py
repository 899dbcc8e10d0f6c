"""
Health check endpoints.

- /healthz: Liveness probe (always 200 if service alive)
- /readyz: Readiness probe (200 only if a destination is configured)
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response, status

router = APIRouter()


@router.get(
    "/healthz",
    status_code=200,
    summary="Liveness probe",
)
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness probe - always returns 200 if service is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "cloudwatch-forwarder",
        "version": "0.1.0",
    }


@router.get(
    "/readyz",
    summary="Readiness probe",
    description="""
    Returns 503 Service Unavailable until a source token and an
    ingestion URL are configured.
    """,
)
async def readiness_check(request: Request, response: Response) -> Dict[str, Any]:
    settings = request.app.state.settings
    checks = {
        "source_token": bool(settings.destination.source_token),
        "ingestion_url": bool(settings.destination.ingestion_url),
    }

    if all(checks.values()):
        response.status_code = status.HTTP_200_OK
        return {
            "status": "ready",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": checks,
        }

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "not_ready",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
        "failed_checks": [name for name, ok in checks.items() if not ok],
    }
