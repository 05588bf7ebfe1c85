"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Response
from pydantic import BaseModel

from seller_economics.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


def check_data_lake() -> Dict[str, Any]:
    """Fact directory presence and file count"""
    settings = get_settings()
    facts_path = Path(settings.data_lake.facts_path)
    if not facts_path.is_dir():
        return {"status": "unhealthy", "path": str(facts_path), "error": "facts path not found"}

    files = list(facts_path.glob(f"*.{settings.data_lake.file_format}"))
    return {
        "status": "healthy" if files else "degraded",
        "path": str(facts_path),
        "files": len(files),
    }


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Application status
    - Data lake fact files
    """
    settings = get_settings()
    checks = {
        "engine": {
            "status": "healthy",
            "worker_count": settings.engine.worker_count,
            "max_lookback_years": settings.engine.max_lookback_years,
        },
        "data_lake": check_data_lake(),
    }
    overall_status = "healthy"
    if checks["data_lake"]["status"] != "healthy":
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.utcnow(),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """
    Kubernetes readiness probe endpoint.

    Returns 503 until the fact directory exists.
    """
    data_lake = check_data_lake()
    if data_lake["status"] == "unhealthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "data_lake_unavailable"}
    return {"status": "ready"}
