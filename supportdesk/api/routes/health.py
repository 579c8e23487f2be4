"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter

from supportdesk.api.dependencies import KVStoreDep, SettingsDep, StorageDep
from supportdesk.core.timeutils import utcnow

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
@router.get("/")
async def health_check(settings: SettingsDep) -> dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "environment": settings.app_env,
    }


@router.get("/ready")
async def readiness_check(
    storage: StorageDep,
    kv_store: KVStoreDep,
) -> dict[str, Any]:
    """Readiness check - verifies the database and the token store respond."""
    checks = {
        "storage": await storage.health_check(),
        "kv_store": await kv_store.health_check(),
    }

    all_healthy = all(checks.values())

    return {
        "status": "ready" if all_healthy else "degraded",
        "timestamp": utcnow().isoformat(),
        "checks": checks,
    }


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check - basic endpoint for kubernetes probes."""
    return {"status": "alive"}
