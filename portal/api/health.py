"""Liveness and readiness probes.

  /health  alive? Always 200; ``status`` says "ok" or "degraded".
  /ready   can this instance take traffic?  503 when a configured database
           is unreachable.  Redis is optional (cache misses and dropped
           notifications are tolerated), so it never fails readiness.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from portal.db import engine, redis

router = APIRouter(tags=["health"])


async def _checks() -> dict[str, str]:
    checks: dict[str, str] = {}
    if engine.engine is None:
        checks["database"] = "not_configured"
    else:
        checks["database"] = "ok" if await engine.check_database() else "down"

    if redis.redis_pool is None:
        checks["redis"] = "not_configured"
    else:
        checks["redis"] = "ok" if await redis.check_redis() else "degraded"
    return checks


@router.get("/health")
async def health() -> dict:
    checks = await _checks()
    healthy = all(v in ("ok", "not_configured") for v in checks.values())
    return {"status": "ok" if healthy else "degraded", "checks": checks}


@router.get("/ready")
async def ready() -> JSONResponse:
    checks = await _checks()
    ready_ = checks["database"] != "down"
    return JSONResponse(
        status_code=200 if ready_ else 503,
        content={"ready": ready_, "checks": checks},
    )
