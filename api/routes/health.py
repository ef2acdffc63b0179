"""Health check API endpoint."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict

from fastapi import APIRouter

from core.health import HealthChecker

router = APIRouter(prefix="/system/health", tags=["health"])

# Track API start time
_api_start_time = time.time()


def overall_status(statuses: list[str]) -> str:
    """Worst status wins."""
    if "error" in statuses:
        return "error"
    if "degraded" in statuses:
        return "degraded"
    return "ok"


@router.get("")
async def health_check() -> Dict[str, Any]:
    """Get system health status.

    Returns health status for:
    - Database connectivity and latency
    - Extension catalog (all bundled extensions installed)
    - Preload libraries active in the running server
    - API uptime
    """
    checker = HealthChecker()

    # Run blocking DB checks in thread pool to avoid blocking event loop
    checks = await asyncio.to_thread(checker.check_all)

    uptime_seconds = int(time.time() - _api_start_time)

    result: Dict[str, Any] = {
        "api": {
            "status": "ok",
            "uptime_seconds": uptime_seconds,
            "message": "API running",
        }
    }

    for component, status in checks.items():
        result[component] = {
            "status": status.status,
            "message": status.message,
        }
        if status.latency_ms is not None:
            result[component]["latency_ms"] = status.latency_ms
        if status.details:
            result[component]["details"] = status.details

    all_statuses = [result["api"]["status"]] + [v.status for v in checks.values()]
    result["overall"] = {"status": overall_status(all_statuses)}

    return result
