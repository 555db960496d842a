"""
Health check and metrics endpoints.

- /health - Liveness, handle cache and compute pool load
- /metrics - Prometheus exposition
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional

import psutil
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from eegspec import __version__
from eegspec.common.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_start_time = time.time()


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    uptime_seconds: float
    version: str = __version__
    details: Optional[Dict[str, Any]] = None


def get_memory_health() -> Dict[str, Any]:
    """Process and system memory usage."""
    mem = psutil.virtual_memory()
    rss_mb = psutil.Process().memory_info().rss / (1024 ** 2)
    status = "healthy" if mem.percent < 85 else "degraded" if mem.percent < 95 else "critical"
    return {
        "status": status,
        "process_rss_mb": round(rss_mb, 1),
        "available_mb": round(mem.available / (1024 ** 2), 1),
        "used_percent": round(mem.percent, 1),
    }


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request):
    """Liveness probe with cache and pool load."""
    cache = request.app.state.pipeline.cache
    pool = request.app.state.compute_pool
    memory = get_memory_health()

    return HealthStatus(
        status="healthy" if memory["status"] != "critical" else "degraded",
        timestamp=datetime.utcnow().isoformat(),
        uptime_seconds=round(time.time() - _start_time, 2),
        details={
            "handle_cache": cache.stats(),
            "compute_pool": pool.stats(),
            "memory": memory,
        },
    )


@router.get("/metrics", response_class=Response)
async def metrics():
    """Prometheus-compatible metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
