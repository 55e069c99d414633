"""
System metrics endpoint — live counters for the dashboard.
"""

from __future__ import annotations

import time

from fastapi import APIRouter

from skytrack.api.models import MetricsResponse
from skytrack.api.presentation import format_duration

router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics():
    """Get live system metrics."""
    from skytrack.api.main import app_state
    from skytrack.api.routes.websocket import get_manager

    engine = app_state["engine"]
    metrics = app_state.get("metrics", {})
    stats = engine.get_statistics()

    latency = stats["ingest_latency_s"]
    avg_latency_ms = latency.get("mean", 0.0) * 1000

    uptime_seconds = time.time() - metrics.get("start_time", time.time())

    return MetricsResponse(
        tracks=stats["total_tracks"],
        websocket_connections=get_manager().count,
        accepted_observations=stats["accepted_observations"],
        ignored_observations=stats["ignored_observations"],
        hint_bindings=stats["hint_bindings"],
        avg_ingest_latency_ms=round(avg_latency_ms, 4),
        uptime_seconds=round(uptime_seconds, 1),
        uptime=format_duration(uptime_seconds),
    )
