"""
Broadcast control endpoints — pause/resume/interval for snapshot pushes.
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from skytrack.api.models import BroadcastStatus

router = APIRouter(prefix="/api/broadcast", tags=["broadcast"])


def _get_clock():
    from skytrack.api.main import app_state
    return app_state["clock"]


@router.get("/status", response_model=BroadcastStatus)
async def broadcast_status():
    """Get current broadcast clock status."""
    clock = _get_clock()
    return BroadcastStatus(
        is_running=clock.is_running,
        interval_s=clock.interval_s,
        tick=clock.tick,
    )


@router.post("/pause")
async def pause():
    """Pause snapshot broadcasts."""
    _get_clock().pause()
    return {"status": "paused"}


@router.post("/resume")
async def resume():
    """Resume snapshot broadcasts."""
    _get_clock().resume()
    return {"status": "running"}


@router.post("/interval")
async def set_interval(interval_s: float = Query(..., gt=0, le=60)):
    """Set seconds between broadcasts."""
    clock = _get_clock()
    clock.set_interval(interval_s)
    return {"interval_s": clock.interval_s}
