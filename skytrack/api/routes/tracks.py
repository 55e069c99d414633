"""
Track endpoints — list tracks, get details, read and set the selection.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from skytrack.api.models import SelectionRequest, SelectionResponse, TrackDetail, TrackSummary
from skytrack.api.presentation import can_fly, format_flight_time
from skytrack.tracking import Track

router = APIRouter(prefix="/api", tags=["tracks"])


def _get_engine():
    """Get the TrackingEngine from app state (injected at startup)."""
    from skytrack.api.main import app_state
    return app_state["engine"]


def to_summary(track: Track, now: float) -> TrackSummary:
    lng, lat = track.position
    return TrackSummary(
        id=track.track_id,
        registration=track.identifier_hint,
        lng=lng,
        lat=lat,
        altitude=track.altitude,
        heading=track.heading,
        first_seen_at=track.first_seen_at,
        last_seen_at=track.last_seen_at,
        update_count=track.update_count,
        trail_length=len(track.trail),
        permitted=can_fly(track.identifier_hint),
        flight_time=format_flight_time(track.first_seen_at, now),
    )


@router.get("/tracks", response_model=list[TrackSummary])
async def list_tracks(
    permitted: bool | None = Query(None, description="Filter by permitted/restricted registration"),
    limit: int = Query(1000, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """List all tracks, ordered by id."""
    engine = _get_engine()
    now = engine.clock()
    summaries = [to_summary(t, now) for t in engine.get_all_tracks()]

    if permitted is not None:
        summaries = [s for s in summaries if s.permitted == permitted]

    return summaries[offset:offset + limit]


@router.get("/tracks/{track_id}", response_model=TrackDetail)
async def get_track(track_id: str):
    """Get a single track, including its trail."""
    engine = _get_engine()
    track = engine.get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail=f"Track {track_id} not found")

    summary = to_summary(track, engine.clock())
    return TrackDetail(**summary.model_dump(), trail=list(track.trail))


@router.get("/selection", response_model=SelectionResponse)
async def get_selection():
    """Get the selected track id."""
    return SelectionResponse(track_id=_get_engine().get_selection())


@router.put("/selection", response_model=SelectionResponse)
async def set_selection(request: SelectionRequest):
    """Select a track. Unknown ids clear the selection."""
    return SelectionResponse(track_id=_get_engine().set_selection(request.track_id))


@router.post("/reset")
async def reset_tracks():
    """Drop all tracks, the selection and hint bindings."""
    _get_engine().reset()
    return {"status": "reset"}
