"""
Ingestion endpoints — POST drone observations, check ingestion status.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from skytrack.api.models import (
    DroneMessage,
    FeatureCollection,
    IngestionStatusResponse,
    IngestResponse,
)

router = APIRouter(prefix="/api/ingest", tags=["ingestion"])
logger = logging.getLogger(__name__)


def _get_ingestion_service():
    from skytrack.api.main import app_state
    return app_state["ingestion_service"]


@router.post("/observation", response_model=IngestResponse)
async def ingest_observation(message: DroneMessage):
    """Ingest one flat drone message."""
    service = _get_ingestion_service()
    track = service.ingest_drone(message)
    if track is None:
        raise HTTPException(status_code=400, detail=f"Invalid position ({message.lng}, {message.lat})")
    return IngestResponse(accepted=1, rejected=0, track_ids=[track.track_id])


@router.post("/features", response_model=IngestResponse)
async def ingest_features(collection: FeatureCollection):
    """Ingest every Point feature of a GeoJSON FeatureCollection, in order."""
    service = _get_ingestion_service()
    tracks = service.ingest_features(collection)
    return IngestResponse(
        accepted=len(tracks),
        rejected=len(collection.features) - len(tracks),
        track_ids=[t.track_id for t in tracks],
    )


@router.get("/status", response_model=IngestionStatusResponse)
async def ingestion_status():
    """Return accepted/rejected counters and the current track count."""
    service = _get_ingestion_service()
    return IngestionStatusResponse(**service.get_status())
