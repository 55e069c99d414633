"""
Pydantic request/response schemas for the SkyTrack API.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field


# --- Track models ---

class TrackSummary(BaseModel):
    id: str
    registration: Optional[str] = None
    lng: float
    lat: float
    altitude: float
    heading: float
    first_seen_at: float
    last_seen_at: float
    update_count: int
    trail_length: int
    permitted: bool
    flight_time: str


class TrackDetail(TrackSummary):
    trail: List[Tuple[float, float]] = []


class SelectionRequest(BaseModel):
    track_id: Optional[str] = None


class SelectionResponse(BaseModel):
    track_id: Optional[str] = None


# --- Ingestion models ---

class DroneMessage(BaseModel):
    """Flat drone message: one observation per message."""
    id: Optional[str] = None
    registration: Optional[str] = None
    altitude: Optional[float] = None
    yaw: Optional[float] = None
    lng: float
    lat: float
    takeoffAt: Optional[float] = Field(None, description="Takeoff time (ms epoch)")


class PointGeometry(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: Tuple[float, float]


class FeatureProperties(BaseModel):
    serial: Optional[str] = None
    registration: Optional[str] = None
    altitude: Optional[float] = None
    yaw: Optional[float] = None
    pilot: Optional[str] = None
    organization: Optional[str] = None


class Feature(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: FeatureProperties = FeatureProperties()
    geometry: PointGeometry


class FeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[Feature] = []


class IngestResponse(BaseModel):
    accepted: int
    rejected: int
    track_ids: List[str]


class IngestionStatusResponse(BaseModel):
    accepted_count: int
    rejected_count: int
    track_count: int


# --- Monitoring models ---

class BroadcastStatus(BaseModel):
    is_running: bool
    interval_s: float
    tick: int


class MetricsResponse(BaseModel):
    tracks: int
    websocket_connections: int
    accepted_observations: int
    ignored_observations: int
    hint_bindings: int
    avg_ingest_latency_ms: float
    uptime_seconds: float
    uptime: str
