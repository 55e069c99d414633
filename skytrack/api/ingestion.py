"""
IngestionService — Decodes drone wire messages into observations and feeds the engine.
"""

from __future__ import annotations

import logging
from typing import Any

from skytrack.api.models import DroneMessage, Feature, FeatureCollection
from skytrack.tracking import Observation, Track, TrackingEngine

logger = logging.getLogger(__name__)


def _hint_from(registration: str | None, serial: str | None) -> str | None:
    """Registration is the preferred hint; the serial stands in when it is blank."""
    for candidate in (registration, serial):
        if candidate is not None and str(candidate).strip():
            return str(candidate).strip()
    return None


def observation_from_drone(message: DroneMessage) -> Observation:
    """Convert a flat drone message to an observation."""
    return Observation(
        position=(message.lng, message.lat),
        identifier_hint=_hint_from(message.registration, message.id),
        altitude=message.altitude,
        heading=message.yaw,
    )


def observation_from_feature(feature: Feature) -> Observation:
    """Convert a GeoJSON Point feature to an observation."""
    lng, lat = feature.geometry.coordinates
    props = feature.properties
    return Observation(
        position=(lng, lat),
        identifier_hint=_hint_from(props.registration, props.serial),
        altitude=props.altitude,
        heading=props.yaw,
    )


class IngestionService:
    """Ingests decoded drone messages into the running TrackingEngine."""

    def __init__(self, engine: TrackingEngine):
        self._engine = engine
        self._accepted_count = 0
        self._rejected_count = 0

    def _ingest(self, observation: Observation) -> Track | None:
        track = self._engine.ingest(observation)
        if track is None:
            self._rejected_count += 1
        else:
            self._accepted_count += 1
        return track

    def ingest_drone(self, message: DroneMessage) -> Track | None:
        """Ingest one flat drone message. Returns None if the engine ignored it."""
        return self._ingest(observation_from_drone(message))

    def ingest_features(self, collection: FeatureCollection) -> list[Track]:
        """Ingest every feature of a collection, in order.

        Returns:
            Tracks updated by the accepted features.
        """
        tracks = []
        for feature in collection.features:
            track = self._ingest(observation_from_feature(feature))
            if track is not None:
                tracks.append(track)
        logger.debug("Ingested %d/%d features", len(tracks), len(collection.features))
        return tracks

    def ingest_payload(self, payload: dict[str, Any]) -> list[Track]:
        """Decode and ingest a raw message received on the push channel.

        ``{"type": "FeatureCollection", ...}`` is a feature collection;
        ``{"type": "drone", ...}`` (or no type) is a flat drone message.

        Raises:
            ValueError: The payload is not a recognised message or is
                missing coordinates. Nothing is ingested in that case.
        """
        if not isinstance(payload, dict):
            self._rejected_count += 1
            raise ValueError("Message must be a JSON object")

        msg_type = payload.get("type", "drone")
        try:
            if msg_type == "FeatureCollection":
                collection = FeatureCollection.model_validate(payload)
            elif msg_type == "drone":
                body = {k: v for k, v in payload.items() if k != "type"}
                message = DroneMessage.model_validate(body)
            else:
                raise ValueError(f"Unknown message type: {msg_type}")
        except ValueError:
            self._rejected_count += 1
            raise

        if msg_type == "FeatureCollection":
            return self.ingest_features(collection)
        track = self.ingest_drone(message)
        return [track] if track is not None else []

    def get_status(self) -> dict:
        """Return ingestion status summary."""
        return {
            "accepted_count": self._accepted_count,
            "rejected_count": self._rejected_count,
            "track_count": len(self._engine.snapshot().tracks),
        }
