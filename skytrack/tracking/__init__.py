"""
Tracking Engine - Track reconciliation for drone observations

This module maps a stream of drone observations with unreliable identifiers
onto a bounded set of persistent tracks, each with a smoothed position and a
bounded trail.

Components:
- identity_resolver: hint binding, nearest-neighbor gating, id allocation
- track_store: smoothing, trail policy, partial-update merge, selection
- engine: locking, ingestion entry point and query surface

Example:
    >>> from skytrack.tracking import TrackingEngine, Observation
    >>> engine = TrackingEngine()
    >>> track = engine.ingest(Observation(position=(35.90, 31.95)))
"""

__version__ = "0.1.0"
__author__ = "SkyTrack Project"

from .identity_resolver import (
    IdentityResolver,
    Observation,
    PoolIdAllocator,
    Resolution,
    UnboundedIdAllocator,
)
from .track_store import FIELD_POLICY, Track, TrackSnapshot, TrackStore, merge_fields
from .engine import TrackingEngine

__all__ = [
    "IdentityResolver",
    "Observation",
    "PoolIdAllocator",
    "Resolution",
    "UnboundedIdAllocator",
    "FIELD_POLICY",
    "Track",
    "TrackSnapshot",
    "TrackStore",
    "merge_fields",
    "TrackingEngine",
]
