"""
Track state storage for drone tracking.

This module owns the authoritative track records. Every accepted update
smooths the reported position, maintains a bounded trail and merges the
optional telemetry fields.

Classes:
    Track: Immutable record of one tracked drone
    TrackSnapshot: Point-in-time view of all tracks and the selection
    TrackStore: Owns the track map and the selection cursor

Functions:
    merge_fields: Partial-update merge of optional observation fields

Track records are frozen; an update builds a new record and swaps it into
the map, so a reader holding a record never sees it change.
"""

import time
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from skytrack.tracking.identity_resolver import Observation
from skytrack.utils.geo import Coordinate, blend, get_distance_function, offset
from skytrack.utils.logging_config import get_logger

logger = get_logger("tracking.store")


@dataclass(frozen=True)
class Track:
    """
    Represents a single tracked drone.

    Attributes:
        track_id: Stable track identifier assigned by the resolver
        position: Smoothed current position (lng, lat)
        trail: Bounded history of smoothed positions, oldest first
        first_seen_at: Creation time (epoch seconds), never changes
        last_seen_at: Time of the most recent accepted update
        identifier_hint: Last known registration hint
        altitude: Last known altitude (meters)
        heading: Last known heading (degrees)
        last_raw_position: Last unsmoothed reported position
        update_count: Number of observations applied
    """
    track_id: str
    position: Coordinate
    trail: Tuple[Coordinate, ...]
    first_seen_at: float
    last_seen_at: float
    identifier_hint: Optional[str] = None
    altitude: float = 0.0
    heading: float = 0.0
    last_raw_position: Optional[Coordinate] = None
    update_count: int = 1

    def age(self, current_time: float) -> float:
        """
        Get active duration in seconds.

        Args:
            current_time: Current timestamp

        Returns:
            Seconds since the track was created
        """
        return current_time - self.first_seen_at

    def time_since_update(self, current_time: float) -> float:
        """Seconds since the last accepted update."""
        return current_time - self.last_seen_at


# Partial-update policy, one entry per optional observation field:
#   identifier_hint  overwrite only with a non-blank string
#   altitude         overwrite whenever provided (0.0 included), else keep
#   heading          overwrite whenever provided (0.0 included), else keep
# Fields absent on a new track take the default (None / 0.0).
FIELD_POLICY: Dict[str, str] = {
    "identifier_hint": "non_blank",
    "altitude": "provided",
    "heading": "provided",
}

_FIELD_DEFAULTS = {
    "identifier_hint": None,
    "altitude": 0.0,
    "heading": 0.0,
}


def _accepts(policy: str, value) -> bool:
    if value is None:
        return False
    if policy == "non_blank":
        return bool(str(value).strip())
    return True


def merge_fields(previous: Optional[Track], observation: Observation) -> Dict[str, object]:
    """
    Merge the optional fields of an observation over a previous record.

    Args:
        previous: Existing track record, or None for a new track
        observation: Incoming observation

    Returns:
        Field name -> merged value, for every field in FIELD_POLICY
    """
    merged: Dict[str, object] = {}
    for field_name, policy in FIELD_POLICY.items():
        incoming = getattr(observation, field_name)
        if _accepts(policy, incoming):
            if policy == "non_blank":
                merged[field_name] = str(incoming).strip()
            else:
                merged[field_name] = float(incoming)
        elif previous is not None:
            merged[field_name] = getattr(previous, field_name)
        else:
            merged[field_name] = _FIELD_DEFAULTS[field_name]
    return merged


@dataclass(frozen=True)
class TrackSnapshot:
    """
    Point-in-time view of the store.

    Attributes:
        tracks: Read-only mapping of track id -> Track
        selected_id: Selected track id, or None
        revision: Store revision the snapshot was taken at
    """
    tracks: Mapping[str, Track]
    selected_id: Optional[str]
    revision: int

    @property
    def selected(self) -> Optional[Track]:
        if self.selected_id is None:
            return None
        return self.tracks.get(self.selected_id)

    def sorted_tracks(self) -> List[Track]:
        """Tracks ordered by id, for consumers that need a stable order."""
        return [self.tracks[k] for k in sorted(self.tracks)]


class TrackStore:
    """
    Owns all track records and the selection cursor.

    Applies smoothing and trail policy on every update. Not thread-safe on
    its own; ``TrackingEngine`` serializes access.
    """

    def __init__(
        self,
        smoothing_alpha: float = 0.35,
        big_jump_threshold: float = 0.02,
        max_trail_points: int = 500,
        duplicate_epsilon: float = 1e-5,
        trail_seed_offset: float = 1e-6,
        distance_metric: str = "degrees",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize track store.

        Args:
            smoothing_alpha: Blend factor toward the raw position, in (0, 1)
            big_jump_threshold: Distance that resets the trail
            max_trail_points: Trail length bound (>= 2)
            duplicate_epsilon: Movement treated as noise
            trail_seed_offset: Offset of the second seed point (degrees)
            distance_metric: "degrees" or "haversine"
            clock: Time source for observations without a timestamp
        """
        if not 0.0 < smoothing_alpha < 1.0:
            raise ValueError(f"smoothing_alpha must be in (0, 1), got {smoothing_alpha}")
        if max_trail_points < 2:
            raise ValueError(f"max_trail_points must be at least 2, got {max_trail_points}")

        self.smoothing_alpha = smoothing_alpha
        self.big_jump_threshold = big_jump_threshold
        self.max_trail_points = max_trail_points
        self.duplicate_epsilon = duplicate_epsilon
        self.trail_seed_offset = trail_seed_offset
        self.distance = get_distance_function(distance_metric)
        self.clock = clock

        self._tracks: Dict[str, Track] = {}
        self._selected_id: Optional[str] = None
        self.revision = 0

        logger.info(f"TrackStore initialized: alpha={smoothing_alpha}, "
                    f"jump={big_jump_threshold}, max_trail={max_trail_points}")

    @classmethod
    def from_config(cls, config, clock: Callable[[], float] = time.time) -> "TrackStore":
        """Build a store from an ``EngineConfig``."""
        return cls(
            smoothing_alpha=config.smoothing_alpha,
            big_jump_threshold=config.big_jump_threshold,
            max_trail_points=config.max_trail_points,
            duplicate_epsilon=config.duplicate_epsilon,
            trail_seed_offset=config.trail_seed_offset,
            distance_metric=config.distance_metric,
            clock=clock,
        )

    def apply(self, track_id: str, observation: Observation) -> Track:
        """
        Apply an observation to a track, creating the track if needed.

        Args:
            track_id: Resolved track id
            observation: Observation with a valid position

        Returns:
            The new track record
        """
        now = observation.timestamp if observation.timestamp is not None else self.clock()
        raw = (float(observation.position[0]), float(observation.position[1]))
        previous = self._tracks.get(track_id)
        fields = merge_fields(previous, observation)

        if previous is None:
            track = Track(
                track_id=track_id,
                position=raw,
                trail=(raw, offset(raw, self.trail_seed_offset)),
                first_seen_at=now,
                last_seen_at=now,
                last_raw_position=raw,
                update_count=1,
                **fields,
            )
            logger.debug(f"Created track {track_id} at {raw}")
        else:
            smoothed = blend(previous.position, raw, self.smoothing_alpha)
            trail = self._next_trail(previous, raw, smoothed)
            track = replace(
                previous,
                position=smoothed,
                trail=trail,
                last_seen_at=now,
                last_raw_position=raw,
                update_count=previous.update_count + 1,
                **fields,
            )

        self._tracks[track_id] = track
        self.revision += 1
        return track

    def _next_trail(self, previous: Track, raw: Coordinate, smoothed: Coordinate) -> Tuple[Coordinate, ...]:
        """Duplicate, big-jump or append, then clip oldest-first."""
        trail = previous.trail
        last_point = trail[-1]

        if raw == previous.last_raw_position:
            return trail

        step = self.distance(last_point, smoothed)
        if step <= self.duplicate_epsilon:
            return trail

        if step > self.big_jump_threshold:
            logger.info(f"Track {previous.track_id} jumped {step:.6f}, resetting trail")
            new_trail = (last_point, smoothed)
        else:
            new_trail = trail + (smoothed,)

        if len(new_trail) > self.max_trail_points:
            new_trail = new_trail[len(new_trail) - self.max_trail_points:]
        return new_trail

    def select(self, track_id: Optional[str]) -> Optional[str]:
        """
        Set the selection cursor.

        Unknown ids clear the selection rather than leaving it dangling.

        Returns:
            The selection after the call
        """
        if track_id is not None and track_id not in self._tracks:
            logger.debug(f"Selection of unknown track {track_id} cleared")
            track_id = None
        if track_id != self._selected_id:
            self._selected_id = track_id
            self.revision += 1
        return self._selected_id

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def get(self, track_id: str) -> Optional[Track]:
        """Get track by ID."""
        return self._tracks.get(track_id)

    def positions(self) -> Dict[str, Coordinate]:
        """Current position of every track, in creation order."""
        return {tid: t.position for tid, t in self._tracks.items()}

    def snapshot(self) -> TrackSnapshot:
        """Point-in-time view; the returned mapping is a read-only copy."""
        return TrackSnapshot(
            tracks=MappingProxyType(dict(self._tracks)),
            selected_id=self._selected_id,
            revision=self.revision,
        )

    def clear(self):
        """Drop all tracks and the selection."""
        self._tracks.clear()
        self._selected_id = None
        self.revision += 1

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._tracks
