"""
Track identity resolution for incoming drone observations.

This module decides which track an observation belongs to. The identity
signals are tried in order of reliability:

1. A registration hint already bound to a track id
2. Spatial proximity to an existing track (nearest neighbor, gated)
3. Allocation of a new id (fixed pool or unbounded counter)

Classes:
    Observation: One inbound position/telemetry report
    Resolution: Outcome of resolving one observation
    PoolIdAllocator: Fixed set of reusable track ids
    UnboundedIdAllocator: Monotonically increasing track ids
    IdentityResolver: Maps observations to track ids

The nearest-neighbor scan is linear in the number of tracks. Track counts are
bounded by the pool size in pool mode and expected to stay small otherwise.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from skytrack.utils.geo import Coordinate, get_distance_function, nearest
from skytrack.utils.logging_config import get_logger

logger = get_logger("tracking.resolver")


@dataclass(frozen=True)
class Observation:
    """
    Represents one inbound drone report, not yet attributed to a track.

    Attributes:
        position: Reported position (lng, lat) in degrees
        identifier_hint: Registration-like code, unreliable or absent
        altitude: Altitude in meters, None when not reported
        heading: Heading (yaw) in degrees, None when not reported
        timestamp: Observation time (epoch seconds), None to use the engine clock
    """
    position: Coordinate
    identifier_hint: Optional[str] = None
    altitude: Optional[float] = None
    heading: Optional[float] = None
    timestamp: Optional[float] = None

    @property
    def hint(self) -> Optional[str]:
        """Normalized hint: stripped, or None when blank."""
        if self.identifier_hint is None:
            return None
        hint = str(self.identifier_hint).strip()
        return hint or None


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving one observation.

    Attributes:
        track_id: Resolved track id
        method: 'hint', 'proximity', 'new' or 'pool_fallback'
        distance: Distance to the matched track (None for hint or new)
    """
    track_id: str
    method: str
    distance: Optional[float] = None


class PoolIdAllocator:
    """Fixed-size pool of reusable ids ``t1`` .. ``tN``."""

    def __init__(self, size: int, prefix: str = "t"):
        if size < 1:
            raise ValueError(f"Pool size must be positive, got {size}")
        self.size = size
        self.slots: List[str] = [f"{prefix}{i}" for i in range(1, size + 1)]

    def allocate(self, live_ids: Iterable[str]) -> Optional[str]:
        """Return the first slot not held by a live track, or None if exhausted."""
        live = set(live_ids)
        for slot in self.slots:
            if slot not in live:
                return slot
        return None

    def reset(self):
        """Pool slots carry no state of their own."""


class UnboundedIdAllocator:
    """Fresh synthetic ids with no upper bound on track count."""

    def __init__(self, prefix: str = "t"):
        self.prefix = prefix
        self.next_id = 1

    def allocate(self, live_ids: Iterable[str]) -> str:
        live = set(live_ids)
        while True:
            candidate = f"{self.prefix}{self.next_id}"
            self.next_id += 1
            if candidate not in live:
                return candidate

    def reset(self):
        self.next_id = 1


class IdentityResolver:
    """
    Maps observations to track ids.

    Owns the durable hint -> id binding table. The table is instance state,
    so independent resolvers never share bindings. Callers are responsible
    for serializing access (see ``TrackingEngine``).
    """

    def __init__(
        self,
        proximity_threshold: float = 0.05,
        id_mode: str = "pool",
        pool_size: int = 8,
        distance_metric: str = "degrees",
    ):
        """
        Initialize identity resolver.

        Args:
            proximity_threshold: Max distance for continuing an existing track
                (units of ``distance_metric``)
            id_mode: "pool" or "unbounded"
            pool_size: Number of reusable ids in pool mode
            distance_metric: "degrees" or "haversine"
        """
        self.proximity_threshold = proximity_threshold
        self.id_mode = id_mode
        self.distance_metric = distance_metric
        self.distance = get_distance_function(distance_metric)

        if id_mode == "pool":
            self.allocator = PoolIdAllocator(pool_size)
        elif id_mode == "unbounded":
            self.allocator = UnboundedIdAllocator()
        else:
            raise ValueError(f"Unknown id mode: {id_mode}")

        self._bindings: Dict[str, str] = {}

        logger.info(f"IdentityResolver initialized: mode={id_mode}, "
                    f"threshold={proximity_threshold} ({distance_metric})")

    @classmethod
    def from_config(cls, config) -> "IdentityResolver":
        """Build a resolver from an ``EngineConfig``."""
        return cls(
            proximity_threshold=config.proximity_threshold,
            id_mode=config.id_mode,
            pool_size=config.pool_size,
            distance_metric=config.distance_metric,
        )

    def resolve(self, observation: Observation, current_tracks: Mapping[str, Coordinate]) -> str:
        """
        Resolve an observation to a track id.

        Args:
            observation: Incoming observation
            current_tracks: Track id -> current position, in creation order

        Returns:
            Track id (never fails)
        """
        return self.resolve_with_reason(observation, current_tracks).track_id

    def resolve_with_reason(
        self,
        observation: Observation,
        current_tracks: Mapping[str, Coordinate],
    ) -> Resolution:
        """Resolve an observation and report which identity signal decided it."""
        hint = observation.hint
        if hint is not None and hint in self._bindings:
            return Resolution(track_id=self._bindings[hint], method="hint")

        match: Optional[Tuple[str, float]] = nearest(
            observation.position, current_tracks.items(), self.distance
        )

        if match is not None and match[1] < self.proximity_threshold:
            return Resolution(track_id=match[0], method="proximity", distance=match[1])

        new_id = self.allocator.allocate(current_tracks.keys())
        if new_id is not None:
            logger.debug(f"Allocated track id {new_id} for observation at {observation.position}")
            return Resolution(track_id=new_id, method="new")

        # Pool exhausted: the nearest track takes the observation regardless of threshold
        logger.debug(f"Id pool exhausted, reassigning observation to {match[0]} "
                     f"(distance {match[1]:.6f})")
        return Resolution(track_id=match[0], method="pool_fallback", distance=match[1])

    def bind_hint(self, hint: Optional[str], track_id: str) -> bool:
        """
        Bind a hint to a track id, first writer wins.

        Args:
            hint: Identifier hint (blank hints are ignored)
            track_id: Track id the hint resolved to

        Returns:
            True if a new binding was created
        """
        if hint is None:
            return False
        hint = hint.strip()
        if not hint or hint in self._bindings:
            return False
        self._bindings[hint] = track_id
        logger.debug(f"Bound hint '{hint}' to track {track_id}")
        return True

    def bound_id(self, hint: str) -> Optional[str]:
        """Get the track id bound to a hint, if any."""
        return self._bindings.get(hint.strip())

    @property
    def bindings(self) -> Dict[str, str]:
        """Copy of the hint -> id binding table."""
        return dict(self._bindings)

    def reset(self):
        """Forget all bindings and restart id allocation."""
        self._bindings.clear()
        self.allocator.reset()
