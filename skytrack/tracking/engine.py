"""
Tracking engine for drone observations.

This module provides the ingestion entry point that orchestrates the
identity resolver and the track store:

1. Validate the observation position
2. Resolve the observation to a track id
3. Apply the observation to the store
4. Bind the observation's hint to the resolved id
5. Notify subscribers

Classes:
    TrackingEngine: Single-writer, many-reader track reconciliation engine
"""

import threading
import time
from typing import Callable, List, Optional

from skytrack.tracking.identity_resolver import IdentityResolver, Observation
from skytrack.tracking.track_store import Track, TrackSnapshot, TrackStore
from skytrack.utils.config_loader import EngineConfig
from skytrack.utils.geo import is_valid_position
from skytrack.utils.logging_config import get_logger
from skytrack.utils.metrics import PerformanceMetrics, timer

logger = get_logger("tracking.engine")

TrackCallback = Callable[[Track], None]

RESOLUTION_METHODS = ("hint", "proximity", "new", "pool_fallback")


class TrackingEngine:
    """
    Track reconciliation engine.

    The resolver's hint bindings and the store's track map are guarded by one
    lock, so resolution, update and binding of an observation happen as a
    single step and readers always see the two structures agree.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize tracking engine.

        Args:
            config: Engine configuration (uses defaults if None)
            clock: Time source for observations without a timestamp
        """
        self.config = config or EngineConfig()
        self.clock = clock

        self.resolver = IdentityResolver.from_config(self.config)
        self.store = TrackStore.from_config(self.config, clock=clock)

        self._lock = threading.RLock()
        self._subscribers: List[TrackCallback] = []

        # Ingest latency and outcome counters
        self.metrics = PerformanceMetrics()

        logger.info(
            f"TrackingEngine initialized: "
            f"mode={self.config.id_mode}, "
            f"metric={self.config.distance_metric}, "
            f"alpha={self.config.smoothing_alpha}"
        )

    def ingest(self, observation: Observation) -> Optional[Track]:
        """
        Ingest one observation.

        Observations whose position is missing, non-finite or out of range
        are ignored with a warning; state is left unchanged.

        Args:
            observation: Incoming observation

        Returns:
            The updated track, or None if the observation was ignored
        """
        if not is_valid_position(observation.position):
            with self._lock:
                self.metrics.increment("ignored")
            logger.warning(f"Ignoring observation with invalid position {observation.position!r}")
            return None

        with self._lock:
            with timer("ingest", self.metrics):
                resolution = self.resolver.resolve_with_reason(observation, self.store.positions())
                track = self.store.apply(resolution.track_id, observation)
                self.resolver.bind_hint(observation.hint, track.track_id)

            self.metrics.increment("accepted")
            self.metrics.increment(f"resolution.{resolution.method}")
            subscribers = list(self._subscribers)

        if resolution.method == "new":
            logger.info(f"Track {track.track_id} created "
                        f"(hint={observation.hint}, tracks={len(self.store)})")

        for callback in subscribers:
            try:
                callback(track)
            except Exception:
                logger.exception(f"Error in track subscriber for {track.track_id}")

        return track

    def subscribe(self, callback: TrackCallback) -> Callable[[], None]:
        """
        Register a callback invoked with each updated track.

        Returns:
            Function that removes the subscription
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def get_all_tracks(self) -> List[Track]:
        """Get all tracks, ordered by id."""
        return self.snapshot().sorted_tracks()

    def get_track(self, track_id: str) -> Optional[Track]:
        """Get track by ID."""
        with self._lock:
            return self.store.get(track_id)

    def get_selection(self) -> Optional[str]:
        """Get the selected track id, or None."""
        with self._lock:
            return self.store.selected_id

    def set_selection(self, track_id: Optional[str]) -> Optional[str]:
        """
        Select a track.

        Args:
            track_id: Track to select, or None to clear

        Returns:
            The selection after the call (None if the id was unknown)
        """
        with self._lock:
            return self.store.select(track_id)

    def snapshot(self) -> TrackSnapshot:
        """Consistent point-in-time view of all tracks and the selection."""
        with self._lock:
            return self.store.snapshot()

    @property
    def revision(self) -> int:
        with self._lock:
            return self.store.revision

    def reset(self):
        """Drop all tracks, the selection, hint bindings and id allocation state."""
        with self._lock:
            self.store.clear()
            self.resolver.reset()
        logger.info("TrackingEngine reset")

    def get_statistics(self) -> dict:
        """
        Get engine statistics.

        Returns:
            Dictionary of statistics
        """
        with self._lock:
            resolutions = {method: 0 for method in RESOLUTION_METHODS}
            resolutions.update(self.metrics.counters("resolution."))
            return {
                "total_tracks": len(self.store),
                "accepted_observations": self.metrics.count("accepted"),
                "ignored_observations": self.metrics.count("ignored"),
                "hint_bindings": len(self.resolver.bindings),
                "resolutions": resolutions,
                "ingest_latency_s": self.metrics.get_stats("ingest"),
            }
