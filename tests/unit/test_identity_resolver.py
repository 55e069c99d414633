"""
Unit tests for track identity resolution.

Tests cover:
- Id allocators (pool and unbounded)
- Hint binding (first writer wins)
- Nearest-neighbor gating
- Pool exhaustion fallback
"""

import pytest

from skytrack.tracking.identity_resolver import (
    IdentityResolver,
    Observation,
    PoolIdAllocator,
    UnboundedIdAllocator,
)
from skytrack.utils.config_loader import EngineConfig


def obs(lng, lat, hint=None):
    return Observation(position=(lng, lat), identifier_hint=hint)


class TestObservation:
    """Test Observation dataclass."""

    def test_hint_is_stripped(self):
        assert obs(0.0, 0.0, "  SG-BA ").hint == "SG-BA"

    def test_blank_hint_is_none(self):
        assert obs(0.0, 0.0, "   ").hint is None
        assert obs(0.0, 0.0, "").hint is None
        assert obs(0.0, 0.0).hint is None


class TestPoolIdAllocator:
    """Test fixed-size id pool."""

    def test_slots(self):
        pool = PoolIdAllocator(3)
        assert pool.slots == ["t1", "t2", "t3"]

    def test_first_free_slot(self):
        pool = PoolIdAllocator(3)
        assert pool.allocate([]) == "t1"
        assert pool.allocate(["t1"]) == "t2"
        assert pool.allocate(["t2"]) == "t1"

    def test_exhausted(self):
        pool = PoolIdAllocator(2)
        assert pool.allocate(["t1", "t2"]) is None

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            PoolIdAllocator(0)


class TestUnboundedIdAllocator:
    """Test monotonically increasing ids."""

    def test_monotonic(self):
        alloc = UnboundedIdAllocator()
        ids = [alloc.allocate([]) for _ in range(4)]
        assert ids == ["t1", "t2", "t3", "t4"]

    def test_skips_live_ids(self):
        alloc = UnboundedIdAllocator()
        assert alloc.allocate(["t1", "t2"]) == "t3"

    def test_reset(self):
        alloc = UnboundedIdAllocator()
        alloc.allocate([])
        alloc.allocate([])
        alloc.reset()
        assert alloc.allocate([]) == "t1"


class TestIdentityResolver:
    """Test resolution order: hint, proximity, allocation."""

    def test_empty_tracks_allocate(self):
        """Empty track set always falls through to allocation."""
        resolver = IdentityResolver(proximity_threshold=0.05, id_mode="pool", pool_size=2)
        resolution = resolver.resolve_with_reason(obs(35.90, 31.95), {})
        assert resolution.track_id == "t1"
        assert resolution.method == "new"

    def test_proximity_match(self):
        resolver = IdentityResolver(proximity_threshold=0.05)
        tracks = {"t1": (35.90, 31.95)}
        resolution = resolver.resolve_with_reason(obs(35.901, 31.951), tracks)
        assert resolution.track_id == "t1"
        assert resolution.method == "proximity"
        assert resolution.distance == pytest.approx(0.0014142, abs=1e-6)

    def test_threshold_is_strict(self):
        """A distance equal to the threshold does not match."""
        resolver = IdentityResolver(proximity_threshold=0.05)
        tracks = {"t1": (0.0, 0.0)}
        assert resolver.resolve(obs(0.05, 0.0), tracks) == "t2"

    def test_beyond_threshold_allocates_distinct_id(self):
        resolver = IdentityResolver(proximity_threshold=0.05, pool_size=4)
        tracks = {"t1": (35.90, 31.95)}
        new_id = resolver.resolve(obs(36.50, 32.50), tracks)
        assert new_id not in tracks

    def test_nearest_wins(self):
        resolver = IdentityResolver(proximity_threshold=0.05)
        tracks = {"t1": (0.0, 0.0), "t2": (0.03, 0.0)}
        assert resolver.resolve(obs(0.02, 0.0), tracks) == "t2"

    def test_tie_keeps_earliest(self):
        resolver = IdentityResolver(proximity_threshold=0.05)
        tracks = {"t2": (0.01, 0.0), "t1": (-0.01, 0.0)}
        assert resolver.resolve(obs(0.0, 0.0), tracks) == "t2"

    def test_duplicate_point_matches(self):
        """Zero distance participates normally in the scan."""
        resolver = IdentityResolver(proximity_threshold=0.05)
        tracks = {"t1": (1.0, 1.0)}
        resolution = resolver.resolve_with_reason(obs(1.0, 1.0), tracks)
        assert resolution.track_id == "t1"
        assert resolution.distance == 0.0

    def test_pool_exhaustion_falls_back_to_nearest(self):
        """With all slots held, the nearest track takes the observation regardless of threshold."""
        resolver = IdentityResolver(proximity_threshold=0.05, id_mode="pool", pool_size=2)
        tracks = {"t1": (0.0, 0.0), "t2": (10.0, 10.0)}
        resolution = resolver.resolve_with_reason(obs(9.0, 9.0), tracks)
        assert resolution.track_id == "t2"
        assert resolution.method == "pool_fallback"
        assert resolution.distance > resolver.proximity_threshold

    def test_unbounded_never_exhausts(self):
        resolver = IdentityResolver(proximity_threshold=0.05, id_mode="unbounded")
        tracks = {}
        for i in range(20):
            track_id = resolver.resolve(obs(float(i), 0.0), tracks)
            assert track_id not in tracks
            tracks[track_id] = (float(i), 0.0)
        assert len(tracks) == 20

    def test_bound_hint_wins_over_proximity(self):
        resolver = IdentityResolver(proximity_threshold=0.05)
        resolver.bind_hint("SG-BA", "t1")
        tracks = {"t1": (0.0, 0.0), "t2": (5.0, 5.0)}
        resolution = resolver.resolve_with_reason(obs(5.0, 5.0, " SG-BA"), tracks)
        assert resolution.track_id == "t1"
        assert resolution.method == "hint"

    def test_unbound_hint_uses_proximity(self):
        resolver = IdentityResolver(proximity_threshold=0.05)
        tracks = {"t1": (0.0, 0.0)}
        assert resolver.resolve(obs(0.001, 0.0, "SG-BB"), tracks) == "t1"

    def test_resolve_does_not_bind(self):
        resolver = IdentityResolver()
        resolver.resolve(obs(0.0, 0.0, "SG-BA"), {})
        assert resolver.bindings == {}

    def test_haversine_metric(self):
        """Thresholds are in meters under the haversine metric."""
        resolver = IdentityResolver(proximity_threshold=500.0, distance_metric="haversine")
        tracks = {"t1": (35.90, 31.95)}
        # ~111 m north
        assert resolver.resolve(obs(35.90, 31.951), tracks) == "t1"
        # ~11 km north
        assert resolver.resolve(obs(35.90, 32.05), tracks) == "t2"

    def test_from_config(self):
        config = EngineConfig(id_mode="unbounded", proximity_threshold=0.1)
        resolver = IdentityResolver.from_config(config)
        assert resolver.id_mode == "unbounded"
        assert resolver.proximity_threshold == 0.1
        assert isinstance(resolver.allocator, UnboundedIdAllocator)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            IdentityResolver(id_mode="random")

    def test_unknown_metric(self):
        with pytest.raises(ValueError):
            IdentityResolver(distance_metric="manhattan")


class TestHintBinding:
    """Test the durable hint -> id binding table."""

    def test_first_writer_wins(self):
        resolver = IdentityResolver()
        assert resolver.bind_hint("SG-BA", "t1") is True
        assert resolver.bind_hint("SG-BA", "t2") is False
        assert resolver.bound_id("SG-BA") == "t1"

    def test_blank_hints_ignored(self):
        resolver = IdentityResolver()
        assert resolver.bind_hint(None, "t1") is False
        assert resolver.bind_hint("  ", "t1") is False
        assert resolver.bindings == {}

    def test_hint_is_normalized(self):
        resolver = IdentityResolver()
        resolver.bind_hint(" SG-BA ", "t1")
        assert resolver.bound_id("SG-BA") == "t1"

    def test_several_hints_may_share_a_track(self):
        resolver = IdentityResolver()
        resolver.bind_hint("SG-BA", "t1")
        resolver.bind_hint("SG-BB", "t1")
        assert resolver.bindings == {"SG-BA": "t1", "SG-BB": "t1"}

    def test_instances_are_independent(self):
        a = IdentityResolver()
        b = IdentityResolver()
        a.bind_hint("SG-BA", "t1")
        assert b.bound_id("SG-BA") is None

    def test_reset(self):
        resolver = IdentityResolver(id_mode="unbounded")
        resolver.bind_hint("SG-BA", "t1")
        resolver.resolve(obs(0.0, 0.0), {})
        resolver.reset()
        assert resolver.bindings == {}
        assert resolver.resolve(obs(0.0, 0.0), {}) == "t1"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
