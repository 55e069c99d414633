"""
Geographic distance utilities for drone tracking.
Positions are (longitude, latitude) pairs in degrees.
"""

import math
import numbers
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

Coordinate = Tuple[float, float]

# Mean Earth radius (IUGG)
EARTH_RADIUS_M = 6371008.8


def planar_distance(a: Coordinate, b: Coordinate) -> float:
    """
    Euclidean distance in coordinate-degree space.

    Args:
        a: First position (lng, lat) in degrees
        b: Second position (lng, lat) in degrees

    Returns:
        Distance in degrees

    Example:
        >>> planar_distance((0.0, 0.0), (3.0, 4.0))
        5.0
    """
    return math.hypot(b[0] - a[0], b[1] - a[1])


def haversine_distance(a: Coordinate, b: Coordinate, radius: float = EARTH_RADIUS_M) -> float:
    """
    Great-circle distance on a sphere.

    Args:
        a: First position (lng, lat) in degrees
        b: Second position (lng, lat) in degrees
        radius: Sphere radius (meters)

    Returns:
        Distance in meters
    """
    lon1, lat1 = np.radians(a[0]), np.radians(a[1])
    lon2, lat2 = np.radians(b[0]), np.radians(b[1])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    # Rounding can push h marginally above 1 for antipodal points
    h = min(1.0, float(h))

    return float(2 * radius * np.arcsin(np.sqrt(h)))


DISTANCE_METRICS: Dict[str, Callable[[Coordinate, Coordinate], float]] = {
    "degrees": planar_distance,
    "haversine": haversine_distance,
}


def get_distance_function(metric: str) -> Callable[[Coordinate, Coordinate], float]:
    """Look up a distance function by metric name."""
    try:
        return DISTANCE_METRICS[metric]
    except KeyError:
        raise ValueError(f"Unknown distance metric: {metric}")


def blend(previous: Coordinate, raw: Coordinate, alpha: float) -> Coordinate:
    """
    Exponential blend from ``previous`` toward ``raw``.

    alpha=1 returns ``raw``; alpha close to 0 barely moves.
    """
    return (
        previous[0] + alpha * (raw[0] - previous[0]),
        previous[1] + alpha * (raw[1] - previous[1]),
    )


def offset(position: Coordinate, delta: float) -> Coordinate:
    """Shift a position by ``delta`` degrees on both axes."""
    return (position[0] + delta, position[1] + delta)


def nearest(
    target: Coordinate,
    candidates: Iterable[Tuple[str, Coordinate]],
    distance: Callable[[Coordinate, Coordinate], float] = planar_distance,
) -> Optional[Tuple[str, float]]:
    """
    Linear nearest-neighbor scan, O(n) in the number of candidates.

    Ties keep the earliest candidate in iteration order.

    Args:
        target: Position to match
        candidates: (key, position) pairs
        distance: Distance function

    Returns:
        (key, distance) of the nearest candidate, or None if there are none
    """
    best: Optional[Tuple[str, float]] = None
    for key, position in candidates:
        d = distance(target, position)
        if best is None or d < best[1]:
            best = (key, d)
    return best


def is_valid_position(position: Optional[Sequence[float]]) -> bool:
    """
    Check that a (lng, lat) pair is numeric, finite and within geographic bounds.

    Anything else (None, scalars, strings, mappings, wrong length, numeric
    strings as elements) is rejected rather than raising.
    """
    # Strings and mappings support len() and indexing but are not coordinate pairs
    if position is None or isinstance(position, (str, bytes, Mapping)):
        return False
    try:
        if len(position) != 2:
            return False
        lng, lat = position[0], position[1]
    except (TypeError, KeyError, IndexError):
        return False
    for value in (lng, lat):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            return False
    lng, lat = float(lng), float(lat)
    if not (math.isfinite(lng) and math.isfinite(lat)):
        return False
    return -180.0 <= lng <= 180.0 and -90.0 <= lat <= 90.0
