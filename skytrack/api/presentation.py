"""
Display helpers for track lists and map popups.
"""

from __future__ import annotations

import math


def can_fly(registration: str | None) -> bool:
    """Whether a registration is cleared to fly.

    The last dash-separated segment decides: permitted registrations start
    with ``B`` (``SG-BA`` is permitted, ``SG-RA`` is restricted).
    """
    if not registration:
        return False
    tail = registration.split("-")[-1].strip().upper()
    return tail.startswith("B")


def format_flight_time(first_seen_at: float | None, now: float) -> str:
    """Elapsed flight time as ``"{m}m {s}s"``, or an em dash when unknown."""
    if not first_seen_at:
        return "—"
    seconds = max(0, math.floor(now - first_seen_at))
    return f"{seconds // 60}m {seconds % 60}s"


def format_duration(seconds: float) -> str:
    """Format a duration as ``HH:MM:SS``, clamped at zero."""
    s = max(0, math.floor(seconds))
    return f"{s // 3600:02d}:{(s % 3600) // 60:02d}:{s % 60:02d}"
