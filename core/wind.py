"""
Wind vector helpers: speed and bearing from u/v components, and the
shortest-arc variability between two bearings.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional, Tuple

from core.units import mps_to_knots, round_half_up


@dataclass(frozen=True)
class WindVector:
    """Wind speed in knots (unrounded) and the bearing it blows FROM."""
    speed_kt: float
    direction_deg: float


def from_components(u: Optional[float], v: Optional[float]) -> Optional[WindVector]:
    """
    Convert u (eastward) / v (northward) components in m/s to a wind vector.

    atan2(u, v) gives the compass bearing the air moves towards (0 = north,
    clockwise); adding 180 gives the bearing it comes from.
    With u == v == 0 the speed is 0 and the bearing carries no meaning
    (it comes out as 180).
    """
    if u is None or v is None:
        return None

    speed_mps = math.hypot(u, v)
    towards = math.degrees(math.atan2(u, v)) % 360.0
    direction_from = (towards + 180.0) % 360.0
    if direction_from >= 360.0:
        direction_from -= 360.0

    return WindVector(speed_kt=mps_to_knots(speed_mps), direction_deg=direction_from)


def round_bearing(direction_deg: float, step: int = 1) -> int:
    """Round a bearing to `step` degrees; north comes out as 360, not 0."""
    rounded = round_half_up(direction_deg, step) % 360
    return 360 if rounded == 0 else rounded


def angular_difference(a: float, b: float) -> float:
    """Smallest angle between two bearings (0-180)."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


def variability(dir1: Optional[float], dir2: Optional[float]) -> Optional[Tuple[str, str]]:
    """
    Bearing range spanned by two wind directions.

    Returns None ("no variability") when either bearing is unknown or both
    are the same whole degree. Otherwise the pair is ordered along the
    shortest arc: lower bearing first when the arc stays clear of north,
    the bearing nearer 360 first when the arc crosses it.
    No minimum arc is applied.
    """
    if dir1 is None or dir2 is None:
        return None

    a = round_half_up(dir1)
    b = round_half_up(dir2)
    if a % 360 == b % 360:
        return None

    absolute = abs(a - b)
    complementary = 360 - absolute
    low, high = min(a, b), max(a, b)

    if absolute <= complementary:
        first, second = low, high
    else:
        first, second = high, low

    return f"{first:03d}", f"{second:03d}"
