"""Runway-in-use selection from the wind bearing."""

from typing import Optional, Sequence

from config import STATION, RunwayConfig
from core.wind import angular_difference


def select_runway(
    wind_direction: Optional[float],
    runways: Sequence[RunwayConfig] = STATION.runways,
) -> str:
    """
    Pick the runway whose heading is closest to the wind bearing, i.e. the
    one with the most headwind. Ties, and an unknown bearing, go to the
    lower heading.
    """
    ordered = sorted(runways, key=lambda r: r.heading)
    if wind_direction is None:
        return ordered[0].designator

    best = ordered[0]
    best_diff = angular_difference(wind_direction, best.heading)
    for runway in ordered[1:]:
        diff = angular_difference(wind_direction, runway.heading)
        if diff < best_diff:
            best, best_diff = runway, diff
    return best.designator
