"""
Scalar unit conversions used by the source normalizers.

Speed helpers never fail the pipeline: non-numeric or negative input gives 0.
Pressure and temperature helpers give None for non-numeric input so the field
stays absent instead of taking a made-up value.
"""

from decimal import Decimal, ROUND_HALF_UP
import math
from typing import Any, Optional

KMH_TO_KNOTS = 0.539957
MPS_TO_KNOTS = 1.94384
PA_TO_HPA = 0.01
KELVIN_OFFSET = 273.15


def as_number(value: Any) -> Optional[float]:
    """Finite int or float as a float; anything else (bools included) is None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def round_half_up(value: float, step: int = 1) -> int:
    """
    Round to the nearest multiple of `step`, halves away from zero
    for positives (26.5 -> 27, 35 -> 40 with step=10).
    """
    d = Decimal(str(value)) / Decimal(step)
    return int(d.quantize(Decimal("1"), rounding=ROUND_HALF_UP)) * step


def kmh_to_knots(speed_kmh: Any) -> int:
    """km/h to whole knots."""
    speed = as_number(speed_kmh)
    if speed is None or speed < 0:
        return 0
    return round_half_up(speed * KMH_TO_KNOTS)


def mps_to_knots(speed_mps: Any) -> float:
    """m/s to knots, unrounded. Callers round at the point of use."""
    speed = as_number(speed_mps)
    if speed is None or speed < 0:
        return 0.0
    return speed * MPS_TO_KNOTS


def pa_to_hpa(pressure_pa: Any) -> Optional[float]:
    pressure = as_number(pressure_pa)
    if pressure is None:
        return None
    return pressure * PA_TO_HPA


def kelvin_to_celsius(temp_k: Any) -> Optional[float]:
    temp = as_number(temp_k)
    if temp is None:
        return None
    return temp - KELVIN_OFFSET
