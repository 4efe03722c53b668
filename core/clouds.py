"""
Cloud cover estimation for the forecast model.

The model only gives low/mid/high cover percentages; octas, sky codes and a
layer altitude derived from QNH are estimated here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.units import round_half_up

# Reference pressure for each layer (hPa)
P_LOW_CLOUDS = 800
P_MID_CLOUDS = 600
P_HIGH_CLOUDS = 400

# Pressure gradient near the surface
FT_PER_HPA = 27

ISA_QNH_HPA = 1013.25

SKY_CLEAR = "SKY CLEAR"
SKY_CLEAR_SHORT = "SKC"


@dataclass(frozen=True)
class CloudAltitudes:
    """Estimated base of each layer, in feet, rounded to 100 ft."""
    low: int
    mid: int
    high: int


def percent_to_octas(percent: Optional[float]) -> int:
    """Map cover percentage to the representative octas of its category."""
    if percent is None:
        return 0
    if percent >= 88:
        return 8  # OVC
    if percent >= 51:
        return 7  # BKN
    if percent >= 25:
        return 4  # SCT
    if percent >= 1:
        return 2  # FEW
    return 0


def octas_to_code(octas: int) -> str:
    if octas >= 8:
        return "OVERCAST"
    if octas >= 5:
        return "BROKEN"
    if octas >= 3:
        return "SCATTERED"
    if octas >= 1:
        return "FEW"
    return SKY_CLEAR


def octas_to_short_code(octas: int) -> str:
    if octas >= 8:
        return "OVC"
    if octas >= 5:
        return "BKN"
    if octas >= 3:
        return "SCT"
    if octas >= 1:
        return "FEW"
    return SKY_CLEAR_SHORT


def _layer_altitude(qnh: float, layer_pressure: float) -> int:
    if qnh <= layer_pressure:
        return 0
    return round_half_up((qnh - layer_pressure) * FT_PER_HPA, 100)


def estimate_altitude(qnh: Optional[float]) -> CloudAltitudes:
    """Estimate layer altitudes from the pressure difference to each reference level."""
    if qnh is None:
        qnh = ISA_QNH_HPA
    return CloudAltitudes(
        low=_layer_altitude(qnh, P_LOW_CLOUDS),
        mid=_layer_altitude(qnh, P_MID_CLOUDS),
        high=_layer_altitude(qnh, P_HIGH_CLOUDS),
    )


def map_cloud_layers(
    low_percent: Optional[float],
    mid_percent: Optional[float],
    high_percent: Optional[float],
    qnh: Optional[float],
) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Convert the three cover percentages into layer descriptions.

    Returns (long, short), e.g. (("BROKEN at 5800 feet",), ("BKN 5800ft",)).
    Layers are reported independently, bottom to top. With no cover at any
    level the single sky-clear layer is returned.
    """
    altitudes = estimate_altitude(qnh)
    layers: List[str] = []
    layers_short: List[str] = []

    for percent, altitude in (
        (low_percent, altitudes.low),
        (mid_percent, altitudes.mid),
        (high_percent, altitudes.high),
    ):
        octas = percent_to_octas(percent)
        if octas == 0:
            continue
        layers.append(f"{octas_to_code(octas)} at {altitude} feet")
        layers_short.append(f"{octas_to_short_code(octas)} {altitude}ft")

    if not layers:
        layers.append(SKY_CLEAR)
        layers_short.append(SKY_CLEAR_SHORT)

    return tuple(layers), tuple(layers_short)
