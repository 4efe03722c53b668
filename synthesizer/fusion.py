"""
LERM ATIS - Snapshot Fusion
Precedence merge of the three partial provider snapshots.

Precedence, lowest to highest:
    forecast model -> national agency -> local station

A field is copied from a higher-precedence snapshot only when it is present
there; absent values never overwrite what a lower source already set.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Optional, TypeVar

from core.models import WeatherSnapshot
from core.wind import variability

logger = logging.getLogger("fusion")

T = TypeVar("T")


def _pick(overlay: Optional[T], base: Optional[T]) -> Optional[T]:
    return overlay if overlay is not None else base


def merge_snapshots(base: WeatherSnapshot, overlay: WeatherSnapshot) -> WeatherSnapshot:
    """
    Apply `overlay` on top of `base`, field by field.
    `wind_variability` is derived, never taken from a source, so it keeps
    the base value.
    """
    return WeatherSnapshot(
        wind_direction=_pick(overlay.wind_direction, base.wind_direction),
        wind_speed=_pick(overlay.wind_speed, base.wind_speed),
        gust_direction=_pick(overlay.gust_direction, base.gust_direction),
        gust_speed=_pick(overlay.gust_speed, base.gust_speed),
        wind_variability=base.wind_variability,
        visibility=_pick(overlay.visibility, base.visibility),
        temperature=_pick(overlay.temperature, base.temperature),
        dew_point=_pick(overlay.dew_point, base.dew_point),
        qnh=_pick(overlay.qnh, base.qnh),
        precipitation=_pick(overlay.precipitation, base.precipitation),
        observation_time=_pick(overlay.observation_time, base.observation_time),
        sky_octas=_pick(overlay.sky_octas, base.sky_octas),
        sky_description=_pick(overlay.sky_description, base.sky_description),
        phenomenon=_pick(overlay.phenomenon, base.phenomenon),
        cloud_layers=_pick(overlay.cloud_layers, base.cloud_layers),
        cloud_layers_short=_pick(overlay.cloud_layers_short, base.cloud_layers_short),
    )


def fuse_snapshots(
    forecast: WeatherSnapshot,
    agency: WeatherSnapshot,
    station: WeatherSnapshot,
) -> WeatherSnapshot:
    """
    Fuse the three partial snapshots into the canonical one.

    When both the local-station bearing and the bearing known before the
    station was applied (agency, else forecast) are present, the range
    between them is attached as `wind_variability`.
    """
    pre_station = merge_snapshots(merge_snapshots(WeatherSnapshot.empty(), forecast), agency)
    fused = merge_snapshots(pre_station, station)

    vrb = None
    if station.wind_direction is not None and pre_station.wind_direction is not None:
        vrb = variability(station.wind_direction, pre_station.wind_direction)
        logger.debug(
            "Wind variability: station=%s pre-station=%s -> %s",
            station.wind_direction, pre_station.wind_direction, vrb,
        )

    logger.debug("Fused snapshot fields: %s", ", ".join(fused.present_fields()))
    return replace(fused, wind_variability=vrb)
