"""
LERM ATIS - Windy Fetcher
Fetches the point forecast from the Windy API and turns the step nearest to
now into a partial snapshot.
"""

from __future__ import annotations

import httpx
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from config import (
    STATION,
    WINDY_API_URL,
    WINDY_LEVELS,
    WINDY_MODEL,
    WINDY_PARAMETERS,
)
from collector.nearest import select_nearest
from core.clouds import map_cloud_layers
from core.errors import ProviderFetchError, ProviderParseError
from core.models import WeatherSnapshot
from core.time_utils import format_utc_hhmm
from core.units import as_number, kelvin_to_celsius, mps_to_knots, pa_to_hpa, round_half_up
from core.wind import from_components, round_bearing

logger = logging.getLogger("windy_fetcher")

PROVIDER = "forecast"

# Forecast bearings are only meaningful to the nearest 10 degrees
FORECAST_BEARING_STEP = 10


async def fetch_windy_payload(client: httpx.AsyncClient, api_key: str) -> Dict[str, Any]:
    """POST the point-forecast request and return the decoded JSON body."""
    request_body = {
        "lat": STATION.latitude,
        "lon": STATION.longitude,
        "model": WINDY_MODEL,
        "parameters": WINDY_PARAMETERS,
        "levels": WINDY_LEVELS,
        "key": api_key,
    }
    try:
        response = await client.post(WINDY_API_URL, json=request_body)
    except httpx.HTTPError as e:
        raise ProviderFetchError(PROVIDER, f"request failed: {e}")

    if response.status_code >= 400:
        raise ProviderFetchError(
            PROVIDER,
            f"status {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as e:
        raise ProviderParseError(PROVIDER, f"body is not JSON: {e}")


def _ms_to_utc(value: Any) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def select_forecast_step(payload: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """
    Flatten the parallel parameter arrays at the time step nearest to `now`.

    Returns a dict with every "<param>-surface" value at that index plus
    `timestampMs`/`timestampUTC`.

    Raises:
        ProviderParseError: no time index or no temperature series.
    """
    if not isinstance(payload, dict):
        raise ProviderParseError(PROVIDER, "payload is not an object")

    timestamps = payload.get("ts")
    if not isinstance(timestamps, list) or not timestamps:
        raise ProviderParseError(PROVIDER, "payload has no time index")
    if not isinstance(payload.get("temp-surface"), list):
        raise ProviderParseError(PROVIDER, "payload has no temperature series")

    closest_index = select_nearest(
        range(len(timestamps)),
        lambda i: _ms_to_utc(timestamps[i]),
        now,
    )
    if closest_index is None:
        raise ProviderParseError(PROVIDER, "no usable timestamps")

    step: Dict[str, Any] = {}
    for key, values in payload.items():
        if key == "ts" or not isinstance(values, list):
            continue
        step[key] = values[closest_index] if closest_index < len(values) else None

    step["timestampMs"] = timestamps[closest_index]
    step["timestampUTC"] = _ms_to_utc(timestamps[closest_index]).isoformat()
    if isinstance(payload.get("units"), dict):
        step["units"] = payload["units"]
    return step


def _one_decimal(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None


def normalize_windy(step: Dict[str, Any]) -> WeatherSnapshot:
    """
    Convert one forecast step into the canonical units.

    Bearings are rounded to 10 degrees, speeds to whole knots. Cloud layers
    are estimated from the low/mid/high cover percentages and QNH. A value
    that is not a finite number leaves its field absent.
    """
    wind = from_components(as_number(step.get("wind_u-surface")), as_number(step.get("wind_v-surface")))
    wind_direction = round_bearing(wind.direction_deg, FORECAST_BEARING_STEP) if wind else None
    wind_speed = round_half_up(wind.speed_kt) if wind else None

    gust_mps = as_number(step.get("gust-surface"))
    gust_speed = round_half_up(mps_to_knots(gust_mps)) if gust_mps is not None else None

    qnh = _one_decimal(pa_to_hpa(step.get("pressure-surface")))

    precip_m = as_number(step.get("past3hprecip-surface"))
    precipitation = round_half_up(precip_m * 1000) if precip_m is not None else None

    observed_at = _ms_to_utc(step.get("timestampMs"))

    cover = [as_number(step.get(f"{level}clouds-surface")) for level in ("l", "m", "h")]
    clouds: Tuple[Optional[Tuple[str, ...]], Optional[Tuple[str, ...]]] = (None, None)
    if any(value is not None for value in cover):
        clouds = map_cloud_layers(cover[0], cover[1], cover[2], qnh)

    return WeatherSnapshot(
        wind_direction=wind_direction,
        wind_speed=wind_speed,
        gust_direction=wind_direction,  # model gives no gust bearing; use the mean wind
        gust_speed=gust_speed,
        temperature=_one_decimal(kelvin_to_celsius(step.get("temp-surface"))),
        dew_point=_one_decimal(kelvin_to_celsius(step.get("dewpoint-surface"))),
        qnh=qnh,
        precipitation=precipitation,
        observation_time=format_utc_hhmm(observed_at) if observed_at else None,
        cloud_layers=clouds[0],
        cloud_layers_short=clouds[1],
    )


def _diagnostic_record(step: Dict[str, Any]) -> Dict[str, Any]:
    keys: List[str] = [
        "timestampUTC", "temp-surface", "dewpoint-surface", "pressure-surface",
        "wind_u-surface", "wind_v-surface", "gust-surface", "past3hprecip-surface",
        "lclouds-surface", "mclouds-surface", "hclouds-surface", "ptype-surface",
    ]
    return {key: step.get(key) for key in keys}


async def fetch_windy(
    client: httpx.AsyncClient,
    api_key: str,
    now: Optional[datetime] = None,
) -> Tuple[WeatherSnapshot, Dict[str, Any]]:
    """
    Fetch and normalize the forecast model contribution.

    Raises:
        ProviderFetchError, ProviderParseError
    """
    now = now or datetime.now(timezone.utc)
    payload = await fetch_windy_payload(client, api_key)
    step = select_forecast_step(payload, now)
    try:
        snapshot = normalize_windy(step)
    except (TypeError, ValueError) as e:
        raise ProviderParseError(PROVIDER, f"forecast step could not be normalized: {e}")
    logger.info(
        "Windy step %s: %s",
        step["timestampUTC"], ", ".join(snapshot.present_fields()),
    )
    return snapshot, _diagnostic_record(step)
