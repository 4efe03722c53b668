"""
LERM ATIS - AEMET Fetcher
National agency observations (two stations) plus the municipal hourly sky
prediction from AEMET OpenData.
"""

from __future__ import annotations

import asyncio
import httpx
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from config import (
    AEMET_API_URL,
    AEMET_MUNICIPALITY_CODE,
    AEMET_OBSERVATION_ENDPOINT,
    AEMET_OBSERVATION_STATIONS,
    AEMET_PREDICTION_ENDPOINT,
    STATION,
)
from collector.nearest import select_nearest
from core.errors import ProviderFetchError, ProviderParseError, TimeConversionError
from core.models import Phenomenon, WeatherSnapshot
from core.time_utils import format_utc_hhmm, parse_iso_instant, resolve_utc_instant
from core.units import as_number, mps_to_knots, round_half_up
from core.wind import round_bearing
from synthesizer.fusion import merge_snapshots

logger = logging.getLogger("aemet_fetcher")

PROVIDER = "agency"


@dataclass(frozen=True)
class SkyState:
    """Sky cover in octas plus the weather it implies."""
    octas: Optional[int]
    phenomenon: Optional[Phenomenon]


# ============================================================================
# HTTP
# ============================================================================

async def _get_json(client: httpx.AsyncClient, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
    try:
        response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        raise ProviderFetchError(PROVIDER, f"request to {url} failed: {e}")

    if response.status_code >= 400:
        raise ProviderFetchError(
            PROVIDER,
            f"{url} answered status {response.status_code}",
            status_code=response.status_code,
        )

    # Data documents are served as ISO-8859-15; response.text honours the charset.
    try:
        return json.loads(response.text)
    except ValueError as e:
        raise ProviderParseError(PROVIDER, f"{url} did not return JSON: {e}")


async def fetch_aemet_json(client: httpx.AsyncClient, endpoint: str, api_key: str) -> Any:
    """
    Two-step AEMET fetch: the endpoint answers with a `datos` URL that
    points at the real document.
    """
    headers = {"Accept": "application/json", "api_key": api_key}
    envelope = await _get_json(client, f"{AEMET_API_URL}{endpoint}", headers=headers)

    data_url = envelope.get("datos") if isinstance(envelope, dict) else None
    if not data_url:
        description = envelope.get("descripcion") if isinstance(envelope, dict) else None
        raise ProviderParseError(PROVIDER, f"no data URL for {endpoint}: {description or envelope!r}")

    return await _get_json(client, data_url)


# ============================================================================
# OBSERVATIONS
# ============================================================================

def _fint_instant(record: Dict[str, Any]) -> Optional[datetime]:
    try:
        return parse_iso_instant(record.get("fint"), default_zone="UTC")
    except TimeConversionError:
        return None


def find_closest_observation(records: List[Dict[str, Any]], now: datetime) -> Optional[Dict[str, Any]]:
    """Observation record whose `fint` is nearest to `now`."""
    return select_nearest(
        (r for r in records if isinstance(r, dict)),
        _fint_instant,
        now,
    )


def normalize_observation(record: Dict[str, Any]) -> WeatherSnapshot:
    """
    One conventional-observation record to a partial snapshot.
    Station bearings keep whole degrees; speeds are rounded to whole knots.
    """
    direction = as_number(record.get("dv"))
    speed = as_number(record.get("vv"))
    gust_direction = as_number(record.get("dmax"))
    gust_speed = as_number(record.get("vmax"))
    visibility = as_number(record.get("vis"))

    instant = _fint_instant(record)
    if instant is None and record.get("fint") is not None:
        logger.warning("AEMET observation with unreadable time %r", record.get("fint"))

    return WeatherSnapshot(
        wind_direction=round_bearing(direction) if direction is not None else None,
        wind_speed=round_half_up(mps_to_knots(speed)) if speed is not None else None,
        gust_direction=round_bearing(gust_direction) if gust_direction is not None else None,
        gust_speed=round_half_up(mps_to_knots(gust_speed)) if gust_speed is not None else None,
        visibility=visibility,
        temperature=as_number(record.get("ta")),
        dew_point=as_number(record.get("tpr")),
        qnh=as_number(record.get("pres_nmar")) or None,
        precipitation=as_number(record.get("prec")),
        observation_time=format_utc_hhmm(instant) if instant else None,
    )


# ============================================================================
# SKY PREDICTION
# ============================================================================

def map_sky_description(description: str) -> SkyState:
    """
    Map the Spanish `estadoCielo` description to octas and phenomenon.
    More specific wordings are tested before the ones they contain.
    """
    text = description.lower().strip()
    octas: Optional[int] = None
    phenomenon: Optional[Phenomenon] = None

    if "despejado" in text:
        octas = 0
    elif "poco nuboso" in text:
        octas = 2
    elif "nubes altas" in text:
        octas = 1
        phenomenon = Phenomenon.HIGH_CLOUDS
    elif "intervalos nubosos" in text:
        octas = 4
    elif "muy nuboso" in text:
        octas = 7
    elif "nuboso" in text:
        octas = 6
    elif "cubierto" in text:
        octas = 8

    if "lluvia" in text or "llovizna" in text:
        phenomenon = Phenomenon.RAIN
    elif "nieve" in text:
        phenomenon = Phenomenon.SNOW
    elif "tormenta" in text:
        phenomenon = Phenomenon.THUNDERSTORM
    elif "niebla" in text:
        phenomenon = Phenomenon.FOG
        octas = 8
    elif "bruma" in text:
        phenomenon = Phenomenon.MIST
        octas = 8
    elif "calima" in text:
        phenomenon = Phenomenon.DUST_HAZE
        octas = 0

    if octas is None:
        return SkyState(octas=0, phenomenon=Phenomenon.UNKNOWN)
    return SkyState(octas=octas, phenomenon=phenomenon or Phenomenon.NONE)


_PRECIPITATION_GROUPS = [
    # (first code, phenomenon); octas run 4/6/6/8 across each group of four
    (23, Phenomenon.RAIN),
    (33, Phenomenon.SNOW),
    (43, Phenomenon.LIGHT_RAIN),
    (51, Phenomenon.THUNDERSTORM),
    (61, Phenomenon.THUNDERSTORM_LIGHT_RAIN),
    (71, Phenomenon.LIGHT_SNOW),
]
_GROUP_OCTAS = [4, 6, 6, 8]
_PLAIN_SKY_OCTAS = {11: 0, 12: 2, 13: 4, 14: 6, 15: 6, 16: 8}


def parse_sky_code(code: Any) -> SkyState:
    """Decode the numeric AEMET sky code ("71n", 53, ...). The `n` night marker is ignored."""
    match = re.match(r"^\s*(\d+)", str(code))
    if not match:
        return SkyState(octas=None, phenomenon=Phenomenon.UNKNOWN)
    value = int(match.group(1))

    if value in _PLAIN_SKY_OCTAS:
        return SkyState(octas=_PLAIN_SKY_OCTAS[value], phenomenon=Phenomenon.NONE)
    if value == 17:
        return SkyState(octas=6, phenomenon=Phenomenon.HIGH_CLOUDS)
    for first, phenomenon in _PRECIPITATION_GROUPS:
        if first <= value < first + 4:
            return SkyState(octas=_GROUP_OCTAS[value - first], phenomenon=phenomenon)
    if 21 <= value <= 30:
        return SkyState(octas=8, phenomenon=Phenomenon.FOG)
    if 31 <= value <= 40:
        return SkyState(octas=None, phenomenon=Phenomenon.HAZE)
    return SkyState(octas=None, phenomenon=Phenomenon.UNKNOWN)


def _prediction_instant(day_date: str, period: Any) -> Optional[datetime]:
    try:
        year, month, day = day_date.split("T")[0].split("-")
        return resolve_utc_instant(year, month, day, int(period), 0, 0, zone=STATION.timezone)
    except (AttributeError, ValueError, TypeError, TimeConversionError):
        return None


def find_closest_sky_state(prediction: Any, now: datetime) -> Optional[Dict[str, Any]]:
    """
    Hourly sky entry nearest to `now` from the municipal prediction.

    Raises:
        ProviderParseError: document without the `prediccion.dia` structure.
    """
    try:
        days = prediction[0]["prediccion"]["dia"]
    except (IndexError, KeyError, TypeError):
        raise ProviderParseError(PROVIDER, "prediction document has no prediccion.dia")
    if not isinstance(days, list):
        raise ProviderParseError(PROVIDER, "prediccion.dia is not a list")

    candidates = []
    for day in days:
        if not isinstance(day, dict):
            continue
        for entry in day.get("estadoCielo") or []:
            if not isinstance(entry, dict):
                continue
            instant = _prediction_instant(str(day.get("fecha", "")), entry.get("periodo"))
            candidates.append({
                "instant": instant,
                "day": str(day.get("fecha", "")).split("T")[0],
                "hour": entry.get("periodo"),
                "description": entry.get("descripcion"),
                "code": entry.get("value"),
            })

    return select_nearest(candidates, lambda c: c["instant"], now)


def normalize_sky_state(entry: Optional[Dict[str, Any]]) -> WeatherSnapshot:
    if entry is None:
        return WeatherSnapshot.empty()

    description = entry.get("description")
    description = description.strip() if isinstance(description, str) else ""
    if description:
        sky = map_sky_description(description)
    else:
        sky = parse_sky_code(entry.get("code"))

    return WeatherSnapshot(
        sky_octas=sky.octas,
        sky_description=description or None,
        phenomenon=sky.phenomenon,
    )


# ============================================================================
# PROVIDER ENTRY POINT
# ============================================================================

def normalize_aemet(
    prediction: Any,
    observations: List[Any],
    now: datetime,
) -> Tuple[WeatherSnapshot, Dict[str, Any]]:
    """
    Combine the station observations (in AEMET_OBSERVATION_STATIONS order,
    later stations overriding) with the nearest sky prediction.
    """
    snapshot = WeatherSnapshot.empty()
    record: Dict[str, Any] = {"observations": {}, "sky": None}

    for station_id, records in zip(AEMET_OBSERVATION_STATIONS, observations):
        if not isinstance(records, list):
            raise ProviderParseError(PROVIDER, f"observations for {station_id} are not a list")
        closest = find_closest_observation(records, now)
        if closest is None:
            logger.warning("AEMET station %s returned no usable observation", station_id)
            continue
        record["observations"][station_id] = closest
        snapshot = merge_snapshots(snapshot, normalize_observation(closest))

    sky_entry = find_closest_sky_state(prediction, now)
    if sky_entry is not None:
        record["sky"] = {k: v for k, v in sky_entry.items() if k != "instant"}
    snapshot = merge_snapshots(snapshot, normalize_sky_state(sky_entry))
    return snapshot, record


async def fetch_aemet(
    client: httpx.AsyncClient,
    api_key: str,
    now: Optional[datetime] = None,
) -> Tuple[WeatherSnapshot, Dict[str, Any]]:
    """
    Fetch prediction and observation documents and normalize them.

    Raises:
        ProviderFetchError, ProviderParseError
    """
    now = now or datetime.now(timezone.utc)
    endpoints = [f"{AEMET_PREDICTION_ENDPOINT}{AEMET_MUNICIPALITY_CODE}"] + [
        f"{AEMET_OBSERVATION_ENDPOINT}{station_id}" for station_id in AEMET_OBSERVATION_STATIONS
    ]
    # all requests settle before the first failure is raised
    documents = await asyncio.gather(
        *(fetch_aemet_json(client, e, api_key) for e in endpoints),
        return_exceptions=True,
    )
    for document in documents:
        if isinstance(document, BaseException):
            raise document

    try:
        snapshot, record = normalize_aemet(documents[0], list(documents[1:]), now)
    except (TypeError, ValueError) as e:
        raise ProviderParseError(PROVIDER, f"documents could not be normalized: {e}")
    logger.info("AEMET contribution: %s", ", ".join(snapshot.present_fields()))
    return snapshot, record
