"""
LERM ATIS - Local Station Fetcher
Scrapes the aeroclub "Condiciones Actuales" block and parses its fixed
text format (local time, temperature, wind, QNH, sunrise/sunset).
"""

from __future__ import annotations

import httpx
import logging
import re
from typing import Any, Dict, Optional, Tuple

from bs4 import BeautifulSoup

from config import LOCAL_STATION_URL, LOCAL_STATION_USER_AGENT, STATION
from core.errors import ProviderFetchError, ProviderParseError
from core.models import WeatherSnapshot
from core.time_utils import INVALID_TIME, to_utc_hhmm
from core.units import kmh_to_knots

logger = logging.getLogger("local_station_fetcher")

PROVIDER = "station"

CONDITIONS_HEADING = "Condiciones Actuales"

TIME_RE = re.compile(r"Actualizado:\s*(\d{2})/(\d{2})/(\d{4})\s*(\d{2}):(\d{2}):(\d{2})")
TEMP_RE = re.compile(r"Temp\.:\s*(-?\d+(?:\.\d+)?)\s*°C")
WIND_RE = re.compile(r"Viento:\s*(\d+(?:\.\d+)?)\s*km/h\s*del\s*([A-Z]+)\.?", re.IGNORECASE)
QNH_RE = re.compile(r"QNH:\s*(\d+)\s*hPa")
SUN_RE = re.compile(r"Orto:\s*(\d{2}:\d{2})\.\s*\S*\s*Ocaso:\s*(\d{2}:\d{2})")

# Spanish compass points (O = Oeste); north is 360
COMPASS_DEGREES: Dict[str, int] = {
    "N": 360, "NNE": 22, "NE": 45, "ENE": 67,
    "E": 90, "ESE": 112, "SE": 135, "SSE": 157,
    "S": 180, "SSO": 202, "SO": 225, "OSO": 247,
    "O": 270, "ONO": 292, "NO": 315, "NNO": 337,
}


def compass_to_degrees(text: Optional[str]) -> Optional[int]:
    """
    Bearing for a Spanish compass abbreviation. English W spellings are
    accepted. VRB and unknown points have no bearing.
    """
    if not text:
        return None
    cleaned = text.upper().strip().rstrip(".").replace("W", "O")
    return COMPASS_DEGREES.get(cleaned)


def extract_conditions_text(html: str) -> str:
    """
    Text of the block following the "Condiciones Actuales" heading, with
    line breaks and runs of whitespace collapsed to single spaces.

    Raises:
        ProviderParseError: the heading or its block is missing.
    """
    soup = BeautifulSoup(html, "html.parser")
    heading = soup.find(
        lambda tag: tag.name in ("h1", "h2", "h3") and tag.get_text(strip=True) == CONDITIONS_HEADING
    )
    if heading is None:
        raise ProviderParseError(PROVIDER, f"'{CONDITIONS_HEADING}' heading not found")

    block = heading.find_next_sibling("div")
    if block is None:
        raise ProviderParseError(PROVIDER, f"'{CONDITIONS_HEADING}' block not found")

    for br in block.find_all("br"):
        br.replace_with("\n")
    text = block.get_text(" ").replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def parse_clean_conditions(text: str) -> Dict[str, Any]:
    """
    Parse the cleaned conditions text into a flat record.

    Example input:
        "Actualizado: 21/10/2025 18:40:00 Temp.: 15.2 °C Viento: 12 km/h del NO.;
         QNH: 1018 hPa Orto: 08:27. Ocaso: 19:07"

    Raises:
        ProviderParseError: empty text, or none of the fields could be read.
    """
    if not isinstance(text, str) or not text.strip():
        raise ProviderParseError(PROVIDER, "empty conditions text")

    record: Dict[str, Any] = {
        "observation_local": None,
        "observation_time": None,
        "temperature_c": None,
        "wind_speed_kt": None,
        "wind_direction_text": None,
        "wind_direction_deg": None,
        "qnh_hpa": None,
        "sunrise": None,
        "sunset": None,
    }

    match = TIME_RE.search(text)
    if match:
        day, month, year, hour, minute, second = match.groups()
        record["observation_local"] = f"{year}-{month}-{day}T{hour}:{minute}:{second}"
        utc_time = to_utc_hhmm(year, month, day, hour, minute, second, zone=STATION.timezone)
        if utc_time == INVALID_TIME:
            logger.warning("Local station time %s could not be converted", record["observation_local"])
        else:
            record["observation_time"] = utc_time

    match = TEMP_RE.search(text)
    if match:
        record["temperature_c"] = float(match.group(1))

    match = WIND_RE.search(text)
    if match:
        record["wind_speed_kt"] = kmh_to_knots(float(match.group(1)))
        record["wind_direction_text"] = match.group(2).upper()
        record["wind_direction_deg"] = compass_to_degrees(match.group(2))

    match = QNH_RE.search(text)
    if match:
        record["qnh_hpa"] = int(match.group(1))

    match = SUN_RE.search(text)
    if match:
        record["sunrise"], record["sunset"] = match.groups()

    if all(record[key] is None for key in ("observation_local", "temperature_c", "wind_speed_kt", "qnh_hpa")):
        raise ProviderParseError(PROVIDER, "no conditions could be read from the station text")
    return record


def normalize_local_station(record: Dict[str, Any]) -> WeatherSnapshot:
    return WeatherSnapshot(
        wind_direction=record.get("wind_direction_deg"),
        wind_speed=record.get("wind_speed_kt"),
        temperature=record.get("temperature_c"),
        qnh=record.get("qnh_hpa"),
        observation_time=record.get("observation_time"),
    )


async def fetch_local_station(client: httpx.AsyncClient) -> Tuple[WeatherSnapshot, Dict[str, Any]]:
    """
    Fetch the aeroclub page and return the station contribution.

    Raises:
        ProviderFetchError, ProviderParseError
    """
    headers = {"User-Agent": LOCAL_STATION_USER_AGENT}
    try:
        response = await client.get(LOCAL_STATION_URL, headers=headers)
    except httpx.HTTPError as e:
        raise ProviderFetchError(PROVIDER, f"request failed: {e}")

    if response.status_code >= 400:
        raise ProviderFetchError(
            PROVIDER,
            f"status {response.status_code}",
            status_code=response.status_code,
        )

    text = extract_conditions_text(response.text)
    try:
        record = parse_clean_conditions(text)
        snapshot = normalize_local_station(record)
    except (TypeError, ValueError) as e:
        raise ProviderParseError(PROVIDER, f"conditions text could not be read: {e}")
    logger.info("Local station: %s", ", ".join(snapshot.present_fields()))
    return snapshot, record
