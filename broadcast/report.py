"""
LERM ATIS - Report Renderer
Formats the canonical snapshot into the spoken ATIS and the compact D-ATIS.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from config import STATION, StationConfig
from core.clouds import SKY_CLEAR, SKY_CLEAR_SHORT, octas_to_code, octas_to_short_code
from core.models import Phenomenon, WeatherSnapshot
from core.units import round_half_up
from broadcast.runway import select_runway

# Below this mean speed the wind is reported calm
CALM_WIND_THRESHOLD_KT = 1.5

# Gusts are announced only when they exceed the mean wind by more than this
GUST_MARGIN_KT = 5

# CAVOK needs visibility above this (km), clear sky and no significant weather
CAVOK_VISIBILITY_KM = 10

UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class AtisBroadcast:
    """One formatted broadcast, ready for either output format."""
    airport_name: str
    identifier: str
    observation_time: Optional[str]
    wind_speed: Optional[int]
    wind_direction: Optional[int]
    gust_speed: Optional[int]
    wind_variability: Optional[Tuple[str, str]]
    visibility: Optional[float]
    cavok: bool
    phenomenon: Optional[Phenomenon]
    sky: Optional[str]
    sky_short: Optional[str]
    temperature: Optional[int]
    dew_point: Optional[int]
    qnh: Optional[int]
    runway_in_use: str
    remarks: Optional[str] = None

    @property
    def acknowledgment(self) -> str:
        return f"ADVISE ON INITIAL CONTACT YOU HAVE INFORMATION {self.identifier.upper()}"

    @property
    def is_calm(self) -> bool:
        return self.wind_speed is not None and self.wind_speed < CALM_WIND_THRESHOLD_KT

    @property
    def _direction_text(self) -> str:
        return f"{self.wind_direction:03d}" if self.wind_direction is not None else "VRB"

    @property
    def _significant_weather(self) -> Optional[Phenomenon]:
        if self.phenomenon is not None and self.phenomenon.is_significant:
            return self.phenomenon
        return None

    # ------------------------------------------------------------------
    # Spoken form
    # ------------------------------------------------------------------

    def _spoken_wind(self) -> str:
        if self.wind_speed is None:
            return "Wind not available"
        if self.is_calm:
            return "Wind calm"
        if self.wind_direction is None:
            text = f"Wind variable at {self.wind_speed} knots"
        else:
            text = f"Wind {self._direction_text} degrees at {self.wind_speed} knots"
        if self.gust_speed is not None:
            text += f" gusting {self.gust_speed} knots"
        if self.wind_variability:
            first, second = self.wind_variability
            text += f", variable between {first} and {second} degrees"
        return text

    def _spoken_weather(self) -> str:
        sky = self.sky or "SKY CONDITION NOT AVAILABLE"
        weather = self._significant_weather
        if weather is not None:
            return f"{weather.spoken.upper()} AND {sky}"
        return sky

    def full_report(self) -> str:
        """Spoken-style report: one sentence per item, space separated."""
        parts = [
            f"{self.airport_name} Terminal Information {self.identifier}.",
            f"Time {self.observation_time or UNKNOWN} Zulu.",
            f"{self._spoken_wind()}.",
        ]
        if self.cavok:
            parts.append("CAVOK.")
        else:
            parts.append(f"Visibility {_format_visibility(self.visibility)} kilometers."
                         if self.visibility is not None else "Visibility not available.")
            parts.append(f"{self._spoken_weather()}.")
        parts.extend([
            f"Temperature {_or_unknown(self.temperature)}, dew point {_or_unknown(self.dew_point)}.",
            f"QNH {_or_unknown(self.qnh)}.",
            f"Runway in use {self.runway_in_use}.",
        ])
        if self.remarks:
            parts.append(f"{self.remarks}.")
        parts.append(f"{self.acknowledgment}.")
        return " ".join(parts)

    # ------------------------------------------------------------------
    # Compact form
    # ------------------------------------------------------------------

    def _compact_wind(self) -> str:
        if self.wind_speed is None:
            return "NOT AVBL"
        if self.is_calm:
            return "CALM"
        text = f"{self._direction_text}/{self.wind_speed}"
        if self.gust_speed is not None:
            text += f"G{self.gust_speed}"
        text += "KT"
        if self.wind_variability:
            first, second = self.wind_variability
            text += f" {first}V{second}"
        return text

    def _compact_weather(self) -> str:
        sky = self.sky_short or "NOT AVBL"
        weather = self._significant_weather
        if weather is not None:
            return f"{weather.code} {sky}"
        return sky

    def datis_report(self) -> str:
        """Compact data-link report: one uppercase line per item."""
        time_text = self.observation_time.replace(":", "") if self.observation_time else "////"
        lines = [
            f"ATIS {self.identifier.upper()} {time_text}Z",
            f"RWY IN USE: {self.runway_in_use}",
            f"WIND: {self._compact_wind()}",
        ]
        if self.cavok:
            lines.append("VIS: CAVOK")
        else:
            vis = f"{_format_visibility(self.visibility)}KM" if self.visibility is not None else "NOT AVBL"
            lines.append(f"VIS: {vis}")
            lines.append(f"WX/CLD: {self._compact_weather()}")
        lines.extend([
            f"TEMP/DP: {_compact_temperature(self.temperature)}/{_compact_temperature(self.dew_point)}",
            f"QNH: Q{self.qnh}" if self.qnh is not None else "QNH: NOT AVBL",
        ])
        if self.remarks:
            lines.append(f"REMARKS: {self.remarks}")
        lines.append(f"ACK: {self.acknowledgment}")
        return "\n".join(line.upper() for line in lines)


def _or_unknown(value: Optional[int]) -> str:
    return str(value) if value is not None else UNKNOWN


def _format_visibility(visibility: float) -> str:
    if float(visibility).is_integer():
        return str(int(visibility))
    return f"{visibility:.1f}"


def _compact_temperature(value: Optional[int]) -> str:
    if value is None:
        return "//"
    prefix = "M" if value < 0 else ""
    return f"{prefix}{abs(value):02d}"


def _describe_sky(snapshot: WeatherSnapshot) -> Tuple[Optional[str], Optional[str], bool]:
    """
    Returns (spoken sky, compact sky, sky_clear).

    Octas from the agency decide the cover category. Without octas the
    estimated model layers are used, which also carry altitudes.
    """
    if snapshot.sky_octas is not None:
        octas = snapshot.sky_octas
        code = octas_to_code(octas)
        spoken = code if code in (SKY_CLEAR, "OVERCAST") else f"{code} CLOUDS"
        return spoken, octas_to_short_code(octas), octas == 0

    layers = snapshot.cloud_layers
    layers_short = snapshot.cloud_layers_short
    if layers:
        clear = tuple(layers) == (SKY_CLEAR,)
        spoken = ", ".join(layer.upper() for layer in layers)
        short = " ".join(layers_short).upper() if layers_short else (SKY_CLEAR_SHORT if clear else None)
        return spoken, short, clear

    return None, None, False


def format_report(
    snapshot: WeatherSnapshot,
    identifier: str,
    station: StationConfig = STATION,
    remarks: Optional[str] = None,
) -> AtisBroadcast:
    """Turn the canonical snapshot into the formatted broadcast fields."""
    sky, sky_short, sky_clear = _describe_sky(snapshot)

    phenomenon = snapshot.phenomenon
    significant = phenomenon is not None and phenomenon.is_significant
    cavok = (
        snapshot.visibility is not None
        and snapshot.visibility > CAVOK_VISIBILITY_KM
        and sky_clear
        and not significant
    )

    gust = None
    if snapshot.gust_speed is not None and snapshot.wind_speed is not None:
        if snapshot.gust_speed > snapshot.wind_speed + GUST_MARGIN_KT:
            gust = snapshot.gust_speed

    def _rounded(value: Optional[float]) -> Optional[int]:
        return round_half_up(value) if value is not None else None

    return AtisBroadcast(
        airport_name=station.name,
        identifier=identifier,
        observation_time=snapshot.observation_time,
        wind_speed=_rounded(snapshot.wind_speed),
        wind_direction=snapshot.wind_direction,
        gust_speed=gust,
        wind_variability=snapshot.wind_variability,
        visibility=snapshot.visibility,
        cavok=cavok,
        phenomenon=phenomenon,
        sky=sky,
        sky_short=sky_short,
        temperature=_rounded(snapshot.temperature),
        dew_point=_rounded(snapshot.dew_point),
        qnh=_rounded(snapshot.qnh),
        runway_in_use=select_runway(snapshot.wind_direction, station.runways),
        remarks=remarks,
    )


def render_reports(snapshot: WeatherSnapshot, identifier: str) -> Tuple[str, str]:
    """Both output strings for one snapshot: (spoken, compact)."""
    broadcast = format_report(snapshot, identifier)
    return broadcast.full_report(), broadcast.datis_report()


