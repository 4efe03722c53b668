from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Phenomenon(Enum):
    """
    Significant weather attached to a snapshot.
    Each member carries (spoken phrase, compact code).
    """
    NONE = ("none", "")
    UNKNOWN = ("unknown", "")
    HIGH_CLOUDS = ("high clouds", "")
    RAIN = ("rain", "RA")
    LIGHT_RAIN = ("light rain", "-RA")
    SNOW = ("snow", "SN")
    LIGHT_SNOW = ("light snow", "-SN")
    THUNDERSTORM = ("thunderstorm", "TS")
    THUNDERSTORM_LIGHT_RAIN = ("thunderstorm with light rain", "TS-RA")
    FOG = ("fog", "FG")
    MIST = ("mist", "BR")
    HAZE = ("haze", "HZ")
    DUST_HAZE = ("dust haze", "DU")

    @property
    def spoken(self) -> str:
        return self.value[0]

    @property
    def code(self) -> str:
        return self.value[1]

    @property
    def is_significant(self) -> bool:
        """NONE/UNKNOWN/HIGH_CLOUDS are never announced as weather."""
        return bool(self.code)


@dataclass(frozen=True)
class WeatherSnapshot:
    """
    Canonical weather record. Every field is optional: None means the
    source could not determine it.
    """
    wind_direction: Optional[int] = None       # degrees, 1-360
    wind_speed: Optional[int] = None           # knots
    gust_direction: Optional[int] = None
    gust_speed: Optional[int] = None           # knots
    wind_variability: Optional[Tuple[str, str]] = None  # derived during fusion
    visibility: Optional[float] = None         # km
    temperature: Optional[float] = None        # C
    dew_point: Optional[float] = None          # C
    qnh: Optional[float] = None                # hPa
    precipitation: Optional[float] = None      # mm
    observation_time: Optional[str] = None     # "HH:MM" UTC
    sky_octas: Optional[int] = None            # 0-8
    sky_description: Optional[str] = None      # agency sky text, as received
    phenomenon: Optional[Phenomenon] = None
    cloud_layers: Optional[Tuple[str, ...]] = None
    cloud_layers_short: Optional[Tuple[str, ...]] = None

    @classmethod
    def empty(cls) -> "WeatherSnapshot":
        return cls()

    def present_fields(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["phenomenon"] = self.phenomenon.name if self.phenomenon else None
        for key in ("wind_variability", "cloud_layers", "cloud_layers_short"):
            if data[key] is not None:
                data[key] = list(data[key])
        return data


@dataclass
class ProviderOutcome:
    """What one provider contributed to a report generation."""
    name: str
    snapshot: WeatherSnapshot = field(default_factory=WeatherSnapshot.empty)
    record: Optional[Dict[str, Any]] = None   # raw values, for diagnostics
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "error": self.error,
            "record": self.record,
            "snapshot": self.snapshot.to_dict(),
        }


@dataclass
class ReportResult:
    """Outcome of one report generation, successful or error-shaped."""
    ok: bool
    full_report: str
    datis_report: str
    identifier: Optional[str] = None
    snapshot: Optional[WeatherSnapshot] = None
    providers: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    rotation_state: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "identifier": self.identifier,
            "full_report": self.full_report,
            "datis_report": self.datis_report,
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "providers": self.providers,
            "error": self.error,
        }
