"""
LERM ATIS - Configuration
Central configuration for the aerodrome, data providers and secrets.
"""

from dataclasses import dataclass
from typing import Dict, Tuple
import os

from core.errors import ConfigurationError

# ============================================================================
# AERODROME CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class RunwayConfig:
    """One runway direction: designator and magnetic heading."""
    designator: str
    heading: int


@dataclass(frozen=True)
class StationConfig:
    """Aerodrome configuration with metadata."""
    icao_id: str
    name: str
    latitude: float
    longitude: float
    timezone: str
    runways: Tuple[RunwayConfig, RunwayConfig]


STATION = StationConfig(
    icao_id="LERM",
    name="Robledillo",
    latitude=40.86030,
    longitude=-3.24586,
    timezone="Europe/Madrid",
    runways=(RunwayConfig("01", 10), RunwayConfig("19", 190)),
)

# ============================================================================
# API ENDPOINTS
# ============================================================================

# Windy point forecast (forecast model)
WINDY_API_URL = "https://api.windy.com/api/point-forecast/v2"
WINDY_MODEL = "iconEu"
WINDY_LEVELS = ["surface"]
WINDY_PARAMETERS = [
    "temp", "dewpoint", "wind", "windGust", "precip", "convPrecip",
    "snowPrecip", "ptype", "lclouds", "mclouds", "hclouds", "pressure",
]

# AEMET OpenData (national agency)
AEMET_API_URL = "https://opendata.aemet.es/opendata"
AEMET_PREDICTION_ENDPOINT = "/api/prediccion/especifica/municipio/horaria/"
AEMET_OBSERVATION_ENDPOINT = "/api/observacion/convencional/datos/estacion/"
AEMET_MUNICIPALITY_CODE = "19239"

# Observation stations in merge order: the regional station carries the
# richer record, the nearer one overrides it.
AEMET_OBSERVATION_STATIONS = ["3168D", "3103"]

# Aeroclub page (local station)
LOCAL_STATION_URL = "https://www.aeroclubdeguadalajara.es/meteo.php"
LOCAL_STATION_USER_AGENT = "LERM-ATIS-Scraper/1.0"

# ============================================================================
# SECRETS AND RUNTIME SETTINGS
# ============================================================================

DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0

REQUIRED_SECRETS: Dict[str, str] = {
    "WINDY_API_KEY": "forecast model",
    "AEMET_API_KEY": "national agency",
}


@dataclass(frozen=True)
class Settings:
    """Secrets and knobs read from the environment."""
    windy_api_key: str
    aemet_api_key: str
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "Settings":
        missing = [name for name in REQUIRED_SECRETS if not (os.getenv(name) or "").strip()]
        if missing:
            raise ConfigurationError(f"{', '.join(missing)} secret is missing")

        raw_timeout = os.getenv("ATIS_HTTP_TIMEOUT_SECONDS")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_HTTP_TIMEOUT_SECONDS
        except ValueError:
            raise ConfigurationError(f"ATIS_HTTP_TIMEOUT_SECONDS is not a number: {raw_timeout!r}")

        return cls(
            windy_api_key=os.environ["WINDY_API_KEY"].strip(),
            aemet_api_key=os.environ["AEMET_API_KEY"].strip(),
            http_timeout_seconds=max(1.0, timeout),
        )
