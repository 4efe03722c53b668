# Load environment variables FIRST (before any other imports)
from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

import logging
from typing import List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

# Silence verbose loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logger = logging.getLogger("web_server")

from config import STATION
from broadcast import ATIS_IDENTIFIERS, RotationStore
from core.errors import ConfigurationError
from core.models import ReportResult
from main import generate_report

NO_CACHE_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate"}

app = FastAPI(title="LERM ATIS")

# Process-local; a restart starts over at ALPHA
rotation_store = RotationStore()


class RunwayInfo(BaseModel):
    designator: str
    heading: int


class StationInfo(BaseModel):
    icao_id: str
    name: str
    latitude: float
    longitude: float
    timezone: str
    runways: List[RunwayInfo]


class RotationInfo(BaseModel):
    identifier: Optional[str]
    last_broadcast_observation_time: Optional[str]
    identifiers: List[str]


async def _next_report() -> ReportResult:
    """Read, advance and store the rotation state under the store lock."""
    async with rotation_store.lock:
        result = await generate_report(rotation_store.state)
        rotation_store.save(result.rotation_state)
    return result


@app.get("/atis", response_class=PlainTextResponse)
async def get_atis(format: str = "full"):
    """
    Current ATIS as plain text.

    Args:
        format: "datis" for the compact data-link report, anything else for
            the spoken-style report
    """
    try:
        result = await _next_report()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return PlainTextResponse(f"Configuration Error: {e}", status_code=500)

    text = result.datis_report if format == "datis" else result.full_report
    status = 200 if result.ok else 500
    return PlainTextResponse(text, status_code=status, headers=NO_CACHE_HEADERS)


@app.get("/api/atis")
async def get_atis_json():
    """Both reports plus the fused snapshot and raw provider records."""
    try:
        result = await _next_report()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return JSONResponse({"ok": False, "error": f"Configuration Error: {e}"}, status_code=500)

    return JSONResponse(result.to_dict(), status_code=200 if result.ok else 500, headers=NO_CACHE_HEADERS)


@app.get("/api/station", response_model=StationInfo)
def get_station():
    """Configured aerodrome."""
    return StationInfo(
        icao_id=STATION.icao_id,
        name=STATION.name,
        latitude=STATION.latitude,
        longitude=STATION.longitude,
        timezone=STATION.timezone,
        runways=[RunwayInfo(designator=r.designator, heading=r.heading) for r in STATION.runways],
    )


@app.get("/api/rotation", response_model=RotationInfo)
def get_rotation():
    """Identifier of the last broadcast, without generating a new one."""
    state = rotation_store.state
    return RotationInfo(
        identifier=state.identifier if state.last_broadcast_observation_time else None,
        last_broadcast_observation_time=state.last_broadcast_observation_time,
        identifiers=ATIS_IDENTIFIERS,
    )


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
