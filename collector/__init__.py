"""
LERM ATIS - Collector Module
Concurrent collection from the forecast model, the national agency and the
local station.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, List, Optional, Tuple

import httpx

from core.errors import ProviderFetchError, ProviderParseError
from core.models import ProviderOutcome, WeatherSnapshot

from .windy_fetcher import fetch_windy
from .aemet_fetcher import fetch_aemet
from .local_station_fetcher import fetch_local_station

__all__ = [
    "fetch_windy", "fetch_aemet", "fetch_local_station",
    "collect_all_data",
]

logger = logging.getLogger("collector")

# Precedence order, lowest first
PROVIDER_ORDER = ("forecast", "agency", "station")


async def _run_provider(name: str, call: Awaitable[Tuple[WeatherSnapshot, dict]]) -> ProviderOutcome:
    """Await one provider; fetch/parse failures degrade to an empty outcome."""
    try:
        snapshot, record = await call
    except (ProviderFetchError, ProviderParseError) as e:
        logger.warning("Provider %s degraded: %s", name, e)
        return ProviderOutcome(name=name, error=str(e))
    return ProviderOutcome(name=name, snapshot=snapshot, record=record)


async def collect_all_data(settings, now: Optional[datetime] = None) -> List[ProviderOutcome]:
    """
    Query the three providers concurrently and wait for all of them.

    Args:
        settings: config.Settings with the provider secrets and HTTP timeout
        now: reference instant for nearest-record selection (default: now UTC)

    Returns:
        One ProviderOutcome per provider, in precedence order
        (forecast, agency, station).
    """
    now = now or datetime.now(timezone.utc)

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True) as client:
        outcomes = await asyncio.gather(
            _run_provider("forecast", fetch_windy(client, settings.windy_api_key, now=now)),
            _run_provider("agency", fetch_aemet(client, settings.aemet_api_key, now=now)),
            _run_provider("station", fetch_local_station(client)),
            return_exceptions=True,
        )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    degraded = [o.name for o in outcomes if not o.ok]
    if degraded:
        logger.warning("Collected with degraded providers: %s", ", ".join(degraded))
    return list(outcomes)
