import asyncio
from datetime import datetime, timezone
import json
from pathlib import Path
import sys

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import collector.windy_fetcher as windy_fetcher
from core.errors import ProviderFetchError, ProviderParseError


NOW = datetime(2025, 10, 21, 12, 10, tzinfo=timezone.utc)


def _ms(hour: int) -> int:
    return int(datetime(2025, 10, 21, hour, 0, tzinfo=timezone.utc).timestamp() * 1000)


def _payload() -> dict:
    return {
        "ts": [_ms(9), _ms(12), _ms(15)],
        "units": {"temp-surface": "K", "pressure-surface": "Pa"},
        "temp-surface": [285.15, 288.15, 290.15],
        "dewpoint-surface": [279.15, 280.15, 281.15],
        "pressure-surface": [101200, 101300, 101400],
        "wind_u-surface": [1.0, 0.0, 2.0],
        "wind_v-surface": [1.0, -5.0, 2.0],
        "gust-surface": [4.0, 10.0, 6.0],
        "past3hprecip-surface": [0.0, 0.0012, 0.0],
        "lclouds-surface": [0, 60, 0],
        "mclouds-surface": [0, 0, 0],
        "hclouds-surface": [0, 30, 0],
        "ptype-surface": [0, 1, 0],
    }


def test_select_forecast_step_picks_nearest_timestamp():
    step = windy_fetcher.select_forecast_step(_payload(), NOW)
    assert step["timestampMs"] == _ms(12)
    assert step["temp-surface"] == 288.15
    assert step["timestampUTC"].startswith("2025-10-21T12:00:00")
    assert step["units"]["temp-surface"] == "K"


def test_select_forecast_step_first_wins_on_tie():
    now = datetime(2025, 10, 21, 10, 30, tzinfo=timezone.utc)
    step = windy_fetcher.select_forecast_step(_payload(), now)
    assert step["timestampMs"] == _ms(9)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"ts": [], "temp-surface": []},
        {"ts": [_ms(12)]},
        "not a dict",
    ],
)
def test_select_forecast_step_rejects_malformed_payloads(payload):
    with pytest.raises(ProviderParseError):
        windy_fetcher.select_forecast_step(payload, NOW)


def test_normalize_windy_converts_to_canonical_units():
    step = windy_fetcher.select_forecast_step(_payload(), NOW)
    snapshot = windy_fetcher.normalize_windy(step)

    assert snapshot.wind_direction == 360
    assert snapshot.wind_speed == 10
    assert snapshot.gust_direction == 360
    assert snapshot.gust_speed == 19
    assert snapshot.temperature == pytest.approx(15.0)
    assert snapshot.dew_point == pytest.approx(7.0)
    assert snapshot.qnh == pytest.approx(1013.0)
    assert snapshot.precipitation == 1
    assert snapshot.observation_time == "12:00"
    assert snapshot.cloud_layers == ("BROKEN at 5800 feet", "SCATTERED at 16600 feet")
    assert snapshot.cloud_layers_short == ("BKN 5800ft", "SCT 16600ft")
    assert snapshot.visibility is None
    assert snapshot.sky_octas is None


def test_normalize_windy_leaves_missing_values_absent():
    snapshot = windy_fetcher.normalize_windy({"temp-surface": 280.0, "timestampMs": _ms(12)})
    assert snapshot.wind_direction is None
    assert snapshot.wind_speed is None
    assert snapshot.gust_speed is None
    assert snapshot.qnh is None
    assert snapshot.precipitation is None
    assert snapshot.cloud_layers is None


def test_normalize_windy_non_numeric_values_stay_absent():
    snapshot = windy_fetcher.normalize_windy({
        "wind_u-surface": "n/a",
        "wind_v-surface": 2.0,
        "gust-surface": "strong",
        "past3hprecip-surface": True,
        "lclouds-surface": "x",
        "mclouds-surface": float("nan"),
        "temp-surface": 288.15,
        "timestampMs": _ms(12),
    })
    assert snapshot.wind_direction is None
    assert snapshot.wind_speed is None
    assert snapshot.gust_direction is None
    assert snapshot.gust_speed is None
    assert snapshot.precipitation is None
    assert snapshot.cloud_layers is None
    assert snapshot.temperature == pytest.approx(15.0)
    assert snapshot.observation_time == "12:00"


def test_normalize_windy_uses_isa_altitudes_without_pressure():
    snapshot = windy_fetcher.normalize_windy({"lclouds-surface": 95})
    assert snapshot.cloud_layers == ("OVERCAST at 5800 feet",)


def test_fetch_windy_posts_point_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_payload())

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await windy_fetcher.fetch_windy(client, "secret", now=NOW)

    snapshot, record = asyncio.run(run())

    assert seen["method"] == "POST"
    assert seen["body"]["key"] == "secret"
    assert seen["body"]["model"] == "iconEu"
    assert seen["body"]["lat"] == pytest.approx(40.8603)
    assert snapshot.wind_speed == 10
    assert record["ptype-surface"] == 1
    assert record["lclouds-surface"] == 60


def test_fetch_windy_http_error_is_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="invalid key")

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await windy_fetcher.fetch_windy(client, "bad", now=NOW)

    with pytest.raises(ProviderFetchError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.provider == "forecast"
    assert excinfo.value.status_code == 400


def test_fetch_windy_transport_error_is_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await windy_fetcher.fetch_windy(client, "key", now=NOW)

    with pytest.raises(ProviderFetchError):
        asyncio.run(run())


def test_fetch_windy_malformed_series_values_stay_absent():
    payload = _payload()
    payload["wind_u-surface"] = ["n/a", "n/a", "n/a"]
    payload["lclouds-surface"] = ["x", "x", "x"]
    payload["hclouds-surface"] = [None, None, None]
    payload["mclouds-surface"] = [None, None, None]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await windy_fetcher.fetch_windy(client, "key", now=NOW)

    snapshot, record = asyncio.run(run())

    assert snapshot.wind_speed is None
    assert snapshot.cloud_layers is None
    assert snapshot.gust_speed == 19
    assert snapshot.temperature == pytest.approx(15.0)
    assert record["lclouds-surface"] == "x"


def test_fetch_windy_normalization_failure_is_parse_error(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_payload())

    def broken(step):
        raise TypeError("must be real number, not str")

    monkeypatch.setattr(windy_fetcher, "normalize_windy", broken)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await windy_fetcher.fetch_windy(client, "key", now=NOW)

    with pytest.raises(ProviderParseError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.provider == "forecast"
