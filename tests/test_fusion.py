from dataclasses import fields
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.models import Phenomenon, WeatherSnapshot
from synthesizer import fuse_snapshots, merge_snapshots


FORECAST = WeatherSnapshot(
    wind_direction=20,
    wind_speed=9,
    gust_direction=20,
    gust_speed=15,
    temperature=13.0,
    dew_point=5.0,
    qnh=1013.0,
    precipitation=0,
    observation_time="12:00",
    cloud_layers=("BROKEN at 5800 feet",),
    cloud_layers_short=("BKN 5800ft",),
)

AGENCY = WeatherSnapshot(
    wind_direction=350,
    wind_speed=7,
    visibility=25.0,
    temperature=12.4,
    qnh=1014.2,
    observation_time="12:00",
    sky_octas=6,
    sky_description="Nuboso",
    phenomenon=Phenomenon.NONE,
)

STATION = WeatherSnapshot(
    wind_direction=10,
    wind_speed=6,
    temperature=12.1,
    qnh=1014,
    observation_time="12:20",
)


def test_merge_absent_never_overwrites():
    merged = merge_snapshots(FORECAST, WeatherSnapshot.empty())
    assert merged == FORECAST


def test_merge_present_overrides():
    merged = merge_snapshots(FORECAST, AGENCY)
    assert merged.wind_direction == 350
    assert merged.temperature == 12.4
    assert merged.dew_point == 5.0
    assert merged.gust_speed == 15
    assert merged.cloud_layers == ("BROKEN at 5800 feet",)


def test_merge_keeps_zero_values():
    merged = merge_snapshots(FORECAST, WeatherSnapshot(wind_speed=0, sky_octas=0))
    assert merged.wind_speed == 0
    assert merged.sky_octas == 0


def test_merge_is_idempotent():
    assert merge_snapshots(AGENCY, AGENCY) == AGENCY
    once = merge_snapshots(FORECAST, AGENCY)
    assert merge_snapshots(once, AGENCY) == once


def test_merge_ignores_source_variability():
    overlay = WeatherSnapshot(wind_variability=("100", "200"))
    assert merge_snapshots(WeatherSnapshot.empty(), overlay).wind_variability is None


def test_merge_covers_every_field():
    full = WeatherSnapshot(**{
        f.name: getattr(FORECAST, f.name) or getattr(AGENCY, f.name)
        for f in fields(WeatherSnapshot) if f.name != "wind_variability"
    })
    merged = merge_snapshots(WeatherSnapshot.empty(), full)
    assert merged == full


def test_fuse_precedence_station_over_agency_over_forecast():
    fused = fuse_snapshots(FORECAST, AGENCY, STATION)

    assert fused.wind_direction == 10
    assert fused.wind_speed == 6
    assert fused.temperature == 12.1
    assert fused.qnh == 1014
    assert fused.observation_time == "12:20"
    assert fused.visibility == 25.0
    assert fused.sky_octas == 6
    assert fused.dew_point == 5.0
    assert fused.gust_speed == 15


def test_fuse_variability_between_station_and_agency_bearing():
    fused = fuse_snapshots(FORECAST, AGENCY, STATION)
    assert fused.wind_variability == ("350", "010")


def test_fuse_variability_falls_back_to_forecast_bearing():
    fused = fuse_snapshots(FORECAST, WeatherSnapshot.empty(), WeatherSnapshot(wind_direction=60))
    assert fused.wind_variability == ("020", "060")


def test_fuse_no_variability_without_station_bearing():
    fused = fuse_snapshots(FORECAST, AGENCY, WeatherSnapshot(temperature=11.0))
    assert fused.wind_variability is None
    assert fused.wind_direction == 350


def test_fuse_no_variability_when_bearings_agree():
    fused = fuse_snapshots(FORECAST, AGENCY, WeatherSnapshot(wind_direction=350))
    assert fused.wind_variability is None


def test_fuse_all_sources_empty():
    empty = WeatherSnapshot.empty()
    assert fuse_snapshots(empty, empty, empty) == empty


def test_fuse_single_source_passes_through():
    fused = fuse_snapshots(WeatherSnapshot.empty(), AGENCY, WeatherSnapshot.empty())
    assert fused == AGENCY


def test_fuse_wind_from_agency_temperature_from_station():
    fused = fuse_snapshots(
        WeatherSnapshot(wind_speed=5),
        WeatherSnapshot(wind_speed=8, temperature=20),
        WeatherSnapshot(temperature=22),
    )
    assert fused.wind_speed == 8
    assert fused.temperature == 22
