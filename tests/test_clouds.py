from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.clouds import (
    SKY_CLEAR,
    SKY_CLEAR_SHORT,
    estimate_altitude,
    map_cloud_layers,
    octas_to_code,
    octas_to_short_code,
    percent_to_octas,
)


def test_percent_to_octas_category_boundaries():
    assert percent_to_octas(None) == 0
    assert percent_to_octas(0) == 0
    assert percent_to_octas(0.5) == 0
    assert percent_to_octas(1) == 2
    assert percent_to_octas(24.9) == 2
    assert percent_to_octas(25) == 4
    assert percent_to_octas(50.9) == 4
    assert percent_to_octas(51) == 7
    assert percent_to_octas(87.9) == 7
    assert percent_to_octas(88) == 8
    assert percent_to_octas(100) == 8


def test_octas_codes():
    assert [octas_to_code(o) for o in (0, 1, 3, 5, 8)] == [
        SKY_CLEAR, "FEW", "SCATTERED", "BROKEN", "OVERCAST",
    ]
    assert [octas_to_short_code(o) for o in (0, 2, 4, 7, 8)] == [
        SKY_CLEAR_SHORT, "FEW", "SCT", "BKN", "OVC",
    ]


def test_estimate_altitude_from_qnh():
    altitudes = estimate_altitude(1013)
    assert altitudes.low == 5800
    assert altitudes.mid == 11200
    assert altitudes.high == 16600


def test_estimate_altitude_uses_isa_without_pressure():
    assert estimate_altitude(None) == estimate_altitude(1013.25)
    assert estimate_altitude(None).low == 5800


def test_estimate_altitude_never_negative():
    altitudes = estimate_altitude(700)
    assert altitudes.low == 0
    assert altitudes.mid == 2700
    assert altitudes.high == 8100


def test_map_cloud_layers_reports_each_layer_bottom_up():
    layers, layers_short = map_cloud_layers(60, 0, 30, 1013)
    assert layers == ("BROKEN at 5800 feet", "SCATTERED at 16600 feet")
    assert layers_short == ("BKN 5800ft", "SCT 16600ft")


def test_map_cloud_layers_sky_clear():
    layers, layers_short = map_cloud_layers(0, None, 0.4, 1020)
    assert layers == (SKY_CLEAR,)
    assert layers_short == (SKY_CLEAR_SHORT,)
