import pytest

from banner_editor.geometry.measure import Box, Measurement, StaticMeasurer, dims_from_measurement
from banner_editor.geometry.units import (
    ComponentDims,
    ConversionUnavailable,
    calculate_position_by_code,
    calculate_safe_position,
    ensure_percentage,
    format_percent,
    parse_css_value,
    percent_to_pixels,
    pixels_to_percent,
)


def test_pixels_to_percent_and_back():
    assert pixels_to_percent(50, 200) == 25
    assert percent_to_pixels(25, 200) == 50


def test_pixels_to_percent_requires_container_size():
    with pytest.raises(ConversionUnavailable):
        pixels_to_percent(50, 0)


def test_safe_position_keeps_component_inside():
    assert calculate_safe_position(500, 100, 400) == 300
    assert calculate_safe_position(-20, 100, 400) == 0
    assert calculate_safe_position(150, 100, 400) == 150


def test_safe_position_oversized_component_sticks_to_origin():
    assert calculate_safe_position(50, 500, 400) == 0


@pytest.mark.parametrize(
    "code,expected",
    [
        ("tl", {"top": 0.0, "left": 0.0}),
        ("cc", {"top": 45.0, "left": 40.0}),
        ("br", {"top": 90.0, "left": 80.0}),
        ("tr", {"top": 0.0, "left": 80.0}),
    ],
)
def test_position_by_code_accounts_for_component_size(code, expected):
    assert calculate_position_by_code(code, ComponentDims(width_percent=20, height_percent=10)) == expected


def test_unknown_position_code_falls_back_to_center():
    dims = ComponentDims(width_percent=20, height_percent=10)
    assert calculate_position_by_code("zz", dims) == calculate_position_by_code("cc", dims)


def test_parse_css_value():
    assert parse_css_value("12.5%") == (12.5, "%")
    assert parse_css_value("120px") == (120.0, "px")
    assert parse_css_value(40) == (40.0, "px")
    assert parse_css_value("auto") == (0.0, "px")


def test_format_percent_trims_zeros():
    assert format_percent(10) == "10%"
    assert format_percent(12.5) == "12.5%"
    assert format_percent(100 / 3) == "33.3333%"


def test_ensure_percentage_keeps_percent_strings():
    assert ensure_percentage("37.5%") == "37.5%"


def test_ensure_percentage_converts_pixels_against_axis():
    assert ensure_percentage("150px", 600) == "25%"
    assert ensure_percentage("2000px", 1000) == "100%"


def test_ensure_percentage_pixels_without_axis_raise():
    with pytest.raises(ConversionUnavailable):
        ensure_percentage("150px", 0)
    with pytest.raises(ConversionUnavailable):
        ensure_percentage("150px", None)


def test_ensure_percentage_numbers_and_garbage():
    assert ensure_percentage(30) == "30%"
    assert ensure_percentage("45") == "45%"
    assert ensure_percentage(-5) == "0%"
    assert ensure_percentage(None) == "0%"
    assert ensure_percentage("auto") == "0%"


def test_dims_from_measurement():
    measurement = Measurement(component=Box(0, 0, 100, 60), container=Box(0, 0, 500, 300))
    assert dims_from_measurement(measurement) == ComponentDims(width_percent=20, height_percent=20)


def test_dims_from_unusable_measurement_raises():
    measurement = Measurement(component=Box(0, 0, 100, 60), container=Box(0, 0, 0, 0))
    assert not measurement.usable
    with pytest.raises(ConversionUnavailable):
        dims_from_measurement(measurement)


def test_static_measurer_returns_none_for_unknown_ids():
    measurer = StaticMeasurer()
    assert measurer.measure("missing") is None
    box = Measurement(component=Box(0, 0, 10, 10), container=Box(0, 0, 100, 100))
    measurer.set("comp", box)
    assert measurer.measure("comp") is box


@pytest.mark.parametrize("px,container", [(0, 320), (37, 1000), (512.5, 768), (1999, 2000)])
def test_pixel_percent_round_trip(px, container):
    assert percent_to_pixels(pixels_to_percent(px, container), container) == pytest.approx(px)
