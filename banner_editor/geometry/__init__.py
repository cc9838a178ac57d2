"""Coordinate helpers for the banner editor."""

from .measure import Box, Measurement, Measurer, StaticMeasurer, dims_from_measurement
from .units import (
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

__all__ = [
    "Box",
    "ComponentDims",
    "ConversionUnavailable",
    "Measurement",
    "Measurer",
    "StaticMeasurer",
    "calculate_position_by_code",
    "calculate_safe_position",
    "dims_from_measurement",
    "ensure_percentage",
    "format_percent",
    "parse_css_value",
    "percent_to_pixels",
    "pixels_to_percent",
]
