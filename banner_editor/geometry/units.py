"""Pixel/percentage conversion helpers for banner positioning.

All functions here are pure. Anything that needs the live view (rendered
component and container boxes) receives those numbers from the caller,
see ``geometry.measure``.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional, Union

from ..constants import POSITION_CODES

logger = logging.getLogger(__name__)

_CSS_VALUE_RE = re.compile(r"^\s*(-?[\d.]+)\s*([a-z%]*)\s*$", re.IGNORECASE)

CssInput = Union[str, int, float, None]


class ConversionUnavailable(ValueError):
    """Raised when a conversion needs a container size that is unknown or zero."""

    pass


@dataclass(frozen=True)
class ComponentDims:
    """Rendered component size expressed as a percentage of its container."""

    width_percent: float
    height_percent: float


def pixels_to_percent(px: float, container_px: float) -> float:
    """Convert a pixel offset to a percentage of ``container_px``."""
    if not container_px:
        raise ConversionUnavailable("container size is zero or unknown")
    return px / container_px * 100


def percent_to_pixels(percent: float, container_px: float) -> float:
    """Convert a percentage of ``container_px`` back to pixels."""
    return percent / 100 * container_px


def calculate_safe_position(value: float, component_px: float, container_px: float) -> float:
    """Clamp ``value`` so a component of ``component_px`` stays inside its container."""
    max_value = container_px - component_px
    if max_value <= 0:
        return 0.0
    return float(min(max(value, 0.0), max_value))


def calculate_position_by_code(code: str, dims: ComponentDims) -> dict[str, float]:
    """
    Return ``{"top": pct, "left": pct}`` for one of the nine grid codes.

    The component's own size is taken into account so that its edge (or
    center) lines up with the matching container edge (or center).
    """
    w = dims.width_percent
    h = dims.height_percent
    rows = {"t": 0.0, "c": 50 - h / 2, "b": 100 - h}
    cols = {"l": 0.0, "c": 50 - w / 2, "r": 100 - w}

    normalized = (code or "").strip().lower()
    if normalized not in POSITION_CODES:
        logger.warning("Unknown position code %r, using center", code)
        normalized = "cc"

    return {"top": rows[normalized[0]], "left": cols[normalized[1]]}


def parse_css_value(value: CssInput, default_unit: str = "px") -> tuple[float, str]:
    """Split a CSS length such as ``"12.5%"`` into ``(12.5, "%")``."""
    if isinstance(value, bool) or value is None:
        return 0.0, default_unit
    if isinstance(value, (int, float)):
        return float(value), default_unit
    match = _CSS_VALUE_RE.match(str(value))
    if not match:
        return 0.0, default_unit
    try:
        number = float(match.group(1))
    except ValueError:
        return 0.0, default_unit
    return number, (match.group(2) or default_unit).lower()


def format_percent(value: float, precision: int = 4) -> str:
    """Format a number as a CSS percentage, trimming trailing zeros."""
    if not math.isfinite(value):
        value = 0.0
    text = f"{round(value, precision):.{precision}f}".rstrip("0").rstrip(".")
    if text in ("", "-0"):
        text = "0"
    return f"{text}%"


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def ensure_percentage(value: CssInput, axis_px: Optional[float] = None) -> str:
    """
    Coerce a position value to a percentage string.

    - ``"12.5%"`` is kept as-is.
    - ``"120px"`` is converted against ``axis_px`` (the measured container
      size along the same axis); raises ``ConversionUnavailable`` when that
      size is unknown.
    - numbers and unitless numeric strings are read as percentages.
    - anything else (including empty values) becomes ``"0%"``.
    Converted values are clamped to ``[0, 100]``.
    """
    if value is None or value == "":
        return "0%"
    if isinstance(value, bool):
        return "0%"
    if isinstance(value, (int, float)):
        return format_percent(_clamp_percent(float(value)))

    text = str(value).strip()
    if text.endswith("%"):
        return text

    number, unit = parse_css_value(text, default_unit="")
    if unit == "px":
        return format_percent(_clamp_percent(pixels_to_percent(number, axis_px or 0)))
    if unit == "" and _CSS_VALUE_RE.match(text):
        return format_percent(_clamp_percent(number))

    logger.debug("Unsupported position value %r, using 0%%", value)
    return "0%"


def percent_value(value: CssInput) -> float:
    """Numeric part of a percentage string (``"12.5%"`` -> ``12.5``)."""
    number, _ = parse_css_value(value, default_unit="%")
    return number
