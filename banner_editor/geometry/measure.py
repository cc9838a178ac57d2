"""Live-view measurement interface used by position helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .units import ComponentDims, ConversionUnavailable, pixels_to_percent


@dataclass(frozen=True)
class Box:
    """Bounding box in pixels."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class Measurement:
    """Rendered boxes of a component and the container it is positioned in."""

    component: Box
    container: Box

    @property
    def usable(self) -> bool:
        return self.container.width > 0 and self.container.height > 0


class Measurer(Protocol):
    """Anything that can report rendered boxes for a component id."""

    def measure(self, component_id: str) -> Optional[Measurement]:
        ...


def dims_from_measurement(measurement: Measurement) -> ComponentDims:
    """Component size as a percentage of its container."""
    if not measurement.usable:
        raise ConversionUnavailable("container has no measurable size")
    return ComponentDims(
        width_percent=pixels_to_percent(measurement.component.width, measurement.container.width),
        height_percent=pixels_to_percent(measurement.component.height, measurement.container.height),
    )


class StaticMeasurer:
    """Measurer backed by a fixed mapping, for hosts that pre-compute layout."""

    def __init__(self, boxes: Optional[dict[str, Measurement]] = None):
        self._boxes: dict[str, Measurement] = dict(boxes or {})

    def set(self, component_id: str, measurement: Measurement) -> None:
        self._boxes[component_id] = measurement

    def measure(self, component_id: str) -> Optional[Measurement]:
        return self._boxes.get(component_id)
