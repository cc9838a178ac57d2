"""Repair pass that turns any stored or partial banner into a valid document.

``normalize`` never raises on malformed input. Missing structure is filled
in from defaults, legacy shapes are upgraded, and every position value is
forced into percentages against the measured editor canvas.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional, Union

from ..config import Config
from ..constants import DEFAULT_LANGUAGE, DEVICES, LEGACY_ALIGNMENT_VALUES, ComponentType
from ..geometry.units import ConversionUnavailable, ensure_percentage
from .content import MultiLangText, PlainText
from .defaults import (
    default_container_config,
    default_content,
    default_layout,
    default_position,
    default_styles,
)
from .models import BannerDocument, Component, new_component_id

logger = logging.getLogger(__name__)

# Width rules applied per banner type.
_LAYOUT_TYPE_RULES: dict[str, dict[str, Any]] = {
    "modal": {"width": "60%", "minWidth": "40%", "maxWidth": "90%", "data-width": "60"},
    "floating": {"width": "50%", "minWidth": "40%", "maxWidth": "70%", "data-width": "50"},
}
_FLOATING_DEFAULTS: dict[str, Any] = {"floatingCorner": "bottom-right", "floatingMargin": 20}

_ALIGNMENT_KEYS = ("alignItems", "justifyItems")


class DocumentNormalizer:
    """Normalizes banner documents against one measured canvas size."""

    def __init__(
        self,
        config: Optional[Config] = None,
        canvas_width: Optional[float] = None,
        canvas_height: Optional[float] = None,
    ):
        self.config = config or Config()
        self.canvas_width = canvas_width if canvas_width is not None else self.config.canvas_width
        self.canvas_height = canvas_height if canvas_height is not None else self.config.canvas_height

    def normalize(self, raw: Union[dict, BannerDocument, None]) -> BannerDocument:
        if isinstance(raw, BannerDocument):
            data = raw.to_dict(include_transient=True)
        elif isinstance(raw, dict):
            data = raw
        else:
            if raw is not None:
                logger.warning("Ignoring non-mapping banner document of type %s", type(raw).__name__)
            data = {}

        document = BannerDocument.from_dict(data)

        if not document.name.strip():
            document.name = self.config.placeholder_name

        document.layout = self._normalize_layout(document.layout)

        seen_ids: set[str] = set()
        for component in document.components:
            self._normalize_component(component, None, seen_ids)

        return document

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _normalize_layout(self, layout: dict[str, dict]) -> dict[str, dict]:
        desktop = layout.get("desktop")
        if not desktop:
            desktop = default_layout(self.config.default_layout)["desktop"]

        normalized = {"desktop": desktop}
        for device in ("tablet", "mobile"):
            values = layout.get(device)
            normalized[device] = values if values else copy.deepcopy(desktop)

        for values in normalized.values():
            self._apply_layout_type_rules(values)

        # Keep any extra (non-device) entries the stored layout carried.
        for key, values in layout.items():
            if key not in normalized:
                normalized[key] = values
        return normalized

    @staticmethod
    def _apply_layout_type_rules(values: dict) -> None:
        banner_type = values.get("type")
        rules = _LAYOUT_TYPE_RULES.get(banner_type)
        if rules:
            values.update(rules)
            if banner_type == "floating":
                for key, default in _FLOATING_DEFAULTS.items():
                    if not values.get(key):
                        values[key] = default
        else:
            values["width"] = "100%"

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def _normalize_component(self, component: Component, parent_id: Optional[str], seen_ids: set[str]) -> None:
        if not component.id or component.id in seen_ids:
            if component.id:
                logger.warning("Duplicate component id %s, assigning a new one", component.id)
            component.id = new_component_id()
        seen_ids.add(component.id)

        component.parent_id = parent_id
        self._normalize_content(component)
        self._normalize_style(component)
        self._normalize_position(component)

        if component.is_container:
            self._migrate_container_config(component)

        for child in component.children:
            self._normalize_component(child, component.id, seen_ids)

    def _normalize_content(self, component: Component) -> None:
        content = component.content
        if content is None:
            component.content = default_content(
                component.type,
                component.action_type,
                placeholder_image=self.config.placeholder_image,
            )
        elif isinstance(content, PlainText) and component.type != ComponentType.IMAGE.value:
            component.content = MultiLangText(texts={DEFAULT_LANGUAGE: content.text}, translatable=True)

    def _normalize_style(self, component: Component) -> None:
        if not component.style:
            component.style = default_styles(
                component.type,
                component.action_type,
                overrides=self.config.style_overrides,
            )
            return

        style = component.style
        if "desktop" not in style:
            style["desktop"] = {}
        for device in ("tablet", "mobile"):
            if device not in style:
                style[device] = dict(style["desktop"])

    def _normalize_position(self, component: Component) -> None:
        if not component.position:
            component.position = default_position()
            return

        position = component.position
        if "desktop" not in position:
            position["desktop"] = dict(default_position()["desktop"])

        for device in DEVICES:
            if device not in position:
                position[device] = dict(position["desktop"])
                continue
            values = position[device]
            if device != "desktop":
                for key in ("top", "left"):
                    if values.get(key) is None:
                        values[key] = position["desktop"][key]
            values["top"] = self._to_percent(values.get("top"), self.canvas_height, component.id)
            values["left"] = self._to_percent(values.get("left"), self.canvas_width, component.id)

    def _to_percent(self, value: Any, axis_px: float, component_id: str) -> str:
        try:
            return ensure_percentage(value, axis_px)
        except ConversionUnavailable:
            logger.warning("Cannot convert %r for %s without a canvas size, using 0%%", value, component_id)
            return "0%"

    @staticmethod
    def _migrate_container_config(component: Component) -> None:
        config = component.container_config
        if not config:
            component.container_config = default_container_config()
            return
        if "desktop" not in config:
            config["desktop"] = default_container_config()["desktop"]
        for device in DEVICES:
            config.setdefault(device, dict(config["desktop"]))

        for values in config.values():
            for key in _ALIGNMENT_KEYS:
                legacy = values.get(key)
                if legacy in LEGACY_ALIGNMENT_VALUES:
                    values[key] = LEGACY_ALIGNMENT_VALUES[legacy]


def normalize(
    raw: Union[dict, BannerDocument, None],
    config: Optional[Config] = None,
    *,
    canvas_width: Optional[float] = None,
    canvas_height: Optional[float] = None,
) -> BannerDocument:
    """Normalize ``raw`` into a ``BannerDocument`` (see ``DocumentNormalizer``)."""
    return DocumentNormalizer(config, canvas_width, canvas_height).normalize(raw)
