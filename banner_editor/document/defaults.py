"""Type-specific defaults for new and repaired components."""

from __future__ import annotations

import copy
from typing import Optional

from ..config import DEFAULT_LAYOUT
from ..constants import (
    ACTION_DISPLAY_NAMES,
    DEFAULT_IMAGE_PLACEHOLDER,
    DEFAULT_LANGUAGE,
    DEFAULT_POSITION,
    DEVICES,
    FALLBACK_AUTO_POSITION,
    REQUIRED_ACTIONS,
    REQUIRED_BUTTON_POSITIONS,
    ActionType,
    ComponentType,
)
from .content import Content, ImageUrl, MultiLangText

# Base colors for the mandatory consent buttons.
BUTTON_COLORS: dict[str, str] = {
    ActionType.ACCEPT_ALL.value: "#4CAF50",
    ActionType.REJECT_ALL.value: "#f44336",
    ActionType.SHOW_PREFERENCES.value: "#2196F3",
}
DEFAULT_BUTTON_COLOR = "#4CAF50"

# Font size and padding shrink from desktop to mobile.
_BUTTON_SIZES = {
    "desktop": {"fontSize": "16px", "padding": "8px 16px"},
    "tablet": {"fontSize": "14px", "padding": "6px 12px"},
    "mobile": {"fontSize": "12px", "padding": "4px 8px"},
}
_TEXT_SIZES = {
    "desktop": {"fontSize": "14px", "padding": "8px"},
    "tablet": {"fontSize": "12px", "padding": "6px"},
    "mobile": {"fontSize": "10px", "padding": "4px"},
}
_IMAGE_SIZES = {
    "desktop": {"width": "200px", "height": "auto"},
    "tablet": {"width": "150px", "height": "auto"},
    "mobile": {"width": "100px", "height": "auto"},
}
_CONTAINER_SIZES = {
    "desktop": {"padding": "10px", "minHeight": "100px", "minWidth": "200px", "width": "200px", "height": "100px"},
    "tablet": {"padding": "8px", "minHeight": "90px", "minWidth": "180px", "width": "180px", "height": "90px"},
    "mobile": {"padding": "6px", "minHeight": "80px", "minWidth": "160px", "width": "160px", "height": "80px"},
}

_CONTAINER_CONFIG = {
    "desktop": {"gap": "10px", "flexDirection": "row", "gridTemplateColumns": "repeat(2, 1fr)"},
    "tablet": {"gap": "8px", "flexDirection": "row", "gridTemplateColumns": "repeat(2, 1fr)"},
    "mobile": {"gap": "6px", "flexDirection": "column", "gridTemplateColumns": "1fr"},
}


def default_content(component_type: str, action_type: Optional[str] = None, placeholder_image: str = DEFAULT_IMAGE_PLACEHOLDER) -> Content:
    """Initial content for a component of ``component_type``."""
    if component_type == ComponentType.TEXT.value:
        return MultiLangText(texts={DEFAULT_LANGUAGE: "New Text"}, translatable=True)
    if component_type == ComponentType.BUTTON.value:
        label = ACTION_DISPLAY_NAMES.get(action_type or "", "New Button")
        return MultiLangText(texts={DEFAULT_LANGUAGE: label}, translatable=True)
    if component_type == ComponentType.CONTAINER.value:
        return MultiLangText(texts={DEFAULT_LANGUAGE: ""}, translatable=False)
    if component_type == ComponentType.IMAGE.value:
        return ImageUrl(placeholder_image)
    return MultiLangText(texts={DEFAULT_LANGUAGE: ""}, translatable=True)


def _with_sizes(base: dict, sizes: dict[str, dict]) -> dict[str, dict]:
    return {device: {**base, **sizes[device]} for device in DEVICES}


def default_styles(
    component_type: str,
    action_type: Optional[str] = None,
    overrides: Optional[dict[str, dict[str, dict]]] = None,
) -> dict[str, dict]:
    """Per-device default styles; each device gets its own dict."""
    if component_type == ComponentType.BUTTON.value:
        base = {
            "backgroundColor": BUTTON_COLORS.get(action_type or "", DEFAULT_BUTTON_COLOR),
            "color": "#ffffff",
            "borderRadius": "4px",
            "cursor": "pointer",
            "border": "none",
            "fontFamily": "inherit",
        }
        styles = _with_sizes(base, _BUTTON_SIZES)
    elif component_type == ComponentType.TEXT.value:
        styles = _with_sizes({"color": "#333333", "lineHeight": "1.5", "fontFamily": "inherit"}, _TEXT_SIZES)
    elif component_type == ComponentType.IMAGE.value:
        styles = _with_sizes({"objectFit": "contain", "borderRadius": "4px"}, _IMAGE_SIZES)
    elif component_type == ComponentType.CONTAINER.value:
        styles = _with_sizes(
            {"backgroundColor": "transparent", "borderRadius": "4px", "border": "none"},
            _CONTAINER_SIZES,
        )
    else:
        styles = {device: {} for device in DEVICES}

    for device, values in ((overrides or {}).get(component_type) or {}).items():
        if device in styles:
            styles[device].update(values)
    return styles


def default_position() -> dict[str, dict]:
    return {device: dict(DEFAULT_POSITION) for device in DEVICES}


def default_container_config() -> dict[str, dict]:
    config = {}
    for device in DEVICES:
        config[device] = {
            "displayMode": "libre",
            "justifyContent": "flex-start",
            "alignItems": "stretch",
            "gridTemplateRows": "auto",
            "justifyItems": "flex-start",
            **_CONTAINER_CONFIG[device],
        }
    return config


def auto_position(action_type: Optional[str]) -> dict[str, str]:
    """Placement for a mandatory consent button."""
    return dict(REQUIRED_BUTTON_POSITIONS.get(action_type or "", FALLBACK_AUTO_POSITION))


def is_required_action(action_type: Optional[str]) -> bool:
    return bool(action_type) and action_type in REQUIRED_ACTIONS


def default_layout(base: Optional[dict] = None) -> dict[str, dict]:
    source = base if base else DEFAULT_LAYOUT
    return {device: copy.deepcopy(source) for device in DEVICES}


# Ids used by the stock consent buttons of a new banner.
REQUIRED_BUTTON_IDS: dict[str, str] = {
    ActionType.ACCEPT_ALL.value: "acceptAll",
    ActionType.REJECT_ALL.value: "rejectAll",
    ActionType.SHOW_PREFERENCES.value: "preferencesBtn",
}
