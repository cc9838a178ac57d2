"""Centralized constants for the banner editor.

This module contains enums and constants used across multiple modules
to ensure consistency and reduce duplication.
"""

from enum import Enum


class Device(str, Enum):
    """Device profiles that carry independent layout/style/position data."""

    DESKTOP = "desktop"
    TABLET = "tablet"
    MOBILE = "mobile"

    @classmethod
    def from_string(cls, value: "str | Device | None") -> "Device":
        """Convert a device name to enum, defaulting to DESKTOP."""
        if isinstance(value, Device):
            return value
        if not value:
            return cls.DESKTOP
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DESKTOP

    def __str__(self) -> str:
        return self.value


# Iteration order matters: desktop is the source for inheritance.
DEVICES: tuple[str, ...] = tuple(d.value for d in Device)


class ComponentType(str, Enum):
    """Kinds of banner components."""

    TEXT = "text"
    BUTTON = "button"
    IMAGE = "image"
    CONTAINER = "container"


class ActionType(str, Enum):
    """Actions carried by interactive components."""

    ACCEPT_ALL = "accept_all"
    REJECT_ALL = "reject_all"
    SHOW_PREFERENCES = "show_preferences"


# Buttons every consent banner must carry; they are created locked.
REQUIRED_ACTIONS: tuple[str, ...] = (
    ActionType.ACCEPT_ALL.value,
    ActionType.REJECT_ALL.value,
    ActionType.SHOW_PREFERENCES.value,
)

ACTION_DISPLAY_NAMES: dict[str, str] = {
    ActionType.ACCEPT_ALL.value: "Accept All",
    ActionType.REJECT_ALL.value: "Reject All",
    ActionType.SHOW_PREFERENCES.value: "Preferences",
}

# Reserved prefix for image placeholders awaiting upload. Never a URL scheme or path.
IMAGE_REF_PREFIX = "__IMAGE_REF__"
# Prefix used in multipart filenames so the server can map files back to tokens.
IMAGE_REF_FILENAME_PREFIX = "IMAGE_REF_"

# Transient, non-serializable fields.
COMPONENT_TRANSIENT_FIELDS: tuple[str, ...] = ("_tempFile", "_imageFile")
STYLE_TRANSIENT_FIELDS: tuple[str, ...] = ("_tempFile", "_previewUrl")

DEFAULT_LANGUAGE = "en"
DEFAULT_BANNER_NAME = "New Banner"
DEFAULT_IMAGE_PLACEHOLDER = "/placeholder.png"
DEFAULT_POSITION: dict[str, str] = {"top": "10%", "left": "10%"}

# Auto placement for the mandatory consent buttons (left, center, right).
REQUIRED_BUTTON_POSITIONS: dict[str, dict[str, str]] = {
    ActionType.REJECT_ALL.value: {"top": "80%", "left": "10%"},
    ActionType.SHOW_PREFERENCES.value: {"top": "80%", "left": "45%"},
    ActionType.ACCEPT_ALL.value: {"top": "80%", "left": "80%"},
}
FALLBACK_AUTO_POSITION: dict[str, str] = {"top": "50%", "left": "50%"}

# Grid codes for quick positioning (rows: top/center/bottom, cols: left/center/right).
POSITION_CODES: tuple[str, ...] = ("tl", "tc", "tr", "cl", "cc", "cr", "bl", "bc", "br")

# Legacy container alignment values and their current equivalents.
LEGACY_ALIGNMENT_VALUES: dict[str, str] = {
    "start": "flex-start",
    "end": "flex-end",
}

TEMPLATE_FIELD_NAME = "template"
IMAGES_FIELD_NAME = "bannerImages"
SYSTEM_TEMPLATE_FIELD_NAME = "isSystemTemplate"
