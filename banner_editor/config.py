"""Configuration management for the banner editor."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .constants import DEFAULT_BANNER_NAME, DEFAULT_IMAGE_PLACEHOLDER, DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)


DEFAULT_ALLOWED_MIME_TYPES: tuple[str, ...] = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
)

# Overridable via config/editor_defaults.yaml without touching code.
DEFAULT_LAYOUT: dict = {
    "type": "banner",
    "position": "bottom",
    "backgroundColor": "#ffffff",
    "width": "100%",
    "height": "auto",
    "minHeight": "100px",
    "maxWidth": "100%",
    "floatingCorner": "bottom-right",
    "floatingMargin": 20,
}


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Template storage service
    api_base_url: str = "http://localhost:3000"
    api_token: str = ""
    request_timeout: float = 30.0
    default_language: str = DEFAULT_LANGUAGE

    # Measured editor canvas, used to convert pixel positions found in stored documents
    canvas_width: float = 1000.0
    canvas_height: float = 600.0

    # Image attachments
    max_asset_bytes: int = 10 * 1024 * 1024
    max_asset_bytes_in_container: int = 5 * 1024 * 1024
    allowed_mime_types: tuple[str, ...] = DEFAULT_ALLOWED_MIME_TYPES
    min_image_dimension: int = 10
    max_image_dimension: int = 4096

    # Placeholders
    placeholder_name: str = DEFAULT_BANNER_NAME
    placeholder_image: str = DEFAULT_IMAGE_PLACEHOLDER

    # Paths
    config_dir: Path = field(default_factory=lambda: Path("./config"))

    # Default overrides (loaded from editor_defaults.yaml)
    default_layout: dict = field(default_factory=lambda: dict(DEFAULT_LAYOUT))
    style_overrides: dict[str, dict[str, dict]] = field(default_factory=dict)

    def __post_init__(self):
        self.config_dir = Path(self.config_dir)
        self.api_base_url = (self.api_base_url or "").rstrip("/")


def _load_editor_defaults(config_dir: Path) -> dict:
    """Load default overrides from config/editor_defaults.yaml (optional)."""
    path = Path(config_dir or ".") / "editor_defaults.yaml"
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse editor_defaults.yaml: %s", exc)
        return {}

    if not isinstance(data, dict):
        logger.warning("editor_defaults.yaml must contain a mapping, ignoring it")
        return {}

    def _coerce_layout(raw) -> dict:
        layout = dict(DEFAULT_LAYOUT)
        if isinstance(raw, dict):
            layout.update({str(k): v for k, v in raw.items()})
        return layout

    def _coerce_styles(raw) -> dict[str, dict[str, dict]]:
        # styles: {button: {desktop: {...}, tablet: {...}}, text: {...}}
        styles: dict[str, dict[str, dict]] = {}
        for component_type, per_device in (raw or {}).items():
            if not isinstance(per_device, dict):
                continue
            devices = {
                str(device): dict(values)
                for device, values in per_device.items()
                if isinstance(values, dict)
            }
            if devices:
                styles[str(component_type)] = devices
        return styles

    return {
        "default_layout": _coerce_layout(data.get("layout")),
        "style_overrides": _coerce_styles(data.get("styles") if isinstance(data.get("styles"), dict) else {}),
    }


def _parse_mime_types(raw: str) -> Optional[tuple[str, ...]]:
    items = tuple(m.strip().lower() for m in (raw or "").split(",") if m.strip())
    return items or None


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    overrides = _load_editor_defaults(config_dir)

    return Config(
        api_base_url=os.getenv("BANNER_API_URL", "http://localhost:3000"),
        api_token=os.getenv("BANNER_API_TOKEN", ""),
        request_timeout=float(os.getenv("BANNER_REQUEST_TIMEOUT", "30")),
        default_language=os.getenv("BANNER_DEFAULT_LANGUAGE", DEFAULT_LANGUAGE).strip().lower() or DEFAULT_LANGUAGE,
        canvas_width=float(os.getenv("BANNER_CANVAS_WIDTH", "1000")),
        canvas_height=float(os.getenv("BANNER_CANVAS_HEIGHT", "600")),
        max_asset_bytes=int(os.getenv("BANNER_MAX_ASSET_BYTES", str(10 * 1024 * 1024))),
        allowed_mime_types=_parse_mime_types(os.getenv("BANNER_ALLOWED_MIME_TYPES", "")) or DEFAULT_ALLOWED_MIME_TYPES,
        placeholder_name=os.getenv("BANNER_PLACEHOLDER_NAME", DEFAULT_BANNER_NAME),
        config_dir=config_dir,
        default_layout=overrides.get("default_layout", dict(DEFAULT_LAYOUT)),
        style_overrides=overrides.get("style_overrides", {}),
    )


def validate_config(config: Config) -> list[str]:
    """Validate required configuration and return list of error messages."""
    errors: list[str] = []
    if not (config.api_base_url or "").strip():
        errors.append("BANNER_API_URL is required")
    elif not config.api_base_url.startswith(("http://", "https://")):
        errors.append("BANNER_API_URL must start with http:// or https://")
    if config.canvas_width <= 0 or config.canvas_height <= 0:
        errors.append("BANNER_CANVAS_WIDTH/BANNER_CANVAS_HEIGHT must be positive")
    if config.request_timeout <= 0:
        errors.append("BANNER_REQUEST_TIMEOUT must be positive")

    if not (config.api_token or "").strip():
        # Local development servers often run without auth.
        logger.info("No BANNER_API_TOKEN configured; requests will be sent unauthenticated")

    return errors
