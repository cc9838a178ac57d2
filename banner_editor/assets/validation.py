"""Checks applied to images before they are attached to a banner."""

from __future__ import annotations

import io
import logging
import warnings
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..config import Config
from .registry import BinaryHandle

logger = logging.getLogger(__name__)

# Vector formats Pillow cannot decode; only type and size are checked.
_VECTOR_TYPES = {"image/svg+xml"}


class AssetValidationError(ValueError):
    """Raised when an attached file is not an acceptable banner image."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid image")


@dataclass
class AssetValidation:
    """Outcome of validating one image."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    width: Optional[int] = None
    height: Optional[int] = None


def _mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f}MB"


def validate_binary_handle(
    handle: BinaryHandle,
    config: Optional[Config] = None,
    *,
    in_container: bool = False,
) -> AssetValidation:
    """Validate type, size and (for raster images) pixel dimensions."""
    config = config or Config()
    errors: list[str] = []
    notes: list[str] = []

    mime_type = (handle.mime_type or "").lower()
    if mime_type not in config.allowed_mime_types:
        errors.append(
            f"File type not allowed: {mime_type or 'unknown'}. Allowed: {', '.join(config.allowed_mime_types)}"
        )

    max_size = config.max_asset_bytes_in_container if in_container else config.max_asset_bytes
    if handle.size == 0:
        errors.append("File is empty")
    elif handle.size > max_size:
        errors.append(f"File too large: {_mb(handle.size)}. Maximum: {_mb(max_size)}")
    if in_container and handle.size > 1024 * 1024:
        notes.append(f"Large image for a container: {_mb(handle.size)}")

    width = height = None
    if not errors and mime_type not in _VECTOR_TYPES:
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("error", Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(handle.data)) as img:
                    width, height = img.size
        except (Image.DecompressionBombError, Image.DecompressionBombWarning) as exc:
            errors.append(f"Image too large: {exc}")
        except (UnidentifiedImageError, OSError) as exc:
            errors.append(f"Unreadable image: {exc}")
        else:
            if width < config.min_image_dimension or height < config.min_image_dimension:
                errors.append(
                    f"Image too small: {width}x{height}px. Minimum: "
                    f"{config.min_image_dimension}x{config.min_image_dimension}px"
                )
            if width > config.max_image_dimension or height > config.max_image_dimension:
                errors.append(
                    f"Image too large: {width}x{height}px. Maximum: "
                    f"{config.max_image_dimension}x{config.max_image_dimension}px"
                )

    if errors:
        logger.warning("Rejected image %s: %s", handle.name, "; ".join(errors))
    return AssetValidation(
        is_valid=not errors,
        errors=errors,
        warnings=notes,
        width=width,
        height=height,
    )
