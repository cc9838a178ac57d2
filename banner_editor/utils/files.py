"""Upload-safe naming helpers."""

from __future__ import annotations

from ..constants import IMAGE_REF_FILENAME_PREFIX


def safe_filename(value: str, *, max_length: int = 100, default: str = "image") -> str:
    """Replace characters servers reject in upload names, keeping the extension."""
    raw = (value or "").strip().replace("\\", "/").rsplit("/", 1)[-1]
    if not raw:
        return default
    safe = "".join(c if c.isalnum() or c in "._-" else "_" for c in raw)
    if len(safe) > max_length:
        stem, dot, ext = safe.rpartition(".")
        if dot and stem and len(ext) < max_length:
            safe = f"{stem[: max_length - len(ext) - 1]}.{ext}"
        else:
            safe = safe[:max_length]
    return safe


def upload_filename(token_suffix: str, original_name: str) -> str:
    """Name the server uses to match an uploaded file back to its image token."""
    return f"{IMAGE_REF_FILENAME_PREFIX}{token_suffix}_{safe_filename(original_name)}"
