"""Registry of images attached in the editor but not uploaded yet."""

from __future__ import annotations

import logging
import mimetypes
import secrets
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..constants import (
    COMPONENT_TRANSIENT_FIELDS,
    DEVICES,
    IMAGE_REF_PREFIX,
)
from ..diagnostics import DiagnosticKind, EditorDiagnostics
from ..document.models import BannerDocument, Component

logger = logging.getLogger(__name__)


@dataclass
class BinaryHandle:
    """An image captured from a file picker or clipboard."""

    name: str
    mime_type: str
    data: bytes = field(repr=False)
    size: int = -1

    def __post_init__(self):
        if self.size < 0:
            self.size = len(self.data)

    @classmethod
    def from_path(cls, path: Path, mime_type: Optional[str] = None) -> "BinaryHandle":
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            mime_type=mime_type or guessed or "application/octet-stream",
            data=path.read_bytes(),
        )


def new_reference_token() -> str:
    """Token placed in an image component's content until the file is uploaded."""
    return f"{IMAGE_REF_PREFIX}{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def token_suffix(token: str) -> str:
    return token[len(IMAGE_REF_PREFIX):] if token.startswith(IMAGE_REF_PREFIX) else token


class AssetRegistry:
    """
    Token -> BinaryHandle map shared by the editor and the save flow.

    Entries are never evicted by the registry itself; the save orchestrator
    discards them once they have been uploaded.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, BinaryHandle] = {}

    def attach(self, token: str, handle: BinaryHandle) -> None:
        """Insert or overwrite the handle for ``token``."""
        with self._lock:
            self._entries[token] = handle
        logger.debug("Attached asset %s (%s, %d bytes)", token, handle.name, handle.size)

    def resolve(self, token: str) -> Optional[BinaryHandle]:
        with self._lock:
            return self._entries.get(token)

    def discard(self, tokens: Iterable[str]) -> int:
        """Remove entries for ``tokens``; returns how many were present."""
        removed = 0
        with self._lock:
            for token in tokens:
                if self._entries.pop(token, None) is not None:
                    removed += 1
        return removed

    def pending_tokens(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _handle_from_component(component: Component) -> Optional[BinaryHandle]:
    for key in COMPONENT_TRANSIENT_FIELDS:
        candidate = component.transient.get(key)
        if isinstance(candidate, BinaryHandle):
            return candidate
    for device in DEVICES:
        candidate = (component.style.get(device) or {}).get("_tempFile")
        if isinstance(candidate, BinaryHandle):
            return candidate
    return None


def collect_from_document(
    document: BannerDocument,
    registry: AssetRegistry,
    diagnostics: Optional[EditorDiagnostics] = None,
) -> dict[str, BinaryHandle]:
    """
    Find every image still waiting for upload and the file behind it.

    Resolution order per image: component transient fields, per-device
    style transient fields, then the registry. Unresolved tokens are
    logged and left out of the result.
    """
    pending: dict[str, BinaryHandle] = {}
    for component in document.walk():
        token = component.image_reference
        if not token or token in pending:
            continue

        handle = _handle_from_component(component) or registry.resolve(token)
        if handle is None:
            logger.warning("No file found for image %s in component %s, skipping it", token, component.id)
            if diagnostics is not None:
                diagnostics.record(
                    DiagnosticKind.UNRESOLVED_ASSET,
                    "collect_from_document",
                    f"no file for {token}",
                    component_id=component.id,
                    token=token,
                )
            continue
        pending[token] = handle

    return pending
