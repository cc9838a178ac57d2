"""Persisting the editor document to template storage."""

from __future__ import annotations

import copy
import json
import logging
from enum import Enum
from typing import Optional, Union

from ..assets.registry import AssetRegistry, BinaryHandle, collect_from_document, token_suffix
from ..constants import IMAGES_FIELD_NAME, TEMPLATE_FIELD_NAME
from ..document.models import BannerDocument
from ..storage.base import BaseTemplateStorage, FilePart, JsonPayload, MultipartPayload, TemplatePayload
from ..utils.files import upload_filename
from .session import BannerEditor

logger = logging.getLogger(__name__)


class SaveState(str, Enum):
    """Lifecycle of the most recent save."""

    IDLE = "idle"
    SAVING = "saving"
    SUCCESS = "success"
    FAILED = "failed"


class SaveInProgressError(RuntimeError):
    """A save was requested while another one is still running."""

    pass


class DocumentValidationError(ValueError):
    """The document cannot be saved as-is."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def validate_document(document: BannerDocument) -> list[str]:
    """Return problems that block saving (empty list when valid)."""
    errors = []
    if not (document.name or "").strip():
        errors.append("Banner name is required")
    return errors


def build_payload(
    document: BannerDocument,
    pending: dict[str, BinaryHandle],
    *,
    is_system_template: bool = False,
) -> TemplatePayload:
    """
    Serialize ``document`` for storage.

    Without pending images the template goes out as JSON. Otherwise it is
    embedded as a JSON field next to one file per image, each file named
    after its reference token so the server can swap in the stored URL.
    """
    template = document.to_dict()
    if not pending:
        return JsonPayload(template=template, is_system_template=is_system_template)

    files = [
        FilePart(
            field_name=IMAGES_FIELD_NAME,
            filename=upload_filename(token_suffix(token), handle.name),
            mime_type=handle.mime_type,
            data=handle.data,
        )
        for token, handle in pending.items()
    ]
    return MultipartPayload(
        fields={TEMPLATE_FIELD_NAME: json.dumps(template)},
        files=files,
        is_system_template=is_system_template,
    )


class SaveOrchestrator:
    """
    Runs one save at a time for a ``BannerEditor``.

    The editor stays usable while a save is in flight. If it was edited in
    the meantime, only the id assigned by storage is merged back so the
    newer edits are not overwritten.
    """

    def __init__(
        self,
        editor: BannerEditor,
        storage: BaseTemplateStorage,
        registry: Optional[AssetRegistry] = None,
    ):
        self.editor = editor
        self.storage = storage
        self.registry = registry if registry is not None else editor.registry
        self.state = SaveState.IDLE
        self.last_error: Optional[BaseException] = None

    @property
    def is_saving(self) -> bool:
        return self.state == SaveState.SAVING

    async def save(
        self,
        override: Union[BannerDocument, dict, None] = None,
        *,
        is_system_template: bool = False,
    ) -> BannerDocument:
        """Save the editor document (or ``override``) and return the stored version."""
        if self.state == SaveState.SAVING:
            raise SaveInProgressError("A save is already in progress")

        self.state = SaveState.SAVING
        self.last_error = None
        start_revision = self.editor.revision

        try:
            if isinstance(override, dict):
                snapshot = BannerDocument.from_dict(copy.deepcopy(override))
            else:
                snapshot = (override or self.editor.document).clone()

            errors = validate_document(snapshot)
            if errors:
                raise DocumentValidationError(errors)

            pending = collect_from_document(snapshot, self.registry, self.editor.diagnostics)
            payload = build_payload(snapshot, pending, is_system_template=is_system_template)

            if snapshot.id:
                logger.info("Updating banner %s (%d image(s))", snapshot.id, len(pending))
                stored = await self.storage.update(snapshot.id, payload)
            else:
                logger.info("Creating banner %r (%d image(s))", snapshot.name, len(pending))
                stored = await self.storage.create(payload)
        except Exception as e:
            self.state = SaveState.FAILED
            self.last_error = e
            logger.warning("Banner save failed: %s", e)
            raise

        persisted = self.editor.normalizer().normalize(stored)
        if pending:
            self.registry.discard(pending)

        if self.editor.revision == start_revision:
            self.editor.replace_document(persisted)
        else:
            logger.info("Banner edited during save; keeping local changes")
            if persisted.id:
                self.editor.document.id = persisted.id

        self.state = SaveState.SUCCESS
        logger.info("Saved banner %s", persisted.id)
        return persisted
