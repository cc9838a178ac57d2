"""Banner editing session and save flow."""

from .saving import (
    DocumentValidationError,
    SaveInProgressError,
    SaveOrchestrator,
    SaveState,
    build_payload,
    validate_document,
)
from .session import BannerEditor, RequiredButtonsCheck, new_banner_document

__all__ = [
    "BannerEditor",
    "DocumentValidationError",
    "RequiredButtonsCheck",
    "SaveInProgressError",
    "SaveOrchestrator",
    "SaveState",
    "build_payload",
    "new_banner_document",
    "validate_document",
]
