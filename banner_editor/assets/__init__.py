"""Pending image assets for the banner editor."""

from .registry import (
    AssetRegistry,
    BinaryHandle,
    collect_from_document,
    new_reference_token,
    token_suffix,
)
from .validation import AssetValidation, AssetValidationError, validate_binary_handle

__all__ = [
    "AssetRegistry",
    "AssetValidation",
    "AssetValidationError",
    "BinaryHandle",
    "collect_from_document",
    "new_reference_token",
    "token_suffix",
    "validate_binary_handle",
]
