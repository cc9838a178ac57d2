"""Template storage for the banner editor."""

from .base import (
    BaseTemplateStorage,
    FilePart,
    JsonPayload,
    MultipartPayload,
    StorageAPIError,
    StorageConfigurationError,
    StorageError,
    StorageTimeoutError,
    TemplatePayload,
)
from .client import TemplateStorageClient
from .urls import transform_image_urls

__all__ = [
    "BaseTemplateStorage",
    "FilePart",
    "JsonPayload",
    "MultipartPayload",
    "StorageAPIError",
    "StorageConfigurationError",
    "StorageError",
    "StorageTimeoutError",
    "TemplatePayload",
    "TemplateStorageClient",
    "transform_image_urls",
]
