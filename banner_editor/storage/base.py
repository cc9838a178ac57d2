"""Template storage interface and errors."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Union

from ..constants import SYSTEM_TEMPLATE_FIELD_NAME, TEMPLATE_FIELD_NAME


class StorageError(Exception):
    """Base exception for template storage errors."""

    pass


class StorageAPIError(StorageError):
    """Storage API returned an error."""

    def __init__(self, status_code: int, message: str, response_body: str = ""):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"Storage API error {status_code}: {message}")


class StorageTimeoutError(StorageError):
    """Storage request timed out."""

    pass


class StorageConfigurationError(StorageError):
    """Storage client not properly configured."""

    pass


@dataclass
class JsonPayload:
    """Template body sent as ``application/json``."""

    template: dict
    is_system_template: bool = False

    def body(self) -> str:
        body = dict(self.template)
        if self.is_system_template:
            body[SYSTEM_TEMPLATE_FIELD_NAME] = True
        return json.dumps(body)


@dataclass
class FilePart:
    """One uploaded file of a multipart payload."""

    field_name: str
    filename: str
    mime_type: str
    data: bytes = field(repr=False)


@dataclass
class MultipartPayload:
    """Template JSON plus image files sent as ``multipart/form-data``."""

    fields: dict[str, str]
    files: list[FilePart] = field(default_factory=list)
    is_system_template: bool = False

    @property
    def template(self) -> dict:
        return json.loads(self.fields.get(TEMPLATE_FIELD_NAME) or "{}")


TemplatePayload = Union[JsonPayload, MultipartPayload]


class BaseTemplateStorage(ABC):
    """
    Persistent store for banner templates.

    Implementations return the stored template as a plain dict (the same
    wire shape the editor loads) and raise ``StorageError`` on failure.
    """

    @abstractmethod
    async def create(self, payload: TemplatePayload) -> dict:
        """Store a new template and return it with its assigned id."""
        pass

    @abstractmethod
    async def update(self, template_id: str, payload: TemplatePayload) -> dict:
        """Replace an existing template and return the stored version."""
        pass

    @abstractmethod
    async def fetch(self, template_id: str, language: Optional[str] = None) -> dict:
        """Load a template by id."""
        pass
