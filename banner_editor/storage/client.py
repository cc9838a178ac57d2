"""HTTP client for the banner template API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..config import Config
from ..constants import SYSTEM_TEMPLATE_FIELD_NAME
from .base import (
    BaseTemplateStorage,
    JsonPayload,
    MultipartPayload,
    StorageAPIError,
    StorageConfigurationError,
    StorageError,
    StorageTimeoutError,
    TemplatePayload,
)
from .urls import transform_image_urls

logger = logging.getLogger(__name__)

TEMPLATES_PATH = "/api/v1/banner-templates"


class TemplateStorageClient(BaseTemplateStorage):
    """
    Template storage backed by the REST API.

    Responses are unwrapped from the ``{"data": {"template": ...}}``
    envelope and their server image paths made absolute.
    """

    user_agent: str = "BannerEditor/1.0"

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if not self.config.api_base_url:
            raise StorageConfigurationError("Template API URL is not configured")
        if self._client is None or self._client.is_closed:
            headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
            if self.config.api_token:
                headers["Authorization"] = f"Bearer {self.config.api_token}"
            self._client = httpx.AsyncClient(
                base_url=self.config.api_base_url,
                timeout=httpx.Timeout(self.config.request_timeout),
                headers=headers,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def create(self, payload: TemplatePayload) -> dict:
        path = f"{TEMPLATES_PATH}/system" if payload.is_system_template else TEMPLATES_PATH
        return await self._send("POST", path, payload)

    async def update(self, template_id: str, payload: TemplatePayload) -> dict:
        if not template_id:
            raise StorageConfigurationError("Cannot update a template without an id")
        return await self._send("PATCH", f"{TEMPLATES_PATH}/{template_id}", payload)

    async def fetch(self, template_id: str, language: Optional[str] = None) -> dict:
        params = {"language": language or self.config.default_language}
        return await self._request("GET", f"{TEMPLATES_PATH}/{template_id}", params=params)

    async def _send(self, method: str, path: str, payload: TemplatePayload) -> dict:
        if isinstance(payload, MultipartPayload):
            data = dict(payload.fields)
            if payload.is_system_template:
                data[SYSTEM_TEMPLATE_FIELD_NAME] = "true"
            files = [(part.field_name, (part.filename, part.data, part.mime_type)) for part in payload.files]
            logger.info("Sending template with %d image(s) to %s %s", len(files), method, path)
            return await self._request(method, path, data=data, files=files)
        if isinstance(payload, JsonPayload):
            return await self._request(
                method,
                path,
                content=payload.body(),
                headers={"Content-Type": "application/json"},
            )
        raise StorageConfigurationError(f"Unsupported payload type: {type(payload).__name__}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise StorageTimeoutError(f"{method} {path} timed out") from e
        except httpx.HTTPStatusError as e:
            raise StorageAPIError(
                e.response.status_code,
                _error_message(e.response),
                response_body=e.response.text[:500],
            ) from e
        except httpx.HTTPError as e:
            logger.exception("Template API request failed: %s %s", method, path)
            raise StorageError(f"{method} {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise StorageAPIError(response.status_code, "Response is not valid JSON") from e

        template = ((body or {}).get("data") or {}).get("template") if isinstance(body, dict) else None
        if not isinstance(template, dict):
            raise StorageAPIError(response.status_code, "Response did not include a template")
        return transform_image_urls(template, self.config.api_base_url)


def _error_message(response: httpx.Response) -> str:
    """Best-effort server error message."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "Request failed"
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        if body.get("error"):
            return str(body["error"])
        if body.get("errors"):
            return f"Validation errors: {body['errors']}"
    return response.reason_phrase or "Request failed"
