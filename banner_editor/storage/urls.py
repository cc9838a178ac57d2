"""Rewrites server-relative image paths in stored templates to absolute URLs."""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional

from ..constants import DEVICES, ComponentType

logger = logging.getLogger(__name__)

SERVER_IMAGE_PREFIXES = ("/templates/", "/direct-image/")


def _absolute(url: Any, api_base_url: str) -> Any:
    if not isinstance(url, str) or url.startswith("http"):
        return url
    if url.startswith(SERVER_IMAGE_PREFIXES):
        return f"{api_base_url}{url}"
    return url


def _transform_component(component: dict, api_base_url: str) -> None:
    content = component.get("content")
    is_image = component.get("type") == ComponentType.IMAGE.value

    if is_image and isinstance(content, str):
        component["content"] = _absolute(content, api_base_url)
    elif isinstance(content, dict):
        # Only image components may carry /direct-image/ paths in text slots.
        prefixes = SERVER_IMAGE_PREFIXES if is_image else ("/templates/",)
        texts = content.get("texts")
        if isinstance(texts, dict):
            for lang, value in texts.items():
                if isinstance(value, str) and value.startswith(prefixes):
                    texts[lang] = _absolute(value, api_base_url)
        legacy = content.get("text")
        if isinstance(legacy, str) and legacy.startswith(prefixes):
            content["text"] = _absolute(legacy, api_base_url)

    if is_image and isinstance(component.get("style"), dict):
        for device in DEVICES:
            values = component["style"].get(device)
            if isinstance(values, dict) and isinstance(values.get("_previewUrl"), str):
                values["_previewUrl"] = _absolute(values["_previewUrl"], api_base_url)

    children = component.get("children")
    if isinstance(children, list):
        for child in children:
            if isinstance(child, dict):
                _transform_component(child, api_base_url)


def transform_image_urls(template: Optional[dict], api_base_url: str) -> Optional[dict]:
    """
    Return a copy of ``template`` with server image paths made absolute.

    Paths starting with ``/templates/`` or ``/direct-image/`` get the API
    base URL prepended; absolute URLs and everything else are left alone.
    """
    if template is None:
        return None

    base = (api_base_url or "").rstrip("/")
    transformed = copy.deepcopy(template)
    components = transformed.get("components")
    if isinstance(components, list):
        for component in components:
            if isinstance(component, dict):
                _transform_component(component, base)
    logger.debug("Transformed image URLs with base %s", base)
    return transformed
