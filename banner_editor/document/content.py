"""Component content variants.

Stored documents use a loose ``content`` field: a raw string, a
``{"texts": {...}, "translatable": bool}`` object, or an image placeholder
token. In memory each shape gets its own class with a ``kind`` discriminant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..constants import DEFAULT_LANGUAGE, IMAGE_REF_PREFIX, ComponentType


@dataclass
class PlainText:
    """Raw text that has not been upgraded to the multi-language form."""

    text: str
    kind: str = field(default="plain_text", init=False)

    def to_wire(self) -> str:
        return self.text


@dataclass
class MultiLangText:
    """Per-language texts (canonical form for text, button and container content)."""

    texts: dict[str, str] = field(default_factory=dict)
    translatable: bool = True
    # Older documents mirror the default-language text under "text".
    legacy_text: Optional[str] = None
    kind: str = field(default="multi_lang_text", init=False)

    def text_for(self, language: str = DEFAULT_LANGUAGE) -> str:
        if language in self.texts:
            return self.texts[language]
        return self.texts.get(DEFAULT_LANGUAGE, "")

    def to_wire(self) -> dict:
        data: dict[str, Any] = {"texts": dict(self.texts), "translatable": self.translatable}
        if self.legacy_text is not None:
            data["text"] = self.legacy_text
        return data


@dataclass
class ImageReference:
    """Placeholder for an image attached in this session but not uploaded yet."""

    token: str
    kind: str = field(default="image_reference", init=False)

    def to_wire(self) -> str:
        return self.token


@dataclass
class ImageUrl:
    """Image that already lives at a URL or path."""

    url: str
    kind: str = field(default="image_url", init=False)

    def to_wire(self) -> str:
        return self.url


Content = Union[PlainText, MultiLangText, ImageReference, ImageUrl]


def is_reference_token(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(IMAGE_REF_PREFIX)


def multi_lang_from_dict(data: dict) -> MultiLangText:
    """Build ``MultiLangText`` from an object, upgrading the legacy ``{"text": ...}`` shape."""
    raw_texts = data.get("texts")
    legacy = data.get("text")
    translatable = data.get("translatable")

    if isinstance(raw_texts, dict):
        texts = {str(lang): "" if value is None else str(value) for lang, value in raw_texts.items()}
        return MultiLangText(
            texts=texts,
            translatable=True if translatable is None else bool(translatable),
            legacy_text=str(legacy) if isinstance(legacy, str) else None,
        )

    if legacy is not None:
        # Upgraded documents no longer need the mirror.
        return MultiLangText(
            texts={DEFAULT_LANGUAGE: str(legacy)},
            translatable=True if translatable is None else bool(translatable),
        )

    return MultiLangText(texts={}, translatable=True if translatable is None else bool(translatable))


def content_from_wire(value: Any, component_type: str) -> Optional[Content]:
    """
    Interpret a stored ``content`` value.

    Returns None for missing content so callers can apply type defaults.
    Strings on image components become ``ImageReference`` or ``ImageUrl``;
    on other components they stay ``PlainText`` until normalized.
    """
    if value is None:
        return None
    if isinstance(value, (PlainText, MultiLangText, ImageReference, ImageUrl)):
        return value
    if isinstance(value, str):
        if component_type == ComponentType.IMAGE.value:
            if is_reference_token(value):
                return ImageReference(value)
            return ImageUrl(value)
        return PlainText(value)
    if isinstance(value, dict):
        return multi_lang_from_dict(value)
    # Numbers and other scalars are treated as text.
    return PlainText(str(value))


def content_to_wire(content: Optional[Content]) -> Any:
    if content is None:
        return None
    return content.to_wire()
