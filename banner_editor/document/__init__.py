"""Banner document model and normalization."""

from .content import (
    Content,
    ImageReference,
    ImageUrl,
    MultiLangText,
    PlainText,
    content_from_wire,
    is_reference_token,
)
from .models import BannerDocument, Component, new_component_id
from .normalizer import DocumentNormalizer, normalize

__all__ = [
    "BannerDocument",
    "Component",
    "Content",
    "DocumentNormalizer",
    "ImageReference",
    "ImageUrl",
    "MultiLangText",
    "PlainText",
    "content_from_wire",
    "is_reference_token",
    "new_component_id",
    "normalize",
]
