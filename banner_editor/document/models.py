"""Banner document data models."""

from __future__ import annotations

import copy
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional

from ..constants import COMPONENT_TRANSIENT_FIELDS, STYLE_TRANSIENT_FIELDS, ComponentType
from .content import Content, ImageReference, content_from_wire, content_to_wire

_COMPONENT_KEYS = {
    "id",
    "type",
    "locked",
    "content",
    "style",
    "position",
    "action",
    "children",
    "containerConfig",
    "parentId",
}
_DOCUMENT_KEYS = {"id", "_id", "name", "layout", "components"}


def _device_map(raw: Any) -> dict[str, dict]:
    """Copy a per-device mapping, dropping entries that are not dicts."""
    if not isinstance(raw, dict):
        return {}
    return {str(device): dict(values) for device, values in raw.items() if isinstance(values, dict)}


@dataclass
class Component:
    """A single banner element (text, button, image or container)."""

    id: str
    type: str
    content: Optional[Content] = None
    locked: bool = False
    style: dict[str, dict] = field(default_factory=dict)
    position: dict[str, dict] = field(default_factory=dict)
    action: Optional[dict] = None
    children: List["Component"] = field(default_factory=list)
    container_config: dict[str, dict] = field(default_factory=dict)
    parent_id: Optional[str] = None

    # Non-serializable per-session values (e.g. the attached file)
    transient: dict[str, Any] = field(default_factory=dict)
    # Unknown keys from storage, written back untouched
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_container(self) -> bool:
        return self.type == ComponentType.CONTAINER.value

    @property
    def action_type(self) -> Optional[str]:
        if isinstance(self.action, dict):
            value = self.action.get("type")
            return str(value) if value else None
        return None

    @property
    def image_reference(self) -> Optional[str]:
        """Pending image token if this is an image waiting for upload."""
        if self.type == ComponentType.IMAGE.value and isinstance(self.content, ImageReference):
            return self.content.token
        return None

    def walk(self) -> Iterator["Component"]:
        """Yield this component and all of its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self, include_transient: bool = False) -> dict:
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "type": self.type,
                "locked": self.locked,
                "content": content_to_wire(self.content),
                "style": {
                    device: _strip_style(values, include_transient)
                    for device, values in self.style.items()
                },
                "position": {device: dict(values) for device, values in self.position.items()},
            }
        )
        if self.action is not None:
            data["action"] = dict(self.action)
        if self.is_container or self.children:
            data["children"] = [c.to_dict(include_transient) for c in self.children]
        if self.container_config:
            data["containerConfig"] = {d: dict(v) for d, v in self.container_config.items()}
        if self.parent_id:
            data["parentId"] = self.parent_id
        if include_transient:
            data.update(self.transient)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Component":
        """Build a component from stored data without repairing it (see ``normalizer``)."""
        component_type = str(data.get("type") or "")
        raw_children = data.get("children")
        children = [
            cls.from_dict(child)
            for child in (raw_children if isinstance(raw_children, list) else [])
            if isinstance(child, dict)
        ]
        transient = {k: data[k] for k in COMPONENT_TRANSIENT_FIELDS if k in data}
        extra = {
            k: copy.deepcopy(v)
            for k, v in data.items()
            if k not in _COMPONENT_KEYS and k not in transient
        }
        action = data.get("action")
        return cls(
            id=str(data.get("id") or ""),
            type=component_type,
            content=content_from_wire(data.get("content"), component_type),
            locked=bool(data.get("locked", False)),
            style=_device_map(data.get("style")),
            position=_device_map(data.get("position")),
            action=dict(action) if isinstance(action, dict) else None,
            children=children,
            container_config=_device_map(data.get("containerConfig")),
            parent_id=data.get("parentId") or None,
            transient=transient,
            extra=extra,
        )


def _strip_style(values: dict, include_transient: bool) -> dict:
    if include_transient:
        return dict(values)
    return {k: v for k, v in values.items() if k not in STYLE_TRANSIENT_FIELDS}


@dataclass
class BannerDocument:
    """A banner: per-device layout plus an ordered component tree."""

    name: str
    layout: dict[str, dict] = field(default_factory=dict)
    components: List[Component] = field(default_factory=list)
    id: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def walk(self) -> Iterator[Component]:
        """Yield every component in the tree, depth first, in render order."""
        for component in self.components:
            yield from component.walk()

    def find(self, component_id: str) -> Optional[Component]:
        for component in self.walk():
            if component.id == component_id:
                return component
        return None

    def find_with_parent(self, component_id: str) -> tuple[Optional[Component], Optional[Component]]:
        """Return ``(component, parent_container)``; parent is None for root components."""

        def _search(components: List[Component], parent: Optional[Component]):
            for component in components:
                if component.id == component_id:
                    return component, parent
                found = _search(component.children, component)
                if found[0] is not None:
                    return found
            return None, None

        return _search(self.components, None)

    def sibling_list(self, component_id: str) -> Optional[List[Component]]:
        """The list that directly holds ``component_id`` (root list or a container's children)."""
        component, parent = self.find_with_parent(component_id)
        if component is None:
            return None
        return parent.children if parent is not None else self.components

    def clone(self) -> "BannerDocument":
        return copy.deepcopy(self)

    def to_dict(self, include_transient: bool = False) -> dict:
        data: dict[str, Any] = copy.deepcopy(self.extra)
        if self.id:
            data["id"] = self.id
        data["name"] = self.name
        data["layout"] = {device: dict(values) for device, values in self.layout.items()}
        data["components"] = [c.to_dict(include_transient) for c in self.components]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BannerDocument":
        raw_components = data.get("components")
        components = [
            Component.from_dict(item)
            for item in (raw_components if isinstance(raw_components, list) else [])
            if isinstance(item, dict)
        ]
        doc_id = data.get("id") or data.get("_id")
        return cls(
            id=str(doc_id) if doc_id else None,
            name=str(data.get("name") or ""),
            layout=_device_map(data.get("layout")),
            components=components,
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _DOCUMENT_KEYS},
        )


def new_component_id(prefix: str = "comp") -> str:
    """Timestamp plus random suffix; unique enough within one document."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(5)}"
