"""In-memory banner editing session.

``BannerEditor`` owns one ``BannerDocument`` and exposes the only
operations allowed to change it. Every operation is synchronous and keeps
the document invariants: three device profiles everywhere, percentage
positions, unique ids, locked components never removed.

Operations on unknown ids (or attempts to delete a locked component) are
no-ops. They return False/None and leave a ``DiagnosticEvent`` behind
instead of raising, so a stale UI reference cannot crash the editor.
"""

from __future__ import annotations

import base64
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..assets.registry import AssetRegistry, BinaryHandle, new_reference_token
from ..assets.validation import AssetValidationError, validate_binary_handle
from ..config import Config
from ..constants import (
    DEFAULT_LANGUAGE,
    DEFAULT_POSITION,
    DEVICES,
    REQUIRED_ACTIONS,
    ActionType,
    ComponentType,
    Device,
)
from ..diagnostics import DiagnosticKind, EditorDiagnostics
from ..document.content import (
    Content,
    ImageReference,
    ImageUrl,
    MultiLangText,
    PlainText,
    content_from_wire,
)
from ..document.defaults import (
    REQUIRED_BUTTON_IDS,
    auto_position,
    default_container_config,
    default_content,
    default_layout,
    default_styles,
    is_required_action,
)
from ..document.models import BannerDocument, Component, new_component_id
from ..document.normalizer import DocumentNormalizer
from ..geometry.measure import Measurer, dims_from_measurement
from ..geometry.units import (
    ConversionUnavailable,
    calculate_position_by_code,
    calculate_safe_position,
    ensure_percentage,
    format_percent,
    parse_css_value,
    percent_value,
    pixels_to_percent,
)

logger = logging.getLogger(__name__)

# Keys of ``initial_data`` consumed by add_component; everything else is kept as extra.
_BUILD_KEYS = {"id", "type", "content", "style", "position", "action", "locked", "children", "containerConfig"}

# Declared container size used when its style gives nothing usable.
_FALLBACK_CONTAINER_PX = (300.0, 200.0)


@dataclass
class RequiredButtonsCheck:
    """Whether the banner still carries every mandatory consent button."""

    is_valid: bool
    missing: list[str] = field(default_factory=list)
    existing: list[str] = field(default_factory=list)


def new_banner_document(config: Optional[Config] = None) -> BannerDocument:
    """Fresh banner with the three locked consent buttons."""
    config = config or Config()
    components = []
    for action in (ActionType.ACCEPT_ALL.value, ActionType.REJECT_ALL.value, ActionType.SHOW_PREFERENCES.value):
        pos = auto_position(action)
        components.append(
            Component(
                id=REQUIRED_BUTTON_IDS[action],
                type=ComponentType.BUTTON.value,
                locked=True,
                content=default_content(ComponentType.BUTTON.value, action),
                action={"type": action},
                style=default_styles(ComponentType.BUTTON.value, action, overrides=config.style_overrides),
                position={device: dict(pos) for device in DEVICES},
            )
        )
    return BannerDocument(
        name=config.placeholder_name,
        layout=default_layout(config.default_layout),
        components=components,
    )


def _topmost_locked(components: list[Component]) -> list[Component]:
    """Locked components not nested inside another locked component."""
    found = []
    for component in components:
        if component.locked:
            found.append(component)
        else:
            found.extend(_topmost_locked(component.children))
    return found


class BannerEditor:
    """Authoritative banner document plus its mutation operations."""

    def __init__(
        self,
        document: Optional[BannerDocument] = None,
        *,
        config: Optional[Config] = None,
        registry: Optional[AssetRegistry] = None,
        diagnostics: Optional[EditorDiagnostics] = None,
    ):
        self.config = config or Config()
        self.registry = registry if registry is not None else AssetRegistry()
        self.diagnostics = diagnostics if diagnostics is not None else EditorDiagnostics()
        # Measured size of the editor canvas; hosts update it on resize.
        self.canvas_width = self.config.canvas_width
        self.canvas_height = self.config.canvas_height
        self._document = document if document is not None else new_banner_document(self.config)
        self._selected_id: Optional[str] = None
        self._revision = 0

    @classmethod
    def new(cls, **kwargs) -> "BannerEditor":
        return cls(None, **kwargs)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def document(self) -> BannerDocument:
        return self._document

    @property
    def revision(self) -> int:
        """Incremented by every mutation that changed the document."""
        return self._revision

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def select(self, component_id: Optional[str]) -> bool:
        if component_id is not None and self._document.find(component_id) is None:
            self._unknown("select", component_id)
            return False
        self._selected_id = component_id
        return True

    def set_canvas_size(self, width: float, height: float) -> None:
        self.canvas_width = width
        self.canvas_height = height

    def find(self, component_id: str) -> Optional[Component]:
        return self._document.find(component_id)

    def normalizer(self) -> DocumentNormalizer:
        return DocumentNormalizer(self.config, self.canvas_width, self.canvas_height)

    def load(self, raw: Union[dict, BannerDocument, None], auto_select: bool = False) -> BannerDocument:
        """Replace the session document with a normalized copy of ``raw``."""
        document = self.normalizer().normalize(raw)
        self.replace_document(document)
        if auto_select and document.components:
            self._selected_id = document.components[0].id
        return document

    def replace_document(self, document: BannerDocument) -> None:
        self._document = document
        if self._selected_id and document.find(self._selected_id) is None:
            self._selected_id = None
        self._touch()

    def _touch(self) -> None:
        self._revision += 1

    def _unknown(self, operation: str, component_id: str) -> None:
        self.diagnostics.record(
            DiagnosticKind.UNKNOWN_COMPONENT,
            operation,
            f"component {component_id} not found",
            component_id=component_id,
        )

    def _invalid(self, operation: str, message: str, component_id: Optional[str] = None, **details) -> None:
        self.diagnostics.record(
            DiagnosticKind.INVALID_OPERATION,
            operation,
            message,
            component_id=component_id,
            **details,
        )

    def _device(self, operation: str, device: Union[str, Device], component_id: Optional[str] = None) -> Optional[str]:
        value = device.value if isinstance(device, Device) else str(device or "").strip().lower()
        if value not in DEVICES:
            self._invalid(operation, f"unknown device {device!r}", component_id, device=str(device))
            return None
        return value

    def _position_to_percent(self, position: dict, axis_width: float, axis_height: float) -> dict:
        result = {}
        if "top" in position:
            result["top"] = ensure_percentage(position.get("top"), axis_height)
        if "left" in position:
            result["left"] = ensure_percentage(position.get("left"), axis_width)
        return result

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def _build_component(
        self,
        component_type: str,
        position: Optional[dict],
        initial_data: dict,
        *,
        auto_place_required: bool,
        axis_px: tuple[float, float],
    ) -> Component:
        action = initial_data.get("action") if isinstance(initial_data.get("action"), dict) else None
        action_type = (action or {}).get("type")
        should_lock = component_type == ComponentType.BUTTON.value and is_required_action(action_type)

        component_id = str(initial_data.get("id") or "")
        if not component_id or self._document.find(component_id) is not None:
            component_id = new_component_id()

        if should_lock and auto_place_required:
            position = auto_position(action_type)
        position = position or dict(DEFAULT_POSITION)
        pos = self._position_to_percent(
            {"top": position.get("top", DEFAULT_POSITION["top"]), "left": position.get("left", DEFAULT_POSITION["left"])},
            *axis_px,
        )

        styles = default_styles(component_type, action_type, overrides=self.config.style_overrides)
        initial_style = initial_data.get("style")
        if isinstance(initial_style, dict) and initial_style:
            if any(device in initial_style for device in DEVICES):
                for device in DEVICES:
                    if isinstance(initial_style.get(device), dict):
                        styles[device].update(initial_style[device])
            else:
                for device in DEVICES:
                    styles[device].update(initial_style)

        content: Optional[Content] = content_from_wire(initial_data.get("content"), component_type)
        if content is None:
            content = default_content(component_type, action_type, placeholder_image=self.config.placeholder_image)

        component = Component(
            id=component_id,
            type=component_type,
            content=content,
            locked=bool(initial_data.get("locked", should_lock)),
            style=styles,
            position={device: dict(pos) for device in DEVICES},
            action=dict(action) if action else None,
            extra={k: copy.deepcopy(v) for k, v in initial_data.items() if k not in _BUILD_KEYS},
        )
        if component_type == ComponentType.CONTAINER.value:
            component.container_config = default_container_config()
        return component

    def add_component(
        self,
        component_type: str,
        position: Optional[dict] = None,
        initial_data: Optional[dict] = None,
    ) -> Optional[str]:
        """Append a new component at the root and return its id."""
        if not component_type:
            logger.error("add_component called without a component type")
            self._invalid("add_component", "component type is required")
            return None

        try:
            component = self._build_component(
                str(component_type),
                position,
                dict(initial_data or {}),
                auto_place_required=True,
                axis_px=(self.canvas_width, self.canvas_height),
            )
        except ConversionUnavailable:
            self.diagnostics.record(
                DiagnosticKind.MEASUREMENT_UNAVAILABLE,
                "add_component",
                "canvas size unknown, cannot convert pixel position",
            )
            return None

        self._document.components.append(component)
        self._selected_id = component.id
        self._touch()
        logger.debug("Added %s component %s", component.type, component.id)
        return component.id

    def delete_component(self, component_id: str) -> bool:
        """
        Remove a component (root or nested).

        Locked components are never removed. Deleting a container moves any
        locked descendants to the root so the mandatory buttons survive.
        """
        component, parent = self._document.find_with_parent(component_id)
        if component is None:
            self._unknown("delete_component", component_id)
            return False
        if component.locked:
            self.diagnostics.record(
                DiagnosticKind.LOCKED_COMPONENT,
                "delete_component",
                f"component {component_id} is locked",
                component_id=component_id,
                action=component.action_type,
            )
            return False

        rescued = _topmost_locked(component.children)
        siblings = parent.children if parent is not None else self._document.components
        siblings.remove(component)

        for index, locked_child in enumerate(rescued):
            offset = format_percent(10 + index * 5)
            locked_child.parent_id = None
            locked_child.position = {device: {"top": offset, "left": offset} for device in DEVICES}
            self._document.components.append(locked_child)
            logger.info("Moved locked component %s out of deleted container %s", locked_child.id, component_id)

        if self._selected_id == component_id:
            self._selected_id = None
        self._touch()
        return True

    def _remove_from_tree(self, component_id: str) -> Optional[Component]:
        siblings = self._document.sibling_list(component_id)
        if siblings is None:
            return None
        component = next(c for c in siblings if c.id == component_id)
        siblings.remove(component)
        return component

    def update_content(self, component_id: str, content: Union[str, dict, Content]) -> bool:
        """
        Update a component's content.

        A string written onto multi-language content only replaces the
        default-language text (other languages are kept). A string written
        onto anything else replaces it. Objects replace the content fully.
        """
        component = self._document.find(component_id)
        if component is None:
            self._unknown("update_content", component_id)
            return False

        if isinstance(content, str):
            current = component.content
            if isinstance(current, MultiLangText):
                current.texts[DEFAULT_LANGUAGE] = content
                if current.legacy_text is not None:
                    current.legacy_text = content
            else:
                component.content = content_from_wire(content, component.type)
                self._link_pending_image(component)
        elif isinstance(content, (PlainText, MultiLangText, ImageReference, ImageUrl)):
            component.content = content
            self._link_pending_image(component)
        elif isinstance(content, dict):
            component.content = content_from_wire(content, component.type)
        else:
            self._invalid("update_content", f"unsupported content type {type(content).__name__}", component_id)
            return False

        self._touch()
        return True

    def _link_pending_image(self, component: Component) -> None:
        token = component.image_reference
        if not token:
            return
        handle = self.registry.resolve(token)
        if handle is not None:
            component.transient["_tempFile"] = handle
            component.transient["_imageFile"] = handle

    def attach_image(
        self,
        component_id: str,
        handle: BinaryHandle,
        *,
        validate: bool = True,
    ) -> Optional[str]:
        """
        Attach a captured image to an image component.

        The file is registered under a fresh reference token, which becomes
        the component's content until a save uploads it. Raises
        ``AssetValidationError`` for files that fail validation.
        """
        component, parent = self._document.find_with_parent(component_id)
        if component is None:
            self._unknown("attach_image", component_id)
            return None
        if component.type != ComponentType.IMAGE.value:
            self._invalid("attach_image", f"component {component_id} is not an image", component_id)
            return None

        if validate:
            result = validate_binary_handle(handle, self.config, in_container=parent is not None)
            if not result.is_valid:
                raise AssetValidationError(result.errors)

        token = new_reference_token()
        self.registry.attach(token, handle)
        component.content = ImageReference(token)
        component.transient["_tempFile"] = handle
        component.transient["_imageFile"] = handle
        preview = f"data:{handle.mime_type};base64,{base64.b64encode(handle.data).decode('ascii')}"
        for device in DEVICES:
            component.style.setdefault(device, {})["_previewUrl"] = preview
        self._touch()
        logger.info("Attached image %s to component %s", handle.name, component_id)
        return token

    def update_style_for_device(self, component_id: str, device: Union[str, Device], style: dict) -> bool:
        """Shallow-merge ``style`` into one device; other devices are untouched."""
        component = self._document.find(component_id)
        if component is None:
            self._unknown("update_style_for_device", component_id)
            return False
        device_key = self._device("update_style_for_device", device, component_id)
        if device_key is None:
            return False

        component.style.setdefault(device_key, {}).update(style or {})
        self._touch()
        return True

    def update_position_for_device(self, component_id: str, device: Union[str, Device], position: dict) -> bool:
        """Merge ``{top, left}`` into one device after converting to percentages."""
        component, parent = self._document.find_with_parent(component_id)
        if component is None:
            self._unknown("update_position_for_device", component_id)
            return False
        device_key = self._device("update_position_for_device", device, component_id)
        if device_key is None:
            return False

        axis = self._container_px(parent, device_key) if parent is not None else (self.canvas_width, self.canvas_height)
        try:
            converted = self._position_to_percent(position or {}, *axis)
        except ConversionUnavailable:
            self.diagnostics.record(
                DiagnosticKind.MEASUREMENT_UNAVAILABLE,
                "update_position_for_device",
                "container size unknown, position not updated",
                component_id=component_id,
            )
            return False

        component.position.setdefault(device_key, {}).update(converted)
        self._touch()
        return True

    def update_layout_for_device(self, device: Union[str, Device], prop: str, value: Any) -> bool:
        device_key = self._device("update_layout_for_device", device)
        if device_key is None:
            return False
        self._document.layout.setdefault(device_key, {})[prop] = value
        self._touch()
        return True

    # ------------------------------------------------------------------
    # Read-time device resolution
    # ------------------------------------------------------------------

    def resolve_style(self, component_id: str, device: Union[str, Device]) -> dict:
        """Style for ``device`` layered over desktop's (desktop fills the gaps)."""
        component = self._document.find(component_id)
        if component is None:
            return {}
        device_key = Device.from_string(device).value
        resolved = dict(component.style.get("desktop") or {})
        if device_key != "desktop":
            resolved.update(component.style.get(device_key) or {})
        return resolved

    def resolve_position(self, component_id: str, device: Union[str, Device]) -> dict:
        component = self._document.find(component_id)
        if component is None:
            return {}
        device_key = Device.from_string(device).value
        values = component.position.get(device_key) or {}
        if "top" in values and "left" in values:
            return dict(values)
        return {**(component.position.get("desktop") or {}), **values}

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def _container_px(self, container: Component, device: str) -> tuple[float, float]:
        """Declared container size in pixels, derived from its style."""
        style = self.resolve_style(container.id, device)
        sizes = []
        for key, canvas_px, fallback in (
            ("width", self.canvas_width, _FALLBACK_CONTAINER_PX[0]),
            ("height", self.canvas_height, _FALLBACK_CONTAINER_PX[1]),
        ):
            number, unit = parse_css_value(style.get(key), default_unit="")
            if unit == "px" and number > 0:
                sizes.append(number)
            elif unit == "%" and number > 0 and canvas_px:
                sizes.append(canvas_px * number / 100)
            else:
                sizes.append(fallback)
        return sizes[0], sizes[1]

    def _find_container(self, operation: str, container_id: str) -> Optional[Component]:
        container = self._document.find(container_id)
        if container is None:
            self._unknown(operation, container_id)
            return None
        if not container.is_container:
            self._invalid(operation, f"component {container_id} is not a container", container_id)
            return None
        return container

    def add_child_to_container(
        self,
        parent_id: str,
        child: Union[str, dict],
        position: Optional[dict] = None,
    ) -> Optional[str]:
        """Create a component inside container ``parent_id``; returns the child id."""
        container = self._find_container("add_child_to_container", parent_id)
        if container is None:
            return None

        if isinstance(child, str):
            component_type, initial_data = child, {"locked": False}
        else:
            initial_data = dict(child or {})
            component_type = str(initial_data.get("type") or "")
        if not component_type:
            self._invalid("add_child_to_container", "child component has no type", parent_id)
            return None

        component = self._build_component(
            component_type,
            position,
            initial_data,
            auto_place_required=False,
            axis_px=self._container_px(container, "desktop"),
        )
        component.parent_id = container.id
        container.children.append(component)
        self._touch()
        return component.id

    def move_to_container(self, component_id: str, container_id: str, position: Optional[dict] = None) -> bool:
        """Move an existing component into a container."""
        if component_id == container_id:
            self._invalid("move_to_container", "a component cannot contain itself", component_id)
            return False
        component = self._document.find(component_id)
        if component is None:
            self._unknown("move_to_container", component_id)
            return False
        container = self._find_container("move_to_container", container_id)
        if container is None:
            return False
        if any(c.id == container_id for c in component.walk()):
            self._invalid("move_to_container", "cannot move a container into its own descendant", component_id)
            return False

        pos = self._position_to_percent(position or dict(DEFAULT_POSITION), *self._container_px(container, "desktop"))
        self._remove_from_tree(component_id)
        component.parent_id = container.id
        component.position = {device: dict(pos) for device in DEVICES}
        container.children.append(component)
        self._touch()
        return True

    def detach_from_container(self, component_id: str) -> bool:
        """Move a child back to the root, keeping its place on the canvas."""
        component, parent = self._document.find_with_parent(component_id)
        if component is None:
            self._unknown("detach_from_container", component_id)
            return False
        if parent is None:
            self._invalid("detach_from_container", f"component {component_id} is not inside a container", component_id)
            return False

        absolute = {}
        for device in DEVICES:
            container_pos = self.resolve_position(parent.id, device)
            child_pos = self.resolve_position(component_id, device)
            width_px, height_px = self._container_px(parent, device)
            width_ratio = width_px / self.canvas_width if self.canvas_width else 0
            height_ratio = height_px / self.canvas_height if self.canvas_height else 0
            top = percent_value(container_pos.get("top")) + percent_value(child_pos.get("top")) * height_ratio
            left = percent_value(container_pos.get("left")) + percent_value(child_pos.get("left")) * width_ratio
            absolute[device] = {
                "top": format_percent(max(0.0, min(100.0, top))),
                "left": format_percent(max(0.0, min(100.0, left))),
            }

        parent.children.remove(component)
        component.parent_id = None
        component.position = absolute
        self._document.components.append(component)
        self._touch()
        return True

    def reorder_children(self, container_id: str, ordered_ids: list[str]) -> bool:
        container = self._find_container("reorder_children", container_id)
        if container is None:
            return False
        current = {child.id: child for child in container.children}
        if sorted(ordered_ids) != sorted(current):
            self._invalid(
                "reorder_children",
                "new order must list every child exactly once",
                container_id,
                given=list(ordered_ids),
            )
            return False
        container.children = [current[child_id] for child_id in ordered_ids]
        self._touch()
        return True

    def update_container_config(self, component_id: str, device: Union[str, Device], config: dict) -> bool:
        container = self._find_container("update_container_config", component_id)
        if container is None:
            return False
        device_key = self._device("update_container_config", device, component_id)
        if device_key is None:
            return False
        container.container_config.setdefault(device_key, {}).update(config or {})
        self._touch()
        return True

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def reorder_components(self, source_index: int, target_index: int, container_id: Optional[str] = None) -> bool:
        """
        Move one component to a new z-order slot.

        Works on the root list, or on a container's children when
        ``container_id`` is given. ``target_index`` is an insertion point in
        the list before the move, so it may equal the list length.
        """
        if container_id is None:
            siblings = self._document.components
        else:
            container = self._find_container("reorder_components", container_id)
            if container is None:
                return False
            siblings = container.children

        if not (0 <= source_index < len(siblings)) or not (0 <= target_index <= len(siblings)):
            self._invalid(
                "reorder_components",
                "invalid indices for reordering",
                container_id,
                source_index=source_index,
                target_index=target_index,
                size=len(siblings),
            )
            return False

        moved = siblings.pop(source_index)
        if source_index < target_index:
            target_index -= 1
        siblings.insert(target_index, moved)
        self._touch()
        logger.debug("Moved component %s from %d to %d", moved.id, source_index, target_index)
        return True

    def toggle_visibility(self, component_id: str) -> Optional[bool]:
        """Flip a component's ``visible`` flag and return the new value."""
        component = self._document.find(component_id)
        if component is None:
            self._unknown("toggle_visibility", component_id)
            return None
        visible = component.extra.get("visible") is False
        component.extra["visible"] = visible
        self._touch()
        return visible

    def rename_component(self, component_id: str, name: str) -> bool:
        component = self._document.find(component_id)
        if component is None:
            self._unknown("rename_component", component_id)
            return False
        component.extra["name"] = name
        self._touch()
        return True

    # ------------------------------------------------------------------
    # Measurement-driven positioning
    # ------------------------------------------------------------------

    def _measure(self, operation: str, component_id: str, measurer: Measurer):
        measurement = measurer.measure(component_id)
        if measurement is None or not measurement.usable:
            self.diagnostics.record(
                DiagnosticKind.MEASUREMENT_UNAVAILABLE,
                operation,
                "component or container could not be measured",
                component_id=component_id,
            )
            return None
        return measurement

    def move_to_grid_position(
        self,
        component_id: str,
        device: Union[str, Device],
        code: str,
        measurer: Measurer,
    ) -> bool:
        """Snap a component to one of the nine quick positions (``tl`` ... ``br``)."""
        if self._document.find(component_id) is None:
            self._unknown("move_to_grid_position", component_id)
            return False
        measurement = self._measure("move_to_grid_position", component_id, measurer)
        if measurement is None:
            return False

        target = calculate_position_by_code(code, dims_from_measurement(measurement))
        return self.update_position_for_device(
            component_id,
            device,
            {
                "top": format_percent(max(0.0, target["top"])),
                "left": format_percent(max(0.0, target["left"])),
            },
        )

    def move_by_pixels(
        self,
        component_id: str,
        device: Union[str, Device],
        left_px: float,
        top_px: float,
        measurer: Measurer,
    ) -> bool:
        """Place a component at a pixel offset inside its container, kept in bounds."""
        if self._document.find(component_id) is None:
            self._unknown("move_by_pixels", component_id)
            return False
        measurement = self._measure("move_by_pixels", component_id, measurer)
        if measurement is None:
            return False

        comp, box = measurement.component, measurement.container
        safe_left = calculate_safe_position(left_px, comp.width, box.width)
        safe_top = calculate_safe_position(top_px, comp.height, box.height)
        return self.update_position_for_device(
            component_id,
            device,
            {
                "top": format_percent(pixels_to_percent(safe_top, box.height)),
                "left": format_percent(pixels_to_percent(safe_left, box.width)),
            },
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def validate_required_buttons(self) -> RequiredButtonsCheck:
        existing = []
        for component in self._document.walk():
            action_type = component.action_type
            if component.type == ComponentType.BUTTON.value and action_type and action_type not in existing:
                existing.append(action_type)
        missing = [action for action in REQUIRED_ACTIONS if action not in existing]
        return RequiredButtonsCheck(is_valid=not missing, missing=missing, existing=existing)
