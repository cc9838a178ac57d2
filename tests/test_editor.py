import io
import struct
import zlib

import pytest
from PIL import Image

from banner_editor.assets import AssetValidationError, BinaryHandle
from banner_editor.diagnostics import DiagnosticKind
from banner_editor.document import ImageReference, MultiLangText
from banner_editor.editor import BannerEditor
from banner_editor.geometry import Box, Measurement, StaticMeasurer


def _png_handle(name: str = "logo.png") -> BinaryHandle:
    buffer = io.BytesIO()
    Image.new("RGBA", (64, 32), color=(0, 0, 0, 0)).save(buffer, format="PNG")
    return BinaryHandle(name, "image/png", buffer.getvalue())


@pytest.fixture
def editor():
    return BannerEditor.new()


def test_new_editor_has_locked_consent_buttons(editor):
    check = editor.validate_required_buttons()

    assert check.is_valid
    assert set(check.existing) == {"accept_all", "reject_all", "show_preferences"}
    accept = editor.find("acceptAll")
    assert accept.locked
    assert accept.position["mobile"] == {"top": "80%", "left": "80%"}


def test_add_component_appends_selects_and_uses_percentages(editor):
    before = editor.revision
    component_id = editor.add_component("text")

    component = editor.find(component_id)
    assert editor.document.components[-1] is component
    assert editor.selected_id == component_id
    assert editor.revision == before + 1
    assert component.position == {d: {"top": "10%", "left": "10%"} for d in ("desktop", "tablet", "mobile")}
    assert isinstance(component.content, MultiLangText)


def test_add_component_converts_pixel_positions(editor):
    component_id = editor.add_component("text", position={"top": "300px", "left": "500px"})
    assert editor.find(component_id).position["tablet"] == {"top": "50%", "left": "50%"}


def test_add_required_button_is_locked_and_auto_placed(editor):
    component_id = editor.add_component("button", initial_data={"action": {"type": "reject_all"}})

    button = editor.find(component_id)
    assert button.locked
    assert button.position["desktop"] == {"top": "80%", "left": "10%"}
    assert button.content.texts["en"] == "Reject All"


def test_add_component_without_type_is_rejected(editor):
    before = editor.revision

    assert editor.add_component("") is None
    assert editor.revision == before
    assert editor.diagnostics.events(DiagnosticKind.INVALID_OPERATION)


def test_add_container_starts_empty(editor):
    container = editor.find(editor.add_component("container"))

    assert container.children == []
    assert set(container.container_config) == {"desktop", "tablet", "mobile"}


def test_add_component_keeps_extra_initial_data(editor):
    component_id = editor.add_component("text", initial_data={"id": "acceptAll", "dataTag": "intro"})

    assert component_id != "acceptAll"
    assert editor.find(component_id).to_dict()["dataTag"] == "intro"


def test_locked_components_cannot_be_deleted(editor):
    before = editor.revision

    assert editor.delete_component("acceptAll") is False
    assert editor.find("acceptAll") is not None
    assert editor.revision == before
    events = editor.diagnostics.events(DiagnosticKind.LOCKED_COMPONENT)
    assert events[-1].component_id == "acceptAll"


def test_delete_unknown_component_is_a_noop(editor):
    components = list(editor.document.components)

    assert editor.delete_component("nope") is False
    assert editor.document.components == components
    assert editor.diagnostics.events(DiagnosticKind.UNKNOWN_COMPONENT)[-1].component_id == "nope"


def test_delete_nested_child(editor):
    container_id = editor.add_component("container")
    child_id = editor.add_child_to_container(container_id, "text")

    assert editor.delete_component(child_id)
    assert editor.find(child_id) is None
    assert editor.find(container_id).children == []


def test_deleting_container_rehomes_locked_children(editor):
    container_id = editor.add_component("container")
    first = editor.add_child_to_container(container_id, {"type": "button", "action": {"type": "accept_all"}})
    second = editor.add_child_to_container(container_id, {"type": "button", "action": {"type": "reject_all"}})
    editor.add_child_to_container(container_id, "text")

    assert editor.delete_component(container_id)

    root_ids = [c.id for c in editor.document.components]
    assert container_id not in root_ids
    assert first in root_ids and second in root_ids
    assert editor.find(first).parent_id is None
    assert editor.find(first).position["desktop"] == {"top": "10%", "left": "10%"}
    assert editor.find(second).position["mobile"] == {"top": "15%", "left": "15%"}


def test_string_update_only_touches_default_language(editor):
    component_id = editor.add_component("text")
    editor.update_content(component_id, {"texts": {"en": "Hello", "es": "Hola"}})

    editor.update_content(component_id, "Hi there")

    assert editor.find(component_id).content.texts == {"en": "Hi there", "es": "Hola"}


def test_string_update_keeps_legacy_mirror_in_sync(editor):
    editor.load(
        {
            "name": "Legacy",
            "components": [{"id": "t", "type": "text", "content": {"texts": {"en": "a"}, "text": "a"}}],
        }
    )

    editor.update_content("t", "b")

    assert editor.find("t").to_dict()["content"] == {"texts": {"en": "b"}, "translatable": True, "text": "b"}


def test_update_content_unknown_id(editor):
    assert editor.update_content("ghost", "x") is False
    assert editor.diagnostics.events(DiagnosticKind.UNKNOWN_COMPONENT)


def test_style_update_touches_one_device(editor):
    component_id = editor.add_component("text")
    desktop_before = dict(editor.find(component_id).style["desktop"])

    assert editor.update_style_for_device(component_id, "tablet", {"color": "blue"})

    component = editor.find(component_id)
    assert component.style["tablet"]["color"] == "blue"
    assert component.style["desktop"] == desktop_before
    assert component.style["mobile"]["color"] != "blue"


def test_position_update_converts_pixels_for_one_device(editor):
    component_id = editor.add_component("text")

    assert editor.update_position_for_device(component_id, "mobile", {"top": "60px"})

    component = editor.find(component_id)
    assert component.position["mobile"] == {"top": "10%", "left": "10%"}
    editor.update_position_for_device(component_id, "mobile", {"left": "25%"})
    assert component.position["mobile"]["left"] == "25%"
    assert component.position["desktop"] == {"top": "10%", "left": "10%"}


def test_position_update_without_canvas_is_skipped(editor):
    component_id = editor.add_component("text")
    editor.set_canvas_size(0, 0)

    assert editor.update_position_for_device(component_id, "desktop", {"top": "60px"}) is False
    assert editor.diagnostics.events(DiagnosticKind.MEASUREMENT_UNAVAILABLE)


def test_unknown_device_is_rejected(editor):
    component_id = editor.add_component("text")

    assert editor.update_style_for_device(component_id, "watch", {"color": "red"}) is False
    assert "watch" not in editor.find(component_id).style


def test_layout_update(editor):
    assert editor.update_layout_for_device("mobile", "backgroundColor", "#111")
    assert editor.document.layout["mobile"]["backgroundColor"] == "#111"
    assert editor.document.layout["desktop"]["backgroundColor"] != "#111"


def test_attach_image_registers_token(editor):
    component_id = editor.add_component("image")
    handle = _png_handle()

    token = editor.attach_image(component_id, handle)

    component = editor.find(component_id)
    assert token.startswith("__IMAGE_REF__")
    assert editor.registry.resolve(token) is handle
    assert component.content == ImageReference(token)
    assert component.transient["_tempFile"] is handle
    assert component.style["desktop"]["_previewUrl"].startswith("data:image/png;base64,")
    assert "_previewUrl" not in component.to_dict()["style"]["desktop"]


def test_attach_invalid_image_raises(editor):
    component_id = editor.add_component("image")

    with pytest.raises(AssetValidationError):
        editor.attach_image(component_id, BinaryHandle("notes.txt", "text/plain", b"hello"))
    assert len(editor.registry) == 0


def test_token_content_links_registered_file(editor):
    component_id = editor.add_component("image")
    handle = _png_handle()
    editor.registry.attach("__IMAGE_REF__1_abc", handle)

    editor.update_content(component_id, "__IMAGE_REF__1_abc")

    assert editor.find(component_id).transient["_tempFile"] is handle


def test_container_cannot_move_into_itself_or_descendant(editor):
    outer = editor.add_component("container")
    inner = editor.add_component("container")
    assert editor.move_to_container(inner, outer)

    assert editor.move_to_container(outer, outer) is False
    assert editor.move_to_container(outer, inner) is False
    assert editor.find(inner).parent_id == outer
    assert [c.id for c in editor.document.components].count(outer) == 1


def test_detach_converts_to_canvas_percentages(editor):
    container_id = editor.add_component("container")
    child_id = editor.add_child_to_container(container_id, "text", {"top": "50%", "left": "50%"})

    assert editor.detach_from_container(child_id)

    child = editor.find(child_id)
    assert child.parent_id is None
    assert editor.document.components[-1] is child
    # 200x100px container at 10%/10% of a 1000x600 canvas
    assert child.position["desktop"] == {"top": "18.3333%", "left": "20%"}


def test_detach_root_component_is_invalid(editor):
    assert editor.detach_from_container("acceptAll") is False
    assert editor.diagnostics.events(DiagnosticKind.INVALID_OPERATION)


def test_reorder_children(editor):
    container_id = editor.add_component("container")
    a = editor.add_child_to_container(container_id, "text")
    b = editor.add_child_to_container(container_id, "button")

    assert editor.reorder_children(container_id, [b, a])
    assert [c.id for c in editor.find(container_id).children] == [b, a]
    assert editor.reorder_children(container_id, [a]) is False


def test_container_config_update_requires_container(editor):
    container_id = editor.add_component("container")

    assert editor.update_container_config(container_id, "mobile", {"displayMode": "grid"})
    assert editor.find(container_id).container_config["mobile"]["displayMode"] == "grid"
    assert editor.update_container_config("acceptAll", "mobile", {"displayMode": "grid"}) is False


def test_move_to_grid_position_uses_measurement(editor):
    component_id = editor.add_component("button")
    measurer = StaticMeasurer(
        {component_id: Measurement(component=Box(0, 0, 100, 60), container=Box(0, 0, 500, 300))}
    )

    assert editor.move_to_grid_position(component_id, "desktop", "br", measurer)
    assert editor.find(component_id).position["desktop"] == {"top": "80%", "left": "80%"}


def test_move_without_measurement_is_skipped(editor):
    component_id = editor.add_component("button")
    before = dict(editor.find(component_id).position["desktop"])

    assert editor.move_to_grid_position(component_id, "desktop", "tl", StaticMeasurer()) is False
    assert editor.find(component_id).position["desktop"] == before
    assert editor.diagnostics.events(DiagnosticKind.MEASUREMENT_UNAVAILABLE)


def test_move_by_pixels_clamps_inside_container(editor):
    component_id = editor.add_component("button")
    measurer = StaticMeasurer(
        {component_id: Measurement(component=Box(0, 0, 100, 60), container=Box(0, 0, 500, 300))}
    )

    assert editor.move_by_pixels(component_id, "tablet", 450, 150, measurer)
    assert editor.find(component_id).position["tablet"] == {"top": "50%", "left": "80%"}


def test_missing_required_buttons_are_reported(editor):
    editor.load({"name": "Bare", "components": [{"id": "b", "type": "button", "action": {"type": "accept_all"}}]})

    check = editor.validate_required_buttons()
    assert not check.is_valid
    assert check.missing == ["reject_all", "show_preferences"]


def test_resolve_falls_back_to_desktop(editor):
    component_id = editor.add_component("text")
    component = editor.find(component_id)
    component.position["mobile"] = {}
    component.style["tablet"] = {"color": "blue"}

    assert editor.resolve_position(component_id, "mobile") == {"top": "10%", "left": "10%"}
    style = editor.resolve_style(component_id, "tablet")
    assert style["color"] == "blue"
    assert style["fontSize"] == component.style["desktop"]["fontSize"]


def test_load_with_auto_select(editor):
    document = editor.load({"name": "Loaded", "components": [{"id": "x", "type": "text"}]}, auto_select=True)

    assert editor.document is document
    assert editor.selected_id == "x"
    assert editor.select("missing") is False
    assert editor.selected_id == "x"


def test_attach_oversized_header_raises_validation_error(editor):
    image_id = editor.add_component("image")
    header = struct.pack(">IIBBBBB", 40000, 40000, 8, 2, 0, 0, 0)
    ihdr = struct.pack(">I", len(header)) + b"IHDR" + header + struct.pack(">I", zlib.crc32(b"IHDR" + header))
    idat = struct.pack(">I", 0) + b"IDAT" + struct.pack(">I", zlib.crc32(b"IDAT"))
    data = b"\x89PNG\r\n\x1a\n" + ihdr + idat

    with pytest.raises(AssetValidationError) as exc_info:
        editor.attach_image(image_id, BinaryHandle("huge.png", "image/png", data))

    assert any("Image too large" in error for error in exc_info.value.errors)
    assert len(editor.registry) == 0


def test_deleting_container_keeps_locked_subtree_intact(editor):
    outer = editor.add_component("container")
    inner = editor.add_child_to_container(outer, {"type": "container", "locked": True})
    button = editor.add_child_to_container(inner, {"type": "button", "action": {"type": "accept_all"}})

    assert editor.delete_component(outer)

    root_ids = [c.id for c in editor.document.components]
    assert inner in root_ids
    assert button not in root_ids
    assert [c.id for c in editor.find(inner).children] == [button]
    assert editor.find(inner).parent_id is None


def test_reorder_components_moves_root_z_order(editor):
    text_id = editor.add_component("text")
    before = editor.revision

    assert editor.reorder_components(3, 0)
    assert [c.id for c in editor.document.components] == [text_id, "acceptAll", "rejectAll", "preferencesBtn"]
    assert editor.revision == before + 1

    assert editor.reorder_components(0, 4)
    assert [c.id for c in editor.document.components][-1] == text_id


def test_reorder_components_with_invalid_index_is_a_noop(editor):
    order = [c.id for c in editor.document.components]
    before = editor.revision

    assert editor.reorder_components(5, 0) is False
    assert editor.reorder_components(-1, 0) is False
    assert editor.reorder_components(0, 4) is False
    assert editor.reorder_components(0, 3) is True

    assert [c.id for c in editor.document.components] == order[1:] + order[:1]
    assert editor.revision == before + 1
    assert len(editor.diagnostics.events(DiagnosticKind.INVALID_OPERATION)) == 3


def test_reorder_components_inside_container(editor):
    container_id = editor.add_component("container")
    a = editor.add_child_to_container(container_id, "text")
    b = editor.add_child_to_container(container_id, "text")

    assert editor.reorder_components(1, 0, container_id=container_id)
    assert [c.id for c in editor.find(container_id).children] == [b, a]
    assert editor.reorder_components(0, 1, container_id="acceptAll") is False


def test_toggle_visibility_on_nested_child(editor):
    container_id = editor.add_component("container")
    child_id = editor.add_child_to_container(container_id, "text")
    before = editor.revision

    assert editor.toggle_visibility(child_id) is False
    assert editor.find(child_id).to_dict()["visible"] is False
    assert editor.toggle_visibility(child_id) is True
    assert editor.revision == before + 2
    assert editor.toggle_visibility("nope") is None


def test_rename_nested_child(editor):
    container_id = editor.add_component("container")
    child_id = editor.add_child_to_container(container_id, "text")
    before = editor.revision

    assert editor.rename_component(child_id, "Headline")
    assert editor.find(child_id).to_dict()["name"] == "Headline"
    assert editor.revision == before + 1
    assert editor.rename_component("nope", "x") is False
    assert editor.diagnostics.events(DiagnosticKind.UNKNOWN_COMPONENT)
