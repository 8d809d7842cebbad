"""Unit tests for the transpiler driver and its entry points."""

import copy

import pytest

from figmaqml.document import Element, build_catalogue

from .lib import MASKED_ITEM, Transpiler, bind_block, component, element
from .types import ParserFlags


def _text(result: Element) -> str:
    return result.data.decode("utf-8")


@pytest.fixture
def catalogue(sample_project):
    """Catalogue holding the sample card component."""
    return build_catalogue(sample_project, {})


@pytest.fixture
def transpile(issues, images, resolve_font, catalogue):
    """Run ``element`` with the shared stubs and return the QML text."""

    def _run(node, flags=ParserFlags.NONE):
        return _text(element(node, flags, issues, images, resolve_font, catalogue))

    return _run


def _frame(*children, node_id="30:1"):
    return {
        "id": node_id,
        "name": "Screen",
        "type": "FRAME",
        "size": {"x": 400, "y": 300},
        "relativeTransform": [[1, 0, 0], [0, 1, 0]],
        "absoluteBoundingBox": {"x": 10, "y": 10, "width": 400, "height": 300},
        "children": list(children),
    }


class TestRectangle:
    """Tests for plain vector output."""

    @pytest.mark.unit
    def test_size_and_color(self, transpile):
        """A red rectangle emits its size and ARGB color."""
        node = {
            "type": "RECTANGLE",
            "size": {"x": 100, "y": 50},
            "fills": [{"color": {"r": 1, "g": 0, "b": 0, "a": 1}}],
        }
        qml = transpile(node)
        assert "width:100" in qml
        assert "height:50" in qml
        assert "#ffff0000" in qml

    @pytest.mark.unit
    def test_block_is_balanced(self, transpile, make_rectangle):
        """Top-level output opens at column zero and closes its braces."""
        qml = transpile(make_rectangle())
        assert qml.startswith("Shape {")
        assert qml.count("{") == qml.count("}")

    @pytest.mark.unit
    def test_element_metadata(self, issues, images, resolve_font, make_rectangle):
        """The element carries the sanitized name, id and type."""
        result = element(make_rectangle(), ParserFlags.NONE, issues, images, resolve_font, {})
        assert result.name == "Box_figma"
        assert result.id == "1:2"
        assert result.type == "RECTANGLE"
        assert result.component_ids == []
        assert issues.issues == []

    @pytest.mark.unit
    def test_unnamed_element_uses_id(self, issues, images, resolve_font, make_rectangle):
        """An unnamed node is named after its id so it still gets a file name."""
        result = element(make_rectangle(name=""), ParserFlags.NONE, issues, images, resolve_font, {})
        assert result.name == "C1_2_figma"


class TestFailures:
    """Tests for failure reporting."""

    @pytest.mark.unit
    def test_unknown_type_is_fatal(self, issues, images, resolve_font):
        """An unknown node type is reported and produces no markup."""
        result = element({"id": "9:9", "type": "UNKNOWN_TYPE"}, ParserFlags.NONE, issues, images, resolve_font, {})
        assert result == Element()
        assert result.is_empty
        assert len(issues.fatal) == 1
        assert 'Non supported object type:"UNKNOWN_TYPE"' in issues.fatal[0]

    @pytest.mark.unit
    def test_unknown_child_aborts_element(self, issues, images, resolve_font, make_rectangle):
        """A bad node deep in the tree aborts the whole element."""
        node = _frame(make_rectangle(), {"id": "9:9", "type": "WIDGET"})
        result = element(node, ParserFlags.NONE, issues, images, resolve_font, {})
        assert result.is_empty
        assert len(issues.fatal) == 1

    @pytest.mark.unit
    def test_missing_component(self, issues, images, resolve_font, sample_instance):
        """An instance of an unregistered component is fatal."""
        result = element(sample_instance, ParserFlags.NONE, issues, images, resolve_font, {})
        assert result.is_empty
        assert "Unexpected component dependency from 20:1 to 10:1" in issues.fatal[0]

    @pytest.mark.unit
    def test_binary_image_is_reported(self, issues, resolve_font, make_rectangle):
        """Image bytes that are not text fail the element instead of raising."""
        node = make_rectangle(fills=[{"type": "IMAGE", "imageRef": "abc"}])
        result = element(
            node, ParserFlags.NONE, issues, lambda image, rendering: b"\x89PNG\r\n\x1a\n\xff\xfe", resolve_font, {}
        )
        assert result.is_empty
        assert issues.fatal == ["Transpile failure: Image data for abc is not text"]

    @pytest.mark.unit
    def test_transpile_returns_result(self, images, resolve_font):
        """The driver returns failures as a result instead of raising."""
        result = Transpiler(ParserFlags.NONE, images, resolve_font).transpile({"type": "NOPE"})
        assert not result.ok
        assert result.element is None
        assert result.error.startswith("Transpile failure:")

    @pytest.mark.unit
    def test_slice_is_skipped(self, transpile, make_rectangle, issues):
        """Slices emit nothing and are not errors."""
        qml = transpile(_frame(make_rectangle(), {"id": "7:7", "name": "Export", "type": "SLICE"}))
        assert "figma_7_7" not in qml
        assert "figma_1_2" in qml
        assert issues.issues == []


class TestFrames:
    """Tests for frames, groups and plain containers."""

    @pytest.mark.unit
    def test_frame_properties(self, transpile, make_rectangle):
        """Frames become clipped rectangles holding their children."""
        node = _frame(make_rectangle())
        node["clipsContent"] = True
        node["cornerRadius"] = 8
        qml = transpile(node)
        assert qml.startswith("Rectangle {")
        assert "    radius:8" in qml
        assert "    clip: true" in qml
        assert '        id: figma_1_2' in qml

    @pytest.mark.unit
    def test_group_not_clipped(self, transpile):
        """Groups without clipsContent are not clipped."""
        node = _frame()
        node["type"] = "GROUP"
        assert "clip: false" in transpile(node)

    @pytest.mark.unit
    def test_none_type_is_plain_container(self, transpile, make_rectangle):
        """NONE nodes are a Rectangle around their children."""
        node = {"id": "4:4", "name": "Holder", "type": "NONE", "children": [make_rectangle()]}
        qml = transpile(node)
        assert qml.startswith("Rectangle {")
        assert "figma_1_2" in qml


class TestText:
    """Tests for text nodes."""

    @pytest.mark.unit
    def test_text_item(self, transpile):
        """Text nodes carry their characters and resolved font."""
        node = {
            "id": "3:1",
            "name": "Title",
            "type": "TEXT",
            "characters": 'Say "hi"',
            "style": {"fontFamily": "Inter", "fontSize": 12.9, "fontWeight": 400},
        }
        qml = transpile(node)
        assert qml.startswith("Text {")
        assert "wrapMode: TextEdit.WordWrap" in qml
        assert 'text:"Say \\"hi\\""' in qml
        assert 'font.family: "Inter Local"' in qml
        assert "font.pixelSize: 12" in qml
        assert "font.weight: Font.Normal" in qml

    @pytest.mark.unit
    def test_gradient_text_is_prerendered(self, transpile, images):
        """Text with a gradient fill is flattened."""
        node = {
            "id": "3:1",
            "type": "TEXT",
            "characters": "x",
            "fills": [{"gradientHandlePositions": []}],
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 10, "height": 10},
        }
        qml = transpile(node)
        assert "id: i_figma_3_1" in qml
        assert images.calls == [("3:1", True)]


class TestPrerender:
    """Tests for pre-rendered nodes."""

    @pytest.fixture
    def node(self, make_rectangle):
        child = make_rectangle(absoluteBoundingBox={"x": 30, "y": 40, "width": 100, "height": 50})
        return _frame(child)

    @pytest.mark.unit
    def test_position_relative_to_parent(self, transpile, node, images):
        """Pre-rendered nodes sit at their box minus the parent's box."""
        qml = transpile(node, ParserFlags.PRERENDER_SHAPES)
        assert "x: 20" in qml
        assert "y: 30" in qml
        assert "width:100" in qml
        assert "fillMode: Image.PreserveAspectFit" in qml
        assert 'source: "data:image/png;base64,iVBORw0KGgo="' in qml
        assert ("1:2", True) in images.calls

    @pytest.mark.unit
    def test_size_covers_subtree(self, transpile, make_rectangle):
        """The container is as large as the largest box in the subtree."""
        inner = make_rectangle("2:2", absoluteBoundingBox={"x": 0, "y": 0, "width": 500, "height": 20})
        node = _frame(inner)
        node["type"] = "GROUP"
        qml = transpile(node, ParserFlags.PRERENDER_GROUPS)
        assert "width:500" in qml
        assert "height:300" in qml

    @pytest.mark.unit
    def test_placeholder_fallback(self, transpile, node, images):
        """Missing image data falls back to the placeholder."""
        images.missing.add("1:2")
        qml = transpile(node, ParserFlags.PRERENDER_SHAPES)
        assert "//Image load failed, placeholder" in qml
        assert "sourceSize: Qt.size(parent.width, parent.height)" in qml

    @pytest.mark.unit
    def test_invisible_has_no_image(self, transpile, node):
        """Hidden nodes keep their box but get no image."""
        node["children"][0]["visible"] = False
        qml = transpile(node, ParserFlags.PRERENDER_SHAPES)
        assert "i_figma_1_2" not in qml

    @pytest.mark.unit
    def test_frames_flag_ignores_groups(self, images, resolve_font):
        """PRERENDER_FRAMES applies to frames only."""
        transpiler = Transpiler(ParserFlags.PRERENDER_FRAMES, images, resolve_font)
        frame = _frame()
        group = dict(frame, type="GROUP")
        assert transpiler.is_rendering(frame)
        assert not transpiler.is_rendering(group)

    @pytest.mark.unit
    def test_explicit_rendering(self, images, resolve_font, make_rectangle):
        """isRendering forces flattening regardless of flags."""
        transpiler = Transpiler(ParserFlags.NONE, images, resolve_font)
        assert transpiler.is_rendering(make_rectangle(isRendering=True))
        assert not transpiler.is_rendering(make_rectangle())


class TestMaskGroups:
    """Tests for isMask sibling grouping."""

    @pytest.mark.unit
    def test_mask_applies_forward(self, transpile, make_rectangle):
        """Siblings after the mask are masked, siblings before are not."""
        node = _frame(
            make_rectangle("2:1"),
            make_rectangle("2:2", isMask=True),
            make_rectangle("2:3"),
        )
        qml = transpile(node)
        assert qml.count("OpacityMask {") == 1
        assert "id: mask_figma_2_2" in qml
        assert qml.index("id: figma_2_1") < qml.index("OpacityMask {")
        assert qml.index("id: source_figma_2_2") < qml.index("id: figma_2_3")

    @pytest.mark.unit
    def test_only_first_mask_groups(self, images, resolve_font, make_rectangle):
        """A second mask sibling is ordinary masked content."""
        node = _frame(
            make_rectangle("2:1", isMask=True),
            make_rectangle("2:2"),
            make_rectangle("2:3", isMask=True),
        )
        transpiler = Transpiler(ParserFlags.NONE, images, resolve_font)
        items = transpiler.parse_children_items(transpiler._context(), node, 1)
        assert items.keys() == [MASKED_ITEM]
        qml = "\n".join(items[MASKED_ITEM])
        assert qml.count("OpacityMask {") == 1
        assert "id: figma_2_3" in qml


class TestInstances:
    """Tests for component usages and instance overrides."""

    @pytest.mark.unit
    def test_minimal_override(self, transpile, sample_instance):
        """Moving and resizing a child only binds scalar properties."""
        qml = transpile(sample_instance)
        assert qml.startswith("Card_figma {")
        assert "    delegate_10_2_x: 5" in qml
        assert "    delegate_10_2_y: 6" in qml
        assert "    delegate_10_2_width: 180" in qml
        assert "    delegate_10_2_height: 90" in qml
        assert "delegate_10_2:" not in qml
        assert "Shape {" not in qml
        assert "delegate_10_3" not in qml

    @pytest.mark.unit
    def test_instance_position(self, transpile, sample_instance):
        """The instance itself is placed from its own transform."""
        qml = transpile(sample_instance)
        assert "    x:40" in qml
        assert "    y:40" in qml
        assert 'color: "transparent"' not in qml

    @pytest.mark.unit
    def test_full_override(self, transpile, sample_instance):
        """Any other change re-emits the child as a delegate."""
        sample_instance["children"][1]["characters"] = "Changed"
        qml = transpile(sample_instance)
        assert "    delegate_10_3: Text {" in qml
        assert 'text:"Changed"' in qml

    @pytest.mark.unit
    def test_unmatched_children_emit_all(self, transpile, sample_instance, make_rectangle):
        """A child count mismatch emits every instance child unchanged."""
        sample_instance["children"].append(make_rectangle("I20:1;99:9"))
        qml = transpile(sample_instance)
        assert "delegate_" not in qml
        assert "id: figma_i20_1_10_2" in qml
        assert "id: figma_i20_1_99_9" in qml

    @pytest.mark.unit
    def test_component_ids_recorded(self, issues, images, resolve_font, catalogue, sample_instance):
        """Referenced components are listed on the element."""
        result = element(_frame(sample_instance), ParserFlags.NONE, issues, images, resolve_font, catalogue)
        assert result.component_ids == ["10:1"]

    @pytest.mark.unit
    def test_component_usage(self, transpile, sample_component):
        """Outside definition mode a component node is a usage of its type."""
        qml = transpile(sample_component)
        assert qml.splitlines()[0] == "Card_figma {"
        assert "    id: figma_10_1" in qml
        assert "Component.onCompleted" not in qml

    @pytest.mark.unit
    def test_boolean_children_compare_equal(self, transpile, sample_instance, catalogue):
        """Boolean children are not diffed unless booleans are broken up."""
        base = catalogue["10:1"].node
        shape = {"id": "10:2", "type": "BOOLEAN_OPERATION", "booleanOperation": "UNION",
                 "children": [{"id": "a", "type": "VECTOR"}]}
        base["children"][0] = shape
        override = copy.deepcopy(shape)
        override["id"] = "I20:1;10:2"
        override["children"][0]["id"] = "I20:1;a"
        sample_instance["children"][0] = override
        assert "delegate_10_2" not in transpile(sample_instance)


class TestComponentDefinition:
    """Tests for component definitions."""

    @pytest.fixture
    def qml(self, issues, images, resolve_font, catalogue, sample_component):
        return _text(component(sample_component, ParserFlags.NONE, issues, images, resolve_font, catalogue))

    @pytest.mark.unit
    def test_delegate_properties(self, qml):
        """Every child becomes a delegate with bindable geometry."""
        assert qml.startswith("Rectangle {")
        assert "    property Component delegate_10_2: Shape {" in qml
        assert "    property Item i_delegate_10_2" in qml
        assert "    property real delegate_10_2_width: NaN" in qml
        assert "onDelegate_10_2_xChanged:" in qml
        assert "property matrix4x4 delegate_10_3_transform: Qt.matrix4x4(NaN" in qml

    @pytest.mark.unit
    def test_instantiation(self, qml):
        """Delegates are created on completion and bound back."""
        assert "    Component.onCompleted: {" in qml
        assert "i_delegate_10_2 = delegate_10_2.createObject(this, o_delegate_10_2)" in qml
        assert "delegate_10_3_x = Qt.binding(()=>i_delegate_10_3.x)" in qml


class TestBindBlock:
    """Tests for bind_block."""

    @pytest.mark.unit
    def test_prefixes_opening_line(self):
        """The first line is joined to the property assignment."""
        block = ["    Shape {", "        id: a", "    }"]
        assert bind_block("delegate_1: ", block, 1) == ["    delegate_1: Shape {", "        id: a", "    }"]

    @pytest.mark.unit
    def test_keeps_leading_comments(self):
        """Comments stay above the assignment."""
        block = ["// note", "    Item {", "    }"]
        assert bind_block("d: ", block, 1)[:2] == ["// note", "    d: Item {"]
