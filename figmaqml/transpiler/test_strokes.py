"""Unit tests for stroke alignment strategies."""

import pytest

from .emitters import EmitContext
from .strokes import has_borders, parse_vector
from .types import ParserFlags

BLUE = {"color": {"r": 0, "g": 0, "b": 1, "a": 1}}


@pytest.fixture
def ctx(images, resolve_font):
    return EmitContext(ParserFlags.NONE, images, resolve_font, {})


@pytest.fixture
def stroked(make_rectangle):
    """Factory for a rectangle with a 2px blue stroke."""

    def _make(align="CENTER", **extra):
        return make_rectangle(strokes=[BLUE], strokeWeight=2, strokeAlign=align, **extra)

    return _make


def _qml(ctx, node):
    return "\n".join(parse_vector(ctx, node, {}, 1))


class TestHasBorders:
    """Tests for has_borders."""

    @pytest.mark.unit
    def test_thin_strokes_are_plain(self, stroked):
        """Strokes of 1px or less need no alignment handling."""
        node = stroked("INSIDE")
        node["strokeWeight"] = 1
        assert not has_borders(node)

    @pytest.mark.unit
    def test_placeholder_strokes(self, stroked):
        """Inherited instance strokes do not count."""
        node = stroked("INSIDE")
        node["strokes"] = ""
        assert not has_borders(node)
        assert has_borders(stroked("INSIDE"))


class TestCenter:
    """Tests for centered strokes."""

    @pytest.mark.unit
    def test_single_shape_path(self, ctx, stroked):
        """A centered stroke is one ShapePath carrying stroke and fill."""
        qml = _qml(ctx, stroked("CENTER"))
        assert qml.count("ShapePath {") == 1
        assert 'strokeColor: "#ff0000ff"' in qml
        assert "strokeWidth:2" in qml
        assert 'fillColor:"#ffff0000"' in qml
        assert "OpacityMask" not in qml

    @pytest.mark.unit
    def test_thin_inside_stroke_stays_centered(self, ctx, stroked):
        """A 1px inside stroke uses the centered strategy."""
        node = stroked("INSIDE")
        node["strokeWeight"] = 1
        assert "OpacityMask" not in _qml(ctx, node)

    @pytest.mark.unit
    def test_image_fill(self, ctx, stroked, images):
        """Image fills are clipped to the shape under the stroke."""
        qml = _qml(ctx, stroked("CENTER", fills=[{"type": "IMAGE", "imageRef": "img"}]))
        assert qml.startswith("Item {")
        assert "id: source_figma_1_2" in qml
        assert "id: maskSource_figma_1_2" in qml
        assert qml.count("OpacityMask {") == 1
        assert images.calls == [("img", False)]

    @pytest.mark.unit
    def test_antialiasing(self, ctx, stroked):
        ctx.flags = ParserFlags.ANTIALIZE_SHAPES
        assert "    antialiasing: true" in _qml(ctx, stroked())


class TestInside:
    """Tests for inside aligned strokes."""

    @pytest.mark.unit
    def test_masked_double_stroke(self, ctx, stroked):
        """A double width stroke is clipped by the node's own silhouette."""
        qml = _qml(ctx, stroked("INSIDE"))
        assert qml.startswith("// QML (SVG) supports only center borders, thus an extra mask is created for INSIDE")
        assert qml.count("Shape {") >= 2
        assert qml.count("OpacityMask {") == 1
        assert "strokeWidth:4" in qml
        assert "source: borderSource_figma_1_2" in qml
        assert "maskSource: borderMask_figma_1_2" in qml
        assert "invert" not in qml

    @pytest.mark.unit
    def test_image_variant(self, ctx, stroked):
        """The image variant clips both the image and the stroke."""
        qml = _qml(ctx, stroked("INSIDE", fills=[{"imageRef": "img"}]))
        assert qml.count("OpacityMask {") == 2
        assert "id:borderSource_figma_1_2" in qml
        assert "fillMode: Image.PreserveAspectCrop" in qml


class TestOutside:
    """Tests for outside aligned strokes."""

    @pytest.mark.unit
    def test_box_grows_by_stroke(self, ctx, stroked):
        """The item grows by the stroke width on every side."""
        lines = parse_vector(ctx, stroked("OUTSIDE"), {}, 1)
        assert lines[4:8] == ["    x:8", "    y:18", "    width:104", "    height:54"]

    @pytest.mark.unit
    def test_inverted_mask(self, ctx, stroked):
        """Only the outer half of the stroke survives."""
        qml = _qml(ctx, stroked("OUTSIDE"))
        assert qml.count("OpacityMask {") == 1
        assert "invert: true" in qml
        assert "strokeColor: fillColor" in qml
        assert "strokeWidth:4" in qml

    @pytest.mark.unit
    def test_image_variant(self, ctx, stroked):
        qml = _qml(ctx, stroked("OUTSIDE", fills=[{"imageRef": "img"}]))
        assert qml.count("OpacityMask {") == 2
        assert "invert: true" in qml


@pytest.mark.unit
@pytest.mark.parametrize("align", ["CENTER", "INSIDE", "OUTSIDE"])
@pytest.mark.parametrize("image", [False, True])
def test_blocks_are_balanced(ctx, stroked, align, image):
    """Every strategy closes what it opens."""
    extra = {"fills": [{"imageRef": "img"}]} if image else {}
    qml = _qml(ctx, stroked(align, **extra))
    assert qml.count("{") == qml.count("}")
