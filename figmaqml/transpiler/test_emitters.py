"""Unit tests for geometry, paint, effect and text emitters."""

import pytest

from figmaqml.core import TranspileError
from figmaqml.document import Component

from .emitters import (
    EmitContext,
    font_weight,
    get_value,
    make_antialiasing,
    make_effects,
    make_extents,
    make_fill,
    make_image_source,
    make_shape_fill,
    make_shape_stroke,
    make_stroke_join,
    make_svg_path,
    make_text_style,
    make_transforms,
    make_vector,
    num,
    quote,
    text_styles,
    to_color,
    transform_matrix,
)
from .types import ParserFlags, StrokeType


@pytest.fixture
def ctx(images, resolve_font):
    """Emit context without components or flags."""
    return EmitContext(
        flags=ParserFlags.NONE,
        image_provider=images,
        resolve_font=resolve_font,
        components={},
    )


class TestPrimitives:
    """Tests for number, color and string formatting."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [(100, "100"), (100.0, "100"), (0.5, "0.5"), (-0.0, "0"), (-2.25, "-2.25")],
    )
    def test_num(self, value, expected):
        """Numbers use their shortest general form."""
        assert num(value) == expected

    @pytest.mark.unit
    def test_to_color_is_quoted(self):
        """Colors are quoted ARGB literals."""
        assert to_color(0, 0, 1, 0.5) == '"#800000ff"'

    @pytest.mark.unit
    def test_quote_escapes(self):
        """Quotes, backslashes and newlines are escaped."""
        assert quote('a"b\\c\nd') == '"a\\"b\\\\c\\nd"'


class TestExtents:
    """Tests for make_extents."""

    @pytest.mark.unit
    def test_edge_anchored(self, ctx, make_rectangle):
        """LEFT/TOP anchored nodes get fixed integer offsets."""
        node = make_rectangle(relativeTransform=[[1, 0, 10.7], [0, 1, 20.2]])
        lines = make_extents(ctx, node, {}, 1)
        assert lines == ["    x:10", "    y:20", "    width:100", "    height:50"]

    @pytest.mark.unit
    @pytest.mark.parametrize("constraint", ["RIGHT", "LEFT_RIGHT", "SCALE"])
    def test_other_edges_are_fixed(self, ctx, make_rectangle, constraint):
        """Right, stretch and scale constraints also use the offset."""
        node = make_rectangle(constraints={"horizontal": constraint, "vertical": "BOTTOM"})
        assert make_extents(ctx, node, {}, 1)[:2] == ["    x:10", "    y:20"]

    @pytest.mark.unit
    def test_centered_without_remainder(self, ctx, make_rectangle):
        """A centered node exactly in the middle binds to the parent size."""
        node = make_rectangle(
            constraints={"horizontal": "CENTER", "vertical": "TOP"},
            relativeTransform=[[1, 0, 50], [0, 1, 0]],
        )
        parent = {"id": "p:1", "size": {"x": 200, "y": 100}}
        assert make_extents(ctx, node, parent, 1)[0] == "    x: (figma_p_1.width - width) / 2"

    @pytest.mark.unit
    def test_centered_with_remainder(self, ctx, make_rectangle):
        """Off-center nodes keep their static offset from the middle."""
        node = make_rectangle(
            constraints={"horizontal": "CENTER", "vertical": "CENTER"},
            relativeTransform=[[1, 0, 40], [0, 1, 35]],
        )
        parent = {"id": "p:1", "size": {"x": 200, "y": 100}}
        lines = make_extents(ctx, node, parent, 1)
        assert lines[0] == "    x: (figma_p_1.width - width) / 2 - 10"
        assert lines[1] == "    y: (figma_p_1.height - height) / 2 + 10"

    @pytest.mark.unit
    def test_growth(self, ctx, make_rectangle):
        """Extents grow the box and shift its origin."""
        lines = make_extents(ctx, make_rectangle(), {}, 1, (-4, -4, 8, 8))
        assert lines == ["    x:6", "    y:16", "    width:108", "    height:58"]


class TestGetValue:
    """Tests for component fallback lookup."""

    @pytest.mark.unit
    def test_instance_falls_back_to_component(self, images, resolve_font):
        """Missing instance properties are read from the component."""
        base = Component(name="Card_figma", id="c:1", node={"type": "COMPONENT", "size": {"x": 5, "y": 6}})
        ctx = EmitContext(ParserFlags.NONE, images, resolve_font, {"c:1": base})
        assert get_value(ctx, {"type": "INSTANCE", "componentId": "c:1"}, "size") == {"x": 5, "y": 6}
        assert get_value(ctx, {"type": "RECTANGLE"}, "size") is None

    @pytest.mark.unit
    def test_unknown_component(self, ctx):
        """Looking through an unregistered component fails."""
        with pytest.raises(TranspileError, match="Unexpected component dependency"):
            get_value(ctx, {"id": "i", "type": "INSTANCE", "componentId": "x"}, "size")


class TestTransforms:
    """Tests for transforms and effects."""

    @pytest.mark.unit
    def test_translation_only_is_suppressed(self, make_rectangle):
        """Pure translation is left to the position."""
        assert make_transforms(make_rectangle(), 1) == []
        assert transform_matrix(make_rectangle()) is None

    @pytest.mark.unit
    def test_rotation(self, make_rectangle):
        """A rotated node gets an explicit matrix."""
        node = make_rectangle(relativeTransform=[[0, -1, 10], [1, 0, 20]])
        lines = make_transforms(node, 1)
        assert lines[0] == "    transform: Matrix4x4 {"
        assert "        0, -1, 10, 0," in lines
        assert transform_matrix(node) == "Qt.matrix4x4(0, -1, 10, 0, 1, 0, 20, 0, 0, 0, 1, 0, 0, 0, 0, 1)"

    @pytest.mark.unit
    def test_drop_shadow(self):
        """Only the first effect is used."""
        node = {
            "effects": [
                {"type": "DROP_SHADOW", "offset": {"x": 2, "y": 3}, "radius": 4,
                 "color": {"r": 0, "g": 0, "b": 0, "a": 0.5}},
                {"type": "INNER_SHADOW", "offset": {"x": 9, "y": 9}, "radius": 9},
            ]
        }
        lines = make_effects(node, 1)
        assert lines[:2] == ["    layer.enabled:true", "    layer.effect: DropShadow {"]
        assert "        horizontalOffset: 2" in lines
        assert "        samples: 17" in lines
        assert '        color: "#80000000"' in lines
        assert "radius: 9" not in "\n".join(lines)

    @pytest.mark.unit
    def test_inner_shadow_flips_offset(self):
        """Inner shadows point the other way."""
        node = {"effects": [{"type": "INNER_SHADOW", "offset": {"x": 2, "y": 3}, "radius": 1}]}
        lines = make_effects(node, 0)
        assert "    horizontalOffset: -2" in lines
        assert "    verticalOffset: -3" in lines

    @pytest.mark.unit
    def test_other_effects_ignored(self):
        """Blur effects have no QML counterpart here."""
        assert make_effects({"effects": [{"type": "LAYER_BLUR", "radius": 3}]}, 1) == []


class TestFill:
    """Tests for fill emission."""

    @pytest.mark.unit
    def test_opacity_scales_alpha(self, ctx):
        """Fill opacity multiplies into the alpha channel."""
        fill = {"color": {"r": 1, "g": 0, "b": 0, "a": 1}, "opacity": 0.5}
        assert make_fill(ctx, fill, 1) == ['    color:"#80ff0000"']

    @pytest.mark.unit
    def test_invisible_is_transparent(self, ctx):
        """Hidden fills keep their color at zero alpha."""
        fill = {"color": {"r": 1, "g": 0, "b": 0, "a": 1}, "visible": False}
        assert make_fill(ctx, fill, 1) == ['    color:"#00ff0000"']

    @pytest.mark.unit
    def test_image_fill(self, ctx, images):
        """Image references add an Image filling the parent."""
        lines = make_fill(ctx, {"type": "IMAGE", "imageRef": "abc"}, 1)
        assert lines[0] == '    color: "transparent"'
        assert "            fillMode: Image.PreserveAspectCrop" in lines
        assert images.calls == [("abc", False)]

    @pytest.mark.unit
    def test_vector_without_fills(self, ctx, make_rectangle):
        """Empty fill lists are transparent, placeholder strings emit nothing."""
        assert make_vector(ctx, make_rectangle(fills=[]), {}, 1)[-1] == '    color: "transparent"'
        assert "color" not in "\n".join(make_vector(ctx, make_rectangle(fills=""), {}, 1))


class TestImageSource:
    """Tests for make_image_source."""

    @pytest.mark.unit
    def test_chunks_long_data(self, ctx, images):
        """Data longer than 1024 characters is split into string chunks."""
        images.data = b"a" * 2500
        lines = make_image_source(ctx, "ref", False, 1)
        assert len(lines) == 1
        assert lines[0].count('" +\n "') == 2
        assert lines[0].startswith('    source: "aaa')

    @pytest.mark.unit
    def test_missing_without_placeholder(self, ctx, images):
        """Missing data without a placeholder fails."""
        images.missing.add("ref")
        with pytest.raises(TranspileError, match="Cannot read imageRef ref"):
            make_image_source(ctx, "ref", False, 1)

    @pytest.mark.unit
    def test_missing_placeholder(self, ctx):
        """A placeholder without data fails too."""
        ctx.image_provider = lambda image, rendering: b""
        with pytest.raises(TranspileError, match="Cannot load placeholder"):
            make_image_source(ctx, "ref", True, 1, "placeholder")

    @pytest.mark.unit
    def test_binary_data_is_rejected(self, ctx, images):
        """Raw image bytes are not valid source text."""
        images.data = b"\x89PNG\r\n\x1a\n\xff\xfe"
        with pytest.raises(TranspileError, match="Image data for ref is not text"):
            make_image_source(ctx, "ref", False, 1)


class TestText:
    """Tests for text style mapping."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "weight,expected",
        [(100, "Font.Thin"), (400, "Font.Normal"), (650, "Font.Medium"), (1000, "Font.Black")],
    )
    def test_font_weight(self, weight, expected):
        """Weights fall into the first bucket not below them."""
        assert font_weight(weight) == expected

    @pytest.mark.unit
    def test_style_mapping(self, ctx):
        """Enums map through fixed tables and unknown values are dropped."""
        styles = text_styles(
            ctx,
            {
                "fontFamily": "Inter",
                "fontSize": 14.7,
                "fontWeight": 400,
                "italic": True,
                "textCase": "UPPER",
                "textDecoration": "UNDERLINE",
                "textAlignHorizontal": "CENTER",
                "textAlignVertical": "MIDDLE",
                "letterSpacing": 0.5,
                "paragraphSpacing": 6,
            },
        )
        assert styles["font.family"] == '"Inter Local"'
        assert styles["font.italic"] == "true"
        assert styles["font.pixelSize"] == "14"
        assert styles["font.capitalization"] == "Font.AllUppercase"
        assert styles["underline"] == "true"
        assert styles["horizontalAlignment"] == "Text.AlignHCenter"
        assert styles["font.letterSpacing"] == "0.5"
        assert styles["topPadding"] == "6"
        assert "verticalAlignment" not in styles
        assert "strikeout" not in styles

    @pytest.mark.unit
    def test_style_lines_sorted(self, ctx):
        """Style properties are written in key order, then the style fill."""
        style = {"fontFamily": "Inter", "fills": [{"color": {"r": 0, "g": 0, "b": 0, "a": 1}}]}
        lines = make_text_style(ctx, style, 1)
        keys = [line.strip().split(":")[0] for line in lines[:-1]]
        assert keys == sorted(keys)
        assert lines[-1] == '    color:"#ff000000"'


class TestShapes:
    """Tests for ShapePath properties."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "join,expected",
        [("MITER", "MiterJoin"), ("BEVEL", "BevelJoin"), ("ROUND", "RoundJoin"), ("OTHER", "MiterJoin")],
    )
    def test_join(self, join, expected):
        """Join styles map onto ShapePath joins."""
        assert make_stroke_join({"strokeJoin": join}, 0) == [f"joinStyle: ShapePath.{expected}"]

    @pytest.mark.unit
    def test_stroke_width_by_type(self, make_rectangle):
        """Double strokes are twice as wide, one pixel strokes are 1."""
        node = make_rectangle(strokes=[{"color": {"r": 0, "g": 0, "b": 1, "a": 1}}], strokeWeight=3)
        assert make_shape_stroke(node, 0)[-1] == "strokeWidth:3"
        assert make_shape_stroke(node, 0, StrokeType.DOUBLE)[-1] == "strokeWidth:6"
        assert make_shape_stroke(node, 0, StrokeType.ONE_PIX)[-1] == "strokeWidth:1"
        assert 'strokeColor: "#ff0000ff"' in make_shape_stroke(node, 0)

    @pytest.mark.unit
    def test_line_stroke_uses_fill_color(self):
        """Lines draw their stroke color as fillColor."""
        node = {"id": "l", "type": "LINE", "strokes": [{"color": {"r": 0, "g": 1, "b": 0, "a": 1}}]}
        assert 'fillColor: "#ff00ff00"' in make_shape_stroke(node, 0)
        assert make_shape_fill(node, 0) == ['strokeColor: "transparent"', "id: svgpath_figma_l"]

    @pytest.mark.unit
    def test_winding_rule_on_first_path(self, make_rectangle):
        """Only the first path carries the fill rule."""
        node = make_rectangle(fillGeometry=[
            {"path": "M0 0", "windingRule": "NONZERO"},
            {"path": "M1 1", "windingRule": "NONZERO"},
        ])
        assert make_svg_path(0, True, node, 0)[0] == "fillRule: ShapePath.WindingFill"
        assert make_svg_path(1, True, node, 0)[0] == "PathSvg {"

    @pytest.mark.unit
    def test_antialiasing_flag(self, ctx):
        """Antialiasing is only emitted when requested."""
        assert make_antialiasing(ctx, 1) == []
        ctx.flags = ParserFlags.ANTIALIZE_SHAPES
        assert make_antialiasing(ctx, 1) == ["    antialiasing: true"]
