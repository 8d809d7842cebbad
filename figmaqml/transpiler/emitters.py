"""QML fragment emitters for geometry, paint, effects and text style.

Every emitter returns a list of already indented lines. A node parsed at
depth ``n`` opens its block at depth ``n - 1`` and writes its own
properties at depth ``n``; emitters receive the property depth.

Emitters that need the outside world (image bytes, font names, the
component catalogue, option flags) take an ``EmitContext``.
"""

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from figmaqml.core import TranspileError
from figmaqml.document import ComponentCatalogue
from figmaqml.naming import argb_color, qml_id
from figmaqml.transpiler.types import ItemType, NodeType, ParserFlags, StrokeType, classify

ImageProvider = Callable[[str, bool], bytes]
"""``provide_image(image_ref_or_node_id, is_prerendered) -> bytes`` (empty on failure)."""

FontResolver = Callable[[str], str]
"""``resolve_font(design_family) -> target family``."""

PLACEHOLDER = "placeholder"
INDENT = "    "
IMAGE_CHUNK = 1024

Node = Mapping[str, Any]


@dataclass
class EmitContext:
    """Per-transpile collaborators and bookkeeping.

    Attributes:
        flags: Active parser options.
        image_provider: Image bytes callback.
        resolve_font: Font family callback.
        components: Read-only component catalogue.
        component_ids: Ids of components referenced so far (filled during a run).
    """

    flags: ParserFlags
    image_provider: ImageProvider
    resolve_font: FontResolver
    components: ComponentCatalogue
    component_ids: set[str] = field(default_factory=set)

    def has(self, flag: ParserFlags) -> bool:
        """Whether a flag is set."""
        return bool(self.flags & flag)


# =============================================================================
# Primitives
# =============================================================================


def tabs(depth: int) -> str:
    """Indentation for a nesting depth."""
    return INDENT * max(depth, 0)


def num(value: Any) -> str:
    """Format a number in its shortest general form (``100``, ``0.5``)."""
    return f"{float(value) + 0.0:g}"


def to_color(r: float, g: float, b: float, a: float = 1.0) -> str:
    """Quoted QML color literal."""
    return f'"{argb_color(r, g, b, a)}"'


def quote(text: str) -> str:
    """Quote a string for a QML string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "")
    )
    return f'"{escaped}"'


def eq(a: float, b: float) -> bool:
    """Float equality within machine epsilon."""
    return math.fabs(a - b) < 2.220446049250313e-16


def is_invisible(node: Node) -> bool:
    """Whether a node is explicitly hidden."""
    return "visible" in node and not node["visible"]


def is_gradient(node: Node) -> bool:
    """Whether any fill of a node is a gradient."""
    fills = node.get("fills")
    if not isinstance(fills, list):
        return False
    return any(isinstance(f, Mapping) and "gradientHandlePositions" in f for f in fills)


def image_fill(node: Node) -> str | None:
    """Image reference of the node's first fill, if it is an image fill."""
    fills = node.get("fills")
    if isinstance(fills, list) and fills and "imageRef" in fills[0]:
        return fills[0]["imageRef"]
    return None


def first_fill(node: Node) -> Mapping[str, Any] | None:
    """The node's first fill entry."""
    fills = node.get("fills")
    if isinstance(fills, list) and fills:
        return fills[0]
    return None


def has_placeholder_fills(node: Node, key: str = "fills") -> bool:
    """Whether a paint list was replaced by the instance placeholder string."""
    return isinstance(node.get(key), str)


def position(node: Node) -> tuple[float, float]:
    """Translation part of a node's relative transform."""
    rows = node.get("relativeTransform", [[1, 0, 0], [0, 1, 0]])
    return float(rows[0][2]), float(rows[1][2])


def linear_part(node: Node) -> tuple[float, float, float, float, float, float] | None:
    """The 2x3 transform, or None when the linear part is identity."""
    if "relativeTransform" not in node:
        return None
    (a, b, tx), (c, d, ty) = node["relativeTransform"][:2]
    if eq(a, 1.0) and eq(b, 0.0) and eq(c, 0.0) and eq(d, 1.0):
        return None
    return a, b, tx, c, d, ty


def get_value(ctx: EmitContext, node: Node, key: str) -> Any:
    """Read a property, falling back to the component an instance derives from.

    Raises:
        TranspileError: If the instance refers to an unknown component.
    """
    if key in node:
        return node[key]
    if classify(node) == ItemType.INSTANCE:
        component_id = node.get("componentId", "")
        if component_id not in ctx.components:
            raise TranspileError(
                f"Unexpected component dependency from {node.get('id', '')} to {component_id}"
            )
        return get_value(ctx, ctx.components[component_id].node, key)
    return None


def subtree_size(node: Node) -> tuple[float, float]:
    """Largest bounding box width and height found in a subtree."""
    box = node.get("absoluteBoundingBox", {})
    width = float(box.get("width", 0.0))
    height = float(box.get("height", 0.0))
    for child in node.get("children", []):
        child_width, child_height = subtree_size(child)
        width = max(width, child_width)
        height = max(height, child_height)
    return width, height


# =============================================================================
# Item headers
# =============================================================================


def make_component_instance(type_name: str, node: Node, depth: int) -> list[str]:
    """Open a block: ``Type {``, ``id`` and ``objectName``."""
    pad = tabs(depth)
    return [
        f"{tabs(depth - 1)}{type_name} {{",
        f"{pad}id: {qml_id(node.get('id', ''))}",
        f"{pad}objectName:{quote(node.get('name', ''))}",
    ]


def make_effects(node: Node, depth: int) -> list[str]:
    """Drop or inner shadow from the first effect (QML items take only one)."""
    effects = node.get("effects")
    if not isinstance(effects, list) or not effects:
        return []
    effect = effects[0]
    kind = effect.get("type")
    if kind not in ("INNER_SHADOW", "DROP_SHADOW"):
        return []
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    offset = effect.get("offset", {})
    sign = -1.0 if kind == "INNER_SHADOW" else 1.0
    color = effect.get("color", {})
    return [
        f"{pad}layer.enabled:true",
        f"{pad}layer.effect: DropShadow {{",
        f"{pad1}horizontalOffset: {num(sign * offset.get('x', 0.0))}",
        f"{pad1}verticalOffset: {num(sign * offset.get('y', 0.0))}",
        f"{pad1}radius: {num(effect.get('radius', 0.0))}",
        f"{pad1}samples: 17",
        f"{pad1}color: "
        + to_color(color.get("r", 0.0), color.get("g", 0.0), color.get("b", 0.0), color.get("a", 0.0)),
        f"{pad}}}",
    ]


def transform_matrix(node: Node) -> str | None:
    """``Qt.matrix4x4(...)`` expression for a rotated/skewed/scaled node."""
    linear = linear_part(node)
    if linear is None:
        return None
    a, b, tx, c, d, ty = linear
    values = [a, b, tx, 0, c, d, ty, 0, 0, 0, 1, 0, 0, 0, 0, 1]
    return "Qt.matrix4x4(" + ", ".join(num(v) for v in values) + ")"


def make_transforms(node: Node, depth: int) -> list[str]:
    """Explicit transform when the linear part is not identity.

    Pure translation is left to position emission.
    """
    linear = linear_part(node)
    if linear is None:
        return []
    a, b, tx, c, d, ty = linear
    pad1 = tabs(depth + 1)
    return [
        f"{tabs(depth)}transform: Matrix4x4 {{",
        f"{pad1}matrix: Qt.matrix4x4(",
        f"{pad1}{num(a)}, {num(b)}, {num(tx)}, 0,",
        f"{pad1}{num(c)}, {num(d)}, {num(ty)}, 0,",
        f"{pad1}0, 0, 1, 0,",
        f"{pad1}0, 0, 0, 1)",
        f"{tabs(depth)}}}",
    ]


def make_item(type_name: str, node: Node, depth: int) -> list[str]:
    """Header, effect, transform, visibility and opacity of an item."""
    pad = tabs(depth)
    lines = make_component_instance(type_name, node, depth)
    lines += make_effects(node, depth)
    lines += make_transforms(node, depth)
    if is_invisible(node):
        lines.append(f"{pad}visible: false")
    if "opacity" in node:
        lines.append(f"{pad}opacity: {num(node['opacity'])}")
    return lines


# =============================================================================
# Geometry
# =============================================================================


def make_extents(
    ctx: EmitContext,
    node: Node,
    parent: Node,
    depth: int,
    extents: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0),
) -> list[str]:
    """Position and size of a node.

    Position follows the node's constraints: fixed offsets for edge anchored
    axes, and an expression relative to the parent's live size for centered
    axes so the node stays centered when the parent is resized.

    Args:
        ctx: Emit context (for instance size fallback).
        node: Node to place.
        parent: The node's parent (source of the centering reference).
        depth: Property depth.
        extents: ``(dx, dy, dwidth, dheight)`` growth of the box.
    """
    pad = tabs(depth)
    dx, dy, dwidth, dheight = extents
    constraints = node.get("constraints", {})
    horizontal = constraints.get("horizontal", "LEFT")
    vertical = constraints.get("vertical", "TOP")
    lines: list[str] = []

    if "relativeTransform" in node:
        px, py = position(node)
        tx = int(px + dx)
        ty = int(py + dy)
        parent_id = qml_id(parent.get("id", ""))

        if horizontal in ("LEFT", "RIGHT", "LEFT_RIGHT", "SCALE"):
            lines.append(f"{pad}x:{tx}")
        elif horizontal == "CENTER":
            parent_width = float(parent.get("size", {}).get("x", 0.0))
            width = float((get_value(ctx, node, "size") or {}).get("x", 0.0))
            lines.append(pad + _centered("x", parent_id, "width", parent_width, width, tx))

        if vertical in ("TOP", "BOTTOM", "TOP_BOTTOM", "SCALE"):
            lines.append(f"{pad}y:{ty}")
        elif vertical == "CENTER":
            parent_height = float(parent.get("size", {}).get("y", 0.0))
            height = float((get_value(ctx, node, "size") or {}).get("y", 0.0))
            lines.append(pad + _centered("y", parent_id, "height", parent_height, height, ty))

    if "size" in node:
        size = node["size"]
        lines.append(f"{pad}width:{num(float(size.get('x', 0.0)) + dwidth)}")
        lines.append(f"{pad}height:{num(float(size.get('y', 0.0)) + dheight)}")
    return lines


def _centered(axis: str, parent_id: str, extent: str, parent_size: float, size: float, offset: int) -> str:
    remainder = (parent_size - size) / 2.0 - offset
    expression = f"{axis}: ({parent_id}.{extent} - {extent}) / 2"
    if eq(remainder, 0.0):
        return expression
    return f"{expression} {'+' if remainder < 0 else '-'} {num(abs(remainder))}"


def make_size(node: Node, depth: int, extents: tuple[float, float] = (0.0, 0.0)) -> list[str]:
    """Width and height only."""
    pad = tabs(depth)
    size = node.get("size", {})
    return [
        f"{pad}width:{num(float(size.get('x', 0.0)) + extents[0])}",
        f"{pad}height:{num(float(size.get('y', 0.0)) + extents[1])}",
    ]


# =============================================================================
# Paint
# =============================================================================


def make_color(color: Mapping[str, Any], depth: int, opacity: float = 1.0) -> list[str]:
    """``color:`` property from an RGBA dict."""
    value = to_color(
        color.get("r", 0.0),
        color.get("g", 0.0),
        color.get("b", 0.0),
        color.get("a", 1.0) * opacity,
    )
    return [f"{tabs(depth)}color:{value}"]


def make_image_source(
    ctx: EmitContext,
    image: str,
    is_rendering: bool,
    depth: int,
    placeholder: str = "",
) -> list[str]:
    """``source:`` property with data from the image provider.

    Long data is split into 1024 character string chunks.

    Raises:
        TranspileError: If no data is available and there is no placeholder,
            if the placeholder itself yields no data, or if the data is not
            UTF-8 text.
    """
    pad = tabs(depth)
    lines: list[str] = []
    data = ctx.image_provider(image, is_rendering)
    if not data:
        if not placeholder:
            raise TranspileError(f"Cannot read imageRef {image}")
        data = ctx.image_provider(placeholder, is_rendering)
        if not data:
            raise TranspileError("Cannot load placeholder")
        lines.append(f"{pad}//Image load failed, placeholder")
        lines.append(f"{pad}sourceSize: Qt.size(parent.width, parent.height)")

    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else str(data)
    except UnicodeDecodeError as e:
        raise TranspileError(f"Image data for {image} is not text") from e
    chunks = [text[i : i + IMAGE_CHUNK] for i in range(0, len(text), IMAGE_CHUNK)]
    lines.append(f'{pad}source: "' + '" +\n "'.join(chunks) + '"')
    return lines


def make_image_ref(ctx: EmitContext, image: str, depth: int) -> list[str]:
    """Image child filling its parent."""
    pad1 = tabs(depth + 1)
    return [
        f"{tabs(depth)}Image {{",
        f"{pad1}anchors.fill: parent",
        f"{pad1}mipmap: true",
        f"{pad1}fillMode: Image.PreserveAspectCrop",
        *make_image_source(ctx, image, False, depth + 1),
        f"{tabs(depth)}}}",
    ]


def make_fill(ctx: EmitContext, fill: Node, depth: int) -> list[str]:
    """Color (and image child) for a single fill entry."""
    invisible = is_invisible(fill)
    if "color" in fill:
        if not invisible and "opacity" in fill:
            lines = make_color(fill["color"], depth, float(fill["opacity"]))
        else:
            lines = make_color(fill["color"], depth, 0.0 if invisible else 1.0)
    else:
        lines = [f'{tabs(depth)}color: "transparent"']
    if "imageRef" in fill:
        lines += make_image_ref(ctx, fill["imageRef"], depth + 1)
    return lines


def make_vector(ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
    """Extents plus the color of the first fill.

    An absent or empty fill list means transparent; a placeholder string
    (instance fills inherited from the component) emits nothing.
    """
    lines = make_extents(ctx, node, parent, depth)
    fill = first_fill(node)
    if fill is not None:
        lines += make_fill(ctx, fill, depth)
    elif not has_placeholder_fills(node):
        lines.append(f'{tabs(depth)}color: "transparent"')
    return lines


# =============================================================================
# Text
# =============================================================================

FONT_WEIGHTS: list[tuple[str, float]] = [
    ("Font.Thin", 0),
    ("Font.ExtraLight", 12),
    ("Font.Light", 25),
    ("Font.Normal", 50),
    ("Font.Medium", 57),
    ("Font.DemiBold", 63),
    ("Font.Bold", 75),
    ("Font.ExtraBold", 81),
    ("Font.Black", 87),
]

CAPITALIZATION = {
    "UPPER": "Font.AllUppercase",
    "LOWER": "Font.AllLowercase",
    "TITLE": "Font.MixedCase",
    "SMALL_CAPS": "Font.SmallCaps",
    "SMALL_CAPS_FORCED": "Font.Capitalize",
}

DECORATION = {
    "STRIKETHROUGH": "strikeout",
    "UNDERLINE": "underline",
}

HORIZONTAL_ALIGN = {
    "LEFT": "Text.AlignLeft",
    "RIGHT": "Text.AlignRight",
    "CENTER": "Text.AlignHCenter",
    "JUSTIFIED": "Text.AlignJustify",
}

VERTICAL_ALIGN = {
    "TOP": "Text.AlignTop",
    "BOTTOM": "Text.AlignBottom",
    "CENTER": "Text.AlignVCenter",
}


def font_weight(value: float) -> str:
    """Map a 100-900 weight onto the first QML weight bucket not below it."""
    scaled = ((value - 100.0) / 900.0) * 90.0
    for name, threshold in FONT_WEIGHTS:
        if scaled <= threshold:
            return name
    return FONT_WEIGHTS[-1][0]


def text_styles(ctx: EmitContext, style: Node) -> dict[str, str]:
    """QML text properties for a text style dict.

    Enum values without a mapping are left out.
    """
    styles = {
        "font.family": quote(ctx.resolve_font(style.get("fontFamily", ""))),
        "font.italic": "true" if style.get("italic") else "false",
        "font.pixelSize": str(math.floor(float(style.get("fontSize", 0.0)))),
        "font.weight": font_weight(float(style.get("fontWeight", 0.0))),
        "font.letterSpacing": num(style.get("letterSpacing", 0.0)),
    }
    if (capitalization := CAPITALIZATION.get(style.get("textCase", ""))) is not None:
        styles["font.capitalization"] = capitalization
    if (decoration := DECORATION.get(style.get("textDecoration", ""))) is not None:
        styles[decoration] = "true"
    if "paragraphSpacing" in style:
        styles["topPadding"] = str(int(style["paragraphSpacing"]))
    if "paragraphIndent" in style:
        styles["leftPadding"] = str(int(style["paragraphIndent"]))
    if (h_align := HORIZONTAL_ALIGN.get(style.get("textAlignHorizontal", ""))) is not None:
        styles["horizontalAlignment"] = h_align
    if (v_align := VERTICAL_ALIGN.get(style.get("textAlignVertical", ""))) is not None:
        styles["verticalAlignment"] = v_align
    return styles


def make_text_style(ctx: EmitContext, style: Node, depth: int) -> list[str]:
    """Text style properties sorted by name, then the style's own fill."""
    pad = tabs(depth)
    lines = [f"{pad}{key}: {value}" for key, value in sorted(text_styles(ctx, style).items())]
    fill = first_fill(style)
    if fill is not None:
        lines += make_fill(ctx, fill, depth)
    return lines


# =============================================================================
# Shapes
# =============================================================================

JOIN_STYLES = {
    "MITER": "MiterJoin",
    "BEVEL": "BevelJoin",
    "ROUND": "RoundJoin",
}


def make_stroke_join(stroke: Node, depth: int) -> list[str]:
    """``joinStyle`` of a ShapePath (miter unless stated otherwise)."""
    join = JOIN_STYLES.get(stroke.get("strokeJoin", "MITER"), "MiterJoin")
    return [f"{tabs(depth)}joinStyle: ShapePath.{join}"]


def make_shape_stroke(node: Node, depth: int, stroke_type: StrokeType = StrokeType.NORMAL) -> list[str]:
    """Stroke color, join and width of a ShapePath.

    Lines are drawn with their stroke color as ``fillColor``.
    """
    pad = tabs(depth)
    color_property = "fillColor" if node.get("type") == NodeType.LINE.value else "strokeColor"
    lines: list[str] = []
    strokes = node.get("strokes")
    if isinstance(strokes, list) and strokes:
        stroke = strokes[0]
        lines += make_stroke_join(stroke, depth)
        opacity = float(stroke.get("opacity", 1.0))
        color = stroke.get("color", {})
        value = to_color(
            color.get("r", 0.0),
            color.get("g", 0.0),
            color.get("b", 0.0),
            color.get("a", 1.0) * opacity,
        )
        lines.append(f"{pad}{color_property}: {value}")
    elif not isinstance(strokes, str):
        lines.append(f'{pad}{color_property}: "transparent"')

    if "strokeWeight" in node:
        width = 1.0
        if stroke_type != StrokeType.ONE_PIX:
            width = float(node["strokeWeight"])
            if stroke_type == StrokeType.DOUBLE:
                width *= 2.0
        lines.append(f"{pad}strokeWidth:{num(width)}")
    return lines


def make_shape_fill(node: Node, depth: int) -> list[str]:
    """Fill color and path id of a ShapePath."""
    pad = tabs(depth)
    lines: list[str] = []
    if node.get("type") != NodeType.LINE.value:
        fill = first_fill(node)
        if fill is not None:
            opacity = float(fill.get("opacity", 1.0))
            color = fill.get("color", {})
            value = to_color(
                color.get("r", 0.0),
                color.get("g", 0.0),
                color.get("b", 0.0),
                color.get("a", 1.0) * opacity,
            )
            lines.append(f"{pad}fillColor:{value}")
        elif not has_placeholder_fills(node):
            lines.append(f'{pad}fillColor:"transparent"')
    else:
        lines.append(f'{pad}strokeColor: "transparent"')
    lines.append(f"{pad}id: svgpath_{qml_id(node.get('id', ''))}")
    return lines


def make_svg_path(index: int, is_fill: bool, node: Node, depth: int) -> list[str]:
    """One PathSvg for a fill or stroke geometry entry.

    QML has a single fill rule per ShapePath, so only the first path's
    winding rule is honored.
    """
    pad = tabs(depth)
    geometry = node.get("fillGeometry" if is_fill else "strokeGeometry", [])
    path = geometry[index]
    lines: list[str] = []
    if index == 0 and path.get("windingRule") == "NONZERO":
        lines.append(f"{pad}fillRule: ShapePath.WindingFill")
    lines += [
        f"{pad}PathSvg {{",
        f"{tabs(depth + 1)}path: {quote(path.get('path', ''))}",
        f"{pad}}}",
    ]
    return lines


def make_shape_fill_data(node: Node, depth: int) -> list[str]:
    """PathSvg elements for the fill geometry, or the stroke geometry if there is none."""
    lines: list[str] = []
    if node.get("fillGeometry"):
        for index in range(len(node["fillGeometry"])):
            lines += make_svg_path(index, True, node, depth)
    elif node.get("strokeGeometry"):
        for index in range(len(node["strokeGeometry"])):
            lines += make_svg_path(index, False, node, depth)
    return lines


def make_antialiasing(ctx: EmitContext, depth: int) -> list[str]:
    """``antialiasing: true`` when shape antialiasing is requested."""
    if ctx.has(ParserFlags.ANTIALIZE_SHAPES):
        return [f"{tabs(depth)}antialiasing: true"]
    return []


__all__ = [
    "EmitContext",
    "FontResolver",
    "ImageProvider",
    "PLACEHOLDER",
    "eq",
    "first_fill",
    "font_weight",
    "get_value",
    "image_fill",
    "is_gradient",
    "is_invisible",
    "make_antialiasing",
    "make_color",
    "make_component_instance",
    "make_effects",
    "make_extents",
    "make_fill",
    "make_image_ref",
    "make_image_source",
    "make_item",
    "make_shape_fill",
    "make_shape_fill_data",
    "make_shape_stroke",
    "make_size",
    "make_stroke_join",
    "make_svg_path",
    "make_text_style",
    "make_transforms",
    "make_vector",
    "num",
    "position",
    "quote",
    "subtree_size",
    "tabs",
    "text_styles",
    "to_color",
    "transform_matrix",
]
