"""Stroke alignment strategies for vector-like nodes.

QML shape paths only draw centered strokes. Inside and outside aligned
strokes are composed from a double width stroke and an opacity mask cut
from the same geometry; outside strokes additionally grow the item box by
the stroke width so the mask does not clip the outer half.

Each alignment has a plain variant and an image variant, picked by
whether the node's first fill is an image reference.
"""

from figmaqml.naming import qml_id
from figmaqml.transpiler.emitters import (
    EmitContext,
    Node,
    image_fill,
    make_antialiasing,
    make_extents,
    make_image_source,
    make_item,
    make_shape_fill,
    make_shape_fill_data,
    make_shape_stroke,
    make_size,
    num,
    tabs,
)
from figmaqml.transpiler.types import StrokeType


def has_borders(node: Node) -> bool:
    """Whether a node carries a stroke wide enough to need alignment handling."""
    strokes = node.get("strokes")
    return (
        isinstance(strokes, list)
        and len(strokes) > 0
        and float(node.get("strokeWeight", 0.0)) > 1.0
    )


def parse_vector(ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
    """Emit a vector-like node with the strategy its stroke alignment needs."""
    image = image_fill(node)
    if has_borders(node):
        match node.get("strokeAlign"):
            case "INSIDE":
                if image is not None:
                    return vector_inside_image(ctx, image, node, parent, depth)
                return vector_inside(ctx, node, parent, depth)
            case "OUTSIDE":
                if image is not None:
                    return vector_outside_image(ctx, image, node, parent, depth)
                return vector_outside(ctx, node, parent, depth)
    if image is not None:
        return vector_normal_image(ctx, image, node, parent, depth)
    return vector_normal(ctx, node, parent, depth)


# =============================================================================
# Building blocks
# =============================================================================


def _shape_path(node: Node, depth: int, stroke_type: StrokeType) -> list[str]:
    """ShapePath carrying the node's stroke, fill and geometry."""
    return [
        f"{tabs(depth)}ShapePath {{",
        *make_shape_stroke(node, depth + 1, stroke_type),
        *make_shape_fill(node, depth + 1),
        *make_shape_fill_data(node, depth + 1),
        f"{tabs(depth)}}}",
    ]


def _mask_path(node: Node, depth: int, stroke_width: float = 0.0) -> list[str]:
    """Solid black ShapePath of the node's geometry, used as a mask."""
    pad1 = tabs(depth + 1)
    return [
        f"{tabs(depth)}ShapePath {{",
        f'{pad1}fillColor: "black"',
        f'{pad1}strokeColor: "transparent"',
        f"{pad1}strokeWidth: {num(stroke_width)}",
        f"{pad1}joinStyle: ShapePath.MiterJoin",
        *make_shape_fill_data(node, depth + 1),
        f"{tabs(depth)}}}",
    ]


def _opacity_mask(source: str, mask_source: str, depth: int, invert: bool = False) -> list[str]:
    pad1 = tabs(depth + 1)
    lines = [
        f"{tabs(depth)}OpacityMask {{",
        f"{pad1}anchors.fill:parent",
        f"{pad1}source: {source}",
        f"{pad1}maskSource: {mask_source}",
    ]
    if invert:
        lines.append(f"{pad1}invert: true")
    lines.append(f"{tabs(depth)}}}")
    return lines


def _alignment_comment(node: Node, depth: int) -> str:
    return (
        f"{tabs(depth - 1)}// QML (SVG) supports only center borders, "
        f"thus an extra mask is created for {node.get('strokeAlign', '')}"
    )


def _offset(width: float, depth: int) -> list[str]:
    return [f"{tabs(depth)}x: {num(width)}", f"{tabs(depth)}y: {num(width)}"]


def image_mask_data(
    ctx: EmitContext,
    image: str,
    node: Node,
    depth: int,
    source_id: str,
    mask_source_id: str,
) -> list[str]:
    """Image clipped to the node's silhouette.

    Emits the composing OpacityMask followed by its hidden image source
    and hidden shape mask.
    """
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    return [
        *_opacity_mask(source_id, mask_source_id, depth),
        f"{pad}Image {{",
        f"{pad1}id: {source_id}",
        f"{pad1}layer.enabled: true",
        f"{pad1}fillMode: Image.PreserveAspectCrop",
        f"{pad1}visible: false",
        f"{pad1}mipmap: true",
        f"{pad1}anchors.fill:parent",
        *make_image_source(ctx, image, False, depth + 1),
        f"{pad}}}",
        f"{pad}Shape {{",
        f"{pad1}id: {mask_source_id}",
        f"{pad1}anchors.fill: parent",
        f"{pad1}layer.enabled: true",
        f"{pad1}visible: false",
        f"{pad1}ShapePath {{",
        *make_shape_stroke(node, depth + 2, StrokeType.NORMAL),
        f'{tabs(depth + 2)}fillColor:"black"',
        *make_shape_fill_data(node, depth + 2),
        f"{pad1}}}",
        f"{pad}}}",
    ]


# =============================================================================
# Centered strokes
# =============================================================================


def vector_normal(ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
    """A single Shape whose path carries both stroke and fill."""
    return [
        *make_item("Shape", node, depth),
        *make_extents(ctx, node, parent, depth),
        *make_antialiasing(ctx, depth),
        *_shape_path(node, depth, StrokeType.NORMAL),
        f"{tabs(depth - 1)}}}",
    ]


def vector_normal_image(ctx: EmitContext, image: str, node: Node, parent: Node, depth: int) -> list[str]:
    """Image clipped to the shape, with the stroked shape drawn over it."""
    node_id = qml_id(node.get("id", ""))
    pad = tabs(depth)
    return [
        *make_item("Item", node, depth),
        *make_extents(ctx, node, parent, depth),
        *image_mask_data(ctx, image, node, depth, f"source_{node_id}", f"maskSource_{node_id}"),
        f"{pad}Shape {{",
        f"{tabs(depth + 1)}anchors.fill: parent",
        *make_antialiasing(ctx, depth + 1),
        *_shape_path(node, depth + 1, StrokeType.NORMAL),
        f"{pad}}}",
        f"{tabs(depth - 1)}}}",
    ]


# =============================================================================
# Inside strokes
# =============================================================================


def _inside_mask(ctx: EmitContext, node: Node, depth: int, border_source_id: str) -> list[str]:
    node_id = qml_id(node.get("id", ""))
    border_mask_id = f"borderMask_{node_id}"
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    return [
        f"{pad}Shape {{",
        f"{pad1}id: {border_mask_id}",
        f"{pad1}anchors.fill:parent",
        *make_antialiasing(ctx, depth + 1),
        f"{pad1}layer.enabled: true",
        f"{pad1}visible: false",
        *_mask_path(node, depth + 1),
        f"{pad}}}",
        *_opacity_mask(border_source_id, border_mask_id, depth),
    ]


def vector_inside(ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
    """Double width stroke clipped to the node's own silhouette."""
    border_source_id = f"borderSource_{qml_id(node.get('id', ''))}"
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    return [
        _alignment_comment(node, depth),
        *make_item("Item", node, depth),
        *make_extents(ctx, node, parent, depth),
        f"{pad}Shape {{",
        f"{pad1}id:{border_source_id}",
        f"{pad1}anchors.fill: parent",
        *make_antialiasing(ctx, depth + 1),
        f"{pad1}visible: false",
        *_shape_path(node, depth + 1, StrokeType.DOUBLE),
        f"{pad}}}",
        *_inside_mask(ctx, node, depth, border_source_id),
        f"{tabs(depth - 1)}}}",
    ]


def vector_inside_image(ctx: EmitContext, image: str, node: Node, parent: Node, depth: int) -> list[str]:
    """Image fill and double width stroke, both clipped to the silhouette."""
    node_id = qml_id(node.get("id", ""))
    border_source_id = f"borderSource_{node_id}"
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    pad2 = tabs(depth + 2)
    return [
        _alignment_comment(node, depth),
        *make_item("Item", node, depth),
        *make_extents(ctx, node, parent, depth),
        f"{pad}Item {{",
        f"{pad1}id:{border_source_id}",
        f"{pad1}anchors.fill: parent",
        *make_antialiasing(ctx, depth + 1),
        f"{pad1}visible: false",
        *image_mask_data(ctx, image, node, depth + 1, f"source_{node_id}", f"maskSource_{node_id}"),
        f"{pad1}Shape {{",
        f"{pad2}anchors.fill: parent",
        *make_antialiasing(ctx, depth + 2),
        *_shape_path(node, depth + 2, StrokeType.DOUBLE),
        f"{pad1}}}",
        f"{pad}}}",
        *_inside_mask(ctx, node, depth, border_source_id),
        f"{tabs(depth - 1)}}}",
    ]


# =============================================================================
# Outside strokes
# =============================================================================


def _outside_border(ctx: EmitContext, node: Node, depth: int, border_width: float) -> list[str]:
    """Hidden double width stroke and hidden inverted mask, composed."""
    node_id = qml_id(node.get("id", ""))
    border_source_id = f"borderSource_{node_id}"
    border_mask_id = f"borderMask_{node_id}"
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    pad2 = tabs(depth + 2)
    pad3 = tabs(depth + 3)
    return [
        f"{pad}Item {{",
        f"{pad1}id: {border_source_id}",
        f"{pad1}anchors.fill:parent",
        f"{pad1}visible: false",
        f"{pad1}Shape {{",
        *make_antialiasing(ctx, depth + 2),
        *_offset(border_width, depth + 2),
        *make_size(node, depth + 2),
        f"{pad2}ShapePath {{",
        f'{pad3}fillColor: "black"',
        *make_shape_stroke(node, depth + 3, StrokeType.DOUBLE),
        *make_shape_fill_data(node, depth + 3),
        f"{pad2}}}",
        f"{pad1}}}",
        f"{pad}}}",
        f"{pad}Item {{",
        f"{pad1}id: {border_mask_id}",
        f"{pad1}anchors.fill:parent",
        *make_antialiasing(ctx, depth + 1),
        f"{pad1}visible: false",
        f"{pad1}Shape {{",
        *_offset(border_width, depth + 2),
        *make_size(node, depth + 2),
        *_mask_path(node, depth + 2, border_width),
        f"{pad1}}}",
        f"{pad}}}",
        *_opacity_mask(border_source_id, border_mask_id, depth, invert=True),
    ]


def _outside_extents(border_width: float) -> tuple[float, float, float, float]:
    return (-border_width, -border_width, border_width * 2.0, border_width * 2.0)


def vector_outside(ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
    """Fill inset by the stroke width, stroke kept only outside the silhouette."""
    border_width = float(node.get("strokeWeight", 0.0))
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    pad2 = tabs(depth + 2)
    return [
        _alignment_comment(node, depth),
        *make_item("Item", node, depth),
        *make_extents(ctx, node, parent, depth, _outside_extents(border_width)),
        f"{pad}Shape {{",
        *_offset(border_width, depth + 1),
        *make_size(node, depth + 1),
        *make_antialiasing(ctx, depth + 1),
        f"{pad1}ShapePath {{",
        *make_shape_fill(node, depth + 2),
        *make_shape_fill_data(node, depth + 2),
        f"{pad2}strokeWidth: 0",
        f"{pad2}strokeColor: fillColor",
        f"{pad2}joinStyle: ShapePath.MiterJoin",
        f"{pad1}}}",
        f"{pad}}}",
        *_outside_border(ctx, node, depth, border_width),
        f"{tabs(depth - 1)}}}",
    ]


def vector_outside_image(ctx: EmitContext, image: str, node: Node, parent: Node, depth: int) -> list[str]:
    """Image fill inset by the stroke width, stroke kept only outside."""
    node_id = qml_id(node.get("id", ""))
    border_width = float(node.get("strokeWeight", 0.0))
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    pad2 = tabs(depth + 2)
    pad3 = tabs(depth + 3)
    return [
        _alignment_comment(node, depth),
        *make_item("Item", node, depth),
        *make_extents(ctx, node, parent, depth, _outside_extents(border_width)),
        f"{pad}Item {{",
        *_offset(border_width, depth + 1),
        *make_size(node, depth + 1),
        *make_antialiasing(ctx, depth + 1),
        *image_mask_data(ctx, image, node, depth + 1, f"source_{node_id}", f"maskSource_{node_id}"),
        f"{pad1}Shape {{",
        f"{pad2}anchors.fill: parent",
        *make_antialiasing(ctx, depth + 2),
        f"{pad2}ShapePath {{",
        f'{pad3}strokeColor: "transparent"',
        f"{pad3}strokeWidth: 0",
        f"{pad3}joinStyle: ShapePath.MiterJoin",
        *make_shape_fill(node, depth + 3),
        *make_shape_fill_data(node, depth + 3),
        f"{pad2}}}",
        f"{pad1}}}",
        f"{pad}}}",
        *_outside_border(ctx, node, depth, border_width),
        f"{tabs(depth - 1)}}}",
    ]


__all__ = [
    "has_borders",
    "image_mask_data",
    "parse_vector",
    "vector_inside",
    "vector_inside_image",
    "vector_normal",
    "vector_normal_image",
    "vector_outside",
    "vector_outside_image",
]
