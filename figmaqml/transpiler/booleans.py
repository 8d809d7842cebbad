"""Boolean shape composition.

With boolean breaking enabled a boolean node is rebuilt from its
children: a hidden solid source painted with the node's fill is masked by
the children's silhouettes (union, subtract, intersect) or combined by a
fragment shader (exclude).
"""

from typing import Protocol

from figmaqml.core import TranspileError, get_logger
from figmaqml.naming import qml_id
from figmaqml.transpiler.emitters import (
    EmitContext,
    Node,
    first_fill,
    has_placeholder_fills,
    make_extents,
    make_fill,
    make_item,
    tabs,
)

logger = get_logger(__name__)

BOOLEAN_OPERATIONS = ("UNION", "SUBTRACT", "INTERSECT", "EXCLUDE")


class ChildParser(Protocol):
    """The recursive half of the driver, as seen by the compositor."""

    def parse(self, node: Node, parent: Node, depth: int) -> list[str]: ...

    def parse_children(self, node: Node, depth: int) -> list[str]: ...


def compose_boolean(
    ctx: EmitContext,
    parser: ChildParser,
    node: Node,
    parent: Node,
    depth: int,
) -> list[str]:
    """Emit a boolean node as a mask or shader composition of its children.

    Unknown operations produce no output.

    Raises:
        TranspileError: If the node has fewer than two children.
    """
    children = node.get("children", [])
    if len(children) < 2:
        raise TranspileError("Boolean needs at least two elements")

    operation = node.get("booleanOperation", "")
    match operation:
        case "UNION":
            body = _union(ctx, parser, node, depth)
        case "SUBTRACT":
            body = _subtract(ctx, parser, node, depth)
        case "INTERSECT":
            body = _intersect(ctx, parser, node, depth)
        case "EXCLUDE":
            body = _exclude(ctx, parser, node, depth)
        case _:
            logger.warning(f"Skipping unsupported boolean operation '{operation}' on {node.get('id', '')}")
            return []

    return [
        *make_item("Item", node, depth),
        *make_extents(ctx, node, parent, depth),
        *body,
        f"{tabs(depth - 1)}}}",
    ]


def _ids(node: Node) -> tuple[str, str]:
    node_id = qml_id(node.get("id", ""))
    return f"source_{node_id}", f"maskSource_{node_id}"


def _node_paint(ctx: EmitContext, node: Node, depth: int) -> list[str]:
    fill = first_fill(node)
    if fill is not None:
        return make_fill(ctx, fill, depth)
    if not has_placeholder_fills(node):
        return [f'{tabs(depth)}color: "transparent"']
    return []


def _source_rectangle(ctx: EmitContext, node: Node, source_id: str, depth: int, layered: bool = False) -> list[str]:
    """Hidden rectangle painted with the boolean node's own fill."""
    pad1 = tabs(depth + 1)
    lines = [
        f"{tabs(depth)}Rectangle {{",
        f"{pad1}id: {source_id}",
        f"{pad1}anchors.fill: parent",
        *_node_paint(ctx, node, depth + 1),
        f"{pad1}visible: false",
    ]
    if layered:
        lines.append(f"{pad1}layer.enabled: true")
    return lines


def _hidden_item(mask_id: str, content: list[str], depth: int) -> list[str]:
    pad1 = tabs(depth + 1)
    return [
        f"{tabs(depth)}Item {{",
        f"{pad1}anchors.fill: parent",
        f"{pad1}visible: false",
        f"{pad1}id: {mask_id}",
        *content,
        f"{tabs(depth)}}}",
    ]


def _mask(anchor: str, source: str, mask_source: str, depth: int, extra: tuple[str, ...] = ()) -> list[str]:
    pad1 = tabs(depth + 1)
    return [
        f"{tabs(depth)}OpacityMask {{",
        f"{pad1}anchors.fill:{anchor}",
        f"{pad1}source:{source}",
        f"{pad1}maskSource:{mask_source}",
        *(f"{pad1}{line}" for line in extra),
        f"{tabs(depth)}}}",
    ]


def _union(ctx: EmitContext, parser: ChildParser, node: Node, depth: int) -> list[str]:
    source_id, mask_source_id = _ids(node)
    return [
        *_source_rectangle(ctx, node, source_id, depth),
        f"{tabs(depth)}}}",
        *_hidden_item(mask_source_id, parser.parse_children(node, depth + 1), depth),
        *_mask(source_id, source_id, mask_source_id, depth),
    ]


def _subtract(ctx: EmitContext, parser: ChildParser, node: Node, depth: int) -> list[str]:
    source_id, mask_source_id = _ids(node)
    children = node["children"]
    base = [
        *_source_rectangle(ctx, node, source_id, depth + 1),
        f"{tabs(depth + 1)}}}",
        *_hidden_item(mask_source_id, parser.parse(children[0], node, depth + 3), depth + 1),
        *_mask(source_id, source_id, mask_source_id, depth + 1),
    ]
    rest: list[str] = []
    for child in children[1:]:
        rest += parser.parse(child, node, depth + 2)
    return [
        *_hidden_item(f"{source_id}_subtract", base, depth),
        *_hidden_item(f"{mask_source_id}_subtract", rest, depth),
        *_mask(
            f"{source_id}_subtract",
            f"{source_id}_subtract",
            f"{mask_source_id}_subtract",
            depth,
            ("invert: true",),
        ),
    ]


def _intersect(ctx: EmitContext, parser: ChildParser, node: Node, depth: int) -> list[str]:
    source_id, mask_source_id = _ids(node)
    children = node["children"]
    lines = [*_source_rectangle(ctx, node, source_id, depth), f"{tabs(depth)}}}"]
    next_source = source_id
    for index, child in enumerate(children):
        mask_id = f"{mask_source_id}_{index}"
        lines += _hidden_item(mask_id, parser.parse(child, node, depth + 2), depth)
        current = f"{source_id}_{index}"
        extra = [f"id: {current}"]
        if index < len(children) - 1:
            extra.append("visible: false")
        lines += _mask(source_id, next_source, mask_id, depth, tuple(extra))
        next_source = current
    return lines


def _shader(name: str, sampler_names: list[str], expression: str, depth: int) -> list[str]:
    pad2 = tabs(depth + 1)
    pad3 = tabs(depth + 2)
    lines = [f'{tabs(depth)}readonly property string {name}: "']
    lines += [f"{pad2}uniform lowp sampler2D {sampler};" for sampler in sampler_names]
    lines += [
        f"{pad2}uniform lowp float qt_Opacity;",
        f"{pad2}varying highp vec2 qt_TexCoord0;",
        f"{pad2}void main() {{",
        f"{pad3}vec4 color = texture2D(colorSource, qt_TexCoord0);",
        f"{pad3}vec4 cm = texture2D(currentMask, qt_TexCoord0);",
    ]
    if "prevMask" in sampler_names:
        lines.append(f"{pad3}vec4 pm = texture2D(prevMask, qt_TexCoord0);")
    lines += [f"{pad3}gl_FragColor = {expression};", f'{pad2}}}"']
    return lines


def _exclude(ctx: EmitContext, parser: ChildParser, node: Node, depth: int) -> list[str]:
    source_id, mask_source_id = _ids(node)
    children = node["children"]
    pad = tabs(depth)
    pad1 = tabs(depth + 1)
    lines = [
        *_source_rectangle(ctx, node, source_id, depth, layered=True),
        *_shader(
            "shaderSource",
            ["colorSource", "prevMask", "currentMask"],
            "qt_Opacity * color * ((cm.a * (1.0 - pm.a)) + ((1.0 - cm.a) * pm.a))",
            depth + 1,
        ),
        *_shader("shaderSource0", ["colorSource", "currentMask"], "cm.a * color", depth + 1),
        f"{pad}}}",
    ]

    previous = ""
    for index, child in enumerate(children):
        mask_id = f"{mask_source_id}_{index}"
        lines += [
            f"{pad}Item {{",
            f"{pad1}visible: false",
            f"{pad1}anchors.fill: parent",
            *parser.parse(child, node, depth + 2),
            f"{pad1}layer.enabled: true",
            f"{pad1}id: {mask_id}",
            f"{pad}}}",
            f"{pad}ShaderEffect {{",
            f"{pad1}anchors.fill: parent",
            f"{pad1}layer.enabled: true",
            f"{pad1}property var colorSource:{source_id}",
        ]
        if previous:
            lines += [
                f"{pad1}property var prevMask: ShaderEffectSource {{",
                f"{tabs(depth + 2)}sourceItem: {previous}",
                f"{pad1}}}",
            ]
        lines += [
            f"{pad1}property var currentMask:{mask_id}",
            f"{pad1}fragmentShader: {source_id}.{'shaderSource' if previous else 'shaderSource0'}",
        ]
        previous = f"{source_id}_{index}"
        if index < len(children) - 1:
            lines += [f"{pad1}visible: false", f"{pad1}id: {previous}"]
        lines.append(f"{pad}}}")
    return lines


__all__ = [
    "BOOLEAN_OPERATIONS",
    "ChildParser",
    "compose_boolean",
]
