"""Recursive node-to-QML transpiler.

``Transpiler`` walks one top-level node depth first and returns the
generated QML as a list of lines. The parent of the node being emitted is
passed explicitly through every call; anchor rules and pre-render
placement are computed against it.

Example:
    >>> from figmaqml.transpiler import Transpiler, ParserFlags
    >>> transpiler = Transpiler(ParserFlags.NONE, provide_image, resolve_font, catalogue)
    >>> result = transpiler.transpile(node)
    >>> result.ok
    True
"""

from dataclasses import dataclass, field

from figmaqml.core import IssueReporter, TranspileError, get_logger, report_issue
from figmaqml.document import ComponentCatalogue, Element
from figmaqml.naming import delegate_name, qml_id, valid_file_name
from figmaqml.transpiler.booleans import compose_boolean
from figmaqml.transpiler.delta import delta, is_minimal_override
from figmaqml.transpiler.emitters import (
    PLACEHOLDER,
    EmitContext,
    FontResolver,
    ImageProvider,
    Node,
    is_gradient,
    is_invisible,
    make_component_instance,
    make_extents,
    make_fill,
    make_image_source,
    make_item,
    make_text_style,
    make_vector,
    num,
    position,
    quote,
    subtree_size,
    tabs,
    transform_matrix,
)
from figmaqml.transpiler.ordered import OrderedMap
from figmaqml.transpiler.strokes import parse_vector
from figmaqml.transpiler.types import ItemType, NodeType, ParserFlags, classify, node_type

logger = get_logger(__name__)

MASKED_ITEM = "maskedItem"
DELEGATE_PROPERTIES = ("x", "y", "width", "height")


@dataclass
class TranspileResult:
    """Outcome of transpiling one top-level node.

    Attributes:
        element: The generated element, None on failure.
        error: Failure message, None on success.
    """

    element: Element | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.element is not None


@dataclass
class Transpiler:
    """Turns design nodes into QML.

    Attributes:
        flags: Active parser options.
        image_provider: ``(image_ref_or_node_id, is_prerendered) -> bytes``.
        resolve_font: ``(design_family) -> target family``.
        components: Read-only component catalogue; never modified here.
    """

    flags: ParserFlags
    image_provider: ImageProvider
    resolve_font: FontResolver
    components: ComponentCatalogue = field(default_factory=dict)

    # =========================================================================
    # Entry
    # =========================================================================

    def transpile(self, node: Node) -> TranspileResult:
        """Transpile a top-level node, converting failures into a result.

        The node acts as its own parent, so anchor expressions of a
        top-level node refer to itself.
        """
        ctx = self._context()
        logger.debug(f"Transpiling {node.get('type')} '{node.get('name', '')}' ({node.get('id', '')})")
        try:
            lines = self.parse(ctx, node, node, 1)
        except TranspileError as e:
            return TranspileResult(error=str(e))

        data = "\n".join(lines) + "\n" if lines else ""
        return TranspileResult(
            element=Element(
                name=valid_file_name(node.get("name") or node.get("id", "")),
                id=node.get("id", ""),
                type=node.get("type", ""),
                data=data.encode("utf-8"),
                component_ids=sorted(ctx.component_ids),
            )
        )

    def _context(self) -> EmitContext:
        return EmitContext(
            flags=self.flags,
            image_provider=self.image_provider,
            resolve_font=self.resolve_font,
            components=self.components,
        )

    # =========================================================================
    # Dispatch
    # =========================================================================

    def is_rendering(self, node: Node) -> bool:
        """Whether a node is flattened into a pre-rendered image."""
        if node.get("isRendering"):
            return True
        kind = classify(node)
        if kind == ItemType.VECTOR and (self.flags & ParserFlags.PRERENDER_SHAPES or is_gradient(node)):
            return True
        if kind == ItemType.TEXT and is_gradient(node):
            return True
        if node.get("type") == NodeType.FRAME.value and self.flags & ParserFlags.PRERENDER_FRAMES:
            return True
        if node.get("type") == NodeType.GROUP.value and self.flags & ParserFlags.PRERENDER_GROUPS:
            return True
        if kind == ItemType.COMPONENT and self.flags & ParserFlags.PRERENDER_COMPONENTS:
            return True
        if kind == ItemType.INSTANCE and self.flags & ParserFlags.PRERENDER_INSTANCES:
            return True
        return False

    def parse(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        """Emit one node (and its subtree) at a property depth.

        Raises:
            TranspileError: On unsupported types or unresolved references.
        """
        kind = node_type(node)
        if self.is_rendering(node):
            return self.parse_rendered(ctx, node, parent, depth)

        match kind:
            case (
                NodeType.RECTANGLE
                | NodeType.ELLIPSE
                | NodeType.VECTOR
                | NodeType.LINE
                | NodeType.REGULAR_POLYGON
                | NodeType.STAR
            ):
                return parse_vector(ctx, node, parent, depth)
            case NodeType.TEXT:
                return self.parse_text(ctx, node, parent, depth)
            case NodeType.FRAME | NodeType.GROUP:
                return self.parse_frame(ctx, node, parent, depth)
            case NodeType.COMPONENT:
                return self.parse_component(ctx, node, parent, depth)
            case NodeType.BOOLEAN_OPERATION:
                if not ctx.has(ParserFlags.BREAK_BOOLEANS):
                    return parse_vector(ctx, node, parent, depth)
                return compose_boolean(ctx, _Bound(self, ctx), node, parent, depth)
            case NodeType.INSTANCE:
                return self.parse_instance(ctx, node, parent, depth)
            case NodeType.SLICE:
                logger.debug(f"Skipping slice {node.get('id', '')}")
                return []
            case NodeType.NONE:
                return self.plain_item(ctx, node, parent, depth)

    # =========================================================================
    # Node kinds
    # =========================================================================

    def parse_rendered(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        """Sized container holding the node's pre-rendered image."""
        logger.debug(f"Pre-rendering {node.get('id', '')}")
        pad = tabs(depth)
        parent_box = parent.get("absoluteBoundingBox", {})
        box = node.get("absoluteBoundingBox", {})
        width, height = subtree_size(node)
        x = float(box.get("x", 0.0)) - float(parent_box.get("x", 0.0))
        y = float(box.get("y", 0.0)) - float(parent_box.get("y", 0.0))

        lines = make_component_instance("Item", node, depth)
        lines += [
            f"{pad}x: {num(x)}",
            f"{pad}y: {num(y)}",
            f"{pad}width:{num(width)}",
            f"{pad}height:{num(height)}",
        ]
        if not is_invisible(node):
            pad1 = tabs(depth + 1)
            lines += [
                f"{pad}Image {{",
                f"{pad1}id: i_{qml_id(node.get('id', ''))}",
                f"{pad1}anchors.centerIn: parent",
                f"{pad1}mipmap: true",
                f"{pad1}fillMode: Image.PreserveAspectFit",
                *make_image_source(ctx, node.get("id", ""), True, depth + 1, PLACEHOLDER),
                f"{pad}}}",
            ]
        lines.append(f"{tabs(depth - 1)}}}")
        return lines

    def parse_text(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        pad = tabs(depth)
        return [
            *make_item("Text", node, depth),
            *make_vector(ctx, node, parent, depth),
            f"{pad}wrapMode: TextEdit.WordWrap",
            f"{pad}text:{quote(node.get('characters', ''))}",
            *make_text_style(ctx, node.get("style", {}), depth),
            f"{tabs(depth - 1)}}}",
        ]

    def _frame_header(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        pad = tabs(depth)
        lines = make_item("Rectangle", node, depth)
        lines += make_vector(ctx, node, parent, depth)
        if "cornerRadius" in node:
            lines.append(f"{pad}radius:{num(node['cornerRadius'])}")
        lines.append(f"{pad}clip: {'true' if node.get('clipsContent') else 'false'}")
        return lines

    def parse_frame(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        """Frames and groups: a clipped or unclipped Rectangle with children."""
        return [
            *self._frame_header(ctx, node, parent, depth),
            *self.parse_children(ctx, node, depth),
            f"{tabs(depth - 1)}}}",
        ]

    def plain_item(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        fill = node.get("fills")
        lines = make_item("Rectangle", node, depth)
        if isinstance(fill, list) and fill:
            lines += make_fill(ctx, fill[0], depth)
        lines += make_extents(ctx, node, parent, depth)
        lines += self.parse_children(ctx, node, depth)
        lines.append(f"{tabs(depth - 1)}}}")
        return lines

    def parse_component(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        """A component definition, or a usage of it outside definition mode.

        In definition mode every child becomes a ``delegate_<id>`` Component
        property, instantiated on completion. Its transform, position and
        size are exposed as properties that instances bind to.
        """
        if not ctx.has(ParserFlags.PARSE_COMPONENT):
            return self.parse_instance(ctx, node, parent, depth)

        pad = tabs(depth)
        pad1 = tabs(depth + 1)
        lines = self._frame_header(ctx, node, parent, depth)
        children = self.parse_children_items(ctx, node, depth)

        nan_matrix = "Qt.matrix4x4(" + ", ".join(["NaN"] * 16) + ")"
        for key, block in children.items():
            name = delegate_name(key)
            handler = name[0].upper() + name[1:]
            lines += bind_block(f"property Component {name}: ", block, depth)
            lines.append(f"{pad}property Item i_{name}")
            lines.append(f"{pad}property matrix4x4 {name}_transform: {nan_matrix}")
            lines.append(
                f"{pad}on{handler}_transformChanged: "
                f"{{if(i_{name} && i_{name}.transform != {name}_transform) i_{name}.transform = {name}_transform;}}"
            )
            for prop in DELEGATE_PROPERTIES:
                lines.append(f"{pad}property real {name}_{prop}: NaN")
                lines.append(
                    f"{pad}on{handler}_{prop}Changed: "
                    f"{{if(i_{name} && i_{name}.{prop} != {name}_{prop}) i_{name}.{prop} = {name}_{prop};}}"
                )

        lines.append(f"{pad}Component.onCompleted: {{")
        for key in children.keys():
            name = delegate_name(key)
            lines.append(f"{pad1}const o_{name} = {{}}")
            lines.append(f"{pad1}if(!isNaN({name}_transform.m11)) o_{name}['transform'] = {name}_transform;")
            for prop in DELEGATE_PROPERTIES:
                lines.append(f"{pad1}if(!isNaN({name}_{prop})) o_{name}['{prop}'] = {name}_{prop};")
            lines.append(f"{pad1}i_{name} = {name}.createObject(this, o_{name})")
            for prop in DELEGATE_PROPERTIES:
                lines.append(f"{pad1}{name}_{prop} = Qt.binding(()=>i_{name}.{prop})")
        lines.append(f"{pad}}}")
        lines.append(f"{tabs(depth - 1)}}}")
        return lines

    def parse_instance(self, ctx: EmitContext, node: Node, parent: Node, depth: int) -> list[str]:
        """Usage of a registered component type with the instance's overrides.

        Raises:
            TranspileError: If the component is not in the catalogue.
        """
        is_instance = classify(node) == ItemType.INSTANCE
        component_id = node.get("componentId" if is_instance else "id", "")
        ctx.component_ids.add(component_id)
        if component_id not in ctx.components:
            raise TranspileError(
                f"Unexpected component dependency from {node.get('id', '')} to {component_id}"
            )
        component = ctx.components[component_id]

        if not is_instance:
            lines = make_component_instance(component.name, node, depth)
        else:
            overrides = delta(node, component.node, {"children"})
            # paints inherited from the component must not turn transparent
            if "fills" in node and "fills" not in overrides:
                overrides["fills"] = ""
            if "strokes" in node and "strokes" not in overrides:
                overrides["strokes"] = ""
            lines = make_item(component.name, overrides, depth)
            lines += make_vector(ctx, overrides, parent, depth)
            lines += self.make_instance_children(ctx, node, component.node, depth)
        lines.append(f"{tabs(depth - 1)}}}")
        return lines

    def make_instance_children(self, ctx: EmitContext, node: Node, base: Node, depth: int) -> list[str]:
        """Overrides of an instance's children against the component's.

        Children are matched on the last ``;`` segment of the instance
        child id. When the child lists cannot be matched one to one every
        instance child is emitted as is.
        """
        children = self.parse_children_items(ctx, node, depth)
        base_children = base.get("children", [])
        by_id = {child.get("id", ""): child for child in node.get("children", [])}
        matches = {key.split(";")[-1]: key for key in children.keys()}

        if len(base_children) != len(children) or any(
            child.get("id", "") not in matches for child in base_children
        ):
            return [line for block in children.values() for line in block]

        pad = tabs(depth)
        lines: list[str] = []
        for base_child in base_children:
            base_id = base_child.get("id", "")
            key = matches[base_id]
            child = by_id[key]

            def _children_changed(old, new, child=child):
                if classify(child) == ItemType.BOOLEAN and not ctx.has(ParserFlags.BREAK_BOOLEANS):
                    return None
                return None if old == new else new

            changes = delta(
                child,
                base_child,
                {"absoluteBoundingBox", "name", "id"},
                {"children": _children_changed},
            )
            if not changes:
                continue

            name = delegate_name(base_id)
            if is_minimal_override(changes):
                if "relativeTransform" in changes:
                    matrix = transform_matrix(child)
                    if matrix is not None:
                        lines.append(f"{pad}{name}_transform: {matrix}")
                    x, y = position(child)
                    lines.append(f"{pad}{name}_x: {int(x)}")
                    lines.append(f"{pad}{name}_y: {int(y)}")
                if "size" in changes:
                    size = changes["size"]
                    lines.append(f"{pad}{name}_width: {int(size.get('x', 0.0))}")
                    lines.append(f"{pad}{name}_height: {int(size.get('y', 0.0))}")
                continue
            lines += bind_block(f"{name}: ", children[key], depth)
        return lines

    # =========================================================================
    # Children
    # =========================================================================

    def parse_children(self, ctx: EmitContext, node: Node, depth: int) -> list[str]:
        """Emitted children of a node, concatenated in order."""
        items = self.parse_children_items(ctx, node, depth)
        return [line for block in items.values() for line in block]

    def parse_children_items(self, ctx: EmitContext, node: Node, depth: int) -> OrderedMap[str, list[str]]:
        """Emit each child of a node, keyed by child id in sibling order.

        The first child flagged ``isMask`` clips every sibling after it: the
        mask and the following siblings are wrapped into a single
        ``maskedItem`` OpacityMask group. Siblings before the mask are not
        affected.
        """
        items: OrderedMap[str, list[str]] = OrderedMap()
        mask: Node | None = None
        masked: list[str] = []

        for child in node.get("children", []):
            if mask is None and child.get("isMask"):
                mask = child
                continue
            if mask is None:
                items.insert(child.get("id", ""), self.parse(ctx, child, node, depth + 1))
            else:
                masked += self.parse(ctx, child, node, depth + 3)

        if mask is not None:
            items.insert(MASKED_ITEM, self._mask_group(ctx, mask, node, masked, depth))
        return items

    def _mask_group(self, ctx: EmitContext, mask: Node, parent: Node, masked: list[str], depth: int) -> list[str]:
        mask_id = qml_id(mask.get("id", ""))
        mask_source_id = f"mask_{mask_id}"
        source_id = f"source_{mask_id}"
        pad = tabs(depth)
        pad1 = tabs(depth + 1)
        pad2 = tabs(depth + 2)
        return [
            f"{pad}Item {{",
            f"{pad1}anchors.fill:parent",
            f"{pad1}OpacityMask {{",
            f"{pad2}anchors.fill:parent",
            f"{pad2}source: {source_id}",
            f"{pad2}maskSource: {mask_source_id}",
            f"{pad1}}}",
            f"{pad1}Item {{",
            f"{pad2}id: {mask_source_id}",
            f"{pad2}anchors.fill:parent",
            *self.parse(ctx, mask, parent, depth + 3),
            f"{pad2}visible:false",
            f"{pad1}}}",
            f"{pad1}Item {{",
            f"{pad2}id: {source_id}",
            f"{pad2}anchors.fill:parent",
            f"{pad2}visible:false",
            *masked,
            f"{pad1}}}",
            f"{pad}}}",
        ]


class _Bound:
    """A transpiler paired with the context of the current run."""

    def __init__(self, transpiler: Transpiler, ctx: EmitContext):
        self._transpiler = transpiler
        self._ctx = ctx

    def parse(self, node: Node, parent: Node, depth: int) -> list[str]:
        return self._transpiler.parse(self._ctx, node, parent, depth)

    def parse_children(self, node: Node, depth: int) -> list[str]:
        return self._transpiler.parse_children(self._ctx, node, depth)


def bind_block(prefix: str, block: list[str], depth: int) -> list[str]:
    """Attach an emitted block to a property assignment.

    Leading comment lines stay above the assignment; the block's opening
    line follows ``prefix`` on the same line.
    """
    index = 0
    while index < len(block) and block[index].lstrip().startswith("//"):
        index += 1
    if index == len(block):
        return list(block)
    return [
        *block[:index],
        f"{tabs(depth)}{prefix}{block[index].lstrip()}",
        *block[index + 1 :],
    ]


# =============================================================================
# Public entry points
# =============================================================================


def element(
    node: Node,
    flags: ParserFlags,
    report: IssueReporter,
    image_provider: ImageProvider,
    resolve_font: FontResolver,
    components: ComponentCatalogue,
) -> Element:
    """Transpile a top-level node.

    Failures are reported as fatal issues and yield an empty ``Element()``.
    """
    result = Transpiler(flags, image_provider, resolve_font, components).transpile(node)
    if not result.ok:
        report_issue(report, result.error or "Unknown failure")
        return Element()
    return result.element


def component(
    node: Node,
    flags: ParserFlags,
    report: IssueReporter,
    image_provider: ImageProvider,
    resolve_font: FontResolver,
    components: ComponentCatalogue,
) -> Element:
    """Transpile a component body as a reusable definition.

    Same as ``element`` with ``PARSE_COMPONENT`` forced on.
    """
    return element(
        node,
        flags | ParserFlags.PARSE_COMPONENT,
        report,
        image_provider,
        resolve_font,
        components,
    )


__all__ = [
    "MASKED_ITEM",
    "TranspileResult",
    "Transpiler",
    "bind_block",
    "component",
    "element",
]
