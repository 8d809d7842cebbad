"""Node classification and transpiler option flags.

The design tool tags every node with a type string. ``NodeType`` is the
closed vocabulary the transpiler accepts; ``ItemType`` is the coarser
structural category that drives pre-render decisions and instance diffing.
"""

from enum import Enum, IntFlag

from figmaqml.core.error import TranspileError


class NodeType(str, Enum):
    """Raw node type strings accepted by the transpiler."""

    RECTANGLE = "RECTANGLE"
    ELLIPSE = "ELLIPSE"
    VECTOR = "VECTOR"
    LINE = "LINE"
    REGULAR_POLYGON = "REGULAR_POLYGON"
    STAR = "STAR"
    TEXT = "TEXT"
    GROUP = "GROUP"
    FRAME = "FRAME"
    COMPONENT = "COMPONENT"
    BOOLEAN_OPERATION = "BOOLEAN_OPERATION"
    INSTANCE = "INSTANCE"
    SLICE = "SLICE"
    NONE = "NONE"


class ItemType(str, Enum):
    """Structural category of a node."""

    VECTOR = "vector"
    TEXT = "text"
    FRAME = "frame"
    COMPONENT = "component"
    BOOLEAN = "boolean"
    INSTANCE = "instance"
    NONE = "none"


ITEM_TYPES: dict[NodeType, ItemType] = {
    NodeType.RECTANGLE: ItemType.VECTOR,
    NodeType.ELLIPSE: ItemType.VECTOR,
    NodeType.VECTOR: ItemType.VECTOR,
    NodeType.LINE: ItemType.VECTOR,
    NodeType.REGULAR_POLYGON: ItemType.VECTOR,
    NodeType.STAR: ItemType.VECTOR,
    NodeType.TEXT: ItemType.TEXT,
    NodeType.GROUP: ItemType.FRAME,
    NodeType.FRAME: ItemType.FRAME,
    NodeType.COMPONENT: ItemType.COMPONENT,
    NodeType.BOOLEAN_OPERATION: ItemType.BOOLEAN,
    NodeType.INSTANCE: ItemType.INSTANCE,
    NodeType.SLICE: ItemType.NONE,
    NodeType.NONE: ItemType.NONE,
}


def node_type(node: dict) -> NodeType:
    """Resolve the raw type of a node.

    Raises:
        TranspileError: If the type string is not part of the vocabulary.
    """
    raw = node.get("type")
    try:
        return NodeType(raw)
    except ValueError:
        raise TranspileError(f'Non supported object type:"{raw}"') from None


def classify(node: dict) -> ItemType:
    """Map a node onto its structural category.

    Raises:
        TranspileError: If the type string is not part of the vocabulary.
    """
    return ITEM_TYPES[node_type(node)]


class StrokeType(Enum):
    """How a stroke width is written into a ShapePath."""

    NORMAL = "normal"
    DOUBLE = "double"
    ONE_PIX = "one_pix"


class ParserFlags(IntFlag):
    """Independently toggleable transpiler options.

    Bit values are stable so flag sets can be stored as plain integers.
    """

    NONE = 0
    PRERENDER_SHAPES = 2
    PRERENDER_GROUPS = 4
    PRERENDER_COMPONENTS = 8
    PRERENDER_FRAMES = 16
    PRERENDER_INSTANCES = 32
    PARSE_COMPONENT = 512
    BREAK_BOOLEANS = 1024
    ANTIALIZE_SHAPES = 2048

    @classmethod
    def from_names(cls, names: str | list[str]) -> "ParserFlags":
        """Build a flag set from names such as ``"prerender-shapes,break-booleans"``.

        Args:
            names: Comma separated string or list of names. Kebab-case,
                snake_case and upper case are accepted.

        Returns:
            ParserFlags: Combined flags (``NONE`` for an empty input).

        Raises:
            ValueError: If a name is not a known flag.
        """
        if isinstance(names, str):
            names = names.split(",")
        flags = cls.NONE
        for raw in names:
            name = raw.strip().replace("-", "_").upper()
            if not name:
                continue
            if name not in cls.__members__ or name == "NONE":
                raise ValueError(f"Unknown parser flag '{raw.strip()}'")
            flags |= cls[name]
        return flags

    @classmethod
    def names(cls) -> list[str]:
        """Kebab-case names of all flags, in bit order."""
        return [
            member.name.lower().replace("_", "-")
            for member in cls
            if member is not cls.NONE
        ]


__all__ = [
    "ITEM_TYPES",
    "ItemType",
    "NodeType",
    "ParserFlags",
    "StrokeType",
    "classify",
    "node_type",
]
