"""Node-to-QML transpiler.

Example:
    >>> from figmaqml.transpiler import ParserFlags, element
    >>> result = element(node, ParserFlags.NONE, report, provide_image, resolve_font, catalogue)
"""

from .booleans import BOOLEAN_OPERATIONS, compose_boolean
from .delta import MINIMAL_OVERRIDE_KEYS, Comparator, delta, is_minimal_override
from .emitters import PLACEHOLDER, EmitContext, FontResolver, ImageProvider
from .lib import MASKED_ITEM, TranspileResult, Transpiler, bind_block, component, element
from .ordered import OrderedMap
from .strokes import has_borders, parse_vector
from .types import ITEM_TYPES, ItemType, NodeType, ParserFlags, StrokeType, classify, node_type

__all__ = [
    # Entry points
    "Transpiler",
    "TranspileResult",
    "component",
    "element",
    # Types
    "ITEM_TYPES",
    "ItemType",
    "NodeType",
    "ParserFlags",
    "StrokeType",
    "classify",
    "node_type",
    # Callbacks
    "EmitContext",
    "FontResolver",
    "ImageProvider",
    "PLACEHOLDER",
    # Building blocks
    "BOOLEAN_OPERATIONS",
    "Comparator",
    "MASKED_ITEM",
    "MINIMAL_OVERRIDE_KEYS",
    "OrderedMap",
    "bind_block",
    "compose_boolean",
    "delta",
    "has_borders",
    "is_minimal_override",
    "parse_vector",
]
