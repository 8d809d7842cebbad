"""figmaqml: Figma design documents to QML."""

from figmaqml.core import TranspileError
from figmaqml.document import Canvas, Component, Element, canvases, components
from figmaqml.transpiler import ParserFlags, Transpiler, TranspileResult, component, element
from figmaqml.validation import ValidationError, is_valid, validate_document

__all__ = [
    # Document
    "Canvas",
    "Component",
    "Element",
    "canvases",
    "components",
    # Transpiler
    "ParserFlags",
    "TranspileError",
    "TranspileResult",
    "Transpiler",
    "component",
    "element",
    # Validation
    "validate_document",
    "is_valid",
    "ValidationError",
]
