"""Identifier and literal formatting for generated QML."""

from figmaqml.naming.lib import (
    FIGMA_SUFFIX,
    argb_color,
    delegate_name,
    qml_id,
    unique_name,
    valid_file_name,
)

__all__ = [
    "FIGMA_SUFFIX",
    "argb_color",
    "delegate_name",
    "qml_id",
    "unique_name",
    "valid_file_name",
]
