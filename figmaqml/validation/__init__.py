"""Design document validation utilities."""

from figmaqml.validation.lib import ValidationError, is_valid, validate_document

__all__ = [
    "ValidationError",
    "validate_document",
    "is_valid",
]
