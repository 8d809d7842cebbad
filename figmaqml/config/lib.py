"""Centralized environment configuration management for figmaqml.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from figmaqml.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> timeout = get_environment(EnvVar.FIGMA_TIMEOUT)  # Returns float
    >>> token = get_environment(EnvVar.FIGMA_TOKEN)  # Returns str | None
    >>>
    >>> # Override at runtime
    >>> timeout = get_environment(EnvVar.FIGMA_TIMEOUT, override=5.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

from figmaqml.transpiler.types import ParserFlags

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "FIGMA_TOKEN").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by figmaqml.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - api: Figma REST API access
        - transpile: Default transpiler options
        - output: Generated file layout
    """

    # -------------------------------------------------------------------------
    # Figma API
    # -------------------------------------------------------------------------
    FIGMA_TOKEN = EnvConfig(
        name="FIGMA_TOKEN",
        default=None,
        var_type=str,
        description="Figma personal access token",
        category="api",
    )
    FIGMA_API_URL = EnvConfig(
        name="FIGMA_API_URL",
        default="https://api.figma.com/v1",
        var_type=str,
        description="Figma REST API base URL",
        category="api",
    )
    FIGMA_TIMEOUT = EnvConfig(
        name="FIGMA_TIMEOUT",
        default=30.0,
        var_type=float,
        description="Figma request timeout in seconds",
        category="api",
    )
    FIGMAQML_IMAGE_SCALE = EnvConfig(
        name="FIGMAQML_IMAGE_SCALE",
        default=1.0,
        var_type=float,
        description="Scale factor for pre-rendered node images",
        category="api",
    )

    # -------------------------------------------------------------------------
    # Transpiler
    # -------------------------------------------------------------------------
    FIGMAQML_FLAGS = EnvConfig(
        name="FIGMAQML_FLAGS",
        default="",
        var_type=str,
        description="Comma separated parser flags (e.g. prerender-shapes,break-booleans)",
        category="transpile",
    )

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------
    FIGMAQML_OUTPUT_DIR = EnvConfig(
        name="FIGMAQML_OUTPUT_DIR",
        default=Path("qml"),
        var_type=Path,
        description="Directory generated .qml files are written to",
        category="output",
    )
    FIGMAQML_QT_VERSION = EnvConfig(
        name="FIGMAQML_QT_VERSION",
        default=6,
        var_type=int,
        description="Qt major version the import header targets (5 or 6)",
        category="output",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type in (int, float):
        try:
            return var_type(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, float, bool, or Path).

    Example:
        >>> get_environment(EnvVar.FIGMA_TIMEOUT)
        30.0
        >>> get_environment(EnvVar.FIGMA_TIMEOUT, override=5.0)
        5.0
    """
    config: EnvConfig = env_var.value

    # Override takes highest priority
    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_default_flags(override: str | None = None) -> ParserFlags:
    """Get the default parser flags.

    Resolution: override > FIGMAQML_FLAGS > no flags

    Raises:
        ValueError: If the configured string names an unknown flag.
    """
    return ParserFlags.from_names(get_environment(EnvVar.FIGMAQML_FLAGS, override))


def get_figma_api_url(override: str | None = None) -> str:
    """Get the Figma REST API base URL without a trailing slash."""
    return get_environment(EnvVar.FIGMA_API_URL, override).rstrip("/")


def get_output_dir(override: Path | str | None = None) -> Path:
    """Get the directory generated files are written to."""
    if override is not None:
        return Path(override)
    return get_environment(EnvVar.FIGMAQML_OUTPUT_DIR)


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (api, transpile, output).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_default_flags",
    "get_figma_api_url",
    "get_output_dir",
    # Introspection
    "list_environment_variables",
]
