"""Centralized configuration management for figmaqml.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from figmaqml.config import EnvVar, get_environment
    >>>
    >>> token = get_environment(EnvVar.FIGMA_TOKEN)  # Returns str | None
    >>> flags = get_default_flags()  # ParserFlags parsed from FIGMAQML_FLAGS
    >>>
    >>> for var in list_environment_variables("api"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    api: Figma REST API token, URL, timeout and image scale
    transpile: Default parser flags
    output: Output directory and Qt version of the generated files
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Convenience functions
    get_default_flags,
    # Main interface
    get_environment,
    get_environment_info,
    get_figma_api_url,
    get_output_dir,
    # Introspection
    list_environment_variables,
)

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
