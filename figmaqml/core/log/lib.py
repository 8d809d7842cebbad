"""Core logging implementation for figmaqml."""

import logging
import sys
from typing import Optional

__all__ = ["ROOT_LOGGER", "get_logger", "setup_logging"]

ROOT_LOGGER = "figmaqml"


def setup_logging(level: int = logging.INFO, stream=sys.stderr) -> None:
    """Configure basic logging.

    Args:
        level: Logging level.
        stream: Output stream.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=stream,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger below the ``figmaqml`` root logger.

    Args:
        name: Module name (``figmaqml.transpiler.lib``) or a short name
            (``cli``), which is placed under ``figmaqml``.

    Returns:
        Logger instance. Setting the level of ``figmaqml`` or of one
        sub-package tunes every logger below it.
    """
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
