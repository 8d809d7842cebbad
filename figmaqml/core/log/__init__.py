"""Logging micro API for figmaqml."""

from .lib import ROOT_LOGGER, get_logger, setup_logging

__all__ = ["ROOT_LOGGER", "get_logger", "setup_logging"]
