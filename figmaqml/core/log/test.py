"""Tests for core logging module."""

import logging
from io import StringIO

import pytest

from .lib import ROOT_LOGGER, get_logger, setup_logging


class TestLogging:
    """Test core logging API."""

    @pytest.mark.unit
    def test_module_logger_keeps_its_name(self) -> None:
        logger = get_logger("figmaqml.transpiler.lib")
        assert logger.name == "figmaqml.transpiler.lib"

    @pytest.mark.unit
    def test_default_is_root(self) -> None:
        assert get_logger().name == ROOT_LOGGER
        assert get_logger(ROOT_LOGGER) is get_logger()

    @pytest.mark.unit
    def test_short_name_joins_hierarchy(self) -> None:
        """The CLI logger lives under figmaqml like the package loggers."""
        assert get_logger("cli").name == "figmaqml.cli"
        assert get_logger("figmaqmlx").name == "figmaqml.figmaqmlx"

    @pytest.mark.unit
    def test_package_level_applies_to_modules(self) -> None:
        """Quieting one sub-package quiets every module logger in it."""
        package = get_logger("figmaqml.transpiler")
        previous = package.level
        package.setLevel(logging.ERROR)
        try:
            assert get_logger("figmaqml.transpiler.booleans").getEffectiveLevel() == logging.ERROR
            assert not get_logger("figmaqml.transpiler.lib").isEnabledFor(logging.WARNING)
        finally:
            package.setLevel(previous)

    @pytest.mark.unit
    def test_records_propagate_to_root(self) -> None:
        """Messages from module loggers reach handlers on the figmaqml logger."""
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(name)s:%(message)s"))
        root = get_logger()
        previous = root.level
        root.setLevel(logging.DEBUG)
        root.addHandler(handler)
        try:
            get_logger("figmaqml.document.lib").info("Registered 2 component(s)")
        finally:
            root.removeHandler(handler)
            root.setLevel(previous)

        assert stream.getvalue() == "figmaqml.document.lib:Registered 2 component(s)\n"

    @pytest.mark.unit
    def test_setup_logging(self) -> None:
        """Verify logging setup."""
        stream = StringIO()
        setup_logging(level=logging.DEBUG, stream=stream)
        logger = get_logger("test_setup")
        logger.debug("test message")

        # basicConfig is a no-op once the root logger has handlers, so only
        # the API contract is checked here.
        assert logger.level == logging.NOTSET
