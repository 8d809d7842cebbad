"""Unit tests for identifier sanitizing."""

import pytest

from figmaqml.naming import (
    FIGMA_SUFFIX,
    argb_color,
    delegate_name,
    qml_id,
    unique_name,
    valid_file_name,
)


class TestValidFileName:
    """Tests for valid_file_name."""

    @pytest.mark.unit
    def test_simple_name(self):
        """Spaces become underscores and the suffix is appended."""
        assert valid_file_name("my button") == "My_button_figma"

    @pytest.mark.unit
    def test_leading_digit(self):
        """Names not starting with a letter get a C prefix."""
        assert valid_file_name("1st") == "C1st_figma"

    @pytest.mark.unit
    def test_special_characters(self):
        """Path and punctuation characters are replaced."""
        result = valid_file_name('Icon/Arrow: "left"?')
        assert result == "Icon_Arrow___left___figma"

    @pytest.mark.unit
    def test_non_ascii(self):
        """Non-ASCII letters are replaced and the result starts with a letter."""
        result = valid_file_name("ärger")
        assert result == "C_rger_figma"

    @pytest.mark.unit
    def test_empty(self):
        """Empty names stay empty."""
        assert valid_file_name("") == ""

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["Button", "button 2", "#header", "Ünïcode", "a/b\\c"])
    def test_idempotent_and_starts_with_letter(self, raw):
        """Sanitizing twice is stable and always yields a leading letter."""
        once = valid_file_name(raw)
        assert valid_file_name(once) == once
        assert once[0].isalpha() and once[0].isupper()
        assert once.endswith(FIGMA_SUFFIX)


class TestUniqueName:
    """Tests for unique_name."""

    @pytest.mark.unit
    def test_free_name(self):
        """A free name is used as-is."""
        assert unique_name("Card", []) == "Card_figma"

    @pytest.mark.unit
    def test_collision_gets_counter(self):
        """Colliding names get the first free numeric suffix."""
        assert unique_name("Card", ["Card_figma"]) == "Card_1_figma"
        assert unique_name("Card", ["Card_figma", "Card_1_figma"]) == "Card_2_figma"


class TestIds:
    """Tests for qml_id and delegate_name."""

    @pytest.mark.unit
    def test_qml_id(self):
        """Node ids become lower-case QML ids."""
        assert qml_id("12:34") == "figma_12_34"
        assert qml_id("I1:2;3:4") == "figma_i1_2_3_4"

    @pytest.mark.unit
    def test_delegate_name(self):
        """Delegate names keep case and replace separators."""
        assert delegate_name("12:34") == "delegate_12_34"


class TestArgbColor:
    """Tests for argb_color."""

    @pytest.mark.unit
    def test_opaque_red(self):
        """Alpha comes first in the literal."""
        assert argb_color(1, 0, 0, 1) == "#ffff0000"

    @pytest.mark.unit
    def test_rounds_half_up(self):
        """Channels are rounded half-up (0.5 * 255 = 127.5 -> 128)."""
        assert argb_color(0.5, 0.5, 0.5, 0.5) == "#80808080"

    @pytest.mark.unit
    def test_clamped(self):
        """Out-of-range channels are clamped."""
        assert argb_color(2.0, -1.0, 0.0, 1.0) == "#ffff0000"
