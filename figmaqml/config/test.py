"""Tests for configuration management."""

from pathlib import Path

import pytest

from figmaqml.transpiler.types import ParserFlags

from .lib import (
    EnvConfig,
    EnvVar,
    get_default_flags,
    get_environment,
    get_environment_info,
    get_figma_api_url,
    get_output_dir,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("FIGMAQML_QT_VERSION", raising=False)
        assert get_environment(EnvVar.FIGMAQML_QT_VERSION) == 6

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("FIGMAQML_QT_VERSION", "6")
        assert get_environment(EnvVar.FIGMAQML_QT_VERSION, override=5) == 5

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("FIGMAQML_QT_VERSION", "5")
        result = get_environment(EnvVar.FIGMAQML_QT_VERSION)
        assert result == 5
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        """Float type conversion from string."""
        monkeypatch.setenv("FIGMA_TIMEOUT", "2.5")
        result = get_environment(EnvVar.FIGMA_TIMEOUT)
        assert result == 2.5
        assert isinstance(result, float)

    @pytest.mark.unit
    def test_invalid_float_returns_default(self, monkeypatch):
        """Invalid numeric value returns default."""
        monkeypatch.setenv("FIGMA_TIMEOUT", "soon")
        assert get_environment(EnvVar.FIGMA_TIMEOUT) == 30.0

    @pytest.mark.unit
    def test_path_type_conversion(self, monkeypatch):
        """Path variables are converted to Path."""
        monkeypatch.setenv("FIGMAQML_OUTPUT_DIR", "/tmp/generated")
        assert get_environment(EnvVar.FIGMAQML_OUTPUT_DIR) == Path("/tmp/generated")

    @pytest.mark.unit
    def test_none_default_for_token(self, monkeypatch):
        """The API token defaults to None when not set."""
        monkeypatch.delenv("FIGMA_TOKEN", raising=False)
        assert get_environment(EnvVar.FIGMA_TOKEN) is None


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.FIGMA_TIMEOUT)
        assert isinstance(info, EnvConfig)
        assert info.name == "FIGMA_TIMEOUT"
        assert info.var_type is float
        assert info.category == "api"

    @pytest.mark.unit
    def test_description_present(self):
        """Description field is populated."""
        info = get_environment_info(EnvVar.FIGMA_TOKEN)
        assert "Figma" in info.description


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_list_all(self):
        """All members are listed without a category."""
        assert list_environment_variables() == list(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Category filter keeps only matching members."""
        output_vars = list_environment_variables("output")
        assert set(output_vars) == {
            EnvVar.FIGMAQML_OUTPUT_DIR,
            EnvVar.FIGMAQML_QT_VERSION,
        }


class TestConvenienceFunctions:
    """Tests for derived configuration helpers."""

    @pytest.mark.unit
    def test_default_flags_empty(self, monkeypatch):
        """No configured flags gives an empty flag set."""
        monkeypatch.delenv("FIGMAQML_FLAGS", raising=False)
        assert get_default_flags() == ParserFlags.NONE

    @pytest.mark.unit
    def test_default_flags_from_env(self, monkeypatch):
        """Flag names from the environment are combined."""
        monkeypatch.setenv("FIGMAQML_FLAGS", "prerender-shapes, break_booleans")
        flags = get_default_flags()
        assert flags == ParserFlags.PRERENDER_SHAPES | ParserFlags.BREAK_BOOLEANS

    @pytest.mark.unit
    def test_default_flags_unknown_name(self, monkeypatch):
        """Unknown flag names are rejected."""
        monkeypatch.setenv("FIGMAQML_FLAGS", "prerender-everything")
        with pytest.raises(ValueError, match="Unknown parser flag"):
            get_default_flags()

    @pytest.mark.unit
    def test_api_url_strips_slash(self, monkeypatch):
        """Trailing slashes are removed from the API URL."""
        monkeypatch.setenv("FIGMA_API_URL", "http://localhost:9000/v1/")
        assert get_figma_api_url() == "http://localhost:9000/v1"

    @pytest.mark.unit
    def test_output_dir_override(self):
        """Explicit output directory wins."""
        assert get_output_dir("out") == Path("out")


# =============================================================================
# Tests for the token-based collection skip
# =============================================================================


class _Item:
    """Collected test stand-in: keywords include directory names, like pytest's."""

    def __init__(self, markers, keywords):
        self.markers = list(markers)
        self.keywords = set(keywords)

    def get_closest_marker(self, name):
        return next((m for m in self.markers if m.name == name), None)

    def add_marker(self, marker):
        self.markers.append(marker.mark)


class TestTokenSkip:
    """Tests for skipping live API tests without FIGMA_TOKEN."""

    @pytest.mark.unit
    def test_only_marked_tests_are_skipped(self, monkeypatch):
        """Tests that merely live in the figma package still run."""
        from conftest import pytest_collection_modifyitems

        monkeypatch.delenv("FIGMA_TOKEN", raising=False)
        live = _Item([pytest.mark.figma.mark], {"test_live_file", "figma"})
        mocked = _Item([pytest.mark.unit.mark], {"test_get_file", "figma"})

        pytest_collection_modifyitems(None, [live, mocked])

        assert live.get_closest_marker("skip") is not None
        assert mocked.get_closest_marker("skip") is None
