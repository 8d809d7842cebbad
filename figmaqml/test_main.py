"""Unit tests for the command line interface."""

import json

import pytest

from figmaqml.__main__ import main


@pytest.fixture
def design_file(tmp_path, sample_project):
    path = tmp_path / "design.json"
    path.write_text(json.dumps(sample_project), encoding="utf-8")
    return path


class TestConvert:
    """Tests for the convert command."""

    @pytest.mark.unit
    def test_writes_files(self, design_file, tmp_path):
        """Every element and every used component gets a file."""
        out = tmp_path / "qml"
        assert main(["convert", "--json", str(design_file), "-o", str(out), "--qt-version", "6"]) == 0
        assert sorted(p.name for p in out.iterdir()) == [
            "Card_figma.qml",
            "Card_figma_1.qml",
            "Screen_figma.qml",
        ]
        assert (out / "Screen_figma.qml").read_text(encoding="utf-8").startswith("// Generated by figmaqml")

    @pytest.mark.unit
    def test_font_mapping(self, design_file, tmp_path):
        out = tmp_path / "qml"
        assert main(["convert", "-j", str(design_file), "-o", str(out), "--font", "Inter=Roboto"]) == 0
        assert 'font.family: "Roboto"' in (out / "Card_figma.qml").read_text(encoding="utf-8")

    @pytest.mark.unit
    def test_canvas_filter(self, design_file, tmp_path):
        assert main(["convert", "-j", str(design_file), "-o", str(tmp_path), "--canvas", "Nope"]) == 1

    @pytest.mark.unit
    def test_no_source(self, tmp_path):
        assert main(["convert", "-o", str(tmp_path)]) == 1

    @pytest.mark.unit
    def test_bad_flag(self, design_file, tmp_path):
        assert main(["convert", "-j", str(design_file), "-o", str(tmp_path), "--flags", "shiny"]) == 1

    @pytest.mark.unit
    def test_bad_font_mapping(self, design_file, tmp_path):
        assert main(["convert", "-j", str(design_file), "-o", str(tmp_path), "--font", "Inter"]) == 1

    @pytest.mark.unit
    def test_missing_component_fails(self, tmp_path, sample_project):
        """Without API access an external component cannot be resolved."""
        sample_project["components"]["99:1"] = {"key": "lib", "name": "Remote"}
        path = tmp_path / "design.json"
        path.write_text(json.dumps(sample_project), encoding="utf-8")
        assert main(["convert", "-j", str(path), "-o", str(tmp_path / "qml")]) == 1
        assert (tmp_path / "qml" / "Screen_figma.qml").exists()


class TestInfoCommands:
    """Tests for the read-only commands."""

    @pytest.mark.unit
    def test_validate(self, design_file, capsys):
        assert main(["validate", "--json", str(design_file)]) == 0
        assert "Document is valid" in capsys.readouterr().out

    @pytest.mark.unit
    def test_validate_reports_problems(self, tmp_path, capsys, make_rectangle):
        path = tmp_path / "bad.json"
        project = {"document": {"children": [{"id": "0:1", "children": [make_rectangle(type="STICKY")]}]}}
        path.write_text(json.dumps(project), encoding="utf-8")
        assert main(["validate", "--json", str(path)]) == 1
        assert "[unsupported_type]" in capsys.readouterr().out

    @pytest.mark.unit
    def test_canvases(self, design_file, capsys):
        assert main(["canvases", "--json", str(design_file)]) == 0
        assert "└── Screen [FRAME, 30:1]" in capsys.readouterr().out

    @pytest.mark.unit
    def test_flags(self, capsys):
        assert main(["flags"]) == 0
        assert "break-booleans" in capsys.readouterr().out.split()

    @pytest.mark.unit
    def test_env_hides_token(self, capsys, monkeypatch):
        monkeypatch.setenv("FIGMA_TOKEN", "figd_secret")
        assert main(["env", "api"]) == 0
        out = capsys.readouterr().out
        assert "FIGMA_API_URL" in out
        assert "figd_secret" not in out
        assert "FIGMAQML_OUTPUT_DIR" not in out

    @pytest.mark.unit
    def test_unknown_command(self):
        assert main(["transmogrify"]) == 1

    @pytest.mark.unit
    def test_help(self, capsys):
        assert main(["--help"]) == 0
        assert "convert" in capsys.readouterr().out
