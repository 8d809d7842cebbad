"""Unit tests for QML file generation."""

import json

import pytest

from figmaqml.document import Canvas, Element, build_catalogue, extract_canvases
from figmaqml.output import (
    QmlFile,
    QmlGenerator,
    format_canvas_tree,
    load_project,
    render_qml_file,
    write_qml_files,
)
from figmaqml.transpiler import ParserFlags

BODY = Element(name="Box_figma", id="1:2", type="RECTANGLE", data=b"Item {\n}\n", component_ids=["10:1"])


class TestRenderQmlFile:
    """Tests for render_qml_file."""

    @pytest.mark.unit
    def test_qt6_imports(self):
        qml = render_qml_file(BODY, 6)
        assert qml.text.splitlines()[:4] == [
            "// Generated by figmaqml from node 1:2",
            "import QtQuick",
            "import QtQuick.Shapes",
            "import Qt5Compat.GraphicalEffects",
        ]
        assert qml.text.endswith("\nItem {\n}\n")
        assert qml.name == "Box_figma"
        assert qml.component_ids == ["10:1"]

    @pytest.mark.unit
    def test_qt5_imports(self):
        text = render_qml_file(BODY, 5).text
        assert "import QtQuick 2.15" in text
        assert "import QtGraphicalEffects 1.15" in text

    @pytest.mark.unit
    def test_default_version(self, monkeypatch):
        """The Qt version falls back to FIGMAQML_QT_VERSION."""
        monkeypatch.setenv("FIGMAQML_QT_VERSION", "5")
        assert "import QtQuick 2.15" in render_qml_file(BODY).text

    @pytest.mark.unit
    def test_name_override(self):
        assert render_qml_file(BODY, 6, "Card_1_figma").file_name == "Card_1_figma.qml"

    @pytest.mark.unit
    def test_unsupported_version(self):
        with pytest.raises(ValueError, match="Unsupported Qt version 4"):
            render_qml_file(BODY, 4)


class TestWrite:
    """Tests for writing files."""

    @pytest.mark.unit
    def test_save(self, tmp_path):
        path = QmlFile(name="Box_figma", text="Item {}\n").save(tmp_path / "out")
        assert path == tmp_path / "out" / "Box_figma.qml"
        assert path.read_text(encoding="utf-8") == "Item {}\n"

    @pytest.mark.unit
    def test_write_many(self, tmp_path):
        files = [QmlFile(name="A_figma", text="a"), QmlFile(name="B_figma", text="b")]
        paths = write_qml_files(files, tmp_path)
        assert [p.name for p in paths] == ["A_figma.qml", "B_figma.qml"]


class TestCanvasTree:
    """Tests for format_canvas_tree."""

    @pytest.mark.unit
    def test_format(self, sample_project):
        tree = format_canvas_tree(extract_canvases(sample_project))
        assert tree == "Page 1 [#ffffffff]\n├── Card [COMPONENT, 10:1]\n└── Screen [FRAME, 30:1]"

    @pytest.mark.unit
    def test_empty_canvas(self):
        assert format_canvas_tree([Canvas(name="Blank")]) == "Blank [#00000000]"


class TestQmlGenerator:
    """Tests for QmlGenerator."""

    @pytest.fixture
    def generator(self, sample_project, issues, images, resolve_font):
        catalogue = build_catalogue(sample_project, {})
        return QmlGenerator(ParserFlags.NONE, issues, images, resolve_font, catalogue, 6)

    @pytest.mark.unit
    def test_elements_then_components(self, generator, sample_project, issues):
        """Element names never shadow component type names."""
        files = generator.generate(extract_canvases(sample_project))
        assert [qml.name for qml in files] == ["Card_figma_1", "Screen_figma", "Card_figma"]
        assert issues.issues == []

    @pytest.mark.unit
    def test_component_is_a_definition(self, generator, sample_project):
        files = generator.generate(extract_canvases(sample_project))
        definition = files[-1].text
        assert "property Component delegate_10_2: " in definition
        assert "Component.onCompleted: {" in definition

    @pytest.mark.unit
    def test_instance_uses_component_type(self, generator, sample_project):
        screen = generator.generate(extract_canvases(sample_project))[1].text
        assert "Card_figma {" in screen

    @pytest.mark.unit
    def test_failed_element_is_skipped(self, generator, issues, make_rectangle):
        canvas = Canvas(elements=[make_rectangle(), {"id": "9:9", "name": "Odd", "type": "STICKY"}])
        files = generator.generate([canvas])
        assert [qml.name for qml in files] == ["Box_figma"]
        assert len(issues.fatal) == 1

    @pytest.mark.unit
    def test_unnamed_element_gets_a_file_name(self, generator, make_rectangle):
        files = generator.generate([Canvas(elements=[make_rectangle(name="")])])
        assert [qml.file_name for qml in files] == ["C1_2_figma.qml"]

    @pytest.mark.unit
    def test_unknown_component_ids_ignored(self, generator):
        assert generator.generate_components([["77:7"]]) == []


class TestLoadProject:
    """Tests for load_project."""

    @pytest.mark.unit
    def test_load(self, tmp_path, sample_project):
        path = tmp_path / "design.json"
        path.write_text(json.dumps(sample_project), encoding="utf-8")
        assert load_project(path)["name"] == "Sample"

    @pytest.mark.unit
    def test_not_a_document(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError, match="does not contain a design document"):
            load_project(path)
