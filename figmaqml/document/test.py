"""Unit tests for canvases and the component catalogue."""

import json

import pytest
from pydantic import ValidationError

from figmaqml.core import TranspileError

from .lib import (
    Canvas,
    Element,
    build_catalogue,
    canvases,
    components,
    extract_canvases,
    fetch_remote_components,
    missing_component_ids,
    objects_by_type,
    parse_remote_component,
    project_name,
)


def _remote_payload(component_id, name="Remote"):
    return json.dumps(
        {
            "nodes": {
                component_id: {
                    "document": {"id": component_id, "name": name, "type": "COMPONENT", "children": []}
                }
            }
        }
    ).encode("utf-8")


@pytest.fixture
def remote_project(sample_project):
    """Sample project whose table also lists a library component."""
    sample_project["components"]["99:1"] = {"key": "lib", "name": "Card"}
    return sample_project


class TestCanvases:
    """Tests for canvas extraction."""

    @pytest.mark.unit
    def test_extract(self, sample_project):
        """Each page becomes a canvas with its top-level nodes."""
        pages = extract_canvases(sample_project)
        assert len(pages) == 1
        page = pages[0]
        assert page.name == "Page 1"
        assert page.id == "0:1"
        assert page.color == "#ffffffff"
        assert [node["id"] for node in page.elements] == ["10:1", "30:1"]

    @pytest.mark.unit
    def test_missing_background(self):
        """Pages without a background color are fully transparent."""
        project = {"document": {"children": [{"id": "0:1", "name": "Empty"}]}}
        page = extract_canvases(project)[0]
        assert page.color == "#00000000"
        assert page.elements == []

    @pytest.mark.unit
    def test_no_document_is_reported(self, issues):
        """A project without a document tree yields no canvases."""
        assert canvases({"name": "Broken"}, issues) == []
        assert issues.fatal == ["Transpile failure: Project has no document"]

    @pytest.mark.unit
    def test_project_name(self, sample_project):
        assert project_name(sample_project) == "Sample"
        assert project_name({}) == ""

    @pytest.mark.unit
    def test_models_are_frozen(self):
        canvas = Canvas(name="Page")
        with pytest.raises(ValidationError):
            canvas.name = "Other"


class TestObjectsByType:
    """Tests for objects_by_type."""

    @pytest.mark.unit
    def test_finds_nested(self, sample_project):
        found = objects_by_type(sample_project["document"], "INSTANCE")
        assert list(found) == ["20:1"]

    @pytest.mark.unit
    def test_does_not_descend_into_match(self, sample_project):
        """Nodes inside a match are not collected separately."""
        found = objects_by_type(sample_project["document"], "COMPONENT")
        assert list(found) == ["10:1"]
        nested = {"id": "1:1", "type": "FRAME", "children": [{"id": "1:2", "type": "FRAME", "children": []}]}
        assert list(objects_by_type(nested, "FRAME")) == ["1:1"]


class TestRemoteComponents:
    """Tests for component bodies resolved through the lookup callback."""

    @pytest.mark.unit
    def test_missing_ids(self, remote_project):
        """Only table entries without an inline body are missing."""
        assert missing_component_ids(remote_project) == ["99:1"]

    @pytest.mark.unit
    def test_parse_payload(self):
        body = parse_remote_component("99:1", _remote_payload("99:1"))
        assert body["id"] == "99:1"
        assert body["type"] == "COMPONENT"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "payload,message",
        [
            (b"", "Component not found 99:1"),
            (b"{not json", "Invalid component 99:1"),
            (b"[]", "Invalid component 99:1"),
            (b'{"nodes": {}}', "Unrecognized component 99:1"),
            (b'{"nodes": []}', "Invalid component 99:1"),
            (b'{"nodes": {"99:1": null}}', "Invalid component 99:1"),
            (b'{"nodes": {"99:1": {"document": "gone"}}}', "Invalid component 99:1"),
        ],
    )
    def test_bad_payloads(self, payload, message):
        with pytest.raises(TranspileError) as exc:
            parse_remote_component("99:1", payload)
        assert exc.value.message == message

    @pytest.mark.unit
    @pytest.mark.parametrize("max_workers", [1, 4])
    def test_fetch(self, max_workers):
        """Failures are returned per id next to resolved bodies."""
        lookup = {"1:1": _remote_payload("1:1"), "2:2": b""}
        result = fetch_remote_components(["1:1", "2:2"], lookup.__getitem__, max_workers)
        assert list(result) == ["1:1", "2:2"]
        assert result["1:1"]["id"] == "1:1"
        assert isinstance(result["2:2"], TranspileError)


class TestCatalogue:
    """Tests for catalogue construction."""

    @pytest.mark.unit
    def test_inline_component(self, sample_project):
        catalogue = build_catalogue(sample_project, {})
        card = catalogue["10:1"]
        assert card.name == "Card_figma"
        assert card.key == "abc"
        assert card.description == "A card"
        assert card.node["id"] == "10:1"

    @pytest.mark.unit
    def test_read_only(self, sample_project):
        catalogue = build_catalogue(sample_project, {})
        with pytest.raises(TypeError):
            catalogue["x"] = None

    @pytest.mark.unit
    def test_duplicate_names_are_suffixed(self, remote_project):
        """Colliding names get a counter in table order."""
        resolved = {"99:1": parse_remote_component("99:1", _remote_payload("99:1"))}
        catalogue = build_catalogue(remote_project, resolved)
        assert catalogue["10:1"].name == "Card_figma"
        assert catalogue["99:1"].name == "Card_1_figma"

    @pytest.mark.unit
    def test_unresolved_entries_skipped(self, remote_project):
        assert list(build_catalogue(remote_project, {})) == ["10:1"]

    @pytest.mark.unit
    def test_unnamed_component_uses_id(self, sample_project):
        sample_project["components"]["10:1"]["name"] = ""
        assert build_catalogue(sample_project, {})["10:1"].name == "C10_1_figma"

    @pytest.mark.unit
    def test_components_entry_point(self, remote_project, issues):
        """Resolved remote bodies are registered; only lookups run for missing ids."""
        asked = []

        def _lookup(component_id):
            asked.append(component_id)
            return _remote_payload(component_id)

        catalogue = components(remote_project, issues, _lookup)
        assert asked == ["99:1"]
        assert set(catalogue) == {"10:1", "99:1"}
        assert issues.issues == []

    @pytest.mark.unit
    def test_failed_lookup_is_reported(self, remote_project, issues):
        """A failed lookup is fatal for that component only."""
        catalogue = components(remote_project, issues, lambda component_id: b"")
        assert list(catalogue) == ["10:1"]
        assert issues.fatal == ["Transpile failure: Component not found 99:1"]

    @pytest.mark.unit
    def test_deleted_library_component_is_reported(self, remote_project, issues):
        """The nodes endpoint answers null for ids that no longer exist."""
        catalogue = components(remote_project, issues, lambda component_id: b'{"nodes": {"99:1": null}}')
        assert list(catalogue) == ["10:1"]
        assert issues.fatal == ["Transpile failure: Invalid component 99:1"]


class TestElement:
    """Tests for the Element model."""

    @pytest.mark.unit
    def test_default_is_empty(self):
        assert Element().is_empty
        assert not Element(id="1:2", data=b"Item {}\n").is_empty
