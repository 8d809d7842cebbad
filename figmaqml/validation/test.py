"""Unit tests for validation module."""

import copy

import pytest

from figmaqml.validation import ValidationError, is_valid, validate_document


def _page(*nodes):
    return {"document": {"children": [{"id": "0:1", "type": "CANVAS", "children": list(nodes)}]}}


class TestValidateDocument:
    """Tests for validate_document function."""

    @pytest.mark.unit
    def test_valid_document(self, sample_project):
        """The sample document passes validation."""
        assert validate_document(sample_project) == []

    @pytest.mark.unit
    def test_duplicate_ids(self, make_rectangle):
        """Duplicate IDs are detected."""
        errors = validate_document(_page(make_rectangle("1:2"), make_rectangle("1:2")))
        assert len(errors) == 1
        assert errors[0].error_type == "duplicate_id"
        assert "1:2" in errors[0].message
        assert "2 times" in errors[0].message

    @pytest.mark.unit
    def test_nested_duplicates(self, make_rectangle):
        """Duplicates are found across nesting levels."""
        frame = {"id": "1:1", "type": "FRAME", "children": [make_rectangle("1:1")]}
        errors = validate_document(_page(frame))
        assert [e.node_id for e in errors] == ["1:1"]

    @pytest.mark.unit
    def test_unsupported_type(self, make_rectangle):
        """Types outside the vocabulary are reported with their raw value."""
        errors = validate_document(_page(make_rectangle(type="STICKY")))
        assert len(errors) == 1
        assert errors[0].error_type == "unsupported_type"
        assert "STICKY" in errors[0].message

    @pytest.mark.unit
    def test_unknown_component(self, sample_project):
        """Instances must refer to a known component."""
        project = copy.deepcopy(sample_project)
        project["components"] = {}
        project["document"]["children"][0]["children"].pop(0)
        errors = validate_document(project)
        assert [(e.node_id, e.error_type) for e in errors] == [("20:1", "unknown_component")]

    @pytest.mark.unit
    def test_explicit_catalogue(self, sample_project):
        """An explicit catalogue replaces the document's own component list."""
        errors = validate_document(sample_project, {"77:7": None})
        assert [e.error_type for e in errors] == ["unknown_component"]
        assert validate_document(sample_project, {"10:1": None}) == []

    @pytest.mark.unit
    def test_boolean_operands(self, make_rectangle):
        """Boolean nodes need at least two operands."""
        boolean = {"id": "5:1", "type": "BOOLEAN_OPERATION", "children": [make_rectangle("5:2")]}
        errors = validate_document(_page(boolean))
        assert len(errors) == 1
        assert errors[0].error_type == "boolean_operands"

    @pytest.mark.unit
    def test_empty_document(self):
        assert validate_document({}) == []


class TestIsValid:
    """Tests for is_valid function."""

    @pytest.mark.unit
    def test_valid(self, sample_project):
        assert is_valid(sample_project) is True

    @pytest.mark.unit
    def test_invalid(self, make_rectangle):
        assert is_valid(_page(make_rectangle(type="STICKY"))) is False


class TestValidationError:
    """Tests for ValidationError dataclass."""

    @pytest.mark.unit
    def test_fields(self):
        error = ValidationError(node_id="1:2", message="Bad", error_type="test")
        assert error.node_id == "1:2"
        assert error.message == "Bad"
        assert error.error_type == "test"
