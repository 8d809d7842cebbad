"""Unit tests for instance deltas, the ordered map and node classification."""

import pytest

from figmaqml.core import TranspileError

from .delta import MINIMAL_OVERRIDE_KEYS, delta, is_minimal_override
from .ordered import OrderedMap
from .types import ItemType, NodeType, ParserFlags, classify, node_type

SAMPLES = [
    {},
    {"id": "1:1", "name": "Box", "size": {"x": 1, "y": 2}},
    {"children": [{"id": "a"}], "fills": [], "visible": False},
]


class TestDelta:
    """Tests for delta."""

    @pytest.mark.unit
    @pytest.mark.parametrize("node", SAMPLES)
    def test_identical_is_empty(self, node):
        """An object has no delta against itself."""
        assert delta(node, node) == {}

    @pytest.mark.unit
    def test_changed_and_new_keys(self):
        """Changed values and keys missing from the base are kept."""
        base = {"id": "1", "size": {"x": 1}, "opacity": 1}
        instance = {"id": "2", "size": {"x": 1}, "opacity": 0.5, "componentId": "c"}
        assert delta(instance, base) == {"id": "2", "opacity": 0.5, "componentId": "c"}

    @pytest.mark.unit
    def test_ignored_keys_never_appear(self):
        """Ignored keys are skipped even when they differ or are new."""
        base = {"id": "1", "size": 1}
        instance = {"id": "2", "size": 2, "extra": True, "name": "n"}
        result = delta(instance, base, {"id", "extra", "name"})
        assert result == {"size": 2}

    @pytest.mark.unit
    def test_name_is_forced(self):
        """A non-empty delta carries the name even when it is unchanged."""
        base = {"name": "Card", "size": 1}
        instance = {"name": "Card", "size": 2}
        assert delta(instance, base) == {"size": 2, "name": "Card"}

    @pytest.mark.unit
    def test_name_not_added_to_empty_delta(self):
        """An empty delta stays empty."""
        node = {"name": "Card"}
        assert delta(node, dict(node)) == {}

    @pytest.mark.unit
    def test_comparator(self):
        """Comparators decide inclusion and may replace the value."""
        compares = {
            "children": lambda old, new: None,
            "size": lambda old, new: "changed",
        }
        base = {"children": [1], "size": 1}
        instance = {"children": [2], "size": 1}
        assert delta(instance, base, (), compares) == {"size": "changed"}


class TestMinimalOverride:
    """Tests for is_minimal_override."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "keys",
        [{"size"}, {"relativeTransform"}, {"size", "relativeTransform"}],
    )
    def test_geometry_only(self, keys):
        """Deltas made of transform and size only are minimal."""
        assert is_minimal_override(dict.fromkeys(keys, 0))

    @pytest.mark.unit
    @pytest.mark.parametrize("changes", [{}, {"fills": []}, {"size": 1, "opacity": 1}])
    def test_other_changes(self, changes):
        """Empty deltas and deltas touching anything else are not."""
        assert not is_minimal_override(changes)

    @pytest.mark.unit
    def test_keys(self):
        assert MINIMAL_OVERRIDE_KEYS == {"relativeTransform", "size"}


class TestOrderedMap:
    """Tests for OrderedMap."""

    @pytest.mark.unit
    def test_insertion_order(self):
        """Keys come back in first-insertion order."""
        items = OrderedMap()
        for key in ("b", "a", "c"):
            items.insert(key, key.upper())
        assert items.keys() == ["b", "a", "c"]
        assert items.values() == ["B", "A", "C"]
        assert list(items) == ["b", "a", "c"]

    @pytest.mark.unit
    def test_reinsert_keeps_position(self):
        """Overwriting a key keeps its place."""
        items = OrderedMap()
        items.insert("a", 1)
        items.insert("b", 2)
        items.insert("a", 3)
        assert items.items() == [("a", 3), ("b", 2)]
        assert len(items) == 2
        assert "a" in items
        assert items["a"] == 3

    @pytest.mark.unit
    def test_clear(self):
        items = OrderedMap()
        items.insert("a", 1)
        items.clear()
        assert len(items) == 0
        assert items.keys() == []


class TestClassify:
    """Tests for node classification."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("RECTANGLE", ItemType.VECTOR),
            ("STAR", ItemType.VECTOR),
            ("LINE", ItemType.VECTOR),
            ("TEXT", ItemType.TEXT),
            ("GROUP", ItemType.FRAME),
            ("FRAME", ItemType.FRAME),
            ("COMPONENT", ItemType.COMPONENT),
            ("BOOLEAN_OPERATION", ItemType.BOOLEAN),
            ("INSTANCE", ItemType.INSTANCE),
            ("SLICE", ItemType.NONE),
            ("NONE", ItemType.NONE),
        ],
    )
    def test_categories(self, raw, expected):
        """Every known type maps to its category."""
        assert classify({"type": raw}) == expected

    @pytest.mark.unit
    def test_node_type(self):
        assert node_type({"type": "ELLIPSE"}) is NodeType.ELLIPSE

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["UNKNOWN_TYPE", "", None, "rectangle"])
    def test_unknown_type(self, raw):
        """Anything outside the vocabulary is rejected."""
        with pytest.raises(TranspileError, match="Non supported object type"):
            classify({"type": raw})


class TestParserFlags:
    """Tests for ParserFlags."""

    @pytest.mark.unit
    def test_bit_values(self):
        """Flag values are stable integers."""
        assert ParserFlags.PRERENDER_SHAPES == 2
        assert ParserFlags.PARSE_COMPONENT == 512
        assert ParserFlags.ANTIALIZE_SHAPES == 2048

    @pytest.mark.unit
    def test_from_names(self):
        """Kebab, snake and upper case names combine."""
        flags = ParserFlags.from_names("prerender-shapes, BREAK_BOOLEANS,antialize_shapes")
        assert flags == (
            ParserFlags.PRERENDER_SHAPES | ParserFlags.BREAK_BOOLEANS | ParserFlags.ANTIALIZE_SHAPES
        )

    @pytest.mark.unit
    def test_from_empty(self):
        assert ParserFlags.from_names("") == ParserFlags.NONE
        assert ParserFlags.from_names([]) == ParserFlags.NONE

    @pytest.mark.unit
    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown parser flag 'shiny'"):
            ParserFlags.from_names("shiny")

    @pytest.mark.unit
    def test_names(self):
        """Names are kebab-case and exclude NONE."""
        names = ParserFlags.names()
        assert names[0] == "prerender-shapes"
        assert "break-booleans" in names
        assert "none" not in names
        assert len(names) == 8
