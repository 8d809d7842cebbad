"""Unit tests for boolean shape composition."""

import pytest

from .lib import element
from .types import ParserFlags


def _boolean(operation, count=2):
    children = []
    for index in range(count):
        children.append(
            {
                "id": f"5:{index + 2}",
                "name": f"Part {index}",
                "type": "ELLIPSE",
                "size": {"x": 40, "y": 40},
                "relativeTransform": [[1, 0, index * 20], [0, 1, 0]],
                "fills": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0, "a": 1}}],
                "fillGeometry": [{"path": "M0 0L40 0L40 40Z", "windingRule": "NONZERO"}],
            }
        )
    return {
        "id": "5:1",
        "name": "Combined",
        "type": "BOOLEAN_OPERATION",
        "booleanOperation": operation,
        "size": {"x": 80, "y": 40},
        "relativeTransform": [[1, 0, 0], [0, 1, 0]],
        "fills": [{"type": "SOLID", "color": {"r": 0, "g": 1, "b": 0, "a": 1}}],
        "fillGeometry": [{"path": "M0 0L80 0L80 40Z", "windingRule": "NONZERO"}],
        "children": children,
    }


@pytest.fixture
def compose(issues, images, resolve_font):
    """Transpile a node with boolean breaking on and return the QML text."""

    def _run(node, flags=ParserFlags.BREAK_BOOLEANS):
        return element(node, flags, issues, images, resolve_font, {}).data.decode("utf-8")

    return _run


class TestOperations:
    """Tests for each supported operation."""

    @pytest.mark.unit
    def test_union(self, compose):
        """Union masks the painted source by all children at once."""
        qml = compose(_boolean("UNION"))
        assert qml.startswith("Item {\n    id: figma_5_1")
        assert qml.count("OpacityMask {") == 1
        assert "maskSource:maskSource_figma_5_1" in qml
        assert 'color:"#ff00ff00"' in qml
        assert "id: figma_5_2" in qml
        assert "id: figma_5_3" in qml

    @pytest.mark.unit
    def test_subtract(self, compose):
        """Subtract cuts the later children out of the first one."""
        qml = compose(_boolean("SUBTRACT"))
        assert qml.count("OpacityMask {") == 2
        assert qml.count("invert: true") == 1
        assert "id: source_figma_5_1_subtract" in qml
        assert "maskSource:maskSource_figma_5_1_subtract" in qml

    @pytest.mark.unit
    def test_intersect_chains_masks(self, compose):
        """Each child masks the previous result; only the last is shown."""
        lines = compose(_boolean("INTERSECT", 3)).splitlines()
        assert sum(line.strip() == "OpacityMask {" for line in lines) == 3
        assert "        source:source_figma_5_1" in lines
        assert "        source:source_figma_5_1_0" in lines
        assert "        source:source_figma_5_1_1" in lines

        first = lines.index("        id: source_figma_5_1_0")
        assert lines[first + 1] == "        visible: false"
        last = lines.index("        id: source_figma_5_1_2")
        assert lines[last + 1] == "    }"

    @pytest.mark.unit
    def test_exclude_uses_shaders(self, compose):
        """Exclude xors the child masks through a shader chain."""
        qml = compose(_boolean("EXCLUDE"))
        assert qml.count("ShaderEffect {") == 2
        assert qml.count("fragmentShader: source_figma_5_1.shaderSource0") == 1
        assert "fragmentShader: source_figma_5_1.shaderSource\n" in qml
        assert "sourceItem: source_figma_5_1_0" in qml
        assert "((cm.a * (1.0 - pm.a)) + ((1.0 - cm.a) * pm.a))" in qml
        assert "layer.enabled: true" in qml

    @pytest.mark.unit
    @pytest.mark.parametrize("operation", ["UNION", "SUBTRACT", "INTERSECT", "EXCLUDE"])
    def test_blocks_are_balanced(self, compose, operation):
        qml = compose(_boolean(operation, 3))
        assert qml.count("{") == qml.count("}")


class TestFailures:
    """Tests for unsupported and malformed booleans."""

    @pytest.mark.unit
    def test_unknown_operation_emits_nothing(self, compose, issues):
        """Unknown operations are skipped without an issue."""
        assert compose(_boolean("DIVIDE")) == ""
        assert issues.issues == []

    @pytest.mark.unit
    def test_single_child_is_fatal(self, compose, issues):
        """A boolean with one child cannot be composed."""
        assert compose(_boolean("UNION", 1)) == ""
        assert len(issues.fatal) == 1
        assert "Boolean needs at least two elements" in issues.fatal[0]

    @pytest.mark.unit
    def test_without_breaking_is_a_shape(self, compose, issues):
        """Without boolean breaking the flattened geometry is drawn."""
        qml = compose(_boolean("UNION", 1), ParserFlags.NONE)
        assert "ShapePath {" in qml
        assert "OpacityMask" not in qml
        assert "figma_5_2" not in qml
        assert issues.issues == []
