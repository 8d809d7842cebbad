"""Design document validation and static analysis.

This module provides validation functions for design documents,
detecting problems that would abort transpilation of an element before
any markup is generated.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from figmaqml.transpiler.types import NodeType


@dataclass
class ValidationError:
    """Represents a validation error in a design document.

    Attributes:
        node_id: ID of the node with the error.
        message: Human-readable error description.
        error_type: Category of the error.
    """

    node_id: str
    message: str
    error_type: str


_SUPPORTED_TYPES = {member.value for member in NodeType}


def validate_document(
    project: Mapping[str, Any],
    components: Mapping[str, Any] | None = None,
) -> list[ValidationError]:
    """Validate the element trees of every canvas in a document.

    Performs the following checks:
        - Unique ID enforcement (no duplicate node IDs)
        - Node types outside the supported vocabulary
        - Instances referring to components that are not known
        - Boolean nodes with fewer than two operands

    Args:
        project: The design document.
        components: Known component ids (e.g. a built catalogue). Defaults to
            the document's components table plus its inline components.

    Returns:
        list[ValidationError]: List of validation errors (empty if valid).

    Example:
        >>> errors = validate_document(project)
        >>> for e in errors:
        ...     print(f"{e.node_id}: {e.message}")
    """
    errors: list[ValidationError] = []
    nodes = list(_walk_elements(project))

    id_counts: dict[str, int] = {}
    for node in nodes:
        node_id = node.get("id", "")
        id_counts[node_id] = id_counts.get(node_id, 0) + 1

    for node_id, count in id_counts.items():
        if count > 1:
            errors.append(
                ValidationError(
                    node_id=node_id,
                    message=f"Duplicate ID '{node_id}' appears {count} times",
                    error_type="duplicate_id",
                )
            )

    known = set(components) if components is not None else _known_components(nodes, project)
    for node in nodes:
        errors.extend(_check_node(node, known))

    return errors


def is_valid(project: Mapping[str, Any], components: Mapping[str, Any] | None = None) -> bool:
    """Check if a design document is valid.

    Convenience function that returns True if no validation errors exist.

    Example:
        >>> if is_valid(project):
        ...     catalogue = components(project, report, resolve)
    """
    return not validate_document(project, components)


def _walk_elements(project: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    """Yield every node below the canvases, depth first."""

    def _walk(node: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
        yield node
        for child in node.get("children", []):
            yield from _walk(child)

    for page in project.get("document", {}).get("children", []):
        for node in page.get("children", []):
            yield from _walk(node)


def _known_components(nodes: list[Mapping[str, Any]], project: Mapping[str, Any]) -> set[str]:
    known = set(project.get("components", {}))
    known.update(node.get("id", "") for node in nodes if node.get("type") == NodeType.COMPONENT.value)
    return known


def _check_node(node: Mapping[str, Any], known: set[str]) -> list[ValidationError]:
    node_id = node.get("id", "")
    raw = node.get("type")
    if raw not in _SUPPORTED_TYPES:
        return [
            ValidationError(
                node_id=node_id,
                message=f"Unsupported node type '{raw}'",
                error_type="unsupported_type",
            )
        ]

    errors: list[ValidationError] = []
    if raw == NodeType.INSTANCE.value and node.get("componentId", "") not in known:
        errors.append(
            ValidationError(
                node_id=node_id,
                message=f"Instance refers to unknown component '{node.get('componentId', '')}'",
                error_type="unknown_component",
            )
        )
    if raw == NodeType.BOOLEAN_OPERATION.value and len(node.get("children", [])) < 2:
        errors.append(
            ValidationError(
                node_id=node_id,
                message=f"Boolean '{node_id}' has fewer than two operands",
                error_type="boolean_operands",
            )
        )
    return errors
