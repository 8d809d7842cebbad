"""Design document models and component catalogue construction.

A design document (a Figma file export) is plain JSON. This module pulls
out the two things the transpiler needs before it can run:

    - canvases: the pages of the document and their top-level nodes
    - the component catalogue: every reusable component, keyed by id

The catalogue is built in two phases so that all I/O happens up front:
missing component bodies are gathered and resolved through the injected
lookup callback first, then the immutable catalogue is constructed.
"""

import json
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

from figmaqml.core import IssueReporter, TranspileError, get_logger, report_issue
from figmaqml.naming import argb_color, unique_name

logger = get_logger(__name__)

NodeResolver = Callable[[str], bytes]
"""``resolve_remote_node(component_id) -> raw JSON bytes`` (empty on failure)."""


# =============================================================================
# Models
# =============================================================================


class Canvas(BaseModel):
    """One page of a design document.

    Attributes:
        name: Page name as shown in the design tool.
        id: Page node id.
        color: Background color as a ``#aarrggbb`` literal.
        elements: Top-level nodes of the page, in document order.
    """

    name: str = ""
    id: str = ""
    color: str = "#00000000"
    elements: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"frozen": True}


class Component(BaseModel):
    """A reusable node registered in the catalogue.

    Attributes:
        name: Sanitized, catalogue-unique QML type name.
        id: Component node id (the key instances refer to).
        key: Library-wide component key.
        description: Free text from the design tool.
        node: The canonical node tree the component represents.
    """

    name: str
    id: str
    key: str = ""
    description: str = ""
    node: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class Element(BaseModel):
    """Generated QML for one top-level node.

    Attributes:
        name: Sanitized node name, used as the QML type/file name.
        id: Node id.
        type: Raw node type string.
        data: UTF-8 encoded QML body.
        component_ids: Ids of the components the body refers to.
    """

    name: str = ""
    id: str = ""
    type: str = ""
    data: bytes = b""
    component_ids: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        """True for the default element returned after a failure."""
        return not self.id and not self.data


ComponentCatalogue = Mapping[str, Component]


# =============================================================================
# Document access
# =============================================================================


def project_name(project: Mapping[str, Any]) -> str:
    """Name of the design document."""
    return project.get("name", "")


def objects_by_type(node: Mapping[str, Any], node_type: str) -> dict[str, dict[str, Any]]:
    """Collect nodes of a given type keyed by id.

    The search does not descend into a node that matches.

    Args:
        node: Root of the tree to search.
        node_type: Raw type string, e.g. ``"COMPONENT"``.

    Returns:
        dict: Matching nodes keyed by node id.
    """
    if node.get("type") == node_type:
        return {node.get("id", ""): dict(node)}
    found: dict[str, dict[str, Any]] = {}
    for child in node.get("children", []):
        found.update(objects_by_type(child, node_type))
    return found


def extract_canvases(project: Mapping[str, Any]) -> list[Canvas]:
    """Build a Canvas per page of the document.

    Raises:
        TranspileError: If the project carries no document tree.
    """
    document = project.get("document")
    if not isinstance(document, Mapping):
        raise TranspileError("Project has no document")
    result: list[Canvas] = []
    for page in document.get("children", []):
        background = page.get("backgroundColor", {})
        result.append(
            Canvas(
                name=page.get("name", ""),
                id=page.get("id", ""),
                color=argb_color(
                    background.get("r", 0.0),
                    background.get("g", 0.0),
                    background.get("b", 0.0),
                    background.get("a", 0.0),
                ),
                elements=list(page.get("children", [])),
            )
        )
    return result


def canvases(project: Mapping[str, Any], report: IssueReporter) -> list[Canvas]:
    """Public entry point for canvas extraction.

    Failures are reported as fatal issues and yield an empty list.
    """
    try:
        return extract_canvases(project)
    except TranspileError as e:
        report_issue(report, e)
        return []


# =============================================================================
# Component catalogue (two phases)
# =============================================================================


def missing_component_ids(project: Mapping[str, Any]) -> list[str]:
    """Ids listed in the components table without an inline body.

    Args:
        project: The design document.

    Returns:
        list[str]: Ids in components-table order.
    """
    inline = objects_by_type(project.get("document", {}), "COMPONENT")
    return [key for key in project.get("components", {}) if key not in inline]


def parse_remote_component(component_id: str, payload: bytes) -> dict[str, Any]:
    """Extract a component body from a remote node lookup payload.

    The payload has the shape ``{"nodes": {<id>: {"document": <tree>}}}``.

    Raises:
        TranspileError: If the payload is empty, not JSON, or lacks the component.
    """
    if not payload:
        raise TranspileError(f"Component not found {component_id}")
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TranspileError(f"Invalid component {component_id}") from e
    document: Any = data
    for key in ("nodes", component_id, "document"):
        if not isinstance(document, Mapping):
            raise TranspileError(f"Invalid component {component_id}")
        document = document.get(key, {})
    if not isinstance(document, Mapping):
        raise TranspileError(f"Invalid component {component_id}")
    found = objects_by_type(document, "COMPONENT")
    if component_id not in found:
        raise TranspileError(f"Unrecognized component {component_id}")
    return found[component_id]


def fetch_remote_components(
    ids: Iterable[str],
    resolve_remote_node: NodeResolver,
    max_workers: int = 1,
) -> dict[str, dict[str, Any] | TranspileError]:
    """Resolve component bodies that are not inline in the document.

    Args:
        ids: Component ids to resolve.
        resolve_remote_node: Lookup callback returning raw JSON bytes.
        max_workers: Number of concurrent lookups; 1 resolves sequentially.

    Returns:
        dict: Component body per id, or the TranspileError that id failed with.
    """

    def _resolve(component_id: str) -> dict[str, Any] | TranspileError:
        try:
            return parse_remote_component(component_id, resolve_remote_node(component_id))
        except TranspileError as e:
            return e

    id_list = list(ids)
    if max_workers <= 1 or len(id_list) <= 1:
        return {component_id: _resolve(component_id) for component_id in id_list}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = executor.map(_resolve, id_list)
        return dict(zip(id_list, results))


def build_catalogue(
    project: Mapping[str, Any],
    resolved: Mapping[str, Mapping[str, Any]],
) -> ComponentCatalogue:
    """Construct the read-only component catalogue.

    Components are registered in components-table order; names are made
    unique by suffixing a counter (``Card_figma``, ``Card_1_figma``, ...).
    Table entries with neither an inline nor a resolved body are skipped.

    Args:
        project: The design document.
        resolved: Bodies of components that are not inline.

    Returns:
        Mapping: Component per id.
    """
    bodies = objects_by_type(project.get("document", {}), "COMPONENT")
    bodies.update(resolved)

    catalogue: dict[str, Component] = {}
    taken: set[str] = set()
    for component_id, meta in project.get("components", {}).items():
        if component_id not in bodies:
            continue
        name = unique_name(meta.get("name") or component_id, taken)
        taken.add(name)
        catalogue[component_id] = Component(
            name=name,
            id=component_id,
            key=meta.get("key", ""),
            description=meta.get("description", ""),
            node=bodies[component_id],
        )
    logger.debug(f"Registered {len(catalogue)} component(s)")
    return MappingProxyType(catalogue)


def components(
    project: Mapping[str, Any],
    report: IssueReporter,
    resolve_remote_node: NodeResolver,
    max_workers: int = 1,
) -> ComponentCatalogue:
    """Public entry point: build the catalogue, resolving missing bodies.

    Each component whose body cannot be resolved is reported as a fatal
    issue and left out; the remaining components are still registered.

    Args:
        project: The design document.
        report: Issue sink.
        resolve_remote_node: Lookup callback for component bodies.
        max_workers: Number of concurrent lookups.

    Returns:
        Mapping: Component per id.
    """
    missing = missing_component_ids(project)
    if missing:
        logger.debug(f"Resolving {len(missing)} remote component(s)")
    fetched = fetch_remote_components(missing, resolve_remote_node, max_workers)

    resolved: dict[str, dict[str, Any]] = {}
    for component_id, body in fetched.items():
        if isinstance(body, TranspileError):
            report_issue(report, body)
        else:
            resolved[component_id] = body
    return build_catalogue(project, resolved)


__all__ = [
    "Canvas",
    "Component",
    "ComponentCatalogue",
    "Element",
    "NodeResolver",
    "build_catalogue",
    "canvases",
    "components",
    "extract_canvases",
    "fetch_remote_components",
    "missing_component_ids",
    "objects_by_type",
    "parse_remote_component",
    "project_name",
]
