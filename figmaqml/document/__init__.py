"""Design document models, canvases and the component catalogue."""

from figmaqml.document.lib import (
    Canvas,
    Component,
    ComponentCatalogue,
    Element,
    NodeResolver,
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

__all__ = [
    # Models
    "Canvas",
    "Component",
    "ComponentCatalogue",
    "Element",
    "NodeResolver",
    # Document access
    "canvases",
    "extract_canvases",
    "objects_by_type",
    "project_name",
    # Component catalogue
    "build_catalogue",
    "components",
    "fetch_remote_components",
    "missing_component_ids",
    "parse_remote_component",
]
