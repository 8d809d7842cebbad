"""QML file generation.

Wraps transpiled elements into complete ``.qml`` files (import header for
the target Qt version plus the element body), collects the component
definitions the elements depend on, and writes the result to disk.
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from figmaqml.config import EnvVar, get_environment
from figmaqml.core import IssueReporter, get_logger
from figmaqml.document import Canvas, ComponentCatalogue, Element
from figmaqml.transpiler import FontResolver, ImageProvider, ParserFlags, component, element

logger = get_logger(__name__)

QT_IMPORTS: dict[int, tuple[str, ...]] = {
    5: ("import QtQuick 2.15", "import QtQuick.Shapes 1.15", "import QtGraphicalEffects 1.15"),
    6: ("import QtQuick", "import QtQuick.Shapes", "import Qt5Compat.GraphicalEffects"),
}


@dataclass
class QmlFile:
    """A complete QML document ready to be written.

    Attributes:
        name: QML type name (file stem).
        text: File content.
        element_id: Id of the node the file was generated from.
        component_ids: Components the file refers to.
    """

    name: str
    text: str
    element_id: str = ""
    component_ids: list[str] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return f"{self.name}.qml"

    def save(self, directory: Path) -> Path:
        """Write the file into a directory.

        Args:
            directory: Target directory (created if missing).

        Returns:
            Path of the written file.
        """
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.file_name
        path.write_text(self.text, encoding="utf-8")
        return path


def render_qml_file(element: Element, qt_version: int | None = None, name: str | None = None) -> QmlFile:
    """Prefix an element body with the imports it needs.

    Args:
        element: Transpiled element.
        qt_version: 5 or 6. Defaults to FIGMAQML_QT_VERSION.
        name: Type name override (catalogue name for components).

    Raises:
        ValueError: If the Qt version is not supported.
    """
    version = get_environment(EnvVar.FIGMAQML_QT_VERSION, qt_version)
    if version not in QT_IMPORTS:
        raise ValueError(f"Unsupported Qt version {version}, expected one of {sorted(QT_IMPORTS)}")

    header = [
        f"// Generated by figmaqml from node {element.id}",
        *QT_IMPORTS[version],
        "",
    ]
    return QmlFile(
        name=name or element.name,
        text="\n".join(header) + "\n" + element.data.decode("utf-8"),
        element_id=element.id,
        component_ids=list(element.component_ids),
    )


def write_qml_files(files: Iterable[QmlFile], directory: Path) -> list[Path]:
    """Write every file into one directory.

    Returns:
        list[Path]: Written paths, in input order.
    """
    paths = [qml.save(directory) for qml in files]
    logger.info(f"Wrote {len(paths)} file(s) to {directory}")
    return paths


def format_canvas_tree(canvases: Iterable[Canvas]) -> str:
    """Format canvases and their top-level elements as a text tree.

    Example output:
        Page 1 [#ffffffff]
        ├── Card [COMPONENT, 10:1]
        └── Screen [FRAME, 30:1]
    """
    lines: list[str] = []
    for canvas in canvases:
        lines.append(f"{canvas.name} [{canvas.color}]")
        for i, node in enumerate(canvas.elements):
            connector = "└── " if i == len(canvas.elements) - 1 else "├── "
            lines.append(f"{connector}{node.get('name', '')} [{node.get('type', '')}, {node.get('id', '')}]")
    return "\n".join(lines)


def _claim(name: str, taken: set[str]) -> str:
    candidate = name
    count = 1
    while candidate in taken:
        candidate = f"{name}_{count}"
        count += 1
    taken.add(candidate)
    return candidate


class QmlGenerator:
    """Turns canvases into QML files.

    Every top-level element of every canvas becomes one file; every
    component those files use (directly or through other components)
    becomes one more file named after its catalogue type name.
    """

    def __init__(
        self,
        flags: ParserFlags,
        report: IssueReporter,
        image_provider: ImageProvider,
        resolve_font: FontResolver,
        catalogue: ComponentCatalogue,
        qt_version: int | None = None,
    ):
        self.flags = flags
        self.report = report
        self.image_provider = image_provider
        self.resolve_font = resolve_font
        self.catalogue = catalogue
        self.qt_version = qt_version

    def generate(self, canvases: Iterable[Canvas]) -> list[QmlFile]:
        """Generate element files followed by component files.

        Elements that fail are reported and left out.
        """
        taken = {entry.name for entry in self.catalogue.values()}
        files: list[QmlFile] = []
        for canvas in canvases:
            for node in canvas.elements:
                result = element(
                    node, self.flags, self.report, self.image_provider, self.resolve_font, self.catalogue
                )
                if not result.data:
                    continue
                files.append(render_qml_file(result, self.qt_version, _claim(result.name, taken)))
        files.extend(self.generate_components(qml.component_ids for qml in files))
        return files

    def generate_components(self, component_ids: Iterable[Iterable[str]]) -> list[QmlFile]:
        """Component definition files for the given ids and their dependencies."""
        pending = [component_id for ids in component_ids for component_id in ids]
        done: set[str] = set()
        files: list[QmlFile] = []
        while pending:
            component_id = pending.pop(0)
            if component_id in done or component_id not in self.catalogue:
                continue
            done.add(component_id)
            entry = self.catalogue[component_id]
            result = component(
                entry.node, self.flags, self.report, self.image_provider, self.resolve_font, self.catalogue
            )
            if not result.data:
                continue
            qml = render_qml_file(result, self.qt_version, entry.name)
            files.append(qml)
            pending.extend(qml.component_ids)
        return files


def load_project(path: Path) -> dict[str, Any]:
    """Read a design document exported as JSON."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, Mapping):
        raise ValueError(f"{path} does not contain a design document")
    return dict(data)


__all__ = [
    "QT_IMPORTS",
    "QmlFile",
    "QmlGenerator",
    "format_canvas_tree",
    "load_project",
    "render_qml_file",
    "write_qml_files",
]
