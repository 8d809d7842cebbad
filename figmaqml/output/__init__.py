"""QML file generation for figmaqml.

Wraps transpiled elements into complete QML documents and writes them,
together with the component definitions they depend on.
"""

from figmaqml.output.lib import (
    QT_IMPORTS,
    QmlFile,
    QmlGenerator,
    format_canvas_tree,
    load_project,
    render_qml_file,
    write_qml_files,
)

__all__ = [
    "format_canvas_tree",
    "load_project",
    "QT_IMPORTS",
    "QmlFile",
    "QmlGenerator",
    "render_qml_file",
    "write_qml_files",
]
