"""CLI entry point for figmaqml.

This module acts as the central entry point for the project's CLI tools.
It loads the design document (from an exported JSON file or the Figma
API) and delegates to the transpiler, validation and output packages.
"""

import argparse
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from figmaqml.config import (
    EnvVar,
    get_default_flags,
    get_environment,
    get_environment_info,
    get_output_dir,
    list_environment_variables,
)
from figmaqml.core import get_logger, setup_logging
from figmaqml.document import canvases, components
from figmaqml.figma import FigmaClient, FigmaError, ImageProvider, RemoteNodeResolver, offline_image
from figmaqml.output import QmlGenerator, format_canvas_tree, load_project, write_qml_files
from figmaqml.transpiler import ParserFlags
from figmaqml.validation import validate_document

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


class IssueLog:
    """Issue reporter for the CLI: counts what the library already logged."""

    def __init__(self) -> None:
        self.fatal = 0
        self.warnings = 0

    def __call__(self, message: str, is_fatal: bool) -> None:
        if is_fatal:
            self.fatal += 1
        else:
            self.warnings += 1


# =============================================================================
# Shared arguments
# =============================================================================


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        "-j",
        type=Path,
        default=None,
        help="Design document exported as JSON",
    )
    parser.add_argument(
        "--file-key",
        "-k",
        type=str,
        default=None,
        help="Figma file key (fetches the document, components and images)",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="Figma access token (uses FIGMA_TOKEN if not provided)",
    )


def _load_source(args: argparse.Namespace) -> tuple[dict[str, Any], FigmaClient | None]:
    """Load the document named by --json or --file-key.

    Raises:
        ValueError: If neither source is given.
        FigmaError: If the API request fails.
    """
    client = FigmaClient(token=args.token) if args.file_key else None
    if args.json is not None:
        return load_project(args.json), client
    if client is not None:
        logger.info(f"Fetching document {args.file_key}")
        return client.get_file(args.file_key), client
    raise ValueError("Provide a design document with --json or --file-key")


def _no_remote_nodes(component_id: str) -> bytes:
    logger.debug(f"No API access to resolve component {component_id}")
    return b""


def _parse_font_map(entries: list[str] | None) -> dict[str, str]:
    fonts: dict[str, str] = {}
    for entry in entries or []:
        family, sep, target = entry.partition("=")
        if not sep or not family or not target:
            raise ValueError(f"Invalid font mapping '{entry}', expected FAMILY=TARGET")
        fonts[family] = target
    return fonts


# =============================================================================
# Convert Command
# =============================================================================


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle the convert command."""
    try:
        flags = get_default_flags(args.flags)
        fonts = _parse_font_map(args.font)
        project, client = _load_source(args)
    except (ValueError, OSError, FigmaError) as e:
        logger.error(f"Cannot start conversion: {e}")
        return 1

    issues = IssueLog()
    if client is not None:
        resolve_node = RemoteNodeResolver(client, args.file_key)
        image_provider = ImageProvider(client, args.file_key, args.scale)
    else:
        resolve_node = _no_remote_nodes
        image_provider = offline_image

    catalogue = components(project, issues, resolve_node, args.workers)
    pages = canvases(project, issues)
    if args.canvas:
        pages = [page for page in pages if page.name == args.canvas or page.id == args.canvas]
        if not pages:
            logger.error(f"No canvas named '{args.canvas}'")
            return 1

    generator = QmlGenerator(
        flags,
        issues,
        image_provider,
        lambda family: fonts.get(family, family),
        catalogue,
        args.qt_version,
    )
    files = generator.generate(pages)
    output_dir = get_output_dir(args.output)
    write_qml_files(files, output_dir)

    if issues.fatal:
        logger.warning(f"{issues.fatal} element(s) or component(s) failed, see errors above")
        return 1
    return 0


def handle_convert_command(argv: list[str]) -> int:
    """Handle convert-specific arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m figmaqml convert",
        description="Convert a design document into QML files",
    )
    _add_source_arguments(parser)
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output directory (default: FIGMAQML_OUTPUT_DIR or ./qml)",
    )
    parser.add_argument(
        "--flags",
        "-f",
        type=str,
        default=None,
        help="Comma-separated parser flags, see 'flags' (default: FIGMAQML_FLAGS)",
    )
    parser.add_argument(
        "--canvas",
        "-c",
        type=str,
        default=None,
        help="Only convert the canvas with this name or id",
    )
    parser.add_argument(
        "--qt-version",
        type=int,
        default=None,
        choices=[5, 6],
        help="Target Qt major version (default: FIGMAQML_QT_VERSION)",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=None,
        help="Scale of pre-rendered images (default: FIGMAQML_IMAGE_SCALE)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=4,
        help="Concurrent remote component lookups (default: 4)",
    )
    parser.add_argument(
        "--font",
        action="append",
        default=None,
        metavar="FAMILY=TARGET",
        help="Map a design font family onto an installed one (repeatable)",
    )
    args = parser.parse_args(argv)
    return cmd_convert(args)


# =============================================================================
# Validate Command
# =============================================================================


def handle_validate_command(argv: list[str]) -> int:
    """Report problems that would abort conversion."""
    parser = argparse.ArgumentParser(
        prog="python -m figmaqml validate",
        description="Validate a design document before conversion",
    )
    _add_source_arguments(parser)
    args = parser.parse_args(argv)

    try:
        project, _client = _load_source(args)
    except (ValueError, OSError, FigmaError) as e:
        logger.error(f"Cannot load document: {e}")
        return 1

    errors = validate_document(project)
    for error in errors:
        print(f"{error.node_id}: [{error.error_type}] {error.message}")
    if errors:
        print(f"\n{len(errors)} problem(s) found")
        return 1
    print("Document is valid")
    return 0


# =============================================================================
# Canvases Command
# =============================================================================


def handle_canvases_command(argv: list[str]) -> int:
    """List the canvases of a document and their top-level elements."""
    parser = argparse.ArgumentParser(
        prog="python -m figmaqml canvases",
        description="List canvases and their elements",
    )
    _add_source_arguments(parser)
    args = parser.parse_args(argv)

    try:
        project, _client = _load_source(args)
    except (ValueError, OSError, FigmaError) as e:
        logger.error(f"Cannot load document: {e}")
        return 1

    issues = IssueLog()
    pages = canvases(project, issues)
    if issues.fatal:
        return 1
    print(format_canvas_tree(pages))
    return 0


# =============================================================================
# Info Commands
# =============================================================================


def handle_flags_command(_argv: list[str]) -> int:
    """List parser flag names."""
    for name in ParserFlags.names():
        print(name)
    return 0


def handle_env_command(argv: list[str]) -> int:
    """List configuration variables and their current values."""
    parser = argparse.ArgumentParser(
        prog="python -m figmaqml env",
        description="Show configuration variables",
    )
    parser.add_argument(
        "category",
        nargs="?",
        default=None,
        choices=["api", "transpile", "output"],
        help="Only show one category",
    )
    args = parser.parse_args(argv)

    for var in list_environment_variables(args.category):
        info = get_environment_info(var)
        value = get_environment(var)
        if var is EnvVar.FIGMA_TOKEN and value:
            value = "***"
        print(f"{info.name:<22} [{info.category}] {value!s:<28} {info.description}")
    return 0


# =============================================================================
# Main
# =============================================================================


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: python -m figmaqml {command} [args]")
    print("\nCommands:")
    print("  convert    Convert a design document into QML files")
    print("  validate   Check a design document for problems")
    print("  canvases   List canvases and their elements")
    print("  flags      List parser flag names")
    print("  env        Show configuration variables")
    print("\nExamples:")
    print("  python -m figmaqml convert --json design.json -o qml")
    print("  python -m figmaqml convert --file-key AbC123 --flags prerender-shapes,break-booleans")
    print("  python -m figmaqml convert --json design.json --font Inter=Roboto --qt-version 5")
    print("  python -m figmaqml validate --json design.json")
    print("  python -m figmaqml canvases --file-key AbC123")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        show_help()
        return 1

    command = argv[0]
    rest_args = argv[1:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    commands = {
        "convert": lambda: handle_convert_command(rest_args),
        "validate": lambda: handle_validate_command(rest_args),
        "canvases": lambda: handle_canvases_command(rest_args),
        "flags": lambda: handle_flags_command(rest_args),
        "env": lambda: handle_env_command(rest_args),
    }

    if command in commands:
        setup_logging()
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
