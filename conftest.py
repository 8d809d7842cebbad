"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Auto-skip of live Figma API tests when no token is configured
- Sample design documents and components
- Stub callbacks (issue sink, image provider, font resolver)
"""

from __future__ import annotations

import copy
from typing import Any, Callable

import pytest
from dotenv import load_dotenv

from figmaqml.config import EnvVar, get_environment

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Configuration Constants
# =============================================================================

IMAGE_DATA = b"data:image/png;base64,iVBORw0KGgo="
PLACEHOLDER_DATA = b"data:image/png;base64,UExBQ0VIT0xERVI="


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Modify test collection based on available credentials.

    Auto-skips tests marked with figma when no API token is set.
    """
    has_token = bool(get_environment(EnvVar.FIGMA_TOKEN))
    skip_figma = pytest.mark.skip(reason="FIGMA_TOKEN not set")

    for item in items:
        if item.get_closest_marker("figma") is not None and not has_token:
            item.add_marker(skip_figma)


# =============================================================================
# Callback Stubs
# =============================================================================


class IssueSink:
    """Issue reporter that records every ``(message, is_fatal)`` call."""

    def __init__(self) -> None:
        self.issues: list[tuple[str, bool]] = []

    def __call__(self, message: str, is_fatal: bool) -> None:
        self.issues.append((message, is_fatal))

    @property
    def fatal(self) -> list[str]:
        return [message for message, is_fatal in self.issues if is_fatal]


class ImageStub:
    """Image provider returning fixed data and remembering what was asked."""

    def __init__(self, data: bytes = IMAGE_DATA, missing: set[str] | None = None) -> None:
        self.data = data
        self.missing = missing or set()
        self.calls: list[tuple[str, bool]] = []

    def __call__(self, image: str, is_rendering: bool) -> bytes:
        self.calls.append((image, is_rendering))
        if image == "placeholder":
            return PLACEHOLDER_DATA
        if image in self.missing:
            return b""
        return self.data


@pytest.fixture
def issues() -> IssueSink:
    """A fresh recording issue reporter."""
    return IssueSink()


@pytest.fixture
def images() -> ImageStub:
    """Image provider that serves data for every reference."""
    return ImageStub()


@pytest.fixture
def resolve_font() -> Callable[[str], str]:
    """Font resolver mapping every family onto itself with a suffix."""
    return lambda family: f"{family} Local"


# =============================================================================
# Sample Documents
# =============================================================================


def rectangle(node_id: str = "1:2", **extra: Any) -> dict[str, Any]:
    """A plain red 100x50 rectangle node."""
    node = {
        "id": node_id,
        "name": "Box",
        "type": "RECTANGLE",
        "size": {"x": 100, "y": 50},
        "relativeTransform": [[1, 0, 10], [0, 1, 20]],
        "constraints": {"horizontal": "LEFT", "vertical": "TOP"},
        "fills": [{"type": "SOLID", "color": {"r": 1, "g": 0, "b": 0, "a": 1}}],
        "fillGeometry": [{"path": "M0 0L100 0L100 50L0 50Z", "windingRule": "NONZERO"}],
    }
    node.update(extra)
    return node


@pytest.fixture
def make_rectangle() -> Callable[..., dict[str, Any]]:
    """Factory for rectangle nodes (``make_rectangle(id, **overrides)``)."""
    return rectangle


@pytest.fixture
def sample_component() -> dict[str, Any]:
    """A card component with a background and a label."""
    return {
        "id": "10:1",
        "name": "Card",
        "type": "COMPONENT",
        "size": {"x": 200, "y": 100},
        "relativeTransform": [[1, 0, 0], [0, 1, 0]],
        "absoluteBoundingBox": {"x": 0, "y": 0, "width": 200, "height": 100},
        "fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1, "a": 1}}],
        "clipsContent": True,
        "children": [
            rectangle("10:2", name="Background", size={"x": 200, "y": 100},
                      relativeTransform=[[1, 0, 0], [0, 1, 0]]),
            {
                "id": "10:3",
                "name": "Label",
                "type": "TEXT",
                "size": {"x": 80, "y": 20},
                "relativeTransform": [[1, 0, 10], [0, 1, 10]],
                "characters": "Title",
                "style": {"fontFamily": "Inter", "fontSize": 14, "fontWeight": 400},
                "fills": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0, "a": 1}}],
            },
        ],
    }


@pytest.fixture
def sample_instance(sample_component: dict[str, Any]) -> dict[str, Any]:
    """An instance of the card that only moves and resizes its background."""
    instance = copy.deepcopy(sample_component)
    instance["id"] = "20:1"
    instance["type"] = "INSTANCE"
    instance["componentId"] = "10:1"
    instance["relativeTransform"] = [[1, 0, 40], [0, 1, 40]]
    background, label = instance["children"]
    background["id"] = "I20:1;10:2"
    background["size"] = {"x": 180, "y": 90}
    background["relativeTransform"] = [[1, 0, 5], [0, 1, 6]]
    label["id"] = "I20:1;10:3"
    return instance


@pytest.fixture
def sample_project(sample_component: dict[str, Any], sample_instance: dict[str, Any]) -> dict[str, Any]:
    """A one-page document holding the card component and an instance of it."""
    return {
        "name": "Sample",
        "document": {
            "id": "0:0",
            "type": "DOCUMENT",
            "children": [
                {
                    "id": "0:1",
                    "name": "Page 1",
                    "type": "CANVAS",
                    "backgroundColor": {"r": 1, "g": 1, "b": 1, "a": 1},
                    "children": [
                        sample_component,
                        {
                            "id": "30:1",
                            "name": "Screen",
                            "type": "FRAME",
                            "size": {"x": 400, "y": 300},
                            "relativeTransform": [[1, 0, 0], [0, 1, 0]],
                            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 400, "height": 300},
                            "children": [sample_instance],
                        },
                    ],
                }
            ],
        },
        "components": {
            "10:1": {"key": "abc", "name": "Card", "description": "A card"},
        },
    }
