"""Map design-tool names and values onto identifiers and literals QML accepts.

Two kinds of identifiers are produced:
    - type names (``valid_file_name``): used for component files and element
      names, so they must start with an upper-case letter.
    - object ids (``qml_id``/``delegate_name``): used as ``id:`` values and
      property names, so they must start with a lower-case letter.
"""

import math
import re
from collections.abc import Iterable

FIGMA_SUFFIX = "_figma"

_FILE_UNSAFE = re.compile(r'[\\/:*?"<>|\s]')
_NON_WORD = re.compile(r"[^a-zA-Z0-9_]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def valid_file_name(item_name: str) -> str:
    """Turn an arbitrary node or component name into a QML type name.

    The result always ends with ``_figma``, contains only ``[A-Za-z0-9_]``
    and starts with an upper-case letter. Names already carrying the suffix
    are returned unchanged, so the function is idempotent.

    Args:
        item_name: Raw name from the design document.

    Returns:
        str: Sanitized name, or an empty string for an empty input.

    Example:
        >>> valid_file_name("my button")
        'My_button_figma'
        >>> valid_file_name("1st")
        'C1st_figma'
    """
    if not item_name:
        return ""
    if item_name.endswith(FIGMA_SUFFIX) and _NON_WORD.search(item_name) is None:
        if item_name[0].isascii() and item_name[0].isalpha() and item_name[0].isupper():
            return item_name
    name = _FILE_UNSAFE.sub("_", item_name + FIGMA_SUFFIX)
    name = _NON_WORD.sub("_", name)
    if not (name[0].isascii() and name[0].isalpha()):
        name = "C" + name
    return name[0].upper() + name[1:]


def unique_name(item_name: str, taken: Iterable[str]) -> str:
    """Sanitize a name and suffix a counter until it is not already taken.

    Args:
        item_name: Raw name from the design document.
        taken: Sanitized names already in use.

    Returns:
        str: ``valid_file_name(item_name)`` or ``valid_file_name(f"{item_name}_{n}")``
        for the smallest ``n >= 1`` that is free.
    """
    used = set(taken)
    candidate = valid_file_name(item_name)
    count = 1
    while candidate in used:
        candidate = valid_file_name(f"{item_name}_{count}")
        count += 1
    return candidate


def qml_id(node_id: str) -> str:
    """QML object id for a node id such as ``"12:34"`` (``figma_12_34``)."""
    return "figma_" + _NON_ALNUM.sub("_", node_id).lower()


def delegate_name(node_id: str) -> str:
    """Property name of a component child slot (``delegate_12_34``)."""
    return "delegate_" + _NON_ALNUM.sub("_", node_id)


def _channel(value: float) -> int:
    return max(0, min(255, math.floor(value * 255.0 + 0.5)))


def argb_color(r: float, g: float, b: float, a: float = 1.0) -> str:
    """Format unit-range color channels as a QML ``#aarrggbb`` literal.

    Example:
        >>> argb_color(1, 0, 0)
        '#ffff0000'
    """
    return "#" + "".join(f"{_channel(c):02x}" for c in (a, r, g, b))


__all__ = [
    "FIGMA_SUFFIX",
    "argb_color",
    "delegate_name",
    "qml_id",
    "unique_name",
    "valid_file_name",
]
