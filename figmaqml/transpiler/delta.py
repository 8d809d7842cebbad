"""Property deltas between an instance node and its component.

An instance is a placed copy of a component that may override a few
properties. Emitting only the delta keeps generated QML small: the
component file already carries everything the instance shares with it.
"""

from collections.abc import Callable, Collection, Mapping
from typing import Any

Comparator = Callable[[Any, Any], Any]
"""``(base_value, instance_value) -> value to keep, or None when equal``."""

MINIMAL_OVERRIDE_KEYS = frozenset({"relativeTransform", "size"})


def delta(
    instance: Mapping[str, Any],
    base: Mapping[str, Any],
    ignored: Collection[str] = (),
    compares: Mapping[str, Comparator] | None = None,
) -> dict[str, Any]:
    """Compute the properties of ``instance`` that differ from ``base``.

    Rules, applied per key of ``instance`` (in its order):
        - keys in ``ignored`` are skipped
        - keys missing from ``base`` are copied verbatim
        - keys with a comparator keep the comparator's result unless it is None
        - all other keys are kept when the values are not equal

    A non-empty delta always carries ``name`` (unless ignored) so the
    emitted override stays identifiable.

    Args:
        instance: The instance node.
        base: The node the instance derives from.
        ignored: Keys never included in the result.
        compares: Per-key comparators overriding plain inequality.

    Returns:
        dict: The delta, empty when nothing differs.
    """
    compares = compares or {}
    result: dict[str, Any] = {}
    for key, value in instance.items():
        if key in ignored:
            continue
        if key not in base:
            result[key] = value
        elif key in compares:
            kept = compares[key](base[key], value)
            if kept is not None:
                result[key] = kept
        elif base[key] != value:
            result[key] = value

    if result and "name" not in ignored and "name" in instance:
        result["name"] = instance["name"]
    return result


def is_minimal_override(changes: Mapping[str, Any]) -> bool:
    """Whether a delta only moves or resizes its node.

    Such deltas are emitted as bound scalar properties on the parent
    component instead of a re-emitted child subtree.
    """
    return bool(changes) and set(changes) <= MINIMAL_OVERRIDE_KEYS


__all__ = ["Comparator", "MINIMAL_OVERRIDE_KEYS", "delta", "is_minimal_override"]
