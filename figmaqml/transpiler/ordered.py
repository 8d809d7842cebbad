"""Insertion-ordered keyed storage for emitted child blocks."""

from collections.abc import Iterator
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class OrderedMap(Generic[K, V]):
    """Mapping that remembers the order keys were first inserted in.

    Sibling order matters to the transpiler: instance children are matched
    to component children positionally and mask groups capture "everything
    after" a given sibling. Re-inserting a key replaces its value but keeps
    its original position.

    Example:
        >>> items = OrderedMap()
        >>> items.insert("1:2", ["Rectangle {", "}"])
        >>> items.keys()
        ['1:2']
    """

    def __init__(self) -> None:
        self._data: dict[K, V] = {}

    def insert(self, key: K, value: V) -> None:
        """Store a value, appending the key if it is new."""
        self._data[key] = value

    def keys(self) -> list[K]:
        """Keys in first-insertion order."""
        return list(self._data)

    def values(self) -> list[V]:
        """Values in key order."""
        return list(self._data.values())

    def items(self) -> list[tuple[K, V]]:
        """(key, value) pairs in key order."""
        return list(self._data.items())

    def clear(self) -> None:
        """Drop every entry."""
        self._data.clear()

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"OrderedMap({self.items()!r})"


__all__ = ["OrderedMap"]
