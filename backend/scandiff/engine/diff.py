"""
Structural comparison of two SAST filter objects.

Walks two arbitrary JSON values in parallel and returns one
:class:`Difference` per key path at which they disagree.  Objects are
compared key by key; arrays are treated as objects keyed by their indices, so
reordering the elements of an array is reported as value mismatches rather
than being matched as a set.

Key iteration order is stable: keys of the left value in their native order,
followed by the keys that only the right value has.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

ROOT_PATH_LABEL: str = "(root)"

_ABSENT: Any = object()


class DifferenceKind(str, Enum):
    """Kinds of discrepancy between the two compared values."""

    MISSING_IN_LEFT = "missing-in-left"
    MISSING_IN_RIGHT = "missing-in-right"
    VALUE_MISMATCH = "value-mismatch"


class JsonKind(Enum):
    """Classification of a decoded JSON value."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"
    ARRAY = "array"

    @classmethod
    def of(cls, value: Any) -> "JsonKind":
        """Return the kind of *value* (``bool`` is checked before ``int``)."""
        if value is None:
            return cls.NULL
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, (int, float)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.STRING
        if isinstance(value, dict):
            return cls.OBJECT
        if isinstance(value, (list, tuple)):
            return cls.ARRAY
        raise TypeError(f"Not a JSON value: {type(value).__name__}")

    @property
    def is_container(self) -> bool:
        return self in (JsonKind.OBJECT, JsonKind.ARRAY)


@dataclass(frozen=True)
class Difference:
    """A single discrepancy between scan 1 (left) and scan 2 (right).

    Attributes:
        kind:  What kind of discrepancy was found.
        path:  Dotted key path, ``""`` for the root itself.
        left:  Canonical JSON text of the left value, ``None`` when absent.
        right: Canonical JSON text of the right value, ``None`` when absent.
    """

    kind: DifferenceKind
    path: str
    left: Optional[str] = None
    right: Optional[str] = None

    @property
    def display_path(self) -> str:
        return self.path or ROOT_PATH_LABEL

    def describe(self) -> str:
        """Render the human-readable form shown in the difference list."""
        if self.kind is DifferenceKind.MISSING_IN_LEFT:
            return (
                f"{self.display_path}: Missing in Scan 1, "
                f"present in Scan 2 ({self.right})"
            )
        if self.kind is DifferenceKind.MISSING_IN_RIGHT:
            return (
                f"{self.display_path}: Present in Scan 1 ({self.left}), "
                f"missing in Scan 2"
            )
        return f"{self.display_path}: Scan 1 = {self.left}, Scan 2 = {self.right}"

    def __str__(self) -> str:
        return self.describe()


def canonical_json(value: Any) -> str:
    """Serialise *value* the way it is compared and displayed.

    Compact separators, key order preserved, non-ASCII characters kept.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def compare_filters(left: Any, right: Any) -> list[Difference]:
    """Compare two filter objects and return every discrepancy.

    Args:
        left:  Filter object of scan 1.
        right: Filter object of scan 2.

    Returns:
        Differences in key-iteration order; empty when both values are equal
        under the order-sensitive comparison.
    """
    left_kind = JsonKind.of(left)
    right_kind = JsonKind.of(right)

    if not left_kind.is_container and not right_kind.is_container:
        if _same_leaf(left, right):
            return []
        return [
            Difference(
                kind=DifferenceKind.VALUE_MISMATCH,
                path="",
                left=canonical_json(left),
                right=canonical_json(right),
            )
        ]

    return list(_walk(left, right, ""))


def _walk(left: Any, right: Any, path: str) -> Iterator[Difference]:
    """Yield the differences between two values below *path*."""
    for key in _union_keys(left, right):
        child_path = f"{path}.{key}" if path else key
        left_child = _child(left, key)
        right_child = _child(right, key)

        if left_child is _ABSENT:
            yield Difference(
                kind=DifferenceKind.MISSING_IN_LEFT,
                path=child_path,
                right=canonical_json(right_child),
            )
        elif right_child is _ABSENT:
            yield Difference(
                kind=DifferenceKind.MISSING_IN_RIGHT,
                path=child_path,
                left=canonical_json(left_child),
            )
        elif (
            JsonKind.of(left_child).is_container
            and JsonKind.of(right_child).is_container
        ):
            yield from _walk(left_child, right_child, child_path)
        elif not _same_leaf(left_child, right_child):
            yield Difference(
                kind=DifferenceKind.VALUE_MISMATCH,
                path=child_path,
                left=canonical_json(left_child),
                right=canonical_json(right_child),
            )


def _same_leaf(left: Any, right: Any) -> bool:
    """Compare two leaves; numbers by value, everything else by canonical text.

    ``300`` and ``300.0`` (or ``1e2`` and ``100``) are the same JSON number.
    """
    if JsonKind.of(left) is JsonKind.NUMBER and JsonKind.of(right) is JsonKind.NUMBER:
        return left == right
    return canonical_json(left) == canonical_json(right)


def _own_keys(value: Any) -> list[str]:
    """Return the keys of *value*; scalars and ``None`` have none."""
    if isinstance(value, dict):
        return [str(key) for key in value]
    if isinstance(value, (list, tuple)):
        return [str(index) for index in range(len(value))]
    return []


def _union_keys(left: Any, right: Any) -> list[str]:
    """Left keys in order, then right-only keys in order."""
    return list(dict.fromkeys(_own_keys(left) + _own_keys(right)))


def _child(value: Any, key: str) -> Any:
    """Return ``value[key]`` or :data:`_ABSENT` when *value* lacks *key*."""
    if isinstance(value, dict):
        return value.get(key, _ABSENT)
    if isinstance(value, (list, tuple)):
        # Only canonical index spellings address an element ("01" does not).
        if key.isdecimal() and str(int(key)) == key and int(key) < len(value):
            return value[int(key)]
    return _ABSENT
