"""Dotted-path lookup into decoded JSON values."""

from collections.abc import Mapping, Sequence
from typing import Any


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def _is_index(segment: str) -> bool:
    """True for ASCII digits without a leading zero, such as ``"0"`` or ``"12"``."""
    return segment.isascii() and segment.isdigit() and (segment == "0" or not segment.startswith("0"))


def data_get(target: Any, path: str | None, default: Any = None) -> Any:
    """Get a nested value using dot notation.

    Mappings are traversed by key and lists/tuples by non-negative integer
    index (ASCII digits, no leading zero), so
    ``data_get({"a": [{"b": 1}]}, "a.0.b")`` returns ``1``. An empty or None
    path returns ``target`` itself. If any segment is absent the default is
    returned.
    """
    if path is None or path == "":
        return target

    current = target
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not _is_index(segment):
                return default
            index = int(segment)
            if index >= len(current):
                return default
            current = current[index]
        else:
            return default
    return current
