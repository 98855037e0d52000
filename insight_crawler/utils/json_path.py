# utils/json_path.py

"""
Typed evaluation of dotted paths over decoded JSON.

A lookup distinguishes a missing field from a field holding a value of the
wrong type, so callers can tell a bad mapping from an unexpected payload.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], dict]


class PathStatus(Enum):
    FOUND = "found"
    MISSING = "missing"
    WRONG_TYPE = "wrong_type"


@dataclass(frozen=True)
class PathResult:
    status: PathStatus
    value: Any = None

    @property
    def found(self) -> bool:
        return self.status == PathStatus.FOUND


def _segments(path: str) -> List[str]:
    return [segment for segment in path.split(".") if segment]


def lookup(data: JsonValue, path: Optional[str]) -> PathResult:
    """
    Walk a dotted path such as "data.items" or "posts.0.title".

    An empty path returns the value itself. Numeric segments index lists.
    """
    if not path:
        return PathResult(PathStatus.FOUND, data)

    current: Any = data
    for segment in _segments(path):
        if isinstance(current, dict):
            if segment not in current:
                return PathResult(PathStatus.MISSING)
            current = current[segment]
        elif isinstance(current, list):
            if not segment.isdigit():
                return PathResult(PathStatus.WRONG_TYPE, current)
            index = int(segment)
            if index >= len(current):
                return PathResult(PathStatus.MISSING)
            current = current[index]
        else:
            return PathResult(PathStatus.WRONG_TYPE, current)
    return PathResult(PathStatus.FOUND, current)


def get_list(data: JsonValue, path: Optional[str]) -> PathResult:
    """Lookup that additionally requires the value to be a list."""
    result = lookup(data, path)
    if result.found and not isinstance(result.value, list):
        return PathResult(PathStatus.WRONG_TYPE, result.value)
    return result


def get_text(data: JsonValue, path: Optional[str]) -> Optional[str]:
    """Lookup a scalar and render it as a stripped string, or None."""
    if not path:
        return None
    result = lookup(data, path)
    if not result.found or result.value is None:
        return None
    if isinstance(result.value, (str, int, float)) and not isinstance(
        result.value, bool
    ):
        text = str(result.value).strip()
        return text or None
    return None


def find_object_array(
    data: JsonValue,
    min_items: int,
    max_items: int,
    max_depth: int,
    _path: str = "",
    _depth: int = 0,
) -> Optional[PathResult]:
    """
    Breadth-limited search for the first list of objects within size bounds.

    Returns a FOUND result whose value is (path, list), or None.
    """
    if isinstance(data, list):
        if min_items <= len(data) <= max_items and all(
            isinstance(entry, dict) for entry in data
        ):
            return PathResult(PathStatus.FOUND, (_path, data))
        return None
    if not isinstance(data, dict) or _depth >= max_depth:
        return None
    for key, value in data.items():
        child_path = f"{_path}.{key}" if _path else key
        found = find_object_array(
            value, min_items, max_items, max_depth, child_path, _depth + 1
        )
        if found:
            return found
    return None
