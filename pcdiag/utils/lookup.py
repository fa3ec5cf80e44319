"""
Path Lookup Utilities for PC Diag
Nested snapshot lookups with defaults and typed conversion
"""

import math
from typing import Any, Iterable, List, Optional, Sequence, Union

_MISSING = object()

PathLike = Union[str, Sequence[str]]


def _split(path: PathLike) -> List[str]:
    if isinstance(path, str):
        return [part for part in path.split(".") if part]
    return list(path)


def _child(node: Any, key: str) -> Any:
    if not isinstance(node, dict):
        return _MISSING
    if key in node:
        return node[key]
    # Case-insensitive fallback, first match in document order
    lowered = key.lower()
    for candidate, value in node.items():
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return value
    return _MISSING


def lookup(root: Any, path: PathLike, default: Any = None) -> Any:
    """Walk ``root`` along a dotted path; return ``default`` when any hop is absent."""
    node = root
    for key in _split(path):
        node = _child(node, key)
        if node is _MISSING:
            return default
    return node


def has_path(root: Any, path: PathLike) -> bool:
    return lookup(root, path, _MISSING) is not _MISSING


def get_number(root: Any, path: PathLike, default: Optional[float] = None) -> Optional[float]:
    """Numeric value at path. Numeric strings are accepted, booleans are not."""
    value = lookup(root, path)
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return default
        return parsed if math.isfinite(parsed) else default
    return default


def get_int(root: Any, path: PathLike, default: Optional[int] = None) -> Optional[int]:
    value = lookup(root, path)
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def get_bool(root: Any, path: PathLike, default: Optional[bool] = None) -> Optional[bool]:
    """Only genuine JSON booleans count."""
    value = lookup(root, path)
    if isinstance(value, bool):
        return value
    return default


def get_str(root: Any, path: PathLike, default: Optional[str] = None) -> Optional[str]:
    value = lookup(root, path)
    if isinstance(value, str) and value:
        return value
    return default


def get_list(root: Any, path: PathLike) -> List[Any]:
    value = lookup(root, path)
    return value if isinstance(value, list) else []


def format_number(value: Any) -> str:
    """Render a number the way messages show it: 96.0 -> "96", 96.5 -> "96.5"."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_measure(text: Optional[str], units: Iterable[str] = ()) -> Optional[float]:
    """Parse a display string such as ``"96 °C"`` or ``"3 GB"`` into a float.

    Each unit suffix in ``units`` is stripped before parsing; a comma decimal
    separator is accepted.
    """
    if text is None:
        return None
    cleaned = str(text)
    for unit in units:
        cleaned = cleaned.replace(unit, "")
    cleaned = cleaned.strip().replace(",", ".")
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None
