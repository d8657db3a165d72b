"""
Record traversal helpers.

Dotted-path lookup into nested mappings and sequences, numeric coercion
and field counting shared by the rule executor and the cross-validation
engine.
"""

from collections.abc import Mapping, Sequence
from typing import Any


_MISSING = object()


def get_path(record: Any, path: str | None, default: Any = None) -> Any:
    """
    Resolve a dotted path inside a nested record.

    Integer segments index into lists, so ``"panels.0.stc.voltage"`` reads
    the first panel's STC voltage. ``None`` and ``"*"`` return the record
    itself.

    Args:
        record: Nested dict/list structure.
        path: Dotted path.
        default: Value returned when any segment is missing.

    Returns:
        Resolved value or default.
    """
    if path in (None, "", "*"):
        return record

    current = record
    for segment in path.split("."):
        current = _step(current, segment)
        if current is _MISSING:
            return default
    return current


def has_path(record: Any, path: str) -> bool:
    """Check whether a dotted path resolves to a present value."""
    return get_path(record, path, _MISSING) is not _MISSING


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment, _MISSING)
    if isinstance(current, Sequence) and not isinstance(current, str | bytes):
        try:
            return current[int(segment)]
        except (ValueError, IndexError):
            return _MISSING
    return _MISSING


def to_float(value: Any) -> float | None:
    """
    Convert a value to float, tolerating currency strings.

    Returns None for missing, boolean or non-numeric values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        cleaned = value.replace("$", "").replace(",", "").strip()
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def is_empty(value: Any) -> bool:
    """Check if a value is None, blank text or an empty collection."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | dict | tuple | set):
        return len(value) == 0
    return False


def count_fields(value: Any) -> int:
    """
    Count mapping keys recursively.

    Nested mappings count their own key plus their children; lists are
    walked but do not add to the count themselves.
    """
    if isinstance(value, Mapping):
        return sum(1 + count_fields(child) for child in value.values())
    if isinstance(value, list | tuple):
        return sum(count_fields(item) for item in value)
    return 0
