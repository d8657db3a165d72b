"""
Hash utility functions.

Provides SHA-256 hashing, canonical JSON digests for cache keys, and
unique ID generation.
"""

import hashlib
import json
import secrets
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def compute_sha256(data: bytes | str) -> str:
    """
    Compute SHA-256 hash of data.

    Args:
        data: Bytes or string to hash.

    Returns:
        Hexadecimal SHA-256 hash string.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    return hashlib.sha256(data).hexdigest()


def _canonical_default(value: Any) -> Any:
    """JSON fallback for values the encoder does not know."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, set | frozenset):
        return sorted(value, key=str)
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return str(value)


def canonical_json(value: Any) -> str:
    """
    Serialize a value to canonical JSON.

    Keys are sorted and separators fixed so that structurally equal
    values always produce the same text.
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_canonical_default,
    )


def stable_digest(value: Any) -> str:
    """
    Compute a SHA-256 digest over the canonical JSON form of a value.

    Args:
        value: JSON-like structure (dicts, lists, scalars, enums, datetimes).

    Returns:
        Hexadecimal digest.

    Example:
        stable_digest({"b": 1, "a": 2}) == stable_digest({"a": 2, "b": 1})
    """
    return compute_sha256(canonical_json(value))


def generate_unique_id(prefix: str = "", length: int = 32) -> str:
    """
    Generate a cryptographically secure unique ID.

    Args:
        prefix: Optional prefix for the ID.
        length: Length of the random portion (max 64).

    Returns:
        Unique identifier string.
    """
    length = min(length, 64)
    random_hex = secrets.token_hex(length // 2)

    if prefix:
        return f"{prefix}_{random_hex}"

    return random_hex
