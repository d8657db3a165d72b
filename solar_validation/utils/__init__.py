"""
Utility modules for the solar validation engine.

Provides hashing, timestamp parsing and nested record traversal helpers.
"""

from solar_validation.utils.date_utils import (
    age_seconds,
    get_current_timestamp,
    parse_timestamp,
)
from solar_validation.utils.hash_utils import (
    canonical_json,
    compute_sha256,
    generate_unique_id,
    stable_digest,
)
from solar_validation.utils.record_utils import (
    count_fields,
    get_path,
    has_path,
    is_empty,
    to_float,
)


__all__ = [
    # Date utilities
    "age_seconds",
    "get_current_timestamp",
    "parse_timestamp",
    # Hash utilities
    "canonical_json",
    "compute_sha256",
    "generate_unique_id",
    "stable_digest",
    # Record utilities
    "count_fields",
    "get_path",
    "has_path",
    "is_empty",
    "to_float",
]
