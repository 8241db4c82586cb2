"""
Run identifiers for mapping calls.

Each top-level transform/merge call is tagged with a ULID so log lines and
errors from one call can be correlated:
- 26 characters
- Uppercase Crockford base32
- Lexicographically sortable by creation time

Example:
    01JFH3Q8Z1Q9F0XG3V7N4K2M8C
"""

from datetime import datetime
from typing import Optional

from ulid import ULID

CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def generate_run_id(timestamp: Optional[datetime] = None) -> str:
    """
    Generate a ULID string for a mapping run.

    Args:
        timestamp: Optional datetime to use for the ULID's time component.
                   If None, uses current time.

    Returns:
        26-character uppercase ULID string.
    """
    if timestamp is not None:
        ulid_obj = ULID.from_datetime(timestamp)
    else:
        ulid_obj = ULID()

    return str(ulid_obj).upper()


def validate_run_id(value: str) -> bool:
    """Check that a string is a well-formed run identifier."""
    if len(value) != 26:
        return False

    return all(char in CROCKFORD_ALPHABET for char in value)
