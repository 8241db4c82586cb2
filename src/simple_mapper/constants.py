"""
Constants and enums for the mapping engine.

Centralizes type classification tables and configuration names so the
accessor cache, convention matcher and executor agree on them.
"""

import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePath


class WriteMode(str, Enum):
    """How resolved values are written to the destination."""

    FULL = "full"
    PATCH = "patch"


class TypeKind(str, Enum):
    """Classification of a member's declared type."""

    SIMPLE = "simple"
    COMPLEX = "complex"
    SEQUENCE = "sequence"
    OPAQUE = "opaque"


# Scalar types copied by value; Enum subclasses are handled separately
SIMPLE_TYPES: frozenset[type] = frozenset(
    {
        int,
        float,
        complex,
        bool,
        str,
        bytes,
        bytearray,
        Decimal,
        Fraction,
        datetime,
        date,
        time,
        timedelta,
        uuid.UUID,
        PurePath,
    }
)

# 0 means no depth limit
UNLIMITED_DEPTH = 0

# Environment variables read when the matching constructor argument is None
ENV_CONVENTION_FALLBACK = "SIMPLE_MAPPER_CONVENTION_FALLBACK"
ENV_STRICT_REVERSE = "SIMPLE_MAPPER_STRICT_REVERSE"

FALSE_VALUES = frozenset({"0", "false", "no", "off"})
