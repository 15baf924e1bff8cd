"""
Number rendering and parsing for the digest text encoding.

The encoding is shared with implementations in other languages, so numbers
are rendered the way C's printf renders them and parsed strictly: Python's
``float()`` and ``int()`` also accept underscores and non-ASCII digits, which
other readers would reject.
"""

import re
from typing import Optional

FIELD_SEPARATOR = "/"
CENTROID_SEPARATOR = ":"

_ASCII_WHITESPACE = " \t\n\v\f\r"

_DOUBLE_PATTERN = re.compile(
    r"""
    [+-]?
    (?:
        (?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?
        |inf(?:inity)?
        |nan
    )
    """,
    re.VERBOSE | re.IGNORECASE | re.ASCII,
)
_INT_PATTERN = re.compile(r"[+-]?\d+", re.ASCII)

# Weights and counts are stored as signed 64-bit integers.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def format_compression(compression: float) -> str:
    """Render a compression value with six significant digits."""
    return "%g" % compression


def format_double(value: float) -> str:
    """Render a double with 17 significant digits, enough to round-trip."""
    return "%.17g" % value


def format_count(count: int) -> str:
    """Render an integer weight or count."""
    return "%d" % count


def parse_double(token: str) -> Optional[float]:
    """
    Parse a decimal floating point token.

    Surrounding ASCII whitespace is ignored. ``inf`` and ``nan`` are accepted.

    Returns:
        The parsed value, or None if the token is not a number.
    """
    token = token.strip(_ASCII_WHITESPACE)
    if not _DOUBLE_PATTERN.fullmatch(token):
        return None
    return float(token)


def parse_int(token: str) -> Optional[int]:
    """
    Parse a base-10 integer token.

    Returns:
        The parsed value, or None if the token is not an integer or does
        not fit in a signed 64-bit integer.
    """
    token = token.strip(_ASCII_WHITESPACE)
    if not _INT_PATTERN.fullmatch(token):
        return None
    value = int(token)
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value
