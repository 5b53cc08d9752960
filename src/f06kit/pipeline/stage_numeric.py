"""Numeric Literal Decoder - Fortran-style fixed-width numbers.

Solvers print reals in constrained-width fields. When the exponent does not
fit, the E/D marker is dropped and the exponent sign abuts the mantissa:

    -1.23450+05   ->  -1.2345e5
     1.0D-03      ->   1.0e-3
    -1.23450      ->  -1.2345

An exponent-elided token needs a decimal point in the mantissa, a second
sign after it, and nothing but digits after that sign. Two adjacent fields
run together (``1.234-5.678``) therefore fail loudly instead of being read
as a tiny number.
"""

import math
import re
from typing import Optional

from f06kit.errors import MalformedNumber
from f06kit.models import CellValue, Column, ColumnType

# Solver placeholders that mean "no value printed here".
ABSENT_TOKENS = frozenset({"N/A", "NA", "N.A."})

_DASH_RUN = re.compile(r"^-{2,}$")
_INTEGER = re.compile(r"^[+-]?\d+$")
_REAL_MARKED = re.compile(
    r"^(?P<mantissa>[+-]?(?:\d+\.\d*|\.\d+|\d+))(?:[EeDd](?P<exponent>[+-]?\d+))?$"
)
_REAL_ELIDED = re.compile(
    r"^(?P<mantissa>[+-]?(?:\d+\.\d*|\.\d+))(?P<exponent>[+-]\d+)$"
)


def is_absent(token: str) -> bool:
    """Check if a token is blank or a not-available placeholder."""
    text = token.strip()
    return not text or text.upper() in ABSENT_TOKENS or bool(_DASH_RUN.match(text))


def looks_integer(token: str) -> bool:
    return bool(_INTEGER.match(token.strip()))


def looks_real(token: str) -> bool:
    """Check if a token decodes as a real (any accepted notation)."""
    text = token.strip()
    return bool(_REAL_MARKED.match(text) or _REAL_ELIDED.match(text))


def decode_real(token: str, column: Optional[str] = None) -> Optional[float]:
    """Decode a real-valued token.

    Args:
        token: Raw field text, surrounding whitespace allowed.
        column: Column name, used only for error attribution.

    Returns:
        The value, or None if the token is an absent placeholder.

    Raises:
        MalformedNumber: The token is not a number in any accepted notation.
    """
    text = token.strip()
    if is_absent(text):
        return None

    match = _REAL_MARKED.match(text) or _REAL_ELIDED.match(text)
    if match is None:
        raise MalformedNumber(token, column=column, expected="real")

    mantissa = match.group("mantissa")
    exponent = match.group("exponent")
    literal = f"{mantissa}e{exponent}" if exponent else mantissa
    value = float(literal)
    if math.isinf(value):
        raise MalformedNumber(token, column=column, expected="finite real")
    return value


def decode_integer(token: str, column: Optional[str] = None) -> Optional[int]:
    """Decode an integer token (digits with optional sign)."""
    text = token.strip()
    if is_absent(text):
        return None
    if not _INTEGER.match(text):
        raise MalformedNumber(token, column=column, expected="integer")
    return int(text)


def decode_cell(token: str, column: Column) -> CellValue:
    """Decode a token according to a column's semantic type."""
    if column.ctype == ColumnType.INTEGER:
        return decode_integer(token, column.name)
    if column.ctype == ColumnType.REAL:
        return decode_real(token, column.name)
    text = token.strip()
    return text or None


def encode_real(value: float, width: int = 11, precision: int = 5) -> str:
    """Render a real in exponent-elided style, right-justified in `width`.

    >>> encode_real(-123450.0)
    '-1.23450+05'
    """
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"Cannot encode non-finite value {value!r}")
    mantissa, exponent = f"{value:.{precision}E}".split("E")
    exp = int(exponent)
    sign = "+" if exp >= 0 else "-"
    return f"{mantissa}{sign}{abs(exp):02d}".rjust(width)
