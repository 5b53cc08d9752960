"""Exception taxonomy for F06 parsing.

Only `StructuralFailure` ever escapes `parse()`. The other errors are raised
and caught inside the parser, or rebuilt from diagnostics by callers that want
strict behaviour (see `ParseResult.check`).
"""

from typing import Optional


class F06Error(Exception):
    """Base exception for f06kit errors."""


class MalformedNumber(F06Error, ValueError):
    """A token could not be decoded as the expected numeric type."""

    def __init__(self, token: str, column: Optional[str] = None, expected: str = "number"):
        self.token = token
        self.column = column
        self.expected = expected
        where = f" in column '{column}'" if column else ""
        super().__init__(f"Cannot decode {token!r} as {expected}{where}")


class RowShapeError(F06Error):
    """A data line does not carry the number of fields its layout expects."""


class BlockContinuityError(F06Error):
    """Column layout restated after a page break differs from the active block."""


class UnrecognizedBlock(F06Error):
    """A table title or header window matched no registered recognizer."""


class StructuralFailure(F06Error):
    """Input is not F06 text at all; no document can be produced."""
