"""Diff report models - comparison of two parsed documents."""

import math
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import BaseF06Model, CellValue
from .document import BlockIdentity


class ToleranceMode(str, Enum):
    """How real-valued cells are compared."""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"
    ABSOLUTE_OR_RELATIVE = "absolute_or_relative"


class CellStatus(str, Enum):
    """Outcome of comparing one aligned cell (or row)."""

    EQUAL = "equal"
    WITHIN_TOLERANCE = "within_tolerance"
    EXCEEDS_TOLERANCE = "exceeds_tolerance"
    SIGN_CHANGE = "sign_change"
    TYPE_MISMATCH = "type_mismatch"
    MISSING = "missing"

    @property
    def is_discrepancy(self) -> bool:
        return self not in (CellStatus.EQUAL, CellStatus.WITHIN_TOLERANCE)


class BlockStatus(str, Enum):
    """Whether a block identity exists on both sides."""

    MATCHED = "matched"
    ADDED = "added"  # only in the right document
    REMOVED = "removed"  # only in the left document


class MissingRowPolicy(str, Enum):
    """What to do with a keyed row that only one block has."""

    SKIP = "skip"  # leave it out of the comparison
    ZERO = "zero"  # compare it against an all-zero row
    FLAG = "flag"  # report the whole row as missing


class ToleranceConfig(BaseF06Model):
    """Tolerance policy for numeric columns.

    Relative tolerance is measured against the larger magnitude of the pair.
    With `flag_sign_change`, a pair of opposite signs is a discrepancy even
    when it is within tolerance; zero has no sign.
    """

    mode: ToleranceMode = Field(default=ToleranceMode.ABSOLUTE_OR_RELATIVE)
    abs_tol: float = Field(default=0.0, ge=0.0)
    rel_tol: float = Field(default=0.0, ge=0.0)
    flag_sign_change: bool = False

    @classmethod
    def exact(cls) -> "ToleranceConfig":
        return cls(mode=ToleranceMode.ABSOLUTE, abs_tol=0.0)

    def sign_changed(self, a: float, b: float) -> bool:
        """Check if sign flips are flagged and a, b have opposite signs."""
        return self.flag_sign_change and ((a > 0 and b < 0) or (a < 0 and b > 0))

    def within(self, a: float, b: float) -> bool:
        """Check if two reals agree under this policy."""
        if a == b:
            return True
        if math.isnan(a) or math.isnan(b):
            return False
        delta = abs(a - b)
        abs_ok = delta <= self.abs_tol
        rel_ok = delta <= self.rel_tol * max(abs(a), abs(b))
        if self.mode == ToleranceMode.ABSOLUTE:
            return abs_ok
        if self.mode == ToleranceMode.RELATIVE:
            return rel_ok
        return abs_ok or rel_ok


class CellDelta(BaseF06Model):
    """One aligned cell (or whole row, when column is None) that was compared."""

    row: tuple[CellValue, ...] = Field(
        ..., description="Row key values, or (position,) for positional alignment"
    )
    column: Optional[str] = Field(None, description="None when a whole row is missing")
    left: CellValue = None
    right: CellValue = None
    status: CellStatus
    abs_diff: Optional[float] = None
    rel_diff: Optional[float] = None

    def describe(self) -> str:
        where = f"row {self.row}" + (f", {self.column}" if self.column else "")
        if self.abs_diff is not None:
            return f"{where}: {self.left!r} vs {self.right!r} (|diff| = {self.abs_diff:.6g})"
        return f"{where}: {self.left!r} vs {self.right!r} ({self.status.value})"


class BlockComparison(BaseF06Model):
    """Comparison of one block identity between the two documents."""

    identity: BlockIdentity
    status: BlockStatus
    occurrence: int = Field(default=0, ge=0, description="Index among same-identity blocks")
    left_rows: int = 0
    right_rows: int = 0
    aligned_by_key: bool = False
    row_count_mismatch: bool = False
    compared_cells: int = 0
    deltas: tuple[CellDelta, ...] = Field(default_factory=tuple)

    @property
    def discrepancies(self) -> list[CellDelta]:
        return [d for d in self.deltas if d.status.is_discrepancy]

    @property
    def has_discrepancies(self) -> bool:
        if self.status != BlockStatus.MATCHED or self.row_count_mismatch:
            return True
        return any(d.status.is_discrepancy for d in self.deltas)


class DiffReport(BaseF06Model):
    """Result of diffing two documents."""

    tolerance: ToleranceConfig
    missing_rows: MissingRowPolicy = MissingRowPolicy.FLAG
    comparisons: tuple[BlockComparison, ...] = Field(default_factory=tuple)

    def _with_status(self, status: BlockStatus) -> list[BlockComparison]:
        return [c for c in self.comparisons if c.status == status]

    @property
    def matched(self) -> list[BlockComparison]:
        return self._with_status(BlockStatus.MATCHED)

    @property
    def added(self) -> list[BlockComparison]:
        return self._with_status(BlockStatus.ADDED)

    @property
    def removed(self) -> list[BlockComparison]:
        return self._with_status(BlockStatus.REMOVED)

    @property
    def discrepancy_count(self) -> int:
        """Cell-level discrepancies plus block-level row count mismatches."""
        return sum(
            len(c.discrepancies) + int(c.row_count_mismatch) for c in self.matched
        )

    @property
    def is_clean(self) -> bool:
        """True when both documents agree within tolerance everywhere."""
        return not self.added and not self.removed and self.discrepancy_count == 0
