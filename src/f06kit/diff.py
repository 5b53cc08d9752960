"""Diff engine - compare two parsed documents block by block.

Blocks are paired by identity (kind, subcase, secondary id). When an
identity occurs more than once in a document, occurrences are paired in
order of appearance. Rows are aligned by the recognizer's row key when both
blocks declare the same one, otherwise by position. Rows sharing a key are
paired the same way: the nth on the left with the nth on the right.
"""

import logging
from typing import Optional

from f06kit.config import settings
from f06kit.models import (
    Block,
    BlockComparison,
    BlockIdentity,
    BlockStatus,
    CellDelta,
    CellStatus,
    CellValue,
    ColumnType,
    DiffReport,
    Document,
    MissingRowPolicy,
    ToleranceConfig,
)
from f06kit.models.document import RowView

logger = logging.getLogger(__name__)


def _group(document: Document) -> dict[BlockIdentity, list[Block]]:
    groups: dict[BlockIdentity, list[Block]] = {}
    for block in document.blocks:
        groups.setdefault(block.identity, []).append(block)
    return groups


def _rows_by_key(block: Block) -> dict[tuple, list[RowView]]:
    rows: dict[tuple, list[RowView]] = {}
    for row in block.rows:
        rows.setdefault(block.key_of(row), []).append(row)
    return rows


def compare_cells(
    left: CellValue,
    right: CellValue,
    ctype: ColumnType,
    tolerance: ToleranceConfig,
) -> tuple[CellStatus, Optional[float], Optional[float]]:
    """Compare two values of one column.

    Returns:
        (status, absolute difference, relative difference); the differences
        are None unless both values are numbers.
    """
    if left is None and right is None:
        return CellStatus.EQUAL, None, None
    if left is None or right is None:
        return CellStatus.MISSING, None, None

    textual = ctype == ColumnType.TEXT
    if isinstance(left, str) != textual or isinstance(right, str) != textual:
        return CellStatus.TYPE_MISMATCH, None, None
    if textual:
        status = CellStatus.EQUAL if left == right else CellStatus.EXCEEDS_TOLERANCE
        return status, None, None

    delta = abs(left - right)
    scale = max(abs(left), abs(right))
    rel = delta / scale if scale else None
    if left == right:
        return CellStatus.EQUAL, delta, rel
    if tolerance.sign_changed(left, right):
        return CellStatus.SIGN_CHANGE, delta, rel
    if ctype == ColumnType.REAL and tolerance.within(left, right):
        return CellStatus.WITHIN_TOLERANCE, delta, rel
    return CellStatus.EXCEEDS_TOLERANCE, delta, rel


class _BlockDiffer:
    """Cell-by-cell comparison of one pair of same-identity blocks."""

    def __init__(
        self,
        left: Block,
        right: Block,
        tolerance: ToleranceConfig,
        include_equal: bool,
        missing_rows: MissingRowPolicy,
    ):
        self.left = left
        self.right = right
        self.tolerance = tolerance
        self.include_equal = include_equal
        self.missing_rows = missing_rows
        self.columns = list(dict.fromkeys(left.column_names + right.column_names))
        self.deltas: list[CellDelta] = []
        self.compared = 0

    def run(self, occurrence: int) -> BlockComparison:
        by_key = bool(self.left.row_key) and self.left.row_key == self.right.row_key
        mismatch = False
        if by_key:
            self._compare_keyed()
        else:
            mismatch = self._compare_positional()
        return BlockComparison(
            identity=self.left.identity,
            status=BlockStatus.MATCHED,
            occurrence=occurrence,
            left_rows=self.left.num_rows,
            right_rows=self.right.num_rows,
            aligned_by_key=by_key,
            row_count_mismatch=mismatch,
            compared_cells=self.compared,
            deltas=tuple(self.deltas),
        )

    def _compare_keyed(self):
        left_rows = _rows_by_key(self.left)
        right_rows = _rows_by_key(self.right)

        for key in dict.fromkeys([*left_rows, *right_rows]):
            lrows = left_rows.get(key, [])
            rrows = right_rows.get(key, [])
            for i in range(max(len(lrows), len(rrows))):
                lrow = lrows[i] if i < len(lrows) else None
                rrow = rrows[i] if i < len(rrows) else None
                if lrow is None or rrow is None:
                    self._one_sided(key, lrow, rrow)
                else:
                    self._compare_rows(key, lrow, rrow)

    def _one_sided(self, key: tuple, lrow: Optional[RowView], rrow: Optional[RowView]):
        if self.missing_rows == MissingRowPolicy.SKIP:
            return
        if self.missing_rows == MissingRowPolicy.FLAG:
            self.deltas.append(CellDelta(row=key, status=CellStatus.MISSING))
            return
        # Stand in an all-zero row for the absent side; key and text columns
        # have no zero and are left out.
        present, block = (lrow, self.left) if lrow is not None else (rrow, self.right)
        zeros = {
            c.name: 0 if c.ctype == ColumnType.INTEGER else 0.0
            for c in block.columns
            if c.ctype != ColumnType.TEXT and c.name not in block.row_key
        }
        if lrow is None:
            self._compare_rows(key, zeros, present, only=zeros)
        else:
            self._compare_rows(key, present, zeros, only=zeros)

    def _compare_positional(self) -> bool:
        for i, (lrow, rrow) in enumerate(zip(self.left.rows, self.right.rows)):
            self._compare_rows((i,), lrow, rrow)
        return self.left.num_rows != self.right.num_rows

    def _compare_rows(self, key: tuple, lrow: RowView, rrow: RowView, only=None):
        for name in self.columns:
            if only is not None and name not in only:
                continue
            lcol = self.left.column(name)
            rcol = self.right.column(name)
            self.compared += 1
            if lcol is None or rcol is None:
                status, abs_diff, rel_diff = CellStatus.MISSING, None, None
            elif lcol.ctype != rcol.ctype:
                status, abs_diff, rel_diff = CellStatus.TYPE_MISMATCH, None, None
            else:
                status, abs_diff, rel_diff = compare_cells(
                    lrow[name], rrow[name], lcol.ctype, self.tolerance
                )
            if status == CellStatus.EQUAL and not self.include_equal:
                continue
            self.deltas.append(
                CellDelta(
                    row=key,
                    column=name,
                    left=lrow.get(name),
                    right=rrow.get(name),
                    status=status,
                    abs_diff=abs_diff,
                    rel_diff=rel_diff,
                )
            )


def compare_blocks(
    left: Optional[Block],
    right: Optional[Block],
    tolerance: ToleranceConfig,
    include_equal: bool = False,
    occurrence: int = 0,
    missing_rows: MissingRowPolicy = MissingRowPolicy.FLAG,
) -> BlockComparison:
    """Compare one pair of blocks; either side may be absent."""
    if left is None and right is None:
        raise ValueError("compare_blocks needs at least one block")
    if right is None:
        return BlockComparison(
            identity=left.identity,
            status=BlockStatus.REMOVED,
            occurrence=occurrence,
            left_rows=left.num_rows,
        )
    if left is None:
        return BlockComparison(
            identity=right.identity,
            status=BlockStatus.ADDED,
            occurrence=occurrence,
            right_rows=right.num_rows,
        )
    return _BlockDiffer(left, right, tolerance, include_equal, missing_rows).run(occurrence)


def diff(
    left: Document,
    right: Document,
    tolerance: Optional[ToleranceConfig] = None,
    include_equal: bool = False,
    missing_rows: Optional[MissingRowPolicy] = None,
) -> DiffReport:
    """
    Compare two documents.

    Args:
        left: Reference document
        right: Document under test
        tolerance: Policy for numeric columns (defaults from settings)
        include_equal: Also record cells that compared equal
        missing_rows: Handling of keyed rows found on one side only
            (defaults from settings)

    Returns:
        DiffReport covering every identity present in either document
    """
    tolerance = tolerance or settings.tolerance
    missing_rows = missing_rows or settings.missing_rows
    left_groups = _group(left)
    right_groups = _group(right)

    comparisons = []
    for identity in dict.fromkeys([*left_groups, *right_groups]):
        lefts = left_groups.get(identity, [])
        rights = right_groups.get(identity, [])
        for occurrence in range(max(len(lefts), len(rights))):
            lblock = lefts[occurrence] if occurrence < len(lefts) else None
            rblock = rights[occurrence] if occurrence < len(rights) else None
            comparisons.append(
                compare_blocks(lblock, rblock, tolerance, include_equal, occurrence, missing_rows)
            )

    report = DiffReport(
        tolerance=tolerance, missing_rows=missing_rows, comparisons=tuple(comparisons)
    )
    logger.info(
        f"Diff: {len(report.matched)} matched, {len(report.added)} added, "
        f"{len(report.removed)} removed, {report.discrepancy_count} discrepancies"
    )
    return report
