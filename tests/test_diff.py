"""Tests for the diff engine."""

import pytest

from f06kit.diff import compare_blocks, compare_cells, diff
from f06kit.models import (
    Block,
    BlockStatus,
    CellStatus,
    Column,
    ColumnType,
    Document,
    MissingRowPolicy,
    ToleranceConfig,
    ToleranceMode,
)
from f06kit.pipeline import parse

EXACT = ToleranceConfig.exact()


def _positional(values, kind="eigenvalue_table"):
    return Block(
        kind=kind,
        subcase_id=1,
        columns=(Column(name="value"),),
        rows=tuple({"value": v} for v in values),
    )


def _keyed(*rows):
    """Displacement-like block keyed by grid."""
    return Block(
        kind="displacement",
        subcase_id=1,
        columns=(Column(name="grid", ctype=ColumnType.INTEGER), Column(name="t1")),
        rows=tuple({"grid": grid, "t1": t1} for grid, t1 in rows),
        row_key=("grid",),
    )


class TestTolerance:
    """Tests for ToleranceConfig."""

    def test_modes(self):
        a, b = 100.0, 100.5

        assert ToleranceConfig(mode=ToleranceMode.ABSOLUTE, abs_tol=1.0).within(a, b)
        assert not ToleranceConfig(mode=ToleranceMode.ABSOLUTE, abs_tol=0.1).within(a, b)
        assert ToleranceConfig(mode=ToleranceMode.RELATIVE, rel_tol=0.01).within(a, b)
        assert not ToleranceConfig(mode=ToleranceMode.RELATIVE, rel_tol=0.001).within(a, b)
        either = ToleranceConfig(abs_tol=0.1, rel_tol=0.01)
        assert either.within(a, b)

    def test_exact_only_accepts_equal(self):
        assert EXACT.within(1.0, 1.0)
        assert not EXACT.within(1.0, 1.0 + 1e-12)

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError):
            ToleranceConfig(abs_tol=-1.0)


class TestCompareCells:
    """Tests for single-cell comparison."""

    def test_statuses(self):
        loose = ToleranceConfig(abs_tol=0.01)

        assert compare_cells(1.0, 1.0, ColumnType.REAL, EXACT)[0] == CellStatus.EQUAL
        assert compare_cells(1.0, 1.005, ColumnType.REAL, loose)[0] == CellStatus.WITHIN_TOLERANCE
        assert compare_cells(1.0, 1.5, ColumnType.REAL, loose)[0] == CellStatus.EXCEEDS_TOLERANCE
        assert compare_cells(None, 1.0, ColumnType.REAL, loose)[0] == CellStatus.MISSING
        assert compare_cells(None, None, ColumnType.REAL, loose)[0] == CellStatus.EQUAL
        assert compare_cells("G", "S", ColumnType.TEXT, loose)[0] == CellStatus.EXCEEDS_TOLERANCE

    def test_integers_ignore_tolerance(self):
        status, abs_diff, _ = compare_cells(1, 2, ColumnType.INTEGER, ToleranceConfig(abs_tol=5.0))

        assert status == CellStatus.EXCEEDS_TOLERANCE
        assert abs_diff == 1

    def test_relative_difference(self):
        _, abs_diff, rel_diff = compare_cells(100.0, 110.0, ColumnType.REAL, EXACT)

        assert abs_diff == pytest.approx(10.0)
        assert rel_diff == pytest.approx(10.0 / 110.0)

    def test_text_against_number(self):
        assert compare_cells(1.0, "abc", ColumnType.REAL, EXACT)[0] == CellStatus.TYPE_MISMATCH
        assert compare_cells("abc", 1.0, ColumnType.TEXT, EXACT)[0] == CellStatus.TYPE_MISMATCH
        assert compare_cells(2, "2", ColumnType.INTEGER, EXACT)[0] == CellStatus.TYPE_MISMATCH

    def test_sign_change(self):
        loose = ToleranceConfig(abs_tol=10.0)
        signed = ToleranceConfig(abs_tol=10.0, flag_sign_change=True)

        assert compare_cells(1e-3, -1e-3, ColumnType.REAL, loose)[0] == CellStatus.WITHIN_TOLERANCE
        assert compare_cells(1e-3, -1e-3, ColumnType.REAL, signed)[0] == CellStatus.SIGN_CHANGE
        assert compare_cells(-3, 4, ColumnType.INTEGER, signed)[0] == CellStatus.SIGN_CHANGE

    def test_zero_has_no_sign(self):
        signed = ToleranceConfig(abs_tol=10.0, flag_sign_change=True)

        assert compare_cells(0.0, -1.0, ColumnType.REAL, signed)[0] == CellStatus.WITHIN_TOLERANCE
        assert not signed.sign_changed(0.0, 0.0)


class TestDiffDocuments:
    """Tests for whole-document diffs."""

    def test_self_diff_is_clean(self, msc_static, msc_elements):
        for result in (msc_static, msc_elements):
            report = diff(result.document, result.document, tolerance=EXACT)

            assert report.is_clean
            assert report.discrepancy_count == 0
            assert all(c.status == BlockStatus.MATCHED for c in report.comparisons)

    def test_missing_subcase_reported_as_removed(self, msc_static_text):
        left = parse(msc_static_text).document
        right = parse(msc_static_text[: msc_static_text.index("SUBCASE 2")]).document

        report = diff(left, right, tolerance=EXACT)

        assert [c.identity for c in report.removed] == [("displacement", 2, None)]
        assert report.added == []
        assert not report.is_clean

    def test_tolerance_decides(self, msc_static_text):
        left = parse(msc_static_text).document
        right = parse(msc_static_text.replace("1.234500E-03", "1.234600E-03")).document

        strict = diff(left, right, tolerance=ToleranceConfig(mode=ToleranceMode.ABSOLUTE, abs_tol=1e-9))
        loose = diff(left, right, tolerance=ToleranceConfig(mode=ToleranceMode.RELATIVE, rel_tol=1e-3))

        (delta,) = strict.matched[0].discrepancies
        assert delta.row == (2,)
        assert delta.column == "t1"
        assert delta.status == CellStatus.EXCEEDS_TOLERANCE
        assert strict.discrepancy_count == 1
        assert loose.is_clean
        assert loose.matched[0].deltas[0].status == CellStatus.WITHIN_TOLERANCE

    def test_keyed_rows_missing_on_one_side(self, msc_static_text):
        left = parse(msc_static_text).document
        right = parse(msc_static_text.replace("             6      G", "             7      G")).document

        report = diff(left, right, tolerance=EXACT)

        spc = [c for c in report.matched if c.identity.kind == "spc_force"][0]
        missing = [d for d in spc.discrepancies if d.status == CellStatus.MISSING]
        assert [d.row for d in missing] == [(6,), (7,)]
        assert all(d.column is None for d in missing)

    def _one_sided_documents(self, msc_static_text):
        left = parse(msc_static_text).document
        right = parse(msc_static_text.replace("             6      G", "             7      G")).document
        return left, right

    def test_one_sided_rows_skipped(self, msc_static_text):
        left, right = self._one_sided_documents(msc_static_text)

        report = diff(left, right, tolerance=EXACT, missing_rows=MissingRowPolicy.SKIP)

        assert report.missing_rows == MissingRowPolicy.SKIP
        assert report.is_clean

    def test_one_sided_rows_compared_against_zero(self, msc_static_text):
        left, right = self._one_sided_documents(msc_static_text)

        report = diff(left, right, tolerance=EXACT, missing_rows=MissingRowPolicy.ZERO)

        spc = [c for c in report.matched if c.identity.kind == "spc_force"][0]
        assert [(d.row, d.column) for d in spc.discrepancies] == [
            ((6,), "t1"), ((6,), "t3"), ((7,), "t1"), ((7,), "t3")
        ]
        assert all(d.status == CellStatus.EXCEEDS_TOLERANCE for d in spc.discrepancies)
        first = spc.discrepancies[0]
        assert (first.left, first.right) == (100.0, 0.0)

    def test_zero_stand_in_within_tolerance(self, msc_static_text):
        left, right = self._one_sided_documents(msc_static_text)
        loose = ToleranceConfig(abs_tol=1000.0)

        report = diff(left, right, tolerance=loose, missing_rows=MissingRowPolicy.ZERO)

        assert report.is_clean

    def test_include_equal(self, msc_static):
        document = msc_static.document
        report = diff(document, document, tolerance=EXACT, include_equal=True)

        comparison = report.matched[0]
        assert comparison.compared_cells == 5 * 8
        assert len(comparison.deltas) == comparison.compared_cells
        assert report.is_clean

    def test_same_identity_paired_in_order(self):
        first, second = _positional([1.0]), _positional([2.0])
        left = Document(blocks=(first, second))
        right = Document(blocks=(first,))

        report = diff(left, right, tolerance=EXACT)

        assert [(c.status, c.occurrence) for c in report.comparisons] == [
            (BlockStatus.MATCHED, 0),
            (BlockStatus.REMOVED, 1),
        ]


class TestCompareBlocks:
    """Tests for block-level comparison."""

    def test_positional_row_count_mismatch(self):
        comparison = compare_blocks(_positional([1.0, 2.0, 3.0]), _positional([1.0, 2.5]), EXACT)

        assert not comparison.aligned_by_key
        assert comparison.row_count_mismatch
        assert comparison.compared_cells == 2
        assert [d.row for d in comparison.discrepancies] == [(1,)]

    def test_column_type_mismatch(self):
        left = _positional([1.0])
        right = Block(
            kind=left.kind,
            subcase_id=1,
            columns=(Column(name="value", ctype=ColumnType.TEXT),),
            rows=({"value": "1.0"},),
        )

        comparison = compare_blocks(left, right, EXACT)

        assert comparison.deltas[0].status == CellStatus.TYPE_MISMATCH

    def test_column_only_on_one_side(self):
        left = _positional([1.0])
        right = Block(
            kind=left.kind,
            subcase_id=1,
            columns=(Column(name="value"), Column(name="extra")),
            rows=({"value": 1.0, "extra": 2.0},),
        )

        comparison = compare_blocks(left, right, EXACT)

        (delta,) = comparison.deltas
        assert delta.column == "extra"
        assert delta.status == CellStatus.MISSING

    def test_added_block(self):
        comparison = compare_blocks(None, _positional([1.0]), EXACT)

        assert comparison.status == BlockStatus.ADDED
        assert comparison.right_rows == 1
        assert comparison.has_discrepancies

    def test_duplicate_keys_paired_in_order(self):
        left = Document(blocks=(_keyed((1, 1.0), (1, 2.0)),))
        right = Document(blocks=(_keyed((1, 1.0), (1, 999.0)),))

        report = diff(left, right, tolerance=EXACT)

        assert not report.is_clean
        (delta,) = report.matched[0].discrepancies
        assert (delta.row, delta.column, delta.status) == ((1,), "t1", CellStatus.EXCEEDS_TOLERANCE)
        assert (delta.left, delta.right) == (2.0, 999.0)

    def test_unpaired_duplicate_reported_missing(self):
        comparison = compare_blocks(_keyed((1, 1.0), (1, 2.0)), _keyed((1, 1.0)), EXACT)

        assert comparison.aligned_by_key
        assert [(d.row, d.column, d.status) for d in comparison.discrepancies] == [
            ((1,), None, CellStatus.MISSING)
        ]
