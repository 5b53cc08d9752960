"""Document-level models: blocks of typed rows grouped by subcase."""

from collections import Counter
from types import MappingProxyType
from typing import Iterator, Mapping, NamedTuple, Optional

from pydantic import Field, field_serializer, field_validator, model_validator

from .base import BaseF06Model, CellValue, Column, ColumnType, Solver, SubcaseId

# Read-only view of one row: column name -> typed value
RowView = Mapping[str, CellValue]

# Python types a value may have in each kind of column (None is always allowed)
VALUE_TYPES = {
    ColumnType.INTEGER: (int,),
    ColumnType.REAL: (int, float),
    ColumnType.TEXT: (str,),
}


class BlockIdentity(NamedTuple):
    """(kind, subcase, secondary id) triple that names a logical table."""

    kind: str
    subcase_id: SubcaseId
    secondary_id: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.kind} (subcase {self.subcase_id}"
        if self.secondary_id is not None:
            text += f", {self.secondary_id}"
        return text + ")"


class Block(BaseF06Model):
    """
    One recognized table within one subcase.

    A block may span several printed pages; the parser stitches continuation
    pages into one block. Every row maps each declared column name to a typed
    value, with None for values the solver did not print. Rows are stored as
    read-only mappings; use `to_dict_records` for editable copies.
    """

    kind: str = Field(..., description="Table kind tag, e.g. 'displacement'")
    subcase_id: SubcaseId
    secondary_id: Optional[str] = Field(
        None, description="Element type, mode number, etc. when a kind repeats per subcase"
    )
    title: str = Field(default="", description="Un-spaced table title as printed")
    recognizer: str = Field(default="", description="Name of the recognizer that built it")
    columns: tuple[Column, ...]
    rows: tuple[dict[str, CellValue], ...] = Field(default_factory=tuple)
    row_key: tuple[str, ...] = Field(
        default_factory=tuple, description="Columns that identify a row, empty = positional"
    )

    # Provenance
    first_line: int = Field(default=1, ge=1)
    last_line: int = Field(default=1, ge=1)
    start_page: Optional[int] = None
    end_page: Optional[int] = None

    @field_validator("rows")
    @classmethod
    def _freeze_rows(cls, rows) -> tuple[RowView, ...]:
        return tuple(MappingProxyType(dict(row)) for row in rows)

    @field_serializer("rows")
    def _dump_rows(self, rows) -> list[dict[str, CellValue]]:
        return [dict(row) for row in rows]

    @model_validator(mode="after")
    def _check_schema(self) -> "Block":
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate column names in {self.kind} layout: {names}")
        expected = set(names)
        for i, row in enumerate(self.rows):
            if set(row) != expected:
                raise ValueError(
                    f"Row {i} of {self.kind} has keys {sorted(row)}, expected {sorted(expected)}"
                )
            for col in self.columns:
                value = row[col.name]
                if value is not None and not isinstance(value, VALUE_TYPES[col.ctype]):
                    raise ValueError(
                        f"Row {i} of {self.kind}: {col.name} = {value!r} "
                        f"is not a {col.ctype.value} value"
                    )
        unknown = [k for k in self.row_key if k not in expected]
        if unknown:
            raise ValueError(f"Row key columns {unknown} not in layout")
        return self

    @property
    def identity(self) -> BlockIdentity:
        return BlockIdentity(self.kind, self.subcase_id, self.secondary_id)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def is_multi_page(self) -> bool:
        """Check if the block was stitched from several pages."""
        return (
            self.start_page is not None
            and self.end_page is not None
            and self.end_page > self.start_page
        )

    def column(self, name: str) -> Optional[Column]:
        """Get a column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def column_type(self, name: str) -> ColumnType:
        """Semantic type of a column. Raises KeyError for unknown names."""
        col = self.column(name)
        if col is None:
            raise KeyError(f"{self.kind} has no column '{name}'")
        return col.ctype

    def iter_rows(self) -> Iterator[RowView]:
        """Iterate rows in source order."""
        return iter(self.rows)

    def key_of(self, row: RowView) -> tuple[CellValue, ...]:
        """Natural key of a row, per the recognizer's declared row key."""
        return tuple(row[k] for k in self.row_key)

    def get_column_values(self, name: str) -> list[CellValue]:
        """All values in a column, in row order."""
        if self.column(name) is None:
            raise KeyError(f"{self.kind} has no column '{name}'")
        return [row[name] for row in self.rows]

    def to_dict_records(self) -> list[dict[str, CellValue]]:
        """Copy of the rows as plain dicts (one per row)."""
        return [dict(row) for row in self.rows]


class Document(BaseF06Model):
    """
    Parse result for one F06 file.

    Blocks are kept in order of first appearance. The document is immutable
    once the parser builds it, so it can be shared between readers freely.
    """

    blocks: tuple[Block, ...] = Field(default_factory=tuple)
    solver: Optional[Solver] = Field(None, description="Solver detected from page banners")
    line_count: int = Field(default=0, ge=0)
    page_count: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return not self.blocks

    def iter_blocks(self) -> Iterator[Block]:
        return iter(self.blocks)

    def find(
        self,
        kind: Optional[str] = None,
        subcase_id: Optional[SubcaseId] = None,
        secondary_id: Optional[str] = None,
    ) -> list[Block]:
        """Filter blocks by kind, subcase and/or secondary id (None = any)."""
        return [
            b
            for b in self.blocks
            if (kind is None or b.kind == kind)
            and (subcase_id is None or b.subcase_id == subcase_id)
            and (secondary_id is None or b.secondary_id == secondary_id)
        ]

    def blocks_by_kind(self, kind: str) -> list[Block]:
        return self.find(kind=kind)

    def blocks_for_subcase(self, subcase_id: SubcaseId) -> list[Block]:
        return self.find(subcase_id=subcase_id)

    def get(
        self,
        kind: str,
        subcase_id: SubcaseId,
        secondary_id: Optional[str] = None,
    ) -> Optional[Block]:
        """First block with exactly this identity, or None."""
        identity = BlockIdentity(kind, subcase_id, secondary_id)
        for block in self.blocks:
            if block.identity == identity:
                return block
        return None

    def subcases(self) -> list[SubcaseId]:
        """Subcase ids in order of first appearance."""
        return list(dict.fromkeys(b.subcase_id for b in self.blocks))

    def kinds(self) -> list[str]:
        """Block kinds in order of first appearance."""
        return list(dict.fromkeys(b.kind for b in self.blocks))

    def unique_blocks(self) -> list[Block]:
        """Blocks that are the only one carrying their identity.

        These are the ones that can be compared unambiguously.
        """
        counts = Counter(b.identity for b in self.blocks)
        return [b for b in self.blocks if counts[b.identity] == 1]

    def summary(self) -> dict[SubcaseId, list[tuple[BlockIdentity, int]]]:
        """Per-subcase (identity, row count) listing."""
        result: dict[SubcaseId, list[tuple[BlockIdentity, int]]] = {}
        for block in self.blocks:
            result.setdefault(block.subcase_id, []).append((block.identity, block.num_rows))
        return result
