"""Block Recognizer Registry - Detect and extract known table kinds.

Each recognizer owns one table kind for one solver dialect: how to tell
from the title and column headers that a table is "its" table, and how to
turn a data line into typed rows. The registry tries recognizers in
registration order and the first match wins, so narrow dialect variants
must be registered before general fallbacks for the same table.

Supporting a new table or dialect means registering a new recognizer; the
parse driver and the document model never change.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, NamedTuple, Optional

from f06kit.errors import RowShapeError
from f06kit.models import CellValue, Column, Solver
from f06kit.pipeline.stage_classify import ClassifiedLine, LineKind
from f06kit.pipeline.stage_numeric import (
    decode_cell,
    decode_integer,
    decode_real,
    looks_integer,
)

Row = dict[str, CellValue]


@dataclass
class HeaderWindow:
    """Title plus the column-header lines printed above a table's data."""

    title: str
    header_lines: list[str] = field(default_factory=list)
    solver: Optional[Solver] = None
    first_line: int = 0

    @property
    def header_text(self) -> str:
        return " ".join(self.header_lines)


class RecognizerMatch(NamedTuple):
    """Outcome of a successful registry lookup."""

    recognizer: "BlockRecognizer"
    kind: str
    columns: tuple[Column, ...]
    secondary_id: Optional[str]


class BlockRecognizer:
    """Detection and extraction for one table kind / dialect variant.

    The default extraction maps whitespace-separated fields one-to-one onto
    the column layout. Subclasses override `extract` for tables that print
    several records per line or whose field counts vary.
    """

    def __init__(
        self,
        name: str,
        kind: str,
        titles: Iterable[str],
        columns: Iterable[Column],
        header_keywords: Iterable[str] = (),
        row_key: Iterable[str] = (),
        secondary_id: Optional[str] = None,
        secondary_pattern: Optional[str] = None,
        solvers: Iterable[Solver] = (),
        optional: Iterable[str] = (),
        inherit: int = 0,
        continuation_compatible: bool = True,
    ):
        """Initialize recognizer.

        Args:
            name: Unique registry name, e.g. "msc-displacement".
            kind: Block kind tag produced by this recognizer.
            titles: Substrings of the un-spaced title this recognizer claims.
            columns: Column layout of produced blocks.
            header_keywords: Substrings that must all appear in the headers.
            row_key: Columns that identify a row for alignment.
            secondary_id: Fixed secondary id (e.g. element type).
            secondary_pattern: Regex with one group pulling the secondary id
                out of the title (e.g. mode number).
            solvers: Solvers this dialect applies to; empty means any.
            optional: Columns that some lines leave blank. A line short by
                exactly these fields gets None for them.
            inherit: Leading columns a continuation line copies from the
                previous row.
            continuation_compatible: Whether the block may resume after a
                page break.
        """
        self.name = name
        self.kind = kind
        self.titles = tuple(titles)
        self.columns = tuple(columns)
        self.header_keywords = tuple(header_keywords)
        self.row_key = tuple(row_key)
        self.secondary_id = secondary_id
        self.secondary_pattern = re.compile(secondary_pattern) if secondary_pattern else None
        self.solvers = tuple(solvers)
        self.optional = tuple(optional)
        self.inherit = inherit
        self.continuation_compatible = continuation_compatible

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, kind={self.kind!r})"

    # Detection

    def claims_title(self, title: str) -> bool:
        return any(t in title for t in self.titles)

    def matches(self, window: HeaderWindow) -> bool:
        """Check if a header window describes this recognizer's table."""
        if not self.claims_title(window.title):
            return False
        if self.solvers and window.solver is not None and window.solver not in self.solvers:
            return False
        text = window.header_text
        return all(keyword in text for keyword in self.header_keywords)

    def layout(self, window: HeaderWindow) -> tuple[Column, ...]:
        return self.columns

    def resolve_secondary_id(self, window: HeaderWindow) -> Optional[str]:
        if self.secondary_pattern is not None:
            found = self.secondary_pattern.search(window.title)
            if found:
                return found.group(1)
        return self.secondary_id

    def match(self, window: HeaderWindow) -> Optional[RecognizerMatch]:
        if not self.matches(window):
            return None
        return RecognizerMatch(
            recognizer=self,
            kind=self.kind,
            columns=self.layout(window),
            secondary_id=self.resolve_secondary_id(window),
        )

    # Extraction

    def extract(
        self,
        line: ClassifiedLine,
        columns: tuple[Column, ...],
        previous: Optional[Row],
    ) -> list[Row]:
        """Turn one data or continuation line into rows.

        Raises:
            MalformedNumber: A field does not decode as its column's type.
            RowShapeError: The field count does not fit the layout.
        """
        tokens = line.tokens
        if line.kind == LineKind.CONTINUATION:
            if not self.inherit or previous is None:
                raise RowShapeError("Continuation line with no row to continue")
            row = {c.name: previous[c.name] for c in columns[: self.inherit]}
            row.update(self.decode_fields(tokens, columns[self.inherit:]))
            return [row]
        return [self.decode_fields(tokens, columns)]

    def decode_fields(self, tokens: list[str], columns: tuple[Column, ...]) -> Row:
        """Decode tokens positionally, leaving optional columns empty if short."""
        if len(tokens) != len(columns) and self.optional:
            present = [c for c in columns if c.name not in self.optional]
            if len(tokens) == len(present):
                row: Row = {name: None for name in self.optional}
                row.update(_decode_positional(tokens, present))
                return {c.name: row[c.name] for c in columns}
        if len(tokens) != len(columns):
            raise RowShapeError(f"Expected {len(columns)} fields, found {len(tokens)}")
        return _decode_positional(tokens, columns)


def _decode_positional(tokens: list[str], columns: Iterable[Column]) -> Row:
    return {c.name: decode_cell(t, c) for t, c in zip(tokens, columns)}


class MultiRecordRecognizer(BlockRecognizer):
    """Tables printing several records side by side on one line.

    MSC prints CROD results two elements per line and CELAS1 results four;
    the last line of a table may carry fewer. Each record starts at an
    integer element id, so records may differ in width when optional
    columns are blank.
    """

    def __init__(self, *args, records_per_line: int = 2, **kwargs):
        super().__init__(*args, **kwargs)
        self.records_per_line = records_per_line

    def extract(self, line, columns, previous):
        tokens = line.tokens
        if line.kind == LineKind.CONTINUATION:
            raise RowShapeError("Continuation line in a table with several records per line")
        starts = [i for i, token in enumerate(tokens) if looks_integer(token)]
        if not starts or starts[0] != 0 or len(starts) > self.records_per_line:
            raise RowShapeError(
                f"Expected up to {self.records_per_line} records, found {len(starts)} "
                f"element ids in {len(tokens)} fields"
            )
        bounds = zip(starts, starts[1:] + [len(tokens)])
        return [self.decode_fields(tokens[start:end], columns) for start, end in bounds]


class GridVectorRecognizer(BlockRecognizer):
    """Lax six-DOF grid table: grid id first, six reals last.

    Anything between the grid id and the reals is kept as text. Used as a
    fallback for dialects whose header wording the narrow recognizers miss.
    """

    def extract(self, line, columns, previous):
        tokens = line.tokens
        if line.kind == LineKind.CONTINUATION or len(tokens) < 7:
            raise RowShapeError(f"Expected grid id and six components, found {len(tokens)} fields")
        grid_col, text_col, *dof_cols = columns
        row: Row = {
            grid_col.name: decode_integer(tokens[0], grid_col.name),
            text_col.name: " ".join(tokens[1:-6]) or None,
        }
        for token, col in zip(tokens[-6:], dof_cols):
            row[col.name] = decode_real(token, col.name)
        return [row]


class RecognizerRegistry:
    """Ordered set of recognizers; first match wins.

    Populate it once, then freeze it. A frozen registry rejects
    registrations, which keeps it read-only while parses are running.
    """

    def __init__(self, recognizers: Iterable[BlockRecognizer] = ()):
        self._recognizers: list[BlockRecognizer] = []
        self._frozen = False
        for recognizer in recognizers:
            self.register(recognizer)

    def register(self, recognizer: BlockRecognizer) -> BlockRecognizer:
        """Append a recognizer; it is tried after all earlier ones."""
        if self._frozen:
            raise RuntimeError("Recognizer registry is frozen")
        if any(r.name == recognizer.name for r in self._recognizers):
            raise ValueError(f"Recognizer '{recognizer.name}' already registered")
        self._recognizers.append(recognizer)
        return recognizer

    def freeze(self) -> "RecognizerRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __iter__(self) -> Iterator[BlockRecognizer]:
        return iter(self._recognizers)

    def __len__(self) -> int:
        return len(self._recognizers)

    def names(self) -> list[str]:
        return [r.name for r in self._recognizers]

    def get(self, name: str) -> Optional[BlockRecognizer]:
        for recognizer in self._recognizers:
            if recognizer.name == name:
                return recognizer
        return None

    def kinds(self) -> list[str]:
        return list(dict.fromkeys(r.kind for r in self._recognizers))

    def claims_title(self, title: str) -> bool:
        """Check if any recognizer could own a table with this title."""
        return any(r.claims_title(title) for r in self._recognizers)

    def find_match(self, window: HeaderWindow) -> Optional[RecognizerMatch]:
        """Return the first recognizer match for a header window."""
        for recognizer in self._recognizers:
            found = recognizer.match(window)
            if found is not None:
                return found
        return None
