"""Parse Driver Stage - One pass over an F06 file.

Consumes classified lines in order and drives a small state machine:

    IDLE --title--> HEADER_MATCHING --first row--> IN_BLOCK
      ^                   |                           |
      |             no recognizer                 rule / blanks /
      |                   v                      new title / subcase
      +---subcase---- SKIPPING <---------------------+

A block survives page breaks when the next page restates the same title
(and subcase) with the same column headers. Anything that goes wrong below
the document level becomes a Diagnostic; only structurally unusable input
raises.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

from f06kit.config import settings
from f06kit.errors import MalformedNumber, RowShapeError, StructuralFailure
from f06kit.models import (
    Block,
    Diagnostic,
    DiagnosticKind,
    Document,
    Severity,
    Solver,
    SubcaseId,
)
from f06kit.pipeline.known_blocks import default_registry
from f06kit.pipeline.stage_classify import (
    ClassifiedLine,
    LineKind,
    classify,
    detect_solver,
    normalize_header,
)
from f06kit.pipeline.stage_registry import (
    HeaderWindow,
    RecognizerMatch,
    RecognizerRegistry,
    Row,
)

logger = logging.getLogger(__name__)

# Subcase assumed until the file prints a subcase marker
DEFAULT_SUBCASE = 1


class ParseState(str, Enum):
    IDLE = "idle"
    HEADER_MATCHING = "header_matching"
    IN_BLOCK = "in_block"
    SKIPPING = "skipping"
    DONE = "done"


class ParseResult(NamedTuple):
    """Document plus the diagnostics collected while building it."""

    document: Document
    diagnostics: tuple[Diagnostic, ...]

    def check(self, threshold: Severity = Severity.WARNING) -> "ParseResult":
        """Raise the first diagnostic at or above `threshold` as an exception.

        Lets callers opt into fail-fast behavior without changing the parser.
        """
        for diagnostic in self.diagnostics:
            if diagnostic.severity.rank >= threshold.rank:
                raise diagnostic.to_exception()
        return self

    def by_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]


@dataclass
class BlockBuilder:
    """Rows accumulated for the block currently being extracted."""

    match: RecognizerMatch
    subcase_id: SubcaseId
    title: str
    signature: tuple[str, ...]  # normalized column headers of the first page
    first_line: int
    start_page: Optional[int]
    rows: list[Row] = field(default_factory=list)
    previous: Optional[Row] = None  # parent row for continuation lines
    last_line: int = 0
    end_page: Optional[int] = None

    def add(self, rows: list[Row], line_no: int, page: Optional[int]):
        self.rows.extend(rows)
        self.previous = rows[-1] if rows else self.previous
        self.last_line = line_no
        self.end_page = page

    def finalize(self) -> Block:
        return Block(
            kind=self.match.kind,
            subcase_id=self.subcase_id,
            secondary_id=self.match.secondary_id,
            title=self.title,
            recognizer=self.match.recognizer.name,
            columns=self.match.columns,
            rows=tuple(self.rows),
            row_key=self.match.recognizer.row_key,
            first_line=self.first_line,
            last_line=max(self.last_line, self.first_line),
            start_page=self.start_page,
            end_page=self.end_page if self.end_page is not None else self.start_page,
        )


@dataclass
class ParseContext:
    """Mutable state of one parse call."""

    state: ParseState = ParseState.IDLE
    subcase_id: SubcaseId = DEFAULT_SUBCASE
    solver: Optional[Solver] = None
    line_no: int = 0
    page: Optional[int] = None
    page_count: int = 0
    blank_run: int = 0

    window: Optional[HeaderWindow] = None
    active: Optional[BlockBuilder] = None

    # Set on page eject inside a block until the first row of the next page
    page_break_pending: bool = False
    restated_title: Optional[str] = None
    restated_headers: list[str] = field(default_factory=list)

    skipped: Optional[tuple[SubcaseId, str]] = None
    blocks: list[Block] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def report(self, kind: DiagnosticKind, message: str, **details) -> Diagnostic:
        diagnostic = Diagnostic.create(kind, message, line=self.line_no, page=self.page, **details)
        self.diagnostics.append(diagnostic)
        logger.debug(f"Diagnostic: {diagnostic}")
        return diagnostic


def check_structure(text) -> None:
    """Reject input that cannot be an F06 file at all."""
    if not isinstance(text, str):
        raise StructuralFailure(f"Expected decoded text, got {type(text).__name__}")
    if "\x00" in text:
        raise StructuralFailure("Input contains NUL bytes; not a text printout")
    if not text.strip():
        raise StructuralFailure("Input is empty")


class F06Parser:
    """
    Single-pass F06 parser.

    The parser holds only read-only configuration; every `parse` call gets
    its own context, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        registry: Optional[RecognizerRegistry] = None,
        max_blank_run: Optional[int] = None,
        merge_blocks: Optional[bool] = None,
    ):
        """
        Initialize parser.

        Args:
            registry: Recognizers to use. Frozen on first use; defaults to
                the built-in set.
            max_blank_run: Consecutive blank lines that end a block (at least 1).
            merge_blocks: Merge same-identity blocks whose rows do not overlap.

        Raises:
            ValueError: max_blank_run is below 1.
        """
        if max_blank_run is None:
            max_blank_run = settings.max_blank_run
        if max_blank_run < 1:
            raise ValueError(f"max_blank_run must be at least 1, got {max_blank_run}")
        self.registry = (registry if registry is not None else default_registry()).freeze()
        self.max_blank_run = max_blank_run
        self.merge_blocks = settings.merge_blocks if merge_blocks is None else merge_blocks

    def parse(self, text: str) -> ParseResult:
        """
        Parse F06 text into a Document.

        Args:
            text: Whole file content, already decoded.

        Returns:
            ParseResult with the document and collected diagnostics

        Raises:
            StructuralFailure: Input is not usable text.
        """
        check_structure(text)

        ctx = ParseContext()
        for line_no, raw in enumerate(text.splitlines(), start=1):
            ctx.line_no = line_no
            self._consume(ctx, raw)
        self._finish_block(ctx)
        ctx.state = ParseState.DONE

        blocks = ctx.blocks
        if self.merge_blocks:
            blocks, merges = merge_blocks(blocks)
            if merges:
                logger.debug(f"Merged {merges} blocks into earlier blocks of the same identity")

        document = Document(
            blocks=tuple(blocks),
            solver=ctx.solver,
            line_count=ctx.line_no,
            page_count=ctx.page_count,
        )
        logger.info(
            f"Parsed {document.line_count} lines: {len(document.blocks)} blocks, "
            f"{len(ctx.diagnostics)} diagnostics"
        )
        return ParseResult(document, tuple(ctx.diagnostics))

    # Line dispatch

    def _consume(self, ctx: ParseContext, raw: str):
        line = classify(raw, mid_block=ctx.state == ParseState.IN_BLOCK)

        if ctx.solver is None and not line.is_row:
            ctx.solver = detect_solver(line.text)
            if ctx.solver is not None:
                logger.debug(f"Detected solver {ctx.solver.value} at line {ctx.line_no}")

        if line.kind != LineKind.BLANK:
            ctx.blank_run = 0

        if line.kind == LineKind.PAGE_HEADER:
            self._on_page(ctx, line)
        elif line.kind == LineKind.SUBCASE:
            self._on_subcase(ctx, line)
        elif line.kind == LineKind.BLOCK_TITLE:
            self._on_title(ctx, line)
        elif line.kind == LineKind.COLUMN_HEADER:
            self._on_header(ctx, line)
        elif line.is_row:
            self._on_row(ctx, line)
        elif line.kind == LineKind.RULE:
            if ctx.state == ParseState.IN_BLOCK:
                self._finish_block(ctx)
        elif line.kind == LineKind.BLANK:
            self._on_blank(ctx)

    def _on_page(self, ctx: ParseContext, line: ClassifiedLine):
        new_page = line.page_eject or (line.page is not None and line.page != ctx.page)
        if line.page is not None:
            ctx.page = line.page
        if not new_page:
            return
        ctx.page_count += 1

        if ctx.state == ParseState.IN_BLOCK:
            if ctx.active.match.recognizer.continuation_compatible:
                ctx.page_break_pending = True
                ctx.restated_title = None
                ctx.restated_headers = []
            else:
                self._finish_block(ctx)

    def _on_subcase(self, ctx: ParseContext, line: ClassifiedLine):
        new_id = line.subcase_id
        if (
            ctx.state == ParseState.IN_BLOCK
            and new_id == ctx.active.subcase_id
            and ctx.active.match.recognizer.continuation_compatible
        ):
            # Same subcase restated on a continuation page: headers follow
            ctx.restated_headers = []
            return

        self._finish_block(ctx)
        ctx.window = None
        ctx.state = ParseState.IDLE
        if new_id != ctx.subcase_id:
            logger.debug(f"Subcase {new_id} starts at line {ctx.line_no}")
        ctx.subcase_id = new_id

    def _on_title(self, ctx: ParseContext, line: ClassifiedLine):
        title = line.title
        if ctx.state == ParseState.IN_BLOCK:
            if ctx.page_break_pending and title == ctx.active.title:
                ctx.restated_title = title
                ctx.restated_headers = []
                return
            self._finish_block(ctx)

        if not self.registry.claims_title(title):
            self._skip(ctx, title, "no recognizer for this table")
            return
        ctx.window = HeaderWindow(title=title, solver=ctx.solver, first_line=ctx.line_no)
        ctx.state = ParseState.HEADER_MATCHING

    def _on_header(self, ctx: ParseContext, line: ClassifiedLine):
        text = normalize_header(line.text)
        if ctx.state == ParseState.HEADER_MATCHING:
            ctx.window.header_lines.append(text)
        elif ctx.state == ParseState.IN_BLOCK and ctx.page_break_pending:
            ctx.restated_headers.append(text)

    def _on_row(self, ctx: ParseContext, line: ClassifiedLine):
        if ctx.state == ParseState.HEADER_MATCHING:
            window = ctx.window
            found = self.registry.find_match(window)
            if found is None:
                self._skip(ctx, window.title, "column headers not recognized")
                return
            self._start_block(ctx, found, window)
        elif ctx.state == ParseState.IN_BLOCK:
            if ctx.page_break_pending:
                self._resume_after_page_break(ctx)
                if ctx.state != ParseState.IN_BLOCK:
                    return
        else:
            return
        self._extract(ctx, line)

    def _on_blank(self, ctx: ParseContext):
        if ctx.state != ParseState.IN_BLOCK or ctx.page_break_pending:
            return
        ctx.blank_run += 1
        if ctx.blank_run >= self.max_blank_run:
            self._finish_block(ctx)

    # Block lifecycle

    def _start_block(self, ctx: ParseContext, found: RecognizerMatch, window: HeaderWindow):
        ctx.active = BlockBuilder(
            match=found,
            subcase_id=ctx.subcase_id,
            title=window.title,
            signature=tuple(window.header_lines),
            first_line=ctx.line_no,
            start_page=ctx.page,
        )
        ctx.window = None
        ctx.state = ParseState.IN_BLOCK
        logger.debug(
            f"Block {found.kind} ({found.recognizer.name}) starts at line {ctx.line_no}, "
            f"subcase {ctx.subcase_id}"
        )

    def _resume_after_page_break(self, ctx: ParseContext):
        active = ctx.active
        restated = ctx.restated_headers
        ctx.page_break_pending = False
        ctx.restated_headers = []
        ctx.restated_title = None

        if _same_layout(active.signature, restated):
            return

        ctx.report(
            DiagnosticKind.BLOCK_CONTINUITY,
            f"Column headers of '{active.title}' changed after page break; "
            f"block closed and restarted",
            block_kind=active.match.kind,
        )
        self._finish_block(ctx)
        window = HeaderWindow(
            title=active.title,
            header_lines=restated,
            solver=ctx.solver,
            first_line=ctx.line_no,
        )
        found = self.registry.find_match(window)
        if found is None:
            self._skip(ctx, window.title, "restated column headers not recognized")
        else:
            self._start_block(ctx, found, window)

    def _extract(self, ctx: ParseContext, line: ClassifiedLine):
        builder = ctx.active
        found = builder.match
        try:
            rows = found.recognizer.extract(line, found.columns, builder.previous)
        except MalformedNumber as e:
            builder.previous = None
            ctx.report(
                DiagnosticKind.MALFORMED_NUMBER,
                f"{e}; row skipped",
                block_kind=found.kind,
                column=e.column,
                token=e.token,
            )
            return
        except RowShapeError as e:
            builder.previous = None
            ctx.report(DiagnosticKind.ROW_SHAPE, f"{e}; row skipped", block_kind=found.kind)
            return
        builder.add(rows, ctx.line_no, ctx.page)

    def _finish_block(self, ctx: ParseContext):
        builder = ctx.active
        if builder is not None:
            if builder.rows:
                block = builder.finalize()
                ctx.blocks.append(block)
                logger.debug(
                    f"Block {block.identity} finished at line {block.last_line}: "
                    f"{block.num_rows} rows"
                )
            else:
                logger.debug(f"Dropping '{builder.title}' at line {ctx.line_no}: no valid rows")
            ctx.active = None
        ctx.page_break_pending = False
        ctx.restated_title = None
        ctx.restated_headers = []
        if ctx.state == ParseState.IN_BLOCK:
            ctx.state = ParseState.IDLE

    def _skip(self, ctx: ParseContext, title: str, reason: str):
        ctx.state = ParseState.SKIPPING
        ctx.window = None
        key = (ctx.subcase_id, title)
        if ctx.skipped != key:
            ctx.report(
                DiagnosticKind.UNRECOGNIZED_BLOCK,
                f"Skipping table '{title}': {reason}",
            )
            ctx.skipped = key


def _same_layout(signature: tuple[str, ...], restated: list[str]) -> bool:
    """Check restated headers against the first page's header lines.

    Restated headers may carry extra banner lines above the column headers,
    so only the trailing lines are compared. No restated headers at all
    means the page continues the table as is.
    """
    if not restated or not signature:
        return True
    if len(restated) < len(signature):
        return False
    return tuple(restated[-len(signature):]) == signature


def can_merge(first: Block, second: Block) -> bool:
    """Check if two blocks are parts of one table and can be joined cleanly.

    They must share identity, column layout and a row key, and no key may
    appear twice across the two blocks.
    """
    if first.identity != second.identity or first.columns != second.columns:
        return False
    if not first.row_key or first.row_key != second.row_key:
        return False
    keys = [first.key_of(row) for row in first.rows]
    keys.extend(second.key_of(row) for row in second.rows)
    return len(set(keys)) == len(keys)


def _join(first: Block, second: Block) -> Block:
    starts = [p for p in (first.start_page, second.start_page) if p is not None]
    ends = [p for p in (first.end_page, second.end_page) if p is not None]
    return first.model_copy(
        update={
            "rows": first.rows + second.rows,
            "first_line": min(first.first_line, second.first_line),
            "last_line": max(first.last_line, second.last_line),
            "start_page": min(starts) if starts else None,
            "end_page": max(ends) if ends else None,
        }
    )


def merge_blocks(blocks: list[Block]) -> tuple[list[Block], int]:
    """
    Merge each block into the earliest block it can be joined with.

    Blocks with conflicting rows stay separate.

    Returns:
        (blocks in order of first appearance, number of merges done)
    """
    merged: list[Block] = []
    merges = 0
    for block in blocks:
        for i, earlier in enumerate(merged):
            if can_merge(earlier, block):
                merged[i] = _join(earlier, block)
                merges += 1
                break
        else:
            merged.append(block)
    return merged, merges


def parse(text: str, registry: Optional[RecognizerRegistry] = None) -> ParseResult:
    """Parse F06 text with a fresh parser (built-in recognizers by default)."""
    return F06Parser(registry=registry).parse(text)
