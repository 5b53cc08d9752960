"""Base models and common types for the F06 document model."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

# A decoded cell. None means "not present in this solver's output".
CellValue = Optional[Union[int, float, str]]

# Subcases are usually integers, but some solvers label them symbolically.
SubcaseId = Union[int, str]


class ColumnType(str, Enum):
    """Semantic type of a block column."""

    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"


class Solver(str, Enum):
    """Solvers whose F06 dialects are recognized."""

    MYSTRAN = "mystran"
    MSC = "msc"
    SIMCENTER = "simcenter"

    @property
    def banner_markers(self) -> tuple[str, ...]:
        """Substrings that identify this solver in a page banner."""
        return _BANNER_MARKERS[self]


_BANNER_MARKERS = {
    Solver.MYSTRAN: ("MYSTRAN",),
    Solver.MSC: ("MSC NASTRAN", "MSC.NASTRAN", "MSC SOFTWARE"),
    Solver.SIMCENTER: ("SIMCENTER NASTRAN", "NX NASTRAN"),
}


class Severity(str, Enum):
    """Diagnostic severity, ordered from least to most severe."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.ERROR: 2}


class DiagnosticKind(str, Enum):
    """Recoverable conditions recorded while parsing."""

    MALFORMED_NUMBER = "malformed_number"
    ROW_SHAPE = "row_shape"
    BLOCK_CONTINUITY = "block_continuity"
    UNRECOGNIZED_BLOCK = "unrecognized_block"

    @property
    def default_severity(self) -> Severity:
        if self == DiagnosticKind.UNRECOGNIZED_BLOCK:
            return Severity.INFO
        return Severity.WARNING


class BaseF06Model(BaseModel):
    """Base class for all document model types. Instances are immutable."""

    class Config:
        frozen = True


class Column(BaseF06Model):
    """One named, typed column of a block layout."""

    name: str
    ctype: ColumnType = Field(default=ColumnType.REAL)

    def __str__(self) -> str:
        return self.name


class SourceLocation(BaseF06Model):
    """Position of a line in the source text."""

    line: int = Field(..., ge=1, description="1-indexed line number")
    page: Optional[int] = Field(None, description="Solver page number, if printed")

    def __str__(self) -> str:
        if self.page is None:
            return f"line {self.line}"
        return f"line {self.line} (page {self.page})"
