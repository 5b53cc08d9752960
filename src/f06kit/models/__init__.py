"""Document model for parsed F06 output.

This module defines the Pydantic models produced by the parser and consumed
by the diff engine and exporters. All models are frozen: the parser is the
only writer, everything downstream reads.

Model Hierarchy:
- Document -> Blocks -> rows (column name -> typed value)
- Diagnostic (collected alongside the Document)
- DiffReport -> BlockComparisons -> CellDeltas
"""

from .base import (
    BaseF06Model,
    CellValue,
    Column,
    ColumnType,
    DiagnosticKind,
    Severity,
    Solver,
    SourceLocation,
    SubcaseId,
)
from .diagnostic import Diagnostic
from .diff import (
    BlockComparison,
    BlockStatus,
    CellDelta,
    CellStatus,
    DiffReport,
    MissingRowPolicy,
    ToleranceConfig,
    ToleranceMode,
)
from .document import (
    Block,
    BlockIdentity,
    Document,
)

__all__ = [
    # Base types
    "BaseF06Model",
    "CellValue",
    "Column",
    "ColumnType",
    "DiagnosticKind",
    "Severity",
    "Solver",
    "SourceLocation",
    "SubcaseId",
    # Document
    "Block",
    "BlockIdentity",
    "Document",
    # Diagnostics
    "Diagnostic",
    # Diff
    "BlockComparison",
    "BlockStatus",
    "CellDelta",
    "CellStatus",
    "DiffReport",
    "MissingRowPolicy",
    "ToleranceConfig",
    "ToleranceMode",
]
