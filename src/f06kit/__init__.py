"""f06kit - parser, document model and diff engine for F06 result files."""

__version__ = "0.1.0"

from f06kit.diff import compare_blocks, diff
from f06kit.errors import (
    BlockContinuityError,
    F06Error,
    MalformedNumber,
    RowShapeError,
    StructuralFailure,
    UnrecognizedBlock,
)
from f06kit.export import block_to_csv, document_to_csv
from f06kit.models import (
    Block,
    BlockIdentity,
    Column,
    ColumnType,
    Diagnostic,
    DiagnosticKind,
    DiffReport,
    Document,
    Severity,
    Solver,
    ToleranceConfig,
    ToleranceMode,
)
from f06kit.pipeline import (
    BlockRecognizer,
    F06Parser,
    ParseResult,
    RecognizerRegistry,
    decode_real,
    default_registry,
    encode_real,
    parse,
)

__all__ = [
    "__version__",
    # Parsing
    "parse",
    "F06Parser",
    "ParseResult",
    "BlockRecognizer",
    "RecognizerRegistry",
    "default_registry",
    "decode_real",
    "encode_real",
    # Model
    "Block",
    "BlockIdentity",
    "Column",
    "ColumnType",
    "Document",
    "Diagnostic",
    "DiagnosticKind",
    "Severity",
    "Solver",
    # Diff
    "diff",
    "compare_blocks",
    "DiffReport",
    "ToleranceConfig",
    "ToleranceMode",
    # Export
    "block_to_csv",
    "document_to_csv",
    # Errors
    "F06Error",
    "MalformedNumber",
    "RowShapeError",
    "BlockContinuityError",
    "UnrecognizedBlock",
    "StructuralFailure",
]
