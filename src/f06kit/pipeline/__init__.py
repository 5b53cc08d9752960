"""Pipeline stages for F06 parsing.

Stages, lowest first:
1. stage_numeric - Fortran-style numeric literal decoding
2. stage_classify - Physical line classification
3. stage_registry - Block recognizers and the ordered registry
4. known_blocks - Built-in recognizers for MSC/Simcenter and MYSTRAN
5. stage_parse - Single-pass driver building the Document

Each stage depends only on the ones above it and can be used on its own.
"""

from .known_blocks import build_default_recognizers, default_registry
from .stage_classify import ClassifiedLine, LineKind, classify, detect_solver, unspace
from .stage_numeric import decode_cell, decode_integer, decode_real, encode_real, is_absent
from .stage_parse import F06Parser, ParseResult, ParseState, can_merge, merge_blocks, parse
from .stage_registry import (
    BlockRecognizer,
    GridVectorRecognizer,
    HeaderWindow,
    MultiRecordRecognizer,
    RecognizerMatch,
    RecognizerRegistry,
)

__all__ = [
    # Numeric
    "decode_real",
    "decode_integer",
    "decode_cell",
    "encode_real",
    "is_absent",
    # Classification
    "ClassifiedLine",
    "LineKind",
    "classify",
    "detect_solver",
    "unspace",
    # Recognizers
    "BlockRecognizer",
    "GridVectorRecognizer",
    "MultiRecordRecognizer",
    "HeaderWindow",
    "RecognizerMatch",
    "RecognizerRegistry",
    "build_default_recognizers",
    "default_registry",
    # Driver
    "F06Parser",
    "ParseResult",
    "ParseState",
    "can_merge",
    "merge_blocks",
    "parse",
]
