"""Line Classification Stage - Tag each physical F06 line.

F06 is a printer format. Column 0 is Fortran carriage control ('1' ejects
a page, '0' double-spaces), page banners repeat on every page, and table
titles are letter-spaced ("D I S P L A C E M E N T S"). This stage turns
one raw line into a tagged `ClassifiedLine`; it keeps no state of its own
beyond the caller-supplied "are we inside a block" flag.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from f06kit.models import Solver, SubcaseId
from f06kit.pipeline.stage_numeric import looks_integer, looks_real


class LineKind(str, Enum):
    """Tags assigned to physical lines."""

    BLANK = "blank"
    PAGE_HEADER = "page_header"
    SUBCASE = "subcase"
    BLOCK_TITLE = "block_title"
    COLUMN_HEADER = "column_header"
    DATA = "data"
    CONTINUATION = "continuation"
    RULE = "rule"  # dash rules closing MYSTRAN tables
    UNRECOGNIZED = "unrecognized"


# Words that make a letter-spaced line look like a table title.
TITLE_WORDS = (
    "ELEMENT",
    "ELEM",
    "FORCE",
    "STRESS",
    "STRAIN",
    "SPC",
    "CONSTRAINT",
    "MPC",
    "GRID",
    "DISPLACEMENT",
    "APPLIED",
    "LOAD",
    "TEMPERATURE",
    "HEAT",
    "FLUX",
    "GRAVITY",
    "POINT",
    "COORDINATE",
    "SYSTEM",
    "EIGENVECTOR",
    "EIGENVALUE",
    "VELOCITY",
    "ACCELERATION",
)

# Words that rule a spaced line out: banners and input echoes, never tables.
EXCLUDED_WORDS = ("NASTRAN", "CONTROL", "BULK", "ECHO", "NODAL", "GENERATOR")

# Element type names that also mark a spaced line as a title.
ELEMENT_NAMES = (
    "ELAS1", "ELAS2", "ELAS3", "ELAS4", "BUSH", "BAR", "ROD", "BEAM",
    "QUAD4", "QUAD8", "QUADR", "TRIA3", "TRIA6", "TRIAR", "SHEAR",
    "TETRA", "PENTA", "HEXA",
)

_TITLE_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789()[]-./")
_WORD_GAP = re.compile(r"\s{2,}")
# Simcenter prints "CYCLES = 1.2E+00   R E A L   E I G E N V E C T O R ..."
_CYCLES_PREFIX = re.compile(r"^CYCLES\s*=\s*\S+\s+")
_PAGE = re.compile(r"\bPAGE\s+(?P<page>\d+)\s*$")
# "SUBCASE 3", "SUBCASE ID = 3", "OUTPUT FOR SUBCASE  3  (LOAD A)"; symbolic ids end the line
_SUBCASE = re.compile(
    r"\bSUBCASE(?:\s+ID)?\s*(?:=\s*)?(?:(?P<id>\d+)\b|(?P<label>[A-Z][A-Z0-9_.\-]*)\s*$)"
)
_RULE = re.compile(r"^[\s\-=]+$")


@dataclass(frozen=True)
class ClassifiedLine:
    """A physical line with its tag and any data the classifier pulled out."""

    kind: LineKind
    text: str  # line body without carriage control
    page_eject: bool = False
    page: Optional[int] = None
    subcase_id: Optional[SubcaseId] = None
    title: Optional[str] = None

    @property
    def tokens(self) -> list[str]:
        return self.text.split()

    @property
    def is_row(self) -> bool:
        return self.kind in (LineKind.DATA, LineKind.CONTINUATION)


def split_carriage_control(line: str) -> tuple[str, str]:
    """Split a raw line into (carriage control, body)."""
    line = line.rstrip("\r\n")
    if line[:1] in ("0", "1") and (len(line) == 1 or line[1].isspace()):
        return line[0], line[1:]
    return "", line


def unspace(text: str) -> Optional[str]:
    """Turn a letter-spaced upper-case line into words.

    "D I S P L A C E M E N T   V E C T O R" -> "DISPLACEMENT VECTOR".
    Returns None if the line is not letter-spaced.
    """
    stripped = text.strip()
    prefix = _CYCLES_PREFIX.match(stripped)
    if prefix:
        stripped = stripped[prefix.end():]

    words = []
    for group in _WORD_GAP.split(stripped):
        chars = group.split(" ")
        if any(len(c) != 1 or c not in _TITLE_CHARS for c in chars):
            return None
        words.append("".join(chars))

    if sum(len(w) for w in words) < 4 or not any(c.isalpha() for c in stripped):
        return None
    return " ".join(words)


def extract_title(text: str) -> Optional[str]:
    """Un-spaced title if the line looks like a table title, else None."""
    title = unspace(text)
    if title is None:
        return None
    if any(word in title for word in EXCLUDED_WORDS):
        return None
    if any(word in title for word in TITLE_WORDS):
        return title
    if any(name in title for name in ELEMENT_NAMES):
        return title
    return None


def normalize_header(text: str) -> str:
    """Collapse whitespace so restated headers compare equal."""
    return " ".join(text.split())


def detect_solver(line: str) -> Optional[Solver]:
    """Identify the solver from a banner line, if it names one."""
    upper = line.upper()
    for solver in Solver:
        if any(marker in upper for marker in solver.banner_markers):
            return solver
    return None


def _parse_subcase_id(raw: str) -> SubcaseId:
    return int(raw) if raw.isdigit() else raw


def _is_column_header(tokens: list[str]) -> bool:
    has_word = False
    for token in tokens:
        if any(c.islower() for c in token):
            return False
        if any(c.isalpha() for c in token):
            has_word = True
    return has_word


def classify(line: str, mid_block: bool = False) -> ClassifiedLine:
    """Classify one physical line.

    Args:
        line: Raw line, with or without its newline.
        mid_block: Whether the caller is currently extracting a table. Lines
            starting with a real number are continuations only mid-block.

    Returns:
        ClassifiedLine with its tag and extracted page/subcase/title data.
    """
    control, body = split_carriage_control(line)
    body = body.rstrip()
    stripped = body.strip()
    page_eject = control == "1"

    page_match = _PAGE.search(stripped)
    if page_eject or page_match:
        page = int(page_match.group("page")) if page_match else None
        return ClassifiedLine(LineKind.PAGE_HEADER, body, page_eject=page_eject, page=page)

    if not stripped:
        return ClassifiedLine(LineKind.BLANK, body)

    subcase_match = _SUBCASE.search(stripped)
    if subcase_match:
        raw_id = subcase_match.group("id") or subcase_match.group("label")
        subcase_id = _parse_subcase_id(raw_id)
        return ClassifiedLine(LineKind.SUBCASE, body, subcase_id=subcase_id)

    if _RULE.match(stripped) and stripped.count("-") + stripped.count("=") >= 5:
        return ClassifiedLine(LineKind.RULE, body)

    title = extract_title(stripped)
    if title is not None:
        return ClassifiedLine(LineKind.BLOCK_TITLE, body, title=title)

    tokens = stripped.split()
    first = tokens[0]
    if looks_integer(first):
        return ClassifiedLine(LineKind.DATA, body)
    if looks_real(first):
        kind = LineKind.CONTINUATION if mid_block else LineKind.DATA
        return ClassifiedLine(kind, body)

    if _is_column_header(tokens):
        return ClassifiedLine(LineKind.COLUMN_HEADER, body)
    return ClassifiedLine(LineKind.UNRECOGNIZED, body)
