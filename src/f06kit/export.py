"""CSV export of parsed blocks."""

import csv
import io
import logging
import re
from pathlib import Path
from typing import Optional

from f06kit.config import settings
from f06kit.models import Block, CellValue, ColumnType, Document
from f06kit.pipeline.stage_numeric import encode_real

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


def _format(value: CellValue, ctype: ColumnType, fortran: bool) -> CellValue:
    if value is None:
        return ""
    if fortran and ctype == ColumnType.REAL:
        return encode_real(value).strip()
    return value


def _write_rows(block: Block, handle, delimiter: str, fortran: bool = False):
    writer = csv.DictWriter(handle, fieldnames=block.column_names, delimiter=delimiter)
    writer.writeheader()
    types = {c.name: c.ctype for c in block.columns}
    for row in block.iter_rows():
        writer.writerow({k: _format(v, types[k], fortran) for k, v in row.items()})


def block_to_csv(block: Block, delimiter: Optional[str] = None, fortran: bool = False) -> str:
    """Render one block as CSV text, header row first.

    Absent values are empty fields. With `fortran`, reals are written in the
    solver's exponent-elided style (-1.23450+05).
    """
    buffer = io.StringIO()
    _write_rows(block, buffer, delimiter or settings.csv_delimiter, fortran)
    return buffer.getvalue()


def block_filename(block: Block, occurrence: int = 0) -> str:
    """File name for a block, e.g. 'element_force_sc1_BAR.csv'."""
    parts = [block.kind, f"sc{block.subcase_id}"]
    if block.secondary_id is not None:
        parts.append(str(block.secondary_id))
    if occurrence:
        parts.append(str(occurrence + 1))
    return _UNSAFE.sub("-", "_".join(parts)) + ".csv"


def document_to_csv(
    document: Document,
    output_dir: Path,
    delimiter: Optional[str] = None,
    fortran: bool = False,
) -> list[Path]:
    """
    Write every block of a document to its own CSV file.

    Args:
        document: Parsed document
        output_dir: Target directory (created if missing)
        delimiter: Field delimiter (defaults from settings)
        fortran: Write reals in exponent-elided style

    Returns:
        Paths written, in block order
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    delimiter = delimiter or settings.csv_delimiter

    seen: dict = {}
    written = []
    for block in document.iter_blocks():
        occurrence = seen.get(block.identity, 0)
        seen[block.identity] = occurrence + 1
        path = output_dir / block_filename(block, occurrence)
        with open(path, "w", newline="", encoding="utf-8") as f:
            _write_rows(block, f, delimiter, fortran)
        written.append(path)
        logger.debug(f"Wrote {block.num_rows} rows to {path}")

    logger.info(f"Exported {len(written)} blocks to {output_dir}")
    return written
