"""f06kit CLI - inspect, export and compare F06 files."""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from f06kit.config import settings
from f06kit.diff import diff as diff_documents
from f06kit.errors import F06Error, StructuralFailure
from f06kit.export import document_to_csv
from f06kit.models import (
    Block,
    ColumnType,
    Document,
    MissingRowPolicy,
    Severity,
    ToleranceConfig,
    ToleranceMode,
)
from f06kit.pipeline import ParseResult, parse

app = typer.Typer(
    name="f06kit",
    help="Parse, export and diff Nastran-family F06 result files",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load(path: Path) -> ParseResult:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
        return parse(text)
    except StructuralFailure as e:
        console.print(f"[bold red]Cannot parse {path}:[/bold red] {escape(str(e))}")
        raise typer.Exit(2)


def _print_diagnostics(result: ParseResult, limit: int) -> None:
    for diagnostic in result.diagnostics[:limit]:
        color = "red" if diagnostic.severity == Severity.ERROR else "yellow"
        if diagnostic.severity == Severity.INFO:
            color = "dim"
        console.print(f"[{color}]{escape(str(diagnostic))}[/{color}]")
    hidden = len(result.diagnostics) - limit
    if hidden > 0:
        console.print(f"[dim]... {hidden} more diagnostics[/dim]")


def _enforce_strict(result: ParseResult) -> None:
    try:
        result.check(Severity.WARNING)
    except F06Error as e:
        console.print(f"[bold red]Strict mode:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def _block_table(document: Document) -> Table:
    table = Table(title="Blocks")
    table.add_column("Subcase", justify="right")
    table.add_column("Kind")
    table.add_column("Secondary")
    table.add_column("Rows", justify="right")
    table.add_column("Lines")
    table.add_column("Recognizer", style="dim")
    for block in document.iter_blocks():
        table.add_row(
            str(block.subcase_id),
            block.kind,
            block.secondary_id or "",
            str(block.num_rows),
            f"{block.first_line}-{block.last_line}",
            block.recognizer,
        )
    return table


@app.command()
def info(
    f06_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="F06 file to inspect"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warning diagnostics"),
    max_diagnostics: int = typer.Option(20, help="Diagnostics to print"),
) -> None:
    """Summarize the blocks found in an F06 file."""
    result = _load(f06_path)
    document = result.document

    solver = document.solver.value if document.solver else "unknown"
    console.print(f"[bold blue]File:[/bold blue] {f06_path}")
    console.print(
        f"[dim]Solver: {solver}, lines: {document.line_count}, pages: {document.page_count}[/dim]"
    )
    if document.is_empty:
        console.print("[yellow]No recognized blocks[/yellow]")
    else:
        subcases = ", ".join(str(s) for s in document.subcases())
        console.print(f"Subcases: {subcases}")
        console.print(_block_table(document))
        duplicated = len(document.blocks) - len(document.unique_blocks())
        if duplicated:
            console.print(f"[yellow]{duplicated} blocks share an identity with another block[/yellow]")

    console.print(f"[bold]{len(result.diagnostics)} diagnostics[/bold]")
    _print_diagnostics(result, max_diagnostics)
    if strict:
        _enforce_strict(result)


def _rows_table(block: Block, limit: int) -> Table:
    title = f"{block.title} / subcase {block.subcase_id}"
    table = Table(title=title)
    for column in block.columns:
        table.add_column(column.name, justify="left" if column.ctype == ColumnType.TEXT else "right")
    for row in block.rows[:limit]:
        table.add_row(*("" if row[name] is None else str(row[name]) for name in block.column_names))
    return table


@app.command()
def dump(
    f06_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="F06 file to read"),
    kind: Optional[str] = typer.Option(None, help="Only blocks of this kind"),
    subcase: Optional[str] = typer.Option(None, help="Only blocks of this subcase"),
    limit: int = typer.Option(50, help="Rows to print per block"),
    as_json: bool = typer.Option(False, "--json", help="Print blocks as JSON"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warning diagnostics"),
) -> None:
    """Print the rows of recognized blocks."""
    result = _load(f06_path)
    if strict:
        _enforce_strict(result)

    subcase_id = int(subcase) if subcase is not None and subcase.isdigit() else subcase
    blocks = result.document.find(kind=kind, subcase_id=subcase_id)
    if not blocks:
        console.print("[yellow]No matching blocks[/yellow]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(TypeAdapter(list[Block]).dump_json(blocks, indent=2).decode())
        return
    for block in blocks:
        console.print(_rows_table(block, limit))
        if block.num_rows > limit:
            console.print(f"[dim]... {block.num_rows - limit} more rows[/dim]")


@app.command()
def csv(
    f06_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="F06 file to export"),
    output_dir: Path = typer.Option(Path("./output"), help="Output directory"),
    delimiter: Optional[str] = typer.Option(None, help="Field delimiter"),
    fortran: bool = typer.Option(False, "--fortran", help="Write reals as -1.23450+05"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warning diagnostics"),
) -> None:
    """Export every block to its own CSV file."""
    result = _load(f06_path)
    if strict:
        _enforce_strict(result)
    paths = document_to_csv(result.document, output_dir, delimiter=delimiter, fortran=fortran)
    console.print(f"[green]Wrote {len(paths)} files to {output_dir}[/green]")


@app.command()
def diff(
    left_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Reference F06"),
    right_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="F06 to compare"),
    abs_tol: float = typer.Option(settings.abs_tolerance, help="Absolute tolerance"),
    rel_tol: float = typer.Option(settings.rel_tolerance, help="Relative tolerance"),
    mode: ToleranceMode = typer.Option(settings.tolerance_mode, help="Tolerance mode"),
    flag_sign: bool = typer.Option(
        settings.flag_sign_change, "--flag-sign", help="Report values that change sign"
    ),
    missing_rows: MissingRowPolicy = typer.Option(
        settings.missing_rows, help="Rows present on one side only: skip, zero or flag"
    ),
    max_deltas: int = typer.Option(settings.max_reported_deltas, help="Deltas shown per block"),
) -> None:
    """Compare two F06 files. Exits with 1 when they disagree."""
    left = _load(left_path).document
    right = _load(right_path).document
    tolerance = ToleranceConfig(
        mode=mode, abs_tol=abs_tol, rel_tol=rel_tol, flag_sign_change=flag_sign
    )
    report = diff_documents(left, right, tolerance=tolerance, missing_rows=missing_rows)

    for comparison in report.removed:
        console.print(f"[red]- only in {left_path.name}:[/red] {comparison.identity}")
    for comparison in report.added:
        console.print(f"[green]+ only in {right_path.name}:[/green] {comparison.identity}")
    for comparison in report.matched:
        if not comparison.has_discrepancies:
            continue
        console.print(f"[bold]{comparison.identity}[/bold]")
        if comparison.row_count_mismatch:
            console.print(
                f"  [yellow]row count {comparison.left_rows} vs {comparison.right_rows}[/yellow]"
            )
        found = comparison.discrepancies
        for delta in found[:max_deltas]:
            console.print(f"  {escape(delta.describe())}")
        if len(found) > max_deltas:
            console.print(f"  [dim]... {len(found) - max_deltas} more[/dim]")

    if report.is_clean:
        console.print("[bold green]No differences[/bold green]")
        return
    console.print(
        f"[bold red]{report.discrepancy_count} discrepancies, "
        f"{len(report.added)} added, {len(report.removed)} removed[/bold red]"
    )
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
