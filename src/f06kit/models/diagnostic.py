"""Parse diagnostics."""

from typing import Optional

from pydantic import Field

from f06kit.errors import (
    BlockContinuityError,
    F06Error,
    MalformedNumber,
    RowShapeError,
    UnrecognizedBlock,
)

from .base import BaseF06Model, DiagnosticKind, Severity, SourceLocation


class Diagnostic(BaseF06Model):
    """A recoverable condition found while parsing.

    Diagnostics are collected in source order. Presentation and exit-code
    policy belong to the caller.
    """

    kind: DiagnosticKind
    severity: Severity
    location: SourceLocation
    message: str
    block_kind: Optional[str] = Field(None, description="Recognizer kind involved, if any")
    column: Optional[str] = Field(None, description="Offending column, if any")
    token: Optional[str] = Field(None, description="Offending token, if any")

    @classmethod
    def create(
        cls,
        kind: DiagnosticKind,
        message: str,
        line: int,
        page: Optional[int] = None,
        severity: Optional[Severity] = None,
        block_kind: Optional[str] = None,
        column: Optional[str] = None,
        token: Optional[str] = None,
    ) -> "Diagnostic":
        """Build a diagnostic with the kind's default severity."""
        return cls(
            kind=kind,
            severity=severity or kind.default_severity,
            location=SourceLocation(line=line, page=page),
            message=message,
            block_kind=block_kind,
            column=column,
            token=token,
        )

    @property
    def line(self) -> int:
        return self.location.line

    def as_tuple(self) -> tuple[Severity, SourceLocation, str]:
        """(severity, location, message) triple."""
        return self.severity, self.location, self.message

    def to_exception(self) -> F06Error:
        """Rebuild the exception this diagnostic stands for."""
        text = f"{self.location}: {self.message}"
        if self.kind == DiagnosticKind.MALFORMED_NUMBER:
            return MalformedNumber(self.token or "", column=self.column)
        if self.kind == DiagnosticKind.ROW_SHAPE:
            return RowShapeError(text)
        if self.kind == DiagnosticKind.BLOCK_CONTINUITY:
            return BlockContinuityError(text)
        return UnrecognizedBlock(text)

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.location}: {self.message}"
