"""Diagnostic collection for source analysis.

Analysis functions follow a two-tier error model:

* Accumulated (non-fatal) problems such as an unresolvable type or a class
  member that cannot be analyzed are recorded on an :class:`AnalysisContext`
  and analysis continues with partial data.
* Fatal problems such as a component file that cannot be parsed raise an
  :class:`~docinfo.errors.AnalysisError` and stop the run.

A context is created per run and passed explicitly through every extraction
call; there is no module-level instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

TYPE_EXTRACTION_FAILED = "type_extraction_failed"
SIGNATURE_ANALYSIS_FAILED = "signature_analysis_failed"
CLASS_MEMBER_FAILED = "class_member_failed"
SVELTE_PROP_FAILED = "svelte_prop_failed"
DUPLICATE_BINDING = "duplicate_binding"


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal finding reported during analysis."""

    kind: str
    file: str
    line: Optional[int]
    column: Optional[int]
    message: str
    severity: str = SEVERITY_WARNING
    symbol: Optional[str] = None


class AnalysisContext:
    """Collects diagnostics for one analysis run."""

    def __init__(self) -> None:
        self.diagnostics: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def warn(
        self,
        kind: str,
        file: str,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        symbol: Optional[str] = None,
    ) -> None:
        """Shortcut for recording a warning-level diagnostic."""
        self.add(
            Diagnostic(
                kind=kind,
                file=file,
                line=line,
                column=column,
                message=message,
                severity=SEVERITY_WARNING,
                symbol=symbol,
            )
        )

    def has_errors(self) -> bool:
        return any(d.severity == SEVERITY_ERROR for d in self.diagnostics)

    def has_warnings(self) -> bool:
        return any(d.severity == SEVERITY_WARNING for d in self.diagnostics)

    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == SEVERITY_ERROR]

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == SEVERITY_WARNING]

    def by_kind(self, kind: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    @property
    def ok(self) -> bool:
        """True while no error-level diagnostic has been recorded."""
        return not self.has_errors()


def format_diagnostic(
    diagnostic: Diagnostic,
    *,
    prefix: str = "./",
    strip_base: str | None = None,
) -> str:
    """Format a diagnostic like ``./file.ts:10:5: warning: message``."""
    file = diagnostic.file
    if strip_base and file.startswith(strip_base):
        file = file[len(strip_base) :].lstrip("/")

    location = ""
    if diagnostic.line is not None:
        location = str(diagnostic.line)
        if diagnostic.column is not None:
            location += f":{diagnostic.column}"
    file_part = f"{prefix}{file}:{location}" if location else f"{prefix}{file}"
    return f"{file_part}: {diagnostic.severity}: {diagnostic.message}"


__all__ = [
    "AnalysisContext",
    "CLASS_MEMBER_FAILED",
    "DUPLICATE_BINDING",
    "Diagnostic",
    "SEVERITY_ERROR",
    "SEVERITY_WARNING",
    "SIGNATURE_ANALYSIS_FAILED",
    "SVELTE_PROP_FAILED",
    "TYPE_EXTRACTION_FAILED",
    "format_diagnostic",
]
