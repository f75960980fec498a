"""Exception hierarchy for docinfo."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import DuplicateInfo


class DocInfoError(RuntimeError):
    """Base class for errors raised by the docinfo pipeline."""


class ConfigError(DocInfoError):
    """Raised when the configuration file cannot be parsed."""


class SourceOptionsError(DocInfoError):
    """Raised when module source options are inconsistent."""


class PackageError(DocInfoError):
    """Raised when the package manifest is missing or malformed."""


class AnalysisError(DocInfoError):
    """Fatal failure while extracting metadata from a single file."""

    def __init__(
        self,
        file: str,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.file = file
        self.line = line
        self.column = column
        self.reason = message
        super().__init__(self._format())

    def _format(self) -> str:
        location = self.file
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return f"{location}: {self.reason}"


class ComponentParseError(AnalysisError):
    """A component file whose template or script cannot be parsed."""


class DuplicateDeclarationError(DocInfoError):
    """Raised by the strict duplicate policy when names collide across modules."""

    def __init__(self, duplicates: Dict[str, List["DuplicateInfo"]]) -> None:
        self.duplicates = duplicates
        count = len(duplicates)
        super().__init__(
            f"Found {count} duplicate declaration name{'' if count == 1 else 's'} across modules. "
            "The flat namespace requires unique names: rename one of the conflicting "
            "declarations or mark it with @nodocs."
        )


__all__ = [
    "AnalysisError",
    "ComponentParseError",
    "ConfigError",
    "DocInfoError",
    "DuplicateDeclarationError",
    "PackageError",
    "SourceOptionsError",
]
