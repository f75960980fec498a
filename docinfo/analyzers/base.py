"""Base classes for per-kind module extractors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional

from ..analysis_context import AnalysisContext
from ..models import Declaration, FileKind, ReExport
from ..sources import ModuleSourceOptions
from .program import IndexedFile, ProgramIndex


@dataclass
class ExtractedModule:
    """What an extractor reports for one file, before dependency edges are attached."""

    declarations: List[Declaration] = field(default_factory=list)
    module_comment: Optional[str] = None
    re_exports: List[ReExport] = field(default_factory=list)
    star_exports: List[str] = field(default_factory=list)


class ModuleExtractor(ABC):
    """Contract for extractors that turn one indexed file into module metadata."""

    kind: ClassVar[FileKind]

    @abstractmethod
    def extract(
        self,
        indexed: IndexedFile,
        module_path: str,
        program: ProgramIndex,
        options: ModuleSourceOptions,
        context: AnalysisContext,
    ) -> ExtractedModule:
        """Return declarations and export edges for *indexed*.

        Raises :class:`~docinfo.errors.AnalysisError` when the file cannot be
        analyzed at all.
        """


__all__ = ["ExtractedModule", "ModuleExtractor"]
