"""Per-kind module extractors and their registry."""

from __future__ import annotations

from typing import Callable, Optional

from ..models import FileKind
from .base import ExtractedModule, ModuleExtractor
from .program import ProgramIndex
from .svelte import SvelteExtractor
from .typescript import TypeScriptExtractor

_BUILTIN_FACTORIES: dict[FileKind, Callable[[], ModuleExtractor]] = {
    FileKind.TYPESCRIPT: TypeScriptExtractor,
    FileKind.SVELTE: SvelteExtractor,
}


def extractor_for(kind: FileKind) -> Optional[ModuleExtractor]:
    """Return a fresh extractor for *kind*, or ``None`` when none is registered."""
    factory = _BUILTIN_FACTORIES.get(kind)
    if factory is None:
        return None
    extractor = factory()
    if not isinstance(extractor, ModuleExtractor):
        raise TypeError(f"Extractor factory for '{kind.value}' did not return a ModuleExtractor")
    return extractor


__all__ = [
    "ExtractedModule",
    "ModuleExtractor",
    "ProgramIndex",
    "SvelteExtractor",
    "TypeScriptExtractor",
    "extractor_for",
]
