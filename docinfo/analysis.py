"""Dispatch each source file to the extractor for its kind."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .analysis_context import AnalysisContext
from .analyzers import ProgramIndex, extractor_for
from .logging import get_logger
from .models import Module, SourceFile
from .sources import ModuleSourceOptions, extract_dependencies, extract_path

_LOGGER = get_logger("analysis")


def analyze_module(
    source_file: SourceFile,
    program: ProgramIndex,
    options: ModuleSourceOptions,
    context: AnalysisContext,
    logger: logging.Logger | None = None,
) -> Optional[Module]:
    """Analyze one file into a :class:`Module`.

    Returns ``None`` (and logs a warning) when the file is missing from the
    program index or no extractor handles its kind. Fatal problems with the
    file itself propagate as :class:`~docinfo.errors.AnalysisError`.
    """
    log = logger or _LOGGER
    indexed = program.get(source_file.id)
    if indexed is None:
        log.warning("Could not get source file from program: %s", source_file.id)
        return None

    extractor = extractor_for(indexed.kind)
    if extractor is None:
        log.warning("No extractor registered for %s (%s)", source_file.id, indexed.kind.value)
        return None

    module_path = extract_path(source_file.id, options)
    extracted = extractor.extract(indexed, module_path, program, options, context)
    dependencies, dependents = extract_dependencies(source_file, options)

    log.debug("analyzed %s: %d declarations", module_path, len(extracted.declarations))
    return Module(
        path=module_path,
        declarations=list(extracted.declarations),
        module_comment=extracted.module_comment,
        dependencies=list(dependencies),
        dependents=list(dependents),
        re_exports=list(extracted.re_exports),
        star_exports=list(extracted.star_exports),
    )


def analyze_modules(
    files: Iterable[SourceFile],
    program: ProgramIndex,
    options: ModuleSourceOptions,
    context: AnalysisContext,
    logger: logging.Logger | None = None,
) -> List[Module]:
    """Analyze *files* in order; the first fatal analysis error halts the batch."""
    modules: List[Module] = []
    for source_file in files:
        module = analyze_module(source_file, program, options, context, logger)
        if module is not None:
            modules.append(module)
    return modules


__all__ = ["analyze_module", "analyze_modules"]
