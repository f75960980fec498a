"""Library assembly, duplicate detection and deterministic serialization."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader

from .analysis import analyze_modules
from .analysis_context import AnalysisContext
from .analyzers import ProgramIndex
from .errors import DuplicateDeclarationError
from .linker import LinkResult, link_modules, merge_also_exported_from
from .logging import get_logger, report_diagnostics
from .models import (
    ComponentProp,
    Declaration,
    DeclarationKind,
    DuplicateInfo,
    GenericParam,
    LibraryModel,
    Module,
    Parameter,
    SourceFile,
)
from .package import PackageMetadata
from .sources import ModuleSourceOptions

_LOGGER = get_logger("library")

_WRAPPER_TEMPLATE = "library_wrapper.ts.j2"
DEFAULT_JSON_FILENAME = "library.json"

Duplicates = Dict[str, List[DuplicateInfo]]
OnDuplicates = Callable[[Duplicates, logging.Logger], None]


def sort_modules(modules: Iterable[Module]) -> List[Module]:
    """Order modules by path; declaration order inside each module is kept."""
    return sorted(modules, key=lambda module: module.path)


def assemble_library(package: PackageMetadata, modules: Iterable[Module]) -> LibraryModel:
    return LibraryModel(
        name=package.name,
        version=package.version,
        modules=sort_modules(modules),
        description=package.description,
        repository=package.repository,
        homepage=package.homepage,
    )


def find_duplicates(library: LibraryModel) -> Duplicates:
    """Group declarations by name, keeping only names declared more than once."""
    occurrences: Duplicates = {}
    for module in library.modules:
        for declaration in module.declarations:
            occurrences.setdefault(declaration.name, []).append(
                DuplicateInfo(declaration=declaration, module=module.path)
            )
    return {name: items for name, items in occurrences.items() if len(items) > 1}


def _log_occurrences(duplicates: Duplicates, emit: Callable[..., None]) -> None:
    for name, occurrences in duplicates.items():
        emit('  "%s" found in:', name)
        for occurrence in occurrences:
            line = occurrence.declaration.source_line
            line_info = f":{line}" if line is not None else ""
            emit("    - %s%s (%s)", occurrence.module, line_info, occurrence.declaration.kind.value)


def warn_on_duplicates(duplicates: Duplicates, logger: logging.Logger | None = None) -> None:
    """Lenient policy: report duplicate names and continue."""
    if not duplicates:
        return
    log = logger or _LOGGER
    log.warning("Duplicate declaration names detected in flat namespace:")
    _log_occurrences(duplicates, log.warning)


def throw_on_duplicates(duplicates: Duplicates, logger: logging.Logger | None = None) -> None:
    """Strict policy: log every occurrence, then raise :class:`DuplicateDeclarationError`."""
    if not duplicates:
        return
    log = logger or _LOGGER
    log.error("Duplicate declaration names detected in flat namespace:")
    _log_occurrences(duplicates, log.error)
    raise DuplicateDeclarationError(duplicates)


def _compact(pairs: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Build an ordered mapping, dropping ``None``, ``False`` and empty collections."""
    data: Dict[str, Any] = {}
    for key, value in pairs:
        if value is None or value is False:
            continue
        if isinstance(value, (list, dict)) and not value:
            continue
        data[key] = value
    return data


def _parameter_dict(parameter: Parameter) -> Dict[str, Any]:
    return _compact(
        [
            ("name", parameter.name),
            ("type", parameter.type),
            ("optional", parameter.optional),
            ("default_value", parameter.default_value),
            ("description", parameter.description),
        ]
    )


def _generic_dict(param: GenericParam) -> Dict[str, Any]:
    return _compact(
        [
            ("name", param.name),
            ("constraint", param.constraint),
            ("default_type", param.default_type),
        ]
    )


def _prop_dict(prop: ComponentProp) -> Dict[str, Any]:
    return _compact(
        [
            ("name", prop.name),
            ("type", prop.type),
            ("optional", prop.optional),
            ("default_value", prop.default_value),
            ("description", prop.description),
            ("bindable", prop.bindable),
        ]
    )


def declaration_to_dict(declaration: Declaration) -> Dict[str, Any]:
    alias = declaration.alias_of
    return _compact(
        [
            ("name", declaration.name),
            ("kind", declaration.kind.value),
            ("source_line", declaration.source_line),
            ("comment", declaration.comment),
            ("type_signature", declaration.type_signature),
            ("return_type", declaration.return_type),
            ("return_description", declaration.return_description),
            ("parameters", [_parameter_dict(p) for p in declaration.parameters]),
            ("generic_params", [_generic_dict(g) for g in declaration.generic_params]),
            ("extends", list(declaration.extends)),
            ("implements", list(declaration.implements)),
            ("members", [declaration_to_dict(m) for m in declaration.members]),
            ("properties", [declaration_to_dict(p) for p in declaration.properties]),
            ("props", [_prop_dict(p) for p in declaration.props]),
            ("modifiers", list(declaration.modifiers)),
            ("throws", list(declaration.throws)),
            ("since", declaration.since),
            ("deprecated", declaration.deprecated),
            ("examples", list(declaration.examples)),
            ("see_also", list(declaration.see_also)),
            ("alias_of", {"module": alias.module, "name": alias.name} if alias else None),
            ("also_exported_from", list(declaration.also_exported_from)),
        ]
    )


def module_to_dict(module: Module) -> Dict[str, Any]:
    return _compact(
        [
            ("path", module.path),
            ("declarations", [declaration_to_dict(d) for d in module.declarations]),
            ("module_comment", module.module_comment),
            ("dependencies", list(module.dependencies)),
            ("dependents", list(module.dependents)),
            ("star_exports", list(module.star_exports)),
            (
                "re_exports",
                [
                    {
                        "local_name": r.local_name,
                        "source_module": r.source_module,
                        "exported_name": r.exported_name,
                    }
                    for r in module.re_exports
                ],
            ),
        ]
    )


def library_to_dict(library: LibraryModel) -> Dict[str, Any]:
    data = _compact(
        [
            ("name", library.name),
            ("version", library.version),
            ("description", library.description),
            ("repository", library.repository),
            ("homepage", library.homepage),
        ]
    )
    data["modules"] = [module_to_dict(module) for module in library.modules]
    return data


def serialize_library(library: LibraryModel) -> str:
    """Render the canonical JSON form: fixed key order, tab indentation, trailing newline."""
    return json.dumps(library_to_dict(library), indent="\t", ensure_ascii=False) + "\n"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    return Environment(
        loader=loader,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_wrapper(library: LibraryModel, json_filename: str = DEFAULT_JSON_FILENAME) -> str:
    """Render the TypeScript module that re-exports the JSON file with its types."""
    template = _environment().get_template(_WRAPPER_TEMPLATE)
    return template.render(
        name=library.name,
        version=library.version,
        module_count=len(library.modules),
        json_filename=json_filename,
        kinds=[kind.value for kind in DeclarationKind],
    )


@dataclass(frozen=True)
class GeneratedOutput:
    json_content: str
    wrapper_source: Optional[str] = None


def generate(
    package: PackageMetadata,
    library: LibraryModel,
    *,
    wrapper: bool = True,
    json_filename: str = DEFAULT_JSON_FILENAME,
) -> GeneratedOutput:
    """Serialize *library* under the identity of *package*."""
    library = assemble_library(package, library.modules)
    wrapper_source = render_wrapper(library, json_filename) if wrapper else None
    return GeneratedOutput(json_content=serialize_library(library), wrapper_source=wrapper_source)


@dataclass
class LibraryResult:
    """Everything one pipeline run produced."""

    library: LibraryModel
    output: GeneratedOutput
    context: AnalysisContext
    link: LinkResult
    duplicates: Duplicates = field(default_factory=dict)

    @property
    def json_content(self) -> str:
        return self.output.json_content

    @property
    def wrapper_source(self) -> Optional[str]:
        return self.output.wrapper_source


def generate_library(
    source_files: Sequence[SourceFile],
    package: PackageMetadata,
    options: ModuleSourceOptions,
    *,
    program: ProgramIndex | None = None,
    on_duplicates: OnDuplicates | None = None,
    logger: logging.Logger | None = None,
    wrapper: bool = True,
    json_filename: str = DEFAULT_JSON_FILENAME,
) -> LibraryResult:
    """Run the full pipeline over already-collected *source_files*.

    Analysis errors and the strict duplicate policy raise; advisory
    diagnostics are logged and returned on the result's context.
    """
    log = logger or _LOGGER
    files = list(source_files)
    if program is None:
        program = ProgramIndex(files, options)

    context = AnalysisContext()
    modules = analyze_modules(files, program, options, context, log)
    link = link_modules(modules, log)
    library = assemble_library(package, merge_also_exported_from(modules, link))

    duplicates = find_duplicates(library)
    if duplicates and on_duplicates is not None:
        on_duplicates(duplicates, log)

    if context.diagnostics:
        report_diagnostics(log, context, strip_base=options.project_root)

    output = generate(package, library, wrapper=wrapper, json_filename=json_filename)
    log.info("library metadata generation complete: %d modules", len(library.modules))
    return LibraryResult(
        library=library,
        output=output,
        context=context,
        link=link,
        duplicates=duplicates,
    )


__all__ = [
    "DEFAULT_JSON_FILENAME",
    "GeneratedOutput",
    "LibraryResult",
    "assemble_library",
    "declaration_to_dict",
    "find_duplicates",
    "generate",
    "generate_library",
    "library_to_dict",
    "module_to_dict",
    "render_wrapper",
    "serialize_library",
    "sort_modules",
    "throw_on_duplicates",
    "warn_on_duplicates",
]
