"""Cross-module linking: which modules re-export which declarations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .logging import get_logger
from .models import DeclarationKind, Module

_LOGGER = get_logger("linker")

_STAR = "*"


@dataclass(frozen=True)
class UnresolvedReExport:
    """A re-export whose origin declaration could not be found."""

    module: str
    source_module: str
    name: str


@dataclass
class LinkResult:
    """``also_exported_from[name][origin_path]`` lists the modules re-exporting it."""

    also_exported_from: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)
    unresolved: List[UnresolvedReExport] = field(default_factory=list)

    def exporters_of(self, name: str, origin: str) -> List[str]:
        return list(self.also_exported_from.get(name, {}).get(origin, []))


class _Resolver:
    def __init__(self, modules: Sequence[Module]) -> None:
        self.by_path: Dict[str, Module] = {module.path: module for module in modules}
        self._declared: Dict[str, Set[str]] = {
            module.path: {declaration.name for declaration in module.declarations}
            for module in modules
        }
        self._components: Dict[str, str] = {
            module.path: declaration.name
            for module in modules
            for declaration in module.declarations
            if declaration.kind is DeclarationKind.COMPONENT
        }

    def resolve(
        self, path: str, name: str, visiting: Optional[Set[Tuple[str, str]]] = None
    ) -> Optional[Tuple[str, str]]:
        """Follow re-exports from *path* to ``(origin_path, origin_name)``."""
        module = self.by_path.get(path)
        if module is None:
            return None
        if name in self._declared[path]:
            return path, name
        # A component is the default export of its file.
        if name == "default" and path in self._components:
            return path, self._components[path]

        visiting = visiting if visiting is not None else set()
        key = (path, name)
        if key in visiting:
            return None
        visiting.add(key)

        for re_export in module.re_exports:
            if re_export.exported_name == name:
                return self.resolve(re_export.source_module, re_export.local_name, visiting)
        if name == "default":
            return None
        for target in module.star_exports:
            origin = self.resolve(target, name, visiting)
            if origin is not None:
                return origin
        return None

    def exported_names(self, path: str, visiting: Optional[Set[str]] = None) -> Set[str]:
        """Every name *path* exports, following star exports without cycles."""
        module = self.by_path.get(path)
        if module is None:
            return set()
        visiting = visiting if visiting is not None else set()
        if path in visiting:
            return set()
        visiting.add(path)

        names = set(self._declared[path])
        names.update(re_export.exported_name for re_export in module.re_exports)
        for target in module.star_exports:
            names.update(name for name in self.exported_names(target, visiting) if name != "default")
        return names


def link_modules(
    modules: Sequence[Module], logger: logging.Logger | None = None
) -> LinkResult:
    """Resolve every explicit and wildcard re-export to its declaring module."""
    log = logger or _LOGGER
    resolver = _Resolver(modules)
    index: Dict[str, Dict[str, Set[str]]] = {}
    unresolved: List[UnresolvedReExport] = []

    def record(origin: Tuple[str, str], exporter: str) -> None:
        origin_path, origin_name = origin
        if origin_path == exporter:
            return
        index.setdefault(origin_name, {}).setdefault(origin_path, set()).add(exporter)

    for module in modules:
        for re_export in module.re_exports:
            origin = resolver.resolve(re_export.source_module, re_export.local_name)
            if origin is None:
                unresolved.append(
                    UnresolvedReExport(module.path, re_export.source_module, re_export.local_name)
                )
                continue
            record(origin, module.path)

        own_names = {declaration.name for declaration in module.declarations}
        own_names.update(re_export.exported_name for re_export in module.re_exports)
        for target in module.star_exports:
            if target not in resolver.by_path:
                unresolved.append(UnresolvedReExport(module.path, target, _STAR))
                continue
            for name in sorted(resolver.exported_names(target)):
                if name == "default" or name in own_names:
                    continue
                origin = resolver.resolve(target, name)
                if origin is not None:
                    record(origin, module.path)

    for item in unresolved:
        log.warning(
            "Unresolved re-export of %s from %s in %s", item.name, item.source_module, item.module
        )

    also_exported_from = {
        name: {origin: sorted(exporters) for origin, exporters in sorted(origins.items())}
        for name, origins in sorted(index.items())
    }
    return LinkResult(also_exported_from=also_exported_from, unresolved=unresolved)


def merge_also_exported_from(modules: Sequence[Module], link: LinkResult) -> List[Module]:
    """Return copies of *modules* whose declarations carry ``also_exported_from``."""
    merged: List[Module] = []
    for module in modules:
        declarations = []
        for declaration in module.declarations:
            exporters = link.exporters_of(declaration.name, module.path)
            if exporters:
                declaration = replace(declaration, also_exported_from=exporters)
            declarations.append(declaration)
        merged.append(replace(module, declarations=declarations))
    return merged


__all__ = ["LinkResult", "UnresolvedReExport", "link_modules", "merge_also_exported_from"]
