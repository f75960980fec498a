"""Core data models shared across docinfo components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence


class FileKind(str, Enum):
    """Closed set of source dialects the pipeline knows how to analyze."""

    TYPESCRIPT = "typescript"
    SVELTE = "svelte"


class DeclarationKind(str, Enum):
    """Kind of an exported symbol."""

    VALUE = "value"
    FUNCTION = "function"
    CLASS = "class"
    TYPE_ALIAS = "type_alias"
    INTERFACE = "interface"
    ENUM = "enum"
    COMPONENT = "component"


@dataclass(frozen=True)
class SourceFile:
    """One file under analysis, as handed over by the file-discovery collaborator."""

    id: str
    content: Optional[str] = None
    dependencies: Optional[Sequence[str]] = None
    dependents: Optional[Sequence[str]] = None


@dataclass
class Parameter:
    """A function, method or constructor parameter."""

    name: str
    type: str
    optional: bool = False
    default_value: Optional[str] = None
    description: Optional[str] = None


@dataclass
class GenericParam:
    """A generic type parameter such as ``T extends object = {}``."""

    name: str
    constraint: Optional[str] = None
    default_type: Optional[str] = None


@dataclass
class ComponentProp:
    """A publicly declared component property."""

    name: str
    type: str
    optional: bool = False
    default_value: Optional[str] = None
    description: Optional[str] = None
    bindable: bool = False


@dataclass(frozen=True)
class AliasOf:
    """Points a renamed local export back at the binding it renames."""

    module: str
    name: str


@dataclass
class Declaration:
    """One exported symbol and its documentation metadata."""

    name: str
    kind: DeclarationKind
    source_line: Optional[int] = None
    comment: Optional[str] = None
    type_signature: Optional[str] = None
    return_type: Optional[str] = None
    return_description: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    generic_params: List[GenericParam] = field(default_factory=list)
    extends: List[str] = field(default_factory=list)
    implements: List[str] = field(default_factory=list)
    members: List["Declaration"] = field(default_factory=list)
    properties: List["Declaration"] = field(default_factory=list)
    props: List[ComponentProp] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    throws: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)
    see_also: List[str] = field(default_factory=list)
    since: Optional[str] = None
    deprecated: Optional[str] = None
    alias_of: Optional[AliasOf] = None
    also_exported_from: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReExport:
    """A symbol this module forwards from the module that declares it."""

    local_name: str
    source_module: str
    exported_name: str


@dataclass(frozen=True)
class Module:
    """One analyzed file keyed by its root-relative path."""

    path: str
    declarations: List[Declaration] = field(default_factory=list)
    module_comment: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    re_exports: List[ReExport] = field(default_factory=list)
    star_exports: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DuplicateInfo:
    """One occurrence of a declaration name that appears in several modules."""

    declaration: Declaration
    module: str


@dataclass
class LibraryModel:
    """The terminal artifact: package identity plus every analyzed module."""

    name: str
    version: str
    modules: List[Module] = field(default_factory=list)
    description: Optional[str] = None
    repository: Optional[str] = None
    homepage: Optional[str] = None

    def module(self, path: str) -> Optional[Module]:
        for module in self.modules:
            if module.path == path:
                return module
        return None

    def duplicates(self) -> Dict[str, List[DuplicateInfo]]:
        """Return the derived duplicate-name index."""
        from .library import find_duplicates

        return find_duplicates(self)


__all__ = [
    "AliasOf",
    "ComponentProp",
    "Declaration",
    "DeclarationKind",
    "DuplicateInfo",
    "FileKind",
    "GenericParam",
    "LibraryModel",
    "Module",
    "Parameter",
    "ReExport",
    "SourceFile",
]
