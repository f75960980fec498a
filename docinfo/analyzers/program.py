"""Tree-sitter program index: parses every source file once and resolves imports."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser, Tree

from ..logging import get_logger
from ..models import FileKind, SourceFile
from ..sources import ModuleSourceOptions, file_kind

_LOGGER = get_logger("program")

_LANGUAGE: Optional[Language] = None

_RESOLVE_SUFFIXES = (".ts", ".mts", ".js", ".mjs", ".svelte")
_INDEX_FILES = ("index.ts", "index.js")
_JS_TO_TS = {".js": (".ts",), ".mjs": (".mts", ".ts")}


def typescript_language() -> Language:
    global _LANGUAGE
    if _LANGUAGE is None:
        _LANGUAGE = Language(tsts.language_typescript())
    return _LANGUAGE


def create_parser() -> Parser:
    return Parser(typescript_language())


def parse_script(source: str, parser: Parser | None = None) -> "ParsedScript":
    """Parse TypeScript (or plain JavaScript) source text."""
    data = source.encode("utf-8")
    tree = (parser or create_parser()).parse(data)
    return ParsedScript(source=data, tree=tree)


@dataclass
class ParsedScript:
    """A parsed script plus the bytes its node offsets refer to."""

    source: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


@dataclass
class IndexedFile:
    """A file registered with the program index."""

    id: str
    kind: FileKind
    content: str
    script: Optional[ParsedScript] = None


def iter_error_nodes(node: Node) -> Iterator[Node]:
    """Yield ``ERROR`` and missing nodes beneath *node* in document order."""
    if node.type == "ERROR" or node.is_missing:
        yield node
        return
    if not node.has_error:
        return
    for child in node.children:
        yield from iter_error_nodes(child)


def first_error(node: Node) -> Optional[Node]:
    return next(iter_error_nodes(node), None)


class ProgramIndex:
    """Parses source files and answers cross-file questions about them.

    TypeScript modules are parsed eagerly; component files are only
    registered, since their scripts are parsed by the component extractor.
    """

    def __init__(
        self,
        files: Iterable[SourceFile] = (),
        options: ModuleSourceOptions | None = None,
    ) -> None:
        self._options = options
        self._parser = create_parser()
        self._files: Dict[str, IndexedFile] = {}
        for source_file in files:
            self.add(source_file)

    def add(self, source_file: SourceFile) -> Optional[IndexedFile]:
        kind = file_kind(source_file.id, self._options)
        if kind is None:
            return None

        content = source_file.content
        if content is None:
            try:
                content = Path(source_file.id).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                _LOGGER.warning("Could not read %s: %s", source_file.id, exc)
                return None

        script = parse_script(content, self._parser) if kind is FileKind.TYPESCRIPT else None
        indexed = IndexedFile(id=source_file.id, kind=kind, content=content, script=script)
        self._files[source_file.id] = indexed
        return indexed

    def get(self, file_id: str) -> Optional[IndexedFile]:
        return self._files.get(file_id)

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._files

    def __len__(self) -> int:
        return len(self._files)

    @property
    def parser(self) -> Parser:
        return self._parser

    def file_ids(self) -> List[str]:
        return sorted(self._files)

    def resolve(self, specifier: str, from_id: str) -> Optional[str]:
        """Resolve a relative module specifier to an indexed file id.

        Bare package specifiers are external and resolve to ``None``.
        """
        if not specifier.startswith("."):
            return None
        target = posixpath.normpath(posixpath.join(posixpath.dirname(from_id), specifier))
        for candidate in self._candidates(target):
            if candidate in self._files:
                return candidate
        return None

    @staticmethod
    def _candidates(target: str) -> Iterator[str]:
        yield target
        stem, suffix = posixpath.splitext(target)
        for replacement in _JS_TO_TS.get(suffix, ()):
            yield stem + replacement
        for suffix in _RESOLVE_SUFFIXES:
            yield target + suffix
        for index_file in _INDEX_FILES:
            yield posixpath.join(target, index_file)


__all__ = [
    "IndexedFile",
    "ParsedScript",
    "ProgramIndex",
    "create_parser",
    "first_error",
    "iter_error_nodes",
    "parse_script",
    "typescript_language",
]
