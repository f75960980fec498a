"""Source discovery, filtering and module path utilities."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Pattern, Sequence, Tuple

from .errors import SourceOptionsError
from .logging import get_logger
from .models import FileKind, SourceFile

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".svelte-kit",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".idea",
    "dist",
}

_KIND_BY_SUFFIX = {
    ".ts": FileKind.TYPESCRIPT,
    ".mts": FileKind.TYPESCRIPT,
    ".js": FileKind.TYPESCRIPT,
    ".mjs": FileKind.TYPESCRIPT,
    ".svelte": FileKind.SVELTE,
}

_DECLARATION_SUFFIXES = (".d.ts", ".d.mts")

DEFAULT_SOURCE_PATHS: Tuple[str, ...] = ("src/lib",)
DEFAULT_EXTENSIONS: Tuple[str, ...] = (".ts", ".js", ".svelte")
DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (r"\.test\.ts$",)

_LOGGER = get_logger("sources")


@dataclass(frozen=True)
class ModuleSourceOptions:
    """Which files belong to the analysis set and how their paths are relativized.

    ``source_paths`` and ``source_root`` are relative paths without leading or
    trailing slashes. When ``project_root`` is given, the source root is
    anchored directly beneath it; otherwise the first occurrence of the source
    root segment in a path is treated as the anchor.
    """

    source_paths: Tuple[str, ...] = DEFAULT_SOURCE_PATHS
    source_root: Optional[str] = None
    project_root: Optional[str] = None
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    default_implies_optional: bool = True

    @property
    def effective_root(self) -> str:
        """Return ``source_root``, or the single source path when omitted."""
        if self.source_root is not None:
            return self.source_root
        if len(self.source_paths) == 1:
            return self.source_paths[0]
        raise SourceOptionsError(
            "source_root is required when source_paths has multiple entries. "
            f"Got source_paths: {list(self.source_paths)}"
        )


def create_source_options(
    project_root: str | Path | None = None, **overrides: object
) -> ModuleSourceOptions:
    """Build options for a standard ``src/lib`` layout with optional overrides."""
    root = str(project_root).rstrip("/") if project_root is not None else None
    for key in ("source_paths", "extensions", "exclude_patterns"):
        value = overrides.get(key)
        if value is not None and not isinstance(value, tuple):
            overrides[key] = tuple(value)  # type: ignore[arg-type]
    return ModuleSourceOptions(project_root=root, **overrides)  # type: ignore[arg-type]


def validate_source_options(options: ModuleSourceOptions) -> None:
    """Raise :class:`SourceOptionsError` when the options are inconsistent."""
    if options.project_root is not None and not options.project_root.startswith("/"):
        raise SourceOptionsError(
            f'project_root must be an absolute path (start with "/"): "{options.project_root}"'
        )
    if not options.source_paths:
        raise SourceOptionsError("source_paths must have at least one entry")

    for source_path in options.source_paths:
        _check_relative("source_paths entry", source_path)

    if options.source_root is None:
        if len(options.source_paths) > 1:
            raise SourceOptionsError(
                "source_root is required when source_paths has multiple entries. "
                f"Got source_paths: {list(options.source_paths)}"
            )
        return

    _check_relative("source_root", options.source_root)
    for source_path in options.source_paths:
        if source_path != options.source_root and not source_path.startswith(
            options.source_root + "/"
        ):
            raise SourceOptionsError(
                f'source_paths entry "{source_path}" must start with source_root '
                f'"{options.source_root}"'
            )


def _check_relative(label: str, value: str) -> None:
    if not value:
        raise SourceOptionsError(f"{label} must not be empty")
    if value.startswith("/"):
        raise SourceOptionsError(f'{label} should not start with "/": "{value}"')
    if value.endswith("/"):
        raise SourceOptionsError(f'{label} should not end with "/": "{value}"')


@lru_cache(maxsize=64)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern)


def _marker_index(path: str, options: ModuleSourceOptions) -> Optional[int]:
    """Return the offset of the source root segment anchoring *path*, if any."""
    root = options.effective_root
    if options.project_root is not None:
        prefix = f"{options.project_root}/{root}/"
        if path.startswith(prefix):
            return len(options.project_root) + 1
        return None
    if path.startswith(f"{root}/"):
        return 0
    index = path.find(f"/{root}/")
    if index == -1:
        return None
    return index + 1


def file_kind(path: str, options: ModuleSourceOptions | None = None) -> Optional[FileKind]:
    """Return the analyzer kind for *path*, or ``None`` when it is not analyzable."""
    if path.endswith(_DECLARATION_SUFFIXES):
        return None
    extensions = options.extensions if options is not None else DEFAULT_EXTENSIONS
    for extension in extensions:
        if path.endswith(extension):
            return _KIND_BY_SUFFIX.get(extension)
    return None


def is_excluded(path: str, options: ModuleSourceOptions) -> bool:
    return any(_compile(pattern).search(path) for pattern in options.exclude_patterns)


def matches(path: str, options: ModuleSourceOptions) -> bool:
    """Return True when *path* belongs to the analysis set."""
    if is_excluded(path, options):
        return False
    index = _marker_index(path, options)
    if index is None:
        return False
    anchored = path[index:]
    if not any(anchored.startswith(f"{source_path}/") for source_path in options.source_paths):
        return False
    return file_kind(path, options) is not None


def extract_path(path: str, options: ModuleSourceOptions) -> str:
    """Strip everything through the source root, e.g. ``/p/src/lib/a/b.ts`` -> ``a/b.ts``.

    Paths without the source root marker are returned unchanged.
    """
    index = _marker_index(path, options)
    if index is None:
        return path
    return path[index + len(options.effective_root) + 1 :]


def component_name(module_path: str) -> str:
    """Return the component name for a module path: ``ui/Button.svelte`` -> ``Button``."""
    base = module_path.rsplit("/", 1)[-1]
    stem, dot, _ = base.rpartition(".")
    return stem if dot else base


def collect_source_files(
    files: Iterable[SourceFile],
    options: ModuleSourceOptions,
    logger: logging.Logger | None = None,
) -> List[SourceFile]:
    """Filter *files* to the analysis set, ordered by relative module path."""
    log = logger or _LOGGER
    all_files = list(files)
    log.info("received %d files total", len(all_files))

    source_files = [source for source in all_files if matches(source.id, options)]
    log.info("found %d source files to analyze", len(source_files))

    if not source_files:
        log.warning(
            "No source files found in %s - generating empty library metadata",
            options.effective_root,
        )
        return []

    source_files.sort(key=lambda source: (extract_path(source.id, options), source.id))
    return source_files


def _relative_in_scope(ids: Optional[Sequence[str]], options: ModuleSourceOptions) -> List[str]:
    if not ids:
        return []
    return sorted(extract_path(file_id, options) for file_id in ids if matches(file_id, options))


def extract_dependencies(
    source_file: SourceFile, options: ModuleSourceOptions
) -> Tuple[List[str], List[str]]:
    """Return sorted in-scope ``(dependencies, dependents)`` as module paths."""
    return (
        _relative_in_scope(source_file.dependencies, options),
        _relative_in_scope(source_file.dependents, options),
    )


def _iter_files(directory: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            yield current_dir / filename


def read_source_files(
    options: ModuleSourceOptions,
    logger: logging.Logger | None = None,
) -> List[SourceFile]:
    """Read every in-scope file beneath the configured source directories."""
    if options.project_root is None:
        raise SourceOptionsError("project_root is required to read source files from disk")

    log = logger or _LOGGER
    raw_files: List[SourceFile] = []
    for source_path in options.source_paths:
        directory = Path(options.project_root) / source_path
        if not directory.is_dir():
            log.warning("Could not read source directory %s", directory)
            continue
        for path in _iter_files(directory):
            file_id = path.as_posix()
            if not matches(file_id, options):
                continue
            raw_files.append(SourceFile(id=file_id, content=path.read_text(encoding="utf-8")))

    log.info("read %d source files from filesystem", len(raw_files))
    return collect_source_files(raw_files, options, log)


__all__ = [
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_SOURCE_PATHS",
    "ModuleSourceOptions",
    "collect_source_files",
    "component_name",
    "create_source_options",
    "extract_dependencies",
    "extract_path",
    "file_kind",
    "is_excluded",
    "matches",
    "read_source_files",
    "validate_source_options",
]
