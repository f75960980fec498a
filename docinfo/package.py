"""Package manifest (``package.json``) loading."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .errors import PackageError


@dataclass(frozen=True)
class PackageMetadata:
    """The identity fields of a package manifest that end up in library metadata."""

    name: str
    version: str
    description: Optional[str] = None
    repository: Optional[str] = None
    homepage: Optional[str] = None


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _repository_url(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        value = value.get("url")
    return _optional_str(value)


def package_from_mapping(data: Mapping[str, Any], *, source: str = "package.json") -> PackageMetadata:
    name = _optional_str(data.get("name"))
    version = _optional_str(data.get("version"))
    if name is None:
        raise PackageError(f"{source} is missing a 'name' field")
    if version is None:
        raise PackageError(f"{source} is missing a 'version' field")
    return PackageMetadata(
        name=name,
        version=version,
        description=_optional_str(data.get("description")),
        repository=_repository_url(data.get("repository")),
        homepage=_optional_str(data.get("homepage")),
    )


def load_package_json(path: Path) -> PackageMetadata:
    """Read *path* and return its :class:`PackageMetadata`."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise PackageError(f"Package manifest not found: {path}") from exc
    except OSError as exc:
        raise PackageError(f"Failed to read package manifest {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PackageError(f"Failed to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise PackageError(f"{path} must contain a JSON object")
    return package_from_mapping(data, source=str(path))


__all__ = ["PackageMetadata", "load_package_json", "package_from_mapping"]
