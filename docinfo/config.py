"""Configuration loading for docinfo (.docinfo.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError
from .sources import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_EXTENSIONS,
    DEFAULT_SOURCE_PATHS,
    ModuleSourceOptions,
    create_source_options,
)

CONFIG_FILENAME = ".docinfo.yml"


@dataclass
class SourceConfig:
    """Which files are analyzed and how their paths are relativized."""

    paths: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_PATHS))
    root: Optional[str] = None
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    default_implies_optional: bool = True


@dataclass
class OutputConfig:
    """Where the generated files are written."""

    dir: str = "src/routes"
    json: str = "library.json"
    wrapper: Optional[str] = "library.ts"


@dataclass
class DocInfoConfig:
    """Represents the settings defined in .docinfo.yml."""

    root: Path
    source: SourceConfig = field(default_factory=SourceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    package_json: str = "package.json"
    strict_duplicates: bool = True

    @property
    def output_dir(self) -> Path:
        return self.root / self.output.dir

    @property
    def package_json_path(self) -> Path:
        return self.root / self.package_json

    def source_options(self) -> ModuleSourceOptions:
        return create_source_options(
            self.root.as_posix(),
            source_paths=self.source.paths,
            source_root=self.source.root,
            extensions=self.source.extensions,
            exclude_patterns=self.source.exclude,
            default_implies_optional=self.source.default_implies_optional,
        )


def load_config(config_path: Path) -> DocInfoConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocInfoConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    source = SourceConfig()
    source_data = _as_dict(data.get("source"))
    if source_data:
        if "paths" in source_data:
            source.paths = [_strip_slashes(path) for path in _as_str_list(source_data.get("paths"))]
        root_value = _as_str(source_data.get("root"))
        source.root = _strip_slashes(root_value) if root_value else None
        if "extensions" in source_data:
            source.extensions = _as_str_list(source_data.get("extensions"))
        if "exclude" in source_data:
            source.exclude = _as_str_list(source_data.get("exclude"))
        implies = _as_bool(source_data.get("default_implies_optional"))
        if implies is not None:
            source.default_implies_optional = implies

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    if output_data:
        output.dir = _as_str(output_data.get("dir")) or output.dir
        output.json = _as_str(output_data.get("json")) or output.json
        if "wrapper" in output_data:
            wrapper = output_data.get("wrapper")
            output.wrapper = None if wrapper is False or wrapper is None else _as_str(wrapper)

    strict = _as_bool(data.get("strict_duplicates"))

    return DocInfoConfig(
        root=root,
        source=source,
        output=output,
        package_json=_as_str(data.get("package_json")) or "package.json",
        strict_duplicates=True if strict is None else strict,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _strip_slashes(value: str) -> str:
    return value.strip().strip("/")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "DocInfoConfig", "OutputConfig", "SourceConfig", "load_config"]
