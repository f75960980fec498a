"""CLI entrypoints for docinfo commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .config import DocInfoConfig, load_config
from .errors import DocInfoError
from .library import LibraryResult, generate_library, throw_on_duplicates, warn_on_duplicates
from .logging import configure_logging, get_logger
from .package import load_package_json
from .sources import read_source_files, validate_source_options

_LOGGER = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .docinfo.yml file (defaults to <path>/.docinfo.yml).",
    )
    parser.add_argument(
        "--out-dir",
        default=None,
        help="Directory for library.json and its wrapper (overrides output.dir).",
    )
    parser.add_argument(
        "--no-wrapper",
        action="store_true",
        help="Do not write the TypeScript wrapper module.",
    )
    strictness = parser.add_mutually_exclusive_group()
    strictness.add_argument(
        "--strict",
        dest="strict",
        action="store_true",
        help="Fail when declaration names collide across modules.",
    )
    strictness.add_argument(
        "--lenient",
        dest="strict",
        action="store_false",
        help="Only warn about duplicate declaration names.",
    )
    parser.set_defaults(strict=None)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docinfo",
        description="Generate library metadata for TypeScript and Svelte sources.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Analyze the source tree and write library.json.",
    )
    _add_project_options(generate_parser)

    check_parser = subparsers.add_parser(
        "check",
        help="Exit non-zero when the written library metadata is out of date.",
    )
    _add_project_options(check_parser)

    return parser


@dataclass
class _Run:
    config: DocInfoConfig
    result: LibraryResult
    out_dir: Path

    def outputs(self) -> List[Tuple[Path, str]]:
        files = [(self.out_dir / self.config.output.json, self.result.json_content)]
        wrapper = self.result.wrapper_source
        if wrapper is not None and self.config.output.wrapper:
            files.append((self.out_dir / self.config.output.wrapper, wrapper))
        return files


def _load(args: argparse.Namespace) -> DocInfoConfig:
    root = Path(args.path).expanduser().resolve()
    if args.config:
        config = load_config(Path(args.config))
        config.root = root
        return config
    return load_config(root)


def _run_pipeline(args: argparse.Namespace) -> _Run:
    config = _load(args)
    options = config.source_options()
    validate_source_options(options)

    package = load_package_json(config.package_json_path)
    source_files = read_source_files(options, _LOGGER)

    strict = config.strict_duplicates if args.strict is None else bool(args.strict)
    wrapper = not args.no_wrapper and config.output.wrapper is not None
    result = generate_library(
        source_files,
        package,
        options,
        on_duplicates=throw_on_duplicates if strict else warn_on_duplicates,
        logger=_LOGGER,
        wrapper=wrapper,
        json_filename=config.output.json,
    )
    out_dir = Path(args.out_dir).expanduser().resolve() if args.out_dir else config.output_dir
    return _Run(config=config, result=result, out_dir=out_dir)


def _stale_outputs(run: _Run) -> List[Path]:
    stale: List[Path] = []
    for path, content in run.outputs():
        try:
            current: Optional[str] = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            current = None
        if current != content:
            stale.append(path)
    return stale


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docinfo commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        run = _run_pipeline(args)
    except DocInfoError as exc:
        parser.exit(1, f"docinfo {args.command} failed: {exc}\nRun with --verbose for more details.\n")

    if args.command == "generate":
        run.out_dir.mkdir(parents=True, exist_ok=True)
        for path, content in run.outputs():
            path.write_text(content, encoding="utf-8")
            print(f"Wrote {_relativize(path)}")
    elif args.command == "check":
        stale = _stale_outputs(run)
        if stale:
            names = ", ".join(_relativize(path) for path in stale)
            parser.exit(1, f"Library metadata is out of date: {names}\nRun `docinfo generate` to refresh.\n")
        print("Library metadata is up to date")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
