"""Logger hierarchy and diagnostic reporting for docinfo."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .analysis_context import AnalysisContext

_LOGGER_NAME = "docinfo"
_CONSOLE_FORMAT = "[docinfo] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``docinfo`` hierarchy, e.g. ``docinfo.linker``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console (and optional file) handlers to the ``docinfo`` logger."""
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    root.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        root.addHandler(sink)

    return root


def report_diagnostics(
    logger: logging.Logger,
    context: "AnalysisContext",
    *,
    strip_base: str | None = None,
) -> None:
    """Log every diagnostic collected during a run, errors first."""
    from .analysis_context import format_diagnostic

    errors = context.errors()
    warnings = context.warnings()
    if errors:
        logger.error("Analysis completed with %d error(s):", len(errors))
        for diagnostic in errors:
            logger.error("  %s", format_diagnostic(diagnostic, strip_base=strip_base))
    if warnings:
        logger.warning("Analysis completed with %d warning(s):", len(warnings))
        for diagnostic in warnings:
            logger.warning("  %s", format_diagnostic(diagnostic, strip_base=strip_base))


__all__ = ["configure_logging", "get_logger", "report_diagnostics"]
