"""Debounced regeneration for development servers and file watchers."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .logging import get_logger
from .sources import ModuleSourceOptions, matches

_LOGGER = get_logger("watch")

DEFAULT_DELAY = 0.1


class DebouncedRegenerator:
    """Collapse bursts of file changes into one regeneration.

    ``generate`` returns the serialized library; ``on_change`` is called with
    it only when it differs from the last output seen.
    """

    def __init__(
        self,
        generate: Callable[[], str],
        on_change: Callable[[str], None],
        *,
        delay: float = DEFAULT_DELAY,
        options: ModuleSourceOptions | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._generate = generate
        self._on_change = on_change
        self._delay = delay
        self._options = options
        self._log = logger or _LOGGER
        self._lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._last_output: Optional[str] = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def last_output(self) -> Optional[str]:
        return self._last_output

    def prime(self, output: str) -> None:
        """Record *output* as current without notifying."""
        with self._run_lock:
            self._last_output = output

    def schedule(self, path: str) -> bool:
        """Queue a regeneration for a change to *path*; False when the path is out of scope."""
        if self._options is not None and not matches(path, self._options):
            self._log.debug("Ignoring change outside the source set: %s", path)
            return False
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self._delay, self._run)
            timer.daemon = True
            self._timer = timer
            timer.start()
        self._log.debug("Scheduled regeneration for %s", path)
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> None:
        """Run a pending regeneration immediately."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        self._regenerate()

    def _run(self) -> None:
        with self._lock:
            if self._timer is not threading.current_thread():
                return
            self._timer = None
        self._regenerate()

    def _regenerate(self) -> None:
        with self._run_lock:
            try:
                output = self._generate()
            except Exception as exc:
                self._log.error("Library regeneration failed: %s", exc)
                return
            if output == self._last_output:
                self._log.debug("Library metadata unchanged")
                return
            self._last_output = output
            self._log.info("Library metadata regenerated")
            self._on_change(output)


__all__ = ["DEFAULT_DELAY", "DebouncedRegenerator"]
