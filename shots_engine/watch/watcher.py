"""File watcher built on ``watchfiles``.

The watched roots can change while watching (a rewritten config may point at
new asset directories); ``set_roots`` ends the current ``watchfiles.watch``
loop and the next one picks up the new roots.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable, Iterable

from watchfiles import Change, watch

from .changes import OP_CREATE, OP_REMOVE, OP_WRITE, ChangeEvent

_OPS = {
    Change.added: OP_CREATE,
    Change.modified: OP_WRITE,
    Change.deleted: OP_REMOVE,
}

DEFAULT_DEBOUNCE_MS = 1600
_MISSING_ROOTS_RETRY_S = 1.0


def to_change_events(changes: Iterable[tuple[Change, str]]) -> list[ChangeEvent]:
    return [
        ChangeEvent(path=path, op=_OPS[change])
        for change, path in sorted(changes, key=lambda item: (item[1], item[0]))
        if change in _OPS
    ]


class _EitherSet:
    """Stop signal for ``watchfiles``: set when either event is set."""

    def __init__(self, first: threading.Event, second: threading.Event) -> None:
        self._first = first
        self._second = second

    def is_set(self) -> bool:
        return self._first.is_set() or self._second.is_set()


class FileWatcher:
    def __init__(
        self,
        roots: Iterable[str | Path],
        on_event: Callable[[ChangeEvent], None],
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        force_polling: bool | None = None,
    ) -> None:
        self.on_event = on_event
        self.debounce_ms = debounce_ms
        self.force_polling = force_polling
        self.starts = 0
        self._lock = threading.Lock()
        self._restart = threading.Event()
        self._roots = _normalize_roots(roots)

    @property
    def roots(self) -> list[str]:
        with self._lock:
            return list(self._roots)

    def set_roots(self, roots: Iterable[str | Path]) -> bool:
        """Replace the watched roots; returns True when they changed."""
        normalized = _normalize_roots(roots)
        with self._lock:
            if normalized == self._roots:
                return False
            self._roots = normalized
        self._restart.set()
        return True

    def run(self, stop: threading.Event) -> None:
        """Deliver change events until ``stop`` is set. Roots missing when a watch starts are skipped."""
        while not stop.is_set():
            self._restart.clear()
            existing = [root for root in self.roots if os.path.exists(root)]
            if not existing:
                stop.wait(_MISSING_ROOTS_RETRY_S)
                continue
            with self._lock:
                self.starts += 1
            for changes in watch(
                *existing,
                stop_event=_EitherSet(stop, self._restart),
                debounce=self.debounce_ms,
                force_polling=self.force_polling,
            ):
                for event in to_change_events(changes):
                    self.on_event(event)


def _normalize_roots(roots: Iterable[str | Path]) -> list[str]:
    normalized: list[str] = []
    for root in roots:
        path = os.path.normpath(os.path.abspath(os.path.expanduser(str(root))))
        if path not in normalized:
            normalized.append(path)
    return normalized
