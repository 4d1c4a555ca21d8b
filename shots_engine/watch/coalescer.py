"""Serialize a rebuild function and collapse trigger bursts."""

from __future__ import annotations

import threading
from typing import Callable


class GenerationCoalescer:
    """At most one run of ``fn`` at a time; triggers during a run collapse into one rerun.

    A trigger with no run in flight executes ``fn`` on the calling thread and
    keeps looping while more triggers arrive. A trigger during a run only marks
    the run dirty and returns. A failing run still gets its promised rerun;
    the owner re-raises only when the last run it performed failed.
    """

    def __init__(self, fn: Callable[[], None]) -> None:
        self._fn = fn
        self._lock = threading.Lock()
        self._running = False
        self._pending = False
        self.runs = 0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def trigger(self) -> None:
        with self._lock:
            if self._running:
                self._pending = True
                return
            self._running = True

        while True:
            failure: Exception | None = None
            try:
                self._fn()
            except Exception as exc:
                failure = exc
            except BaseException:
                with self._lock:
                    self._running = False
                    self._pending = False
                raise
            with self._lock:
                self.runs += 1
                if self._pending:
                    self._pending = False
                    continue
                self._running = False
            if failure is not None:
                raise failure
            return
