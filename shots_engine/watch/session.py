"""Watch screenshot trees and regenerate review artifacts."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Callable

from ..review.generate import ReviewResult, generate_review
from ..runs.events import EventWriter
from .changes import ChangeEvent, collect_asset_dirs, is_relevant_change
from .coalescer import GenerationCoalescer
from .watcher import DEFAULT_DEBOUNCE_MS, FileWatcher


class ReviewWatchSession:
    def __init__(
        self,
        framed_dir: str | Path,
        raw_dir: str | Path | None = None,
        output_dir: str | Path | None = None,
        approval_path: str | Path | None = None,
        config_path: str | Path | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        force_polling: bool | None = None,
        on_result: Callable[[ReviewResult], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        events: EventWriter | None = None,
    ) -> None:
        self.framed_dir = Path(framed_dir).expanduser().absolute()
        self.raw_dir = Path(raw_dir).expanduser().absolute() if raw_dir else None
        self.output_dir = output_dir
        self.approval_path = approval_path
        self.config_path = os.path.normpath(str(Path(config_path).expanduser().absolute())) if config_path else None
        self.on_result = on_result
        self.on_error = on_error
        self.events = events
        self.coalescer = GenerationCoalescer(self.regenerate)
        self.asset_dirs = self._asset_dirs()
        self.watcher = FileWatcher(
            self._watch_roots(),
            self.handle_event,
            debounce_ms=debounce_ms,
            force_polling=force_polling,
        )

    def _asset_dirs(self) -> list[str]:
        dirs = [str(self.framed_dir)]
        if self.raw_dir is not None:
            dirs.append(str(self.raw_dir))
        if self.config_path:
            dirs.extend(d for d in collect_asset_dirs(self.config_path) if d not in dirs)
        return dirs

    def _watch_roots(self) -> list[str]:
        roots = list(self.asset_dirs)
        if self.config_path:
            roots.append(self.config_path)
        return roots

    def regenerate(self) -> None:
        try:
            result = generate_review(
                self.framed_dir,
                raw_dir=self.raw_dir,
                output_dir=self.output_dir,
                approval_path=self.approval_path,
            )
        except Exception as exc:
            if self.events is not None:
                self.events.emit("review_failed", error=str(exc))
            if self.on_error is None:
                raise
            self.on_error(exc)
            return
        if self.events is not None:
            self.events.emit("review_generated", **result.to_dict())
        if self.on_result is not None:
            self.on_result(result)

    def handle_event(self, event: ChangeEvent) -> None:
        if not is_relevant_change(event, self.config_path, self.asset_dirs):
            return
        if self.config_path and os.path.normpath(os.path.abspath(event.path)) == self.config_path:
            self.asset_dirs = self._asset_dirs()
            if self.watcher.set_roots(self._watch_roots()) and self.events is not None:
                self.events.emit("watch_roots_changed", roots=self.watcher.roots)
        if self.events is not None:
            self.events.emit("change_detected", path=event.path, op=event.op)
        threading.Thread(target=self.coalescer.trigger, daemon=True).start()

    def run(self, stop: threading.Event) -> None:
        """Generate once, then watch until ``stop`` is set."""
        self.coalescer.trigger()
        self.watcher.run(stop)


def watch_review(framed_dir: str | Path, stop: threading.Event, **options: Any) -> None:
    """Generate review artifacts, then regenerate on relevant changes until ``stop`` is set.

    ``options`` are passed to :class:`ReviewWatchSession`.
    """
    ReviewWatchSession(framed_dir, **options).run(stop)
