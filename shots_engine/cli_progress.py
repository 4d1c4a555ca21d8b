"""CLI progress output for plan runs."""

from __future__ import annotations

import os
import shutil
import sys
import threading
import time
from typing import Any, TextIO

_BOLD = "\x1b[1m"
_GREY = "\x1b[38;2;150;157;165m"
_RESET = "\x1b[0m"


def progress_line(label: str, start: float | None = None, done: bool = False) -> tuple[str, float]:
    now = time.monotonic()
    origin = now if start is None else start
    minutes, seconds = divmod(max(0, int(now - origin)), 60)
    suffix = "done" if done else "ctrl-c to cancel"
    return f"• {label} ({minutes}m {seconds:02d}s • {suffix})", origin


class PlanProgress:
    """Shows the current plan step; redraws in place on a TTY, one line per step otherwise."""

    def __init__(
        self,
        total_steps: int,
        stream: TextIO | None = None,
        interval_s: float = 1.0,
    ) -> None:
        self.total_steps = total_steps
        self.label = "Starting plan"
        self.start: float | None = None
        self.stream = stream or sys.stdout
        self.interval_s = max(0.2, interval_s)
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._tty = bool(getattr(self.stream, "isatty", lambda: False)())

    def begin(self) -> None:
        _, self.start = progress_line(self.label)
        if self._tty:
            self._redraw()
            self._thread.start()

    def handle_event(self, event: dict[str, Any]) -> None:
        kind = event.get("type")
        if kind == "step_started":
            self.label = f"Step {event.get('index')}/{self.total_steps} {event.get('action')}"
            if self._tty:
                self._redraw()
            else:
                self._write(progress_line(self.label, self.start)[0] + "\n")
        elif kind == "step_failed":
            message = f"Step {event.get('index')} ({event.get('action')}) failed: {event.get('error')}"
            self._write(("\r\033[K" if self._tty else "") + message + "\n")

    def finish(self, ok: bool = True) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join()
        elapsed = max(0, int(time.monotonic() - (self.start or time.monotonic())))
        verb = "Finished in" if ok else "Stopped after"
        line = f"{_GREY}{_separator_line(f'{verb} {_format_duration(elapsed)}', _terminal_width(self.stream))}{_RESET}"
        self._write(("\r" + line + "\033[K\n") if self._tty else line + "\n")

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            self._redraw()

    def _redraw(self) -> None:
        line, _ = progress_line(self.label, self.start)
        self._write(f"\r{_BOLD}{line}{_RESET}\033[K")

    def _write(self, text: str) -> None:
        with self._lock:
            self.stream.write(text)
            self.stream.flush()


def _format_duration(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def _separator_line(label: str, width: int) -> str:
    content = f" {label} "
    if width <= len(content) + 2:
        return content.strip()
    left = (width - len(content)) // 2
    return f"{'─' * left}{content}{'─' * (width - len(content) - left)}"


def _terminal_width(stream: TextIO | None, fallback: int = 100) -> int:
    if stream is not None and hasattr(stream, "fileno"):
        try:
            return os.get_terminal_size(stream.fileno()).columns
        except (OSError, ValueError):
            pass
    return shutil.get_terminal_size(fallback=(fallback, 20)).columns
