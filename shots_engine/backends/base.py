"""Automation backend interfaces."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence

from ..plan import TapSelector


class CommandError(RuntimeError):
    """An automation command could not start or exited non-zero."""

    def __init__(self, command: str, reason: str, output: str = "", returncode: int | None = None) -> None:
        self.command = command
        self.reason = reason
        self.output = output
        self.returncode = returncode
        message = f"{command}: {reason}"
        if output:
            message = f"{message} (output: {output})"
        super().__init__(message)


class AutomationBackend(Protocol):
    name: str

    def launch(self, udid: str, bundle_id: str) -> None:
        ...

    def tap(self, udid: str, selector: TapSelector) -> None:
        ...

    def type_text(self, udid: str, text: str) -> None:
        ...

    def send_keys(self, udid: str, keycodes: Sequence[int]) -> None:
        ...

    def describe_ui(self, udid: str) -> Any:
        ...

    def screenshot(self, udid: str, output_path: Path) -> Path:
        ...


class BackendRegistry:
    def __init__(self, backends: Iterable[AutomationBackend]) -> None:
        self._backends = {backend.name: backend for backend in backends}

    def get(self, name: str) -> AutomationBackend | None:
        return self._backends.get(name)

    def list(self) -> list[str]:
        return sorted(self._backends.keys())
