"""AXe + simctl automation backend.

Every call shells out: ``xcrun simctl launch`` for app launches and the
``axe`` CLI for taps, typing, key sequences, accessibility dumps and
screenshots. Binary names can be overridden with ``SHOTS_AXE_BIN`` and
``SHOTS_XCRUN_BIN``.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Sequence

from ..plan import TapSelector
from ..utils import getenv_str
from .base import CommandError


class AxeBackend:
    name = "axe"

    def __init__(
        self,
        axe_bin: str | None = None,
        xcrun_bin: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.axe_bin = axe_bin or getenv_str("SHOTS_AXE_BIN", "axe")
        self.xcrun_bin = xcrun_bin or getenv_str("SHOTS_XCRUN_BIN", "xcrun")
        self.timeout_s = timeout_s

    def launch(self, udid: str, bundle_id: str) -> None:
        run_command([self.xcrun_bin, "simctl", "launch", udid, bundle_id], timeout_s=self.timeout_s)

    def tap(self, udid: str, selector: TapSelector) -> None:
        if selector.kind == "label":
            args = ["tap", "--label", str(selector.label)]
        elif selector.kind == "id":
            args = ["tap", "--id", str(selector.element_id)]
        else:
            args = ["tap", "-x", _format_coordinate(selector.x), "-y", _format_coordinate(selector.y)]
        self._axe(*args, "--udid", udid)

    def type_text(self, udid: str, text: str) -> None:
        self._axe("type", text, "--udid", udid)

    def send_keys(self, udid: str, keycodes: Sequence[int]) -> None:
        joined = ",".join(str(int(code)) for code in keycodes)
        self._axe("key-sequence", "--keycodes", joined, "--udid", udid)

    def describe_ui(self, udid: str) -> Any:
        # stdout only: axe prints warnings on stderr that would corrupt the JSON.
        out = self._axe("describe-ui", "--udid", udid)
        try:
            return json.loads(out)
        except json.JSONDecodeError as exc:
            raise CommandError(f"{self.axe_bin} describe-ui", f"parse JSON: {exc}") from exc

    def screenshot(self, udid: str, output_path: Path) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._axe("screenshot", "--output", str(output_path), "--udid", udid)
        if not output_path.exists():
            raise CommandError(self.axe_bin, f"screenshot not found at {str(output_path)!r}")
        return output_path

    def _axe(self, *args: str) -> str:
        return run_command([self.axe_bin, *args], timeout_s=self.timeout_s)


def run_command(argv: Sequence[str], timeout_s: float | None = None) -> str:
    """Run a command and return its stdout, raising CommandError with combined output on failure."""
    name = argv[0]
    try:
        completed = subprocess.run(
            list(argv),
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except FileNotFoundError as exc:
        raise CommandError(name, f"executable not found: {exc.filename or name}") from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(name, f"timed out after {exc.timeout}s", _combine(exc.stdout, exc.stderr)) from exc
    except OSError as exc:
        raise CommandError(name, f"could not start: {exc}") from exc
    if completed.returncode != 0:
        raise CommandError(
            name,
            f"exit status {completed.returncode}",
            _combine(completed.stdout, completed.stderr),
            returncode=completed.returncode,
        )
    return completed.stdout or ""


def _combine(stdout: Any, stderr: Any) -> str:
    parts: list[str] = []
    for chunk in (stdout, stderr):
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8", errors="replace")
        text = (chunk or "").strip()
        if text:
            parts.append(text)
    return "\n".join(parts)


def _format_coordinate(value: float | None) -> str:
    number = float(value or 0.0)
    if number.is_integer():
        return str(int(number))
    return repr(number)
