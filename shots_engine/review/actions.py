"""Review follow-up actions: approve entries and open the HTML report."""

from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .approvals import load_approvals, save_approvals
from .errors import ReviewError, ReviewValidationError
from .generate import resolve_approval_path, resolve_review_output_dir
from .manifest import DEFAULT_MANIFEST_NAME, STATUS_READY, ReviewEntry, load_review_manifest
from .report import DEFAULT_HTML_NAME


@dataclass
class ReviewApproveResult:
    approval_path: Path
    matched: int = 0
    added: int = 0
    total_approved: int = 0
    keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "approval_path": str(self.approval_path),
            "matched": self.matched,
            "added": self.added,
            "total_approved": self.total_approved,
            "keys": list(self.keys),
        }


@dataclass
class ReviewOpenResult:
    html_path: Path
    opened: bool

    def to_dict(self) -> dict[str, Any]:
        return {"html_path": str(self.html_path), "opened": self.opened}


def approve_review(
    output_dir: str | Path | None = None,
    *,
    all_ready: bool = False,
    locale: str | None = None,
    device: str | None = None,
    approval_path: str | Path | None = None,
) -> ReviewApproveResult:
    locale = (locale or "").strip()
    device = (device or "").strip()
    if not all_ready and not locale and not device:
        raise ReviewValidationError("provide at least one selector: --all-ready, --locale, or --device")

    abs_output = resolve_review_output_dir(output_dir)
    manifest = load_review_manifest(abs_output / DEFAULT_MANIFEST_NAME)
    ledger_path = resolve_approval_path(abs_output, approval_path or manifest.approval_path or None)

    def _selected(entry: ReviewEntry) -> bool:
        if all_ready and entry.status != STATUS_READY:
            return False
        if locale and entry.locale != locale:
            return False
        if device and entry.device != device:
            return False
        return True

    matched_keys = sorted({entry.key.strip() for entry in manifest.entries if _selected(entry) and entry.key.strip()})
    approvals = load_approvals(ledger_path)
    added = [key for key in matched_keys if key not in approvals]
    approvals.update(matched_keys)
    saved = save_approvals(ledger_path, approvals)
    return ReviewApproveResult(
        approval_path=ledger_path,
        matched=len(matched_keys),
        added=len(added),
        total_approved=len(saved),
        keys=matched_keys,
    )


def open_review(
    output_dir: str | Path | None = None,
    *,
    dry_run: bool = False,
    opener: Callable[[Path], None] | None = None,
) -> ReviewOpenResult:
    html_path = resolve_review_output_dir(output_dir) / DEFAULT_HTML_NAME
    if not html_path.is_file():
        raise ReviewValidationError(f"review HTML not found at {html_path}; run review generate first")
    if dry_run:
        return ReviewOpenResult(html_path=html_path, opened=False)
    (opener or open_path)(html_path)
    return ReviewOpenResult(html_path=html_path, opened=True)


def open_path(path: Path) -> None:
    if sys.platform == "win32":
        os.startfile(str(path))  # type: ignore[attr-defined]
        return
    command = "open" if sys.platform == "darwin" else "xdg-open"
    try:
        completed = subprocess.run(
            [command, str(path)],
            check=False,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise ReviewError(f"open {path}: {exc}") from exc
    if completed.returncode != 0:
        detail = (completed.stderr or completed.stdout or "").strip() or f"exit status {completed.returncode}"
        raise ReviewError(f"open {path}: {detail}")
