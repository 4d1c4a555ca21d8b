"""Build review artifacts from framed (and optionally raw) screenshot trees."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..utils import getenv_str, now_utc_seconds
from .approvals import DEFAULT_APPROVALS_NAME, load_approvals, save_approvals
from .display_types import matching_display_types
from .errors import ReviewError, ReviewValidationError
from .images import collect_images, infer_locale_and_device, read_image_dimensions, screenshot_id
from .manifest import (
    DEFAULT_MANIFEST_NAME,
    ReviewEntry,
    ReviewManifest,
    derive_review_status,
    make_review_key,
)
from .report import DEFAULT_HTML_NAME, write_review_html

DEFAULT_REVIEW_OUTPUT_DIR = "./screenshots/review"


@dataclass
class ReviewResult:
    manifest_path: Path
    html_path: Path
    approval_path: Path
    framed_dir: Path
    total: int = 0
    ready: int = 0
    missing_raw: int = 0
    invalid_size: int = 0
    approved: int = 0
    pending: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "manifest_path": str(self.manifest_path),
            "html_path": str(self.html_path),
            "approval_path": str(self.approval_path),
            "framed_dir": str(self.framed_dir),
            "total": self.total,
            "ready": self.ready,
            "missing_raw": self.missing_raw,
            "invalid_size": self.invalid_size,
            "approved": self.approved,
            "pending": self.pending,
        }


def resolve_review_output_dir(output_dir: str | Path | None = None) -> Path:
    raw = str(output_dir or "").strip() or getenv_str("SHOTS_REVIEW_DIR", DEFAULT_REVIEW_OUTPUT_DIR)
    return Path(raw).expanduser().resolve()


def resolve_approval_path(output_dir: Path, approval_path: str | Path | None = None) -> Path:
    raw = str(approval_path or "").strip()
    if not raw:
        return output_dir / DEFAULT_APPROVALS_NAME
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = output_dir / path
    return path


def generate_review(
    framed_dir: str | Path,
    raw_dir: str | Path | None = None,
    output_dir: str | Path | None = None,
    approval_path: str | Path | None = None,
) -> ReviewResult:
    if not str(framed_dir or "").strip():
        raise ReviewValidationError("framed directory is required")
    abs_framed = Path(framed_dir).expanduser().resolve()
    if not abs_framed.exists():
        raise ReviewValidationError(f"framed directory not found: {abs_framed}")
    if not abs_framed.is_dir():
        raise ReviewValidationError(f"framed directory must be a directory: {abs_framed}")

    abs_output = resolve_review_output_dir(output_dir)
    try:
        abs_output.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReviewError(f"create output directory {abs_output}: {exc}") from exc

    ledger_path = resolve_approval_path(abs_output, approval_path)
    approvals = load_approvals(ledger_path)

    abs_raw: Path | None = None
    if raw_dir is not None and str(raw_dir).strip():
        candidate = Path(raw_dir).expanduser().resolve()
        if candidate.is_dir():
            abs_raw = candidate

    raw_index = RawIndex(None)
    if abs_raw is not None:
        try:
            raw_index = RawIndex.build(abs_raw)
        except ReviewError:
            # unreadable raw tree: every entry reports missing_raw
            abs_raw = None
    entries = build_review_entries(abs_framed, raw_index, approvals)

    manifest = ReviewManifest(
        generated_at=now_utc_seconds(),
        framed_dir=str(abs_framed),
        output_dir=str(abs_output),
        approval_path=str(ledger_path),
        raw_dir=str(abs_raw) if abs_raw is not None else "",
        entries=entries,
    )
    manifest_path = abs_output / DEFAULT_MANIFEST_NAME
    manifest.save(manifest_path)
    html_path = write_review_html(manifest, abs_output / DEFAULT_HTML_NAME)
    save_approvals(ledger_path, approvals)

    summary = manifest.summary
    return ReviewResult(
        manifest_path=manifest_path,
        html_path=html_path,
        approval_path=ledger_path,
        framed_dir=abs_framed,
        total=summary.total,
        ready=summary.ready,
        missing_raw=summary.missing_raw,
        invalid_size=summary.invalid_size,
        approved=summary.approved,
        pending=summary.pending_approval,
    )


class RawIndex:
    """Raw screenshots keyed by review key and by bare screenshot id.

    A bare id shared by two different raw files is ambiguous and stays out of
    the id map for good; review-key slots keep the first file seen.
    """

    def __init__(self, root: Path | None) -> None:
        self.root = root
        self.by_review_key: dict[str, Path] = {}
        self.by_screenshot_id: dict[str, Path] = {}
        self.ambiguous_ids: set[str] = set()

    @classmethod
    def build(cls, root: Path) -> "RawIndex":
        index = cls(root)
        for raw_path in collect_images(root):
            index.add(raw_path)
        return index

    def add(self, raw_path: Path) -> None:
        base = screenshot_id(raw_path).strip()
        if base in self.ambiguous_ids:
            self.by_screenshot_id.pop(base, None)
        else:
            existing = self.by_screenshot_id.get(base)
            if existing is None:
                self.by_screenshot_id[base] = raw_path
            elif existing != raw_path:
                del self.by_screenshot_id[base]
                self.ambiguous_ids.add(base)

        locale, device = self.locale_and_device(raw_path)
        self.by_review_key.setdefault(make_review_key(locale, device, base), raw_path)

    def locale_and_device(self, raw_path: Path) -> tuple[str, str]:
        if self.root is None:
            return "", ""
        return infer_locale_and_device(_relative(raw_path, self.root))

    def match(self, locale: str, device: str, shot_id: str) -> Path | None:
        if self.root is None:
            return None
        exact = self.by_review_key.get(make_review_key(locale, device, shot_id))
        if exact is not None:
            return exact
        candidate = self.by_screenshot_id.get(shot_id.strip())
        if candidate is None:
            return None
        if not locale and not device:
            return candidate
        candidate_locale, candidate_device = self.locale_and_device(candidate)
        if not candidate_locale and not candidate_device:
            return candidate
        if (not locale or locale == candidate_locale) and (not device or device == candidate_device):
            return candidate
        return None


def build_review_entries(framed_dir: Path, raw_index: RawIndex, approvals: set[str]) -> list[ReviewEntry]:
    entries: list[ReviewEntry] = []
    for framed_path in collect_images(framed_dir):
        relative = _relative(framed_path, framed_dir)
        shot_id = screenshot_id(framed_path)
        locale, device = infer_locale_and_device(relative)

        width, height = read_image_dimensions(framed_path)
        display_types = matching_display_types(width, height)
        has_valid_size = bool(display_types)

        raw_path = raw_index.match(locale, device, shot_id)
        raw_relative = ""
        if raw_path is not None and raw_index.root is not None:
            raw_relative = _relative(raw_path, raw_index.root)

        key = make_review_key(locale, device, shot_id)
        entries.append(
            ReviewEntry(
                key=key,
                screenshot_id=shot_id,
                framed_path=str(framed_path),
                framed_relative_path=relative,
                locale=locale,
                device=device,
                raw_path=str(raw_path) if raw_path is not None else "",
                raw_relative_path=raw_relative,
                width=width,
                height=height,
                display_types=display_types,
                valid_app_store_size=has_valid_size,
                status=derive_review_status(raw_path is not None, has_valid_size),
                approved=key in approvals,
            )
        )
    return entries


def _relative(path: Path, root: Path) -> str:
    return os.path.relpath(path, root).replace(os.sep, "/")
