"""Review manifest model (``manifest.json``)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from ..utils import write_json
from .errors import ReviewError

DEFAULT_MANIFEST_NAME = "manifest.json"

STATUS_READY = "ready"
STATUS_MISSING_RAW = "missing_raw"
STATUS_INVALID_SIZE = "invalid_size"
STATUS_MISSING_RAW_INVALID_SIZE = "missing_raw_invalid_size"


def make_review_key(locale: str, device: str, screenshot_id: str) -> str:
    return f"{locale.strip()}|{device.strip()}|{screenshot_id.strip()}"


def derive_review_status(has_raw: bool, has_valid_size: bool) -> str:
    if has_raw and has_valid_size:
        return STATUS_READY
    if has_valid_size:
        return STATUS_MISSING_RAW
    if has_raw:
        return STATUS_INVALID_SIZE
    return STATUS_MISSING_RAW_INVALID_SIZE


def approval_state(approved: bool) -> str:
    return "approved" if approved else "pending"


@dataclass
class ReviewEntry:
    key: str
    screenshot_id: str
    framed_path: str
    framed_relative_path: str = ""
    locale: str = ""
    device: str = ""
    raw_path: str = ""
    raw_relative_path: str = ""
    width: int = 0
    height: int = 0
    display_types: list[str] = field(default_factory=list)
    valid_app_store_size: bool = False
    status: str = STATUS_MISSING_RAW_INVALID_SIZE
    approved: bool = False

    @property
    def approval_state(self) -> str:
        return approval_state(self.approved)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.key,
            "screenshot_id": self.screenshot_id,
        }
        if self.locale:
            payload["locale"] = self.locale
        if self.device:
            payload["device"] = self.device
        payload["framed_path"] = self.framed_path
        payload["framed_relative_path"] = self.framed_relative_path
        if self.raw_path:
            payload["raw_path"] = self.raw_path
            payload["raw_relative_path"] = self.raw_relative_path
        payload.update(
            {
                "width": self.width,
                "height": self.height,
                "display_types": list(self.display_types),
                "valid_app_store_size": self.valid_app_store_size,
                "status": self.status,
                "approved": self.approved,
                "approval_state": self.approval_state,
            }
        )
        return payload

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "ReviewEntry":
        display_types = item.get("display_types")
        return cls(
            key=str(item.get("key") or ""),
            screenshot_id=str(item.get("screenshot_id") or ""),
            framed_path=str(item.get("framed_path") or ""),
            framed_relative_path=str(item.get("framed_relative_path") or ""),
            locale=str(item.get("locale") or ""),
            device=str(item.get("device") or ""),
            raw_path=str(item.get("raw_path") or ""),
            raw_relative_path=str(item.get("raw_relative_path") or ""),
            width=int(item.get("width") or 0),
            height=int(item.get("height") or 0),
            display_types=[str(v) for v in display_types] if isinstance(display_types, list) else [],
            valid_app_store_size=bool(item.get("valid_app_store_size")),
            status=str(item.get("status") or ""),
            approved=bool(item.get("approved")),
        )


@dataclass
class ReviewSummary:
    total: int = 0
    ready: int = 0
    missing_raw: int = 0
    invalid_size: int = 0
    approved: int = 0
    pending_approval: int = 0

    @classmethod
    def from_entries(cls, entries: Iterable[ReviewEntry]) -> "ReviewSummary":
        summary = cls()
        for entry in entries:
            summary.total += 1
            if entry.status == STATUS_READY:
                summary.ready += 1
            if STATUS_MISSING_RAW in entry.status:
                summary.missing_raw += 1
            if STATUS_INVALID_SIZE in entry.status:
                summary.invalid_size += 1
            if entry.approved:
                summary.approved += 1
            else:
                summary.pending_approval += 1
        return summary

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "ready": self.ready,
            "missing_raw": self.missing_raw,
            "invalid_size": self.invalid_size,
            "approved": self.approved,
            "pending_approval": self.pending_approval,
        }


@dataclass
class ReviewManifest:
    generated_at: str
    framed_dir: str
    output_dir: str
    approval_path: str = ""
    raw_dir: str = ""
    entries: list[ReviewEntry] = field(default_factory=list)

    @property
    def summary(self) -> ReviewSummary:
        return ReviewSummary.from_entries(self.entries)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"generated_at": self.generated_at}
        if self.raw_dir:
            payload["raw_dir"] = self.raw_dir
        payload.update(
            {
                "framed_dir": self.framed_dir,
                "output_dir": self.output_dir,
                "approval_path": self.approval_path,
                "summary": self.summary.to_dict(),
                "entries": [entry.to_dict() for entry in self.entries],
            }
        )
        return payload

    def save(self, path: Path) -> None:
        try:
            write_json(path, self.to_dict())
        except OSError as exc:
            raise ReviewError(f"write manifest JSON {path}: {exc}") from exc

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ReviewManifest":
        entries = payload.get("entries")
        return cls(
            generated_at=str(payload.get("generated_at") or ""),
            framed_dir=str(payload.get("framed_dir") or ""),
            output_dir=str(payload.get("output_dir") or ""),
            approval_path=str(payload.get("approval_path") or ""),
            raw_dir=str(payload.get("raw_dir") or ""),
            entries=[ReviewEntry.from_dict(item) for item in entries if isinstance(item, dict)]
            if isinstance(entries, list)
            else [],
        )


def load_review_manifest(path: Path) -> ReviewManifest:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReviewError(f"read review manifest {path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReviewError(f"parse review manifest JSON {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ReviewError(f"parse review manifest JSON {path}: expected an object")
    return ReviewManifest.from_dict(payload)
