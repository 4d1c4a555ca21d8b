"""Approval ledger (``approved.json``).

Three shapes are accepted on read, for files written by older tooling or by
hand::

    {"en|iPhone_Air|home": true}
    ["en|iPhone_Air|home"]
    {"approved": ["en|iPhone_Air|home"]}

Writes always use the last shape with sorted keys.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from ..utils import write_json
from .errors import ReviewError

DEFAULT_APPROVALS_NAME = "approved.json"


def load_approvals(path: Path) -> set[str]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return set()
    except OSError as exc:
        raise ReviewError(f"read approvals file {path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReviewError(f"parse approvals file {path}: {exc}") from exc
    keys = _keys_from_payload(payload)
    if keys is None:
        raise ReviewError(
            f"parse approvals file {path}: expected {{\"key\": true}}, [\"key\"], or {{\"approved\": [...]}}"
        )
    return keys


def save_approvals(path: Path, approvals: Iterable[str]) -> list[str]:
    keys = sorted(_clean_keys(approvals))
    try:
        write_json(path, {"approved": keys})
    except OSError as exc:
        raise ReviewError(f"write approvals file {path}: {exc}") from exc
    return keys


def _keys_from_payload(payload: Any) -> set[str] | None:
    if isinstance(payload, list):
        if not all(isinstance(item, str) for item in payload):
            return None
        return _clean_keys(payload)
    if not isinstance(payload, dict):
        return None
    if all(isinstance(value, bool) for value in payload.values()):
        return _clean_keys(key for key, approved in payload.items() if approved)
    wrapped = payload.get("approved")
    if isinstance(wrapped, list) and all(isinstance(item, str) for item in wrapped):
        return _clean_keys(wrapped)
    return None


def _clean_keys(keys: Iterable[str]) -> set[str]:
    return {key.strip() for key in keys if isinstance(key, str) and key.strip()}
