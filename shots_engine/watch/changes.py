"""Decide which file-system changes should trigger regeneration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml

from ..review.images import is_image_file

OP_CREATE = "create"
OP_WRITE = "write"
OP_REMOVE = "remove"
OP_RENAME = "rename"
OP_CHMOD = "chmod"

_TRIGGER_OPS = frozenset({OP_CREATE, OP_WRITE})


@dataclass(frozen=True)
class ChangeEvent:
    path: str
    op: str


def is_relevant_change(event: ChangeEvent, config_path: str | None, asset_dirs: Sequence[str]) -> bool:
    if event.op not in _TRIGGER_OPS:
        return False
    path = os.path.normpath(os.path.abspath(event.path))
    if config_path and path == os.path.normpath(os.path.abspath(config_path)):
        return True
    if not is_image_file(path):
        return False
    return any(_is_within(path, asset_dir) for asset_dir in asset_dirs)


def collect_asset_dirs(config_path: str | Path) -> list[str]:
    """Directories holding image assets referenced by a Koubou-style YAML config.

    Relative asset paths resolve against the config file's directory. A
    missing or unreadable config yields no directories.
    """
    path = Path(config_path)
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        return []
    screenshots = payload.get("screenshots") if isinstance(payload, dict) else None
    if not isinstance(screenshots, dict):
        return []

    base_dir = Path(os.path.abspath(path)).parent
    dirs: list[str] = []
    for screenshot in screenshots.values():
        for item in _content_items(screenshot):
            asset = item.get("asset")
            if str(item.get("type") or "").strip().lower() != "image":
                continue
            if not isinstance(asset, str) or not asset.strip():
                continue
            asset_path = Path(asset.strip()).expanduser()
            if not asset_path.is_absolute():
                asset_path = base_dir / asset_path
            parent = os.path.normpath(str(asset_path.parent))
            if parent not in dirs:
                dirs.append(parent)
    return dirs


def _content_items(screenshot: Any) -> list[dict[str, Any]]:
    if not isinstance(screenshot, dict):
        return []
    content = screenshot.get("content")
    if not isinstance(content, list):
        return []
    return [item for item in content if isinstance(item, dict)]


def _is_within(path: str, directory: str) -> bool:
    root = os.path.normpath(os.path.abspath(directory))
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False
