"""Image discovery and path conventions.

Screenshots are laid out as ``<locale>/<device>/<id>.png``; shallower trees
drop the locale and/or device. With a single directory level the folder name
is treated as a locale only when it looks like one (``en``, ``en-US``,
``zh_Hans``), otherwise as a device name (``iPhone_Air``).
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath

from PIL import Image

from .errors import ReviewError

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".webp"})


def is_image_file(path: str | PurePath) -> bool:
    return PurePath(path).suffix.lower() in IMAGE_EXTENSIONS


def collect_images(root: Path) -> list[Path]:
    files: list[Path] = []

    def _raise(exc: OSError) -> None:
        raise exc

    try:
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
            for filename in filenames:
                if is_image_file(filename):
                    files.append(Path(dirpath) / filename)
    except OSError as exc:
        raise ReviewError(f"scan screenshot directory {root}: {exc}") from exc
    files.sort(key=str)
    return files


def screenshot_id(path: str | PurePath) -> str:
    return PurePath(path).stem


def infer_locale_and_device(relative_path: str | PurePath) -> tuple[str, str]:
    parts = str(relative_path).replace("\\", "/").split("/")
    if len(parts) >= 3:
        return parts[0], parts[1]
    if len(parts) == 2:
        if looks_like_locale(parts[0]):
            return parts[0], ""
        return "", parts[0]
    return "", ""


def looks_like_locale(token: str) -> bool:
    clean = token.replace("_", "-").strip()
    if not clean:
        return False
    parts = clean.split("-")
    if len(parts) > 3:
        return False
    for index, part in enumerate(parts):
        max_len = 3 if index == 0 else 8
        if not 2 <= len(part) <= max_len:
            return False
        if not part.isalpha():
            return False
    return True


def read_image_dimensions(path: Path) -> tuple[int, int]:
    try:
        with Image.open(path) as img:
            width, height = img.size
    except Exception as exc:
        raise ReviewError(f"read screenshot dimensions for {str(path)!r}: {exc}") from exc
    return int(width), int(height)
