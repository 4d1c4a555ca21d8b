"""Dry-run automation backend (offline)."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Sequence

from PIL import Image, ImageDraw, ImageFont

from ..plan import TapSelector

DEFAULT_SIZE = (1260, 2736)


class DryRunBackend:
    """Records every call and renders placeholder screenshots instead of driving a simulator."""

    name = "dryrun"

    def __init__(self, size: tuple[int, int] = DEFAULT_SIZE, ui_tree: Any = None) -> None:
        self.size = size
        self.ui_tree = ui_tree if ui_tree is not None else {"AXLabel": "Dry Run", "children": []}
        self.calls: list[tuple[str, ...]] = []

    def launch(self, udid: str, bundle_id: str) -> None:
        self.calls.append(("launch", udid, bundle_id))

    def tap(self, udid: str, selector: TapSelector) -> None:
        self.calls.append(("tap", udid, selector.describe()))

    def type_text(self, udid: str, text: str) -> None:
        self.calls.append(("type", udid, text))

    def send_keys(self, udid: str, keycodes: Sequence[int]) -> None:
        self.calls.append(("key_sequence", udid, ",".join(str(code) for code in keycodes)))

    def describe_ui(self, udid: str) -> Any:
        self.calls.append(("describe_ui", udid))
        return self.ui_tree

    def screenshot(self, udid: str, output_path: Path) -> Path:
        self.calls.append(("screenshot", udid, str(output_path)))
        output_path.parent.mkdir(parents=True, exist_ok=True)
        width, height = self.size
        image = Image.new("RGB", (width, height), _color_from_name(output_path.stem))
        draw = ImageDraw.Draw(image)
        draw.text((20, 20), f"dryrun\n{output_path.stem[:60]}", fill=(255, 255, 255), font=ImageFont.load_default())
        image.save(output_path)
        return output_path


def _color_from_name(name: str) -> tuple[int, int, int]:
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]
