from __future__ import annotations

import os
from pathlib import Path

from shots_engine.watch.changes import (
    OP_CHMOD,
    OP_CREATE,
    OP_REMOVE,
    OP_RENAME,
    OP_WRITE,
    ChangeEvent,
    collect_asset_dirs,
    is_relevant_change,
)


def test_only_create_and_write_are_relevant(tmp_path: Path) -> None:
    assets = [str(tmp_path / "framed")]
    image = str(tmp_path / "framed" / "en" / "home.png")
    assert is_relevant_change(ChangeEvent(image, OP_CREATE), None, assets)
    assert is_relevant_change(ChangeEvent(image, OP_WRITE), None, assets)
    for op in (OP_REMOVE, OP_RENAME, OP_CHMOD):
        assert not is_relevant_change(ChangeEvent(image, op), None, assets)


def test_images_must_live_under_an_asset_dir(tmp_path: Path) -> None:
    assets = [str(tmp_path / "framed")]
    assert not is_relevant_change(ChangeEvent(str(tmp_path / "other" / "home.png"), OP_WRITE), None, assets)
    assert not is_relevant_change(ChangeEvent(str(tmp_path / "framed-old" / "home.png"), OP_WRITE), None, assets)
    assert not is_relevant_change(ChangeEvent(str(tmp_path / "framed" / "notes.txt"), OP_WRITE), None, assets)
    assert is_relevant_change(ChangeEvent(str(tmp_path / "framed" / "HOME.JPEG"), OP_WRITE), None, assets)


def test_config_file_is_relevant(tmp_path: Path) -> None:
    config = str(tmp_path / "koubou.yaml")
    assert is_relevant_change(ChangeEvent(config, OP_WRITE), config, [])
    assert not is_relevant_change(ChangeEvent(config, OP_REMOVE), config, [])


def test_collect_asset_dirs_resolves_relative_paths(tmp_path: Path) -> None:
    config = tmp_path / "config" / "koubou.yaml"
    config.parent.mkdir()
    absolute_asset = tmp_path / "shared" / "logo.png"
    config.write_text(
        f"""
screenshots:
  home:
    content:
      - type: text
        content: Hello
      - type: image
        asset: screenshots/raw/en/home.png
  settings:
    content:
      - type: image
        asset: screenshots/raw/en/settings.png
      - type: image
        asset: {absolute_asset}
""",
        encoding="utf-8",
    )
    dirs = collect_asset_dirs(config)
    assert dirs == [
        os.path.normpath(str(tmp_path / "config" / "screenshots" / "raw" / "en")),
        os.path.normpath(str(tmp_path / "shared")),
    ]


def test_collect_asset_dirs_tolerates_missing_or_odd_configs(tmp_path: Path) -> None:
    assert collect_asset_dirs(tmp_path / "missing.yaml") == []
    odd = tmp_path / "odd.yaml"
    odd.write_text("- just\n- a list\n", encoding="utf-8")
    assert collect_asset_dirs(odd) == []
    broken = tmp_path / "broken.yaml"
    broken.write_text("screenshots: [unclosed\n", encoding="utf-8")
    assert collect_asset_dirs(broken) == []
