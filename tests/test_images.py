from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from shots_engine.review.errors import ReviewError
from shots_engine.review.images import (
    collect_images,
    infer_locale_and_device,
    looks_like_locale,
    read_image_dimensions,
    screenshot_id,
)


@pytest.mark.parametrize(
    ("relative", "expected"),
    [
        ("en/iPhone_Air/home.png", ("en", "iPhone_Air")),
        ("en-US/iPad_Pro/deep/home.png", ("en-US", "iPad_Pro")),
        ("en-US/home.png", ("en-US", "")),
        ("zh_Hans/home.png", ("zh_Hans", "")),
        ("iPhone_Air/home.png", ("", "iPhone_Air")),
        ("home.png", ("", "")),
        ("en\\iPhone_Air\\home.png", ("en", "iPhone_Air")),
    ],
)
def test_infer_locale_and_device(relative: str, expected: tuple[str, str]) -> None:
    assert infer_locale_and_device(relative) == expected


def test_looks_like_locale() -> None:
    assert looks_like_locale("en")
    assert looks_like_locale("pt-BR")
    assert looks_like_locale("zh_Hant_TW")
    assert not looks_like_locale("iPhone_Air")
    assert not looks_like_locale("e")
    assert not looks_like_locale("en1")
    assert not looks_like_locale("")


def test_collect_images_filters_and_sorts(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "a").mkdir()
    for name in ("b/two.PNG", "a/one.jpg", "a/notes.txt", "three.webp", "a/four.jpeg"):
        (tmp_path / name).write_bytes(b"")
    found = [p.relative_to(tmp_path).as_posix() for p in collect_images(tmp_path)]
    assert found == ["a/four.jpeg", "a/one.jpg", "b/two.PNG", "three.webp"]
    assert screenshot_id(tmp_path / "b" / "two.PNG") == "two"


def test_read_image_dimensions(tmp_path: Path) -> None:
    path = tmp_path / "shot.png"
    Image.new("RGB", (30, 70)).save(path)
    assert read_image_dimensions(path) == (30, 70)
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")
    with pytest.raises(ReviewError, match="read screenshot dimensions"):
        read_image_dimensions(broken)
