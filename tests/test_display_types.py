from __future__ import annotations

from shots_engine.review.display_types import display_type_dimensions, display_types, matching_display_types


def test_matching_is_sorted_and_accepts_landscape() -> None:
    portrait = matching_display_types(1260, 2736)
    assert "APP_IPHONE_67" in portrait
    assert portrait == sorted(portrait)
    assert matching_display_types(2736, 1260) == portrait


def test_unknown_size_has_no_display_types() -> None:
    assert matching_display_types(100, 100) == []


def test_display_type_table_lookup() -> None:
    assert "APP_IPHONE_67" in display_types()
    dims = display_type_dimensions("APP_IPHONE_67")
    assert dims is not None and (1290, 2796) in dims
    assert display_type_dimensions("NOPE") is None
