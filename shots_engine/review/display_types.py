"""App Store screenshot display types and their accepted pixel sizes."""

from __future__ import annotations

# Portrait sizes; landscape is accepted for every entry except the watch and
# desktop/TV families, which are listed in their native orientation only.
_ROTATABLE: dict[str, tuple[tuple[int, int], ...]] = {
    "APP_IPHONE_67": ((1290, 2796), (1320, 2868), (1260, 2736)),
    "APP_IPHONE_65": ((1242, 2688), (1284, 2778)),
    "APP_IPHONE_61": ((1179, 2556), (1206, 2622)),
    "APP_IPHONE_58": ((1125, 2436), (1080, 2340), (1170, 2532)),
    "APP_IPHONE_55": ((1242, 2208),),
    "APP_IPHONE_47": ((750, 1334),),
    "APP_IPHONE_40": ((640, 1136), (640, 1096)),
    "APP_IPHONE_35": ((640, 960), (640, 920)),
    "APP_IPAD_PRO_3GEN_129": ((2048, 2732), (2064, 2752)),
    "APP_IPAD_PRO_3GEN_11": ((1668, 2388), (1640, 2360), (1668, 2420), (1488, 2266)),
    "APP_IPAD_PRO_129": ((2048, 2732),),
    "APP_IPAD_105": ((1668, 2224),),
    "APP_IPAD_97": ((1536, 2048), (1536, 2008)),
}

_FIXED: dict[str, tuple[tuple[int, int], ...]] = {
    "APP_DESKTOP": ((1280, 800), (1440, 900), (2560, 1600), (2880, 1800)),
    "APP_APPLE_TV": ((1920, 1080), (3840, 2160)),
    "APP_APPLE_VISION_PRO": ((3840, 2160),),
    "APP_WATCH_ULTRA": ((410, 502), (422, 514)),
    "APP_WATCH_SERIES_10": ((416, 496),),
    "APP_WATCH_SERIES_7": ((396, 484),),
    "APP_WATCH_SERIES_4": ((368, 448),),
    "APP_WATCH_SERIES_3": ((312, 390),),
}


def _build_table() -> dict[str, tuple[tuple[int, int], ...]]:
    table: dict[str, tuple[tuple[int, int], ...]] = {}
    for display_type, sizes in _ROTATABLE.items():
        rotated = tuple((h, w) for w, h in sizes)
        table[display_type] = sizes + rotated
    table.update(_FIXED)
    return table


DISPLAY_TYPE_DIMENSIONS = _build_table()


def display_types() -> list[str]:
    return sorted(DISPLAY_TYPE_DIMENSIONS)


def display_type_dimensions(display_type: str) -> tuple[tuple[int, int], ...] | None:
    return DISPLAY_TYPE_DIMENSIONS.get(display_type)


def matching_display_types(width: int, height: int) -> list[str]:
    return [
        display_type
        for display_type in display_types()
        if (width, height) in DISPLAY_TYPE_DIMENSIONS[display_type]
    ]
