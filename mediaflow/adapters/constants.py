from __future__ import annotations

from typing import Dict, List, Optional, Tuple

ASPECT_RATIOS: Dict[str, List[dict]] = {
    "square": [
        {"name": "Square 1:1", "description": "Perfect square aspect ratio", "width": 1024, "height": 1024},
    ],
    "landscape": [
        {"name": "Landscape 16:9", "description": "Standard widescreen format", "width": 1280, "height": 720},
        {"name": "Landscape 3:2", "description": "Common photo aspect ratio", "width": 1200, "height": 800},
        {"name": "Landscape 4:3", "description": "Traditional TV/monitor aspect ratio", "width": 1024, "height": 768},
        {"name": "Landscape 21:9", "description": "Ultrawide cinematic format", "width": 1344, "height": 576},
    ],
    "portrait": [
        {"name": "Portrait 9:16", "description": "Vertical video format for social media", "width": 720, "height": 1280},
        {"name": "Portrait 2:3", "description": "Common vertical photo ratio", "width": 800, "height": 1200},
        {"name": "Portrait 3:4", "description": "Vertical version of 4:3", "width": 768, "height": 1024},
        {"name": "Portrait 4:5", "description": "Instagram portrait format", "width": 864, "height": 1080},
    ],
}

# group separators in option lists; never sent to the API
HEADER_VALUES = frozenset(f"{group}_header" for group in ASPECT_RATIOS)
CUSTOM = "custom"


def aspect_ratio_options() -> List[dict]:
    options: List[dict] = []
    for group, ratios in ASPECT_RATIOS.items():
        options.append(
            {"name": f"-- {group.title()} --", "value": f"{group}_header", "description": f"{group.title()} aspect ratios"}
        )
        options.extend(
            {"name": r["name"], "value": f"{r['width']}:{r['height']}", "description": r["description"]}
            for r in ratios
        )
    options.append({"name": "Custom", "value": CUSTOM, "description": "Set custom dimensions"})
    return options


ASPECT_RATIO_OPTIONS = aspect_ratio_options()


def parse_dimensions(value: str) -> Optional[Tuple[int, int]]:
    """``"1280:720"`` -> (1280, 720); None for header/custom/unparseable values."""
    if value in HEADER_VALUES or value == CUSTOM:
        return None
    w, sep, h = str(value).partition(":")
    if not sep:
        return None
    try:
        return int(w), int(h)
    except ValueError:
        return None
