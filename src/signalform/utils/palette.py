"""SignalFx colour tables."""
from __future__ import annotations

from typing import Dict, List, Tuple

# Per-signal colours (viz_options.color) -> publishLabelOptions.paletteIndex
PALETTE_COLORS: Dict[str, int] = {
    "gray": 0,
    "blue": 1,
    "azure": 2,
    "navy": 3,
    "brown": 4,
    "orange": 5,
    "yellow": 6,
    "magenta": 7,
    "purple": 8,
    "pink": 9,
    "violet": 10,
    "lilac": 11,
    "iris": 12,
    "emerald": 13,
    "green": 14,
    "aquamarine": 15,
}

# Colour-scale / heatmap colours; list position is the paletteIndex.
CHART_COLORS: List[Tuple[str, str]] = [
    ("gray", "#999999"),
    ("blue", "#0077c2"),
    ("light_blue", "#00b9ff"),
    ("navy", "#6CA2B7"),
    ("dark_orange", "#b04600"),
    ("orange", "#f47e00"),
    ("dark_yellow", "#e5b312"),
    ("magenta", "#bd468d"),
    ("cerise", "#e9008a"),
    ("pink", "#ff8dd1"),
    ("violet", "#876ff3"),
    ("purple", "#a747ff"),
    ("gray_blue", "#ab99bc"),
    ("dark_green", "#007c1d"),
    ("green", "#05ce00"),
    ("aquamarine", "#0dba8f"),
    ("red", "#ea1849"),
    ("yellow", "#ea1849"),
    ("vivid_yellow", "#ea1849"),
    ("light_green", "#acef7f"),
    ("lime_green", "#6bd37e"),
]

CHART_COLOR_NAMES: List[str] = [name for name, _hex in CHART_COLORS]


def chart_color_index(name: str) -> int:
    """Palette index of a chart colour name (0 when unknown)."""
    try:
        return CHART_COLOR_NAMES.index(name)
    except ValueError:
        return 0
