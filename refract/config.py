"""Shared constants: background colour, resolution tiers, quadrant tables."""

from enum import Enum, IntEnum
from typing import Dict, Tuple


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
# RGBA fill wherever no source pixel covers the canvas (gray-800).
BACKGROUND_COLOR: Tuple[int, int, int, int] = (31, 41, 55, 255)

# Longer side cap for the preview tier
PREVIEW_MAX_DIMENSION = 1024

# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------
EXPORT_PREFIX = "refract"
EXPORT_EXTENSION = ".png"
PNG_COMPRESS_LEVEL = 9  # zlib level; PNG is lossless at every level

# ---------------------------------------------------------------------------
# Preview grid
# ---------------------------------------------------------------------------
PREVIEW_TILE_SIZE = 200
PREVIEW_TILE_GAP = 12
LABEL_BAR_HEIGHT = 22
LABEL_COLOR = (156, 163, 175, 255)
ACTIVE_COLOR = (59, 130, 246, 255)

# ---------------------------------------------------------------------------
# Image prep sliders (0..100 slider positions)
# ---------------------------------------------------------------------------
SLIDER_MIN = 0.0
SLIDER_MAX = 100.0
SLIDER_DEFAULT = 50.0
PREP_SCALE_RANGE = (0.8, 1.2)
PREP_PAN_RANGE_PERCENT = (-15.0, 15.0)


class QualityTier(str, Enum):
    PREVIEW = "preview"
    HIGH_RES = "high-res"


class QuadrantIndex(IntEnum):
    TOP_LEFT = 0
    TOP_RIGHT = 1
    BOTTOM_LEFT = 2
    BOTTOM_RIGHT = 3

    @property
    def label(self) -> str:
        """Filename-safe label, e.g. ``bottom-left``."""
        return QUADRANT_LABELS[self]

    @property
    def title(self) -> str:
        return QUADRANT_TITLES[self]

    @property
    def flips(self) -> Tuple[bool, bool]:
        """``(flip_horizontal, flip_vertical)`` for this quadrant."""
        return QUADRANT_FLIPS[self]

    @classmethod
    def from_label(cls, label: str) -> "QuadrantIndex":
        key = label.strip().lower().replace("_", "-").replace(" ", "-")
        for quadrant, name in QUADRANT_LABELS.items():
            if name == key:
                return quadrant
        raise ValueError(f"Unknown quadrant label: {label!r}")


QUADRANT_LABELS: Dict[QuadrantIndex, str] = {
    QuadrantIndex.TOP_LEFT: "top-left",
    QuadrantIndex.TOP_RIGHT: "top-right",
    QuadrantIndex.BOTTOM_LEFT: "bottom-left",
    QuadrantIndex.BOTTOM_RIGHT: "bottom-right",
}

QUADRANT_TITLES: Dict[QuadrantIndex, str] = {
    QuadrantIndex.TOP_LEFT: "Top-Left",
    QuadrantIndex.TOP_RIGHT: "Top-Right",
    QuadrantIndex.BOTTOM_LEFT: "Bottom-Left",
    QuadrantIndex.BOTTOM_RIGHT: "Bottom-Right",
}

# Flips that turn a quadrant into a top-left seed tile. The compositor reuses
# the same table to place the seed back into each corner of the canvas.
QUADRANT_FLIPS: Dict[QuadrantIndex, Tuple[bool, bool]] = {
    QuadrantIndex.TOP_LEFT: (False, False),
    QuadrantIndex.TOP_RIGHT: (True, False),
    QuadrantIndex.BOTTOM_LEFT: (False, True),
    QuadrantIndex.BOTTOM_RIGHT: (True, True),
}
