"""2x2 contact sheet of the four symmetry previews."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import cv2
import numpy as np

from .config import (
    ACTIVE_COLOR,
    BACKGROUND_COLOR,
    LABEL_BAR_HEIGHT,
    LABEL_COLOR,
    PREVIEW_TILE_GAP,
    PREVIEW_TILE_SIZE,
    QuadrantIndex,
)
from .raster import RasterBuffer, new_canvas, round_half_up

logger = logging.getLogger(__name__)

ACTIVE_BORDER = 2


def fit_tile(pattern: RasterBuffer, tile_size: int) -> np.ndarray:
    """Scale ``pattern`` to fit a ``tile_size`` square, centred on background."""
    tile = new_canvas(tile_size, tile_size, BACKGROUND_COLOR)
    if pattern.is_empty:
        return tile

    scale = tile_size / max(pattern.width, pattern.height)
    width = max(1, round_half_up(pattern.width * scale))
    height = max(1, round_half_up(pattern.height * scale))
    interpolation = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_NEAREST
    resized = cv2.resize(np.array(pattern.pixels), (width, height), interpolation=interpolation)

    x0 = (tile_size - width) // 2
    y0 = (tile_size - height) // 2
    tile[y0:y0 + height, x0:x0 + width] = resized
    return tile


def render_preview_grid(
    patterns: Sequence[RasterBuffer],
    tile_size: int = PREVIEW_TILE_SIZE,
    gap: int = PREVIEW_TILE_GAP,
    labels: bool = True,
    active: Optional[QuadrantIndex] = None,
) -> RasterBuffer:
    """Lay the patterns out Top-Left, Top-Right / Bottom-Left, Bottom-Right.

    Args:
        patterns: The four patterns in ``QuadrantIndex`` order.
        tile_size: Edge length of each square preview tile.
        gap: Spacing between and around tiles.
        labels: Draw the quadrant title under each tile.
        active: Quadrant to outline as the current selection.
    """
    if len(patterns) < 4:
        raise ValueError(f"Expected 4 patterns, got {len(patterns)}")
    if tile_size <= 0:
        raise ValueError(f"tile_size must be positive, got {tile_size}")

    label_h = LABEL_BAR_HEIGHT if labels else 0
    cell_h = tile_size + label_h
    sheet_w = 2 * tile_size + 3 * gap
    sheet_h = 2 * cell_h + 3 * gap
    sheet = new_canvas(sheet_w, sheet_h, BACKGROUND_COLOR)

    for quadrant in QuadrantIndex:
        col = quadrant % 2
        row = quadrant // 2
        x0 = gap + col * (tile_size + gap)
        y0 = gap + row * (cell_h + gap)
        sheet[y0:y0 + tile_size, x0:x0 + tile_size] = fit_tile(patterns[quadrant], tile_size)

        if active is not None and quadrant == active:
            cv2.rectangle(
                sheet,
                (x0, y0),
                (x0 + tile_size - 1, y0 + tile_size - 1),
                ACTIVE_COLOR,
                ACTIVE_BORDER,
            )

        if labels:
            cv2.putText(
                sheet,
                quadrant.title,
                (x0 + 4, y0 + tile_size + label_h - 7),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.45,
                LABEL_COLOR,
                1,
                cv2.LINE_AA,
            )

    logger.debug("Rendered preview grid %dx%d", sheet_w, sheet_h)
    return RasterBuffer(sheet)
