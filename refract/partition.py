"""Split a canonical buffer into four quadrants around a midpoint."""

from __future__ import annotations

import logging
from typing import Tuple

from .config import QuadrantIndex
from .raster import Midpoint, PixelBounds, Rectangle

logger = logging.getLogger(__name__)

Quadrants = Tuple[Rectangle, Rectangle, Rectangle, Rectangle]


def partition(buffer_width: int, buffer_height: int, midpoint: Midpoint) -> Quadrants:
    """Return the four source rectangles in ``QuadrantIndex`` order.

    Coordinates are left unrounded; call ``Rectangle.snap`` (or use
    ``partition_pixels``) to get integer bounds that tile the buffer.
    """
    mid_x, mid_y = midpoint.to_pixels(buffer_width, buffer_height)
    return (
        Rectangle(0.0, 0.0, mid_x, mid_y),
        Rectangle(mid_x, 0.0, buffer_width - mid_x, mid_y),
        Rectangle(0.0, mid_y, mid_x, buffer_height - mid_y),
        Rectangle(mid_x, mid_y, buffer_width - mid_x, buffer_height - mid_y),
    )


def partition_pixels(
    buffer_width: int,
    buffer_height: int,
    midpoint: Midpoint,
) -> Tuple[PixelBounds, PixelBounds, PixelBounds, PixelBounds]:
    """Snapped integer bounds for each quadrant."""
    bounds = tuple(rect.snap() for rect in partition(buffer_width, buffer_height, midpoint))
    for quadrant, rect in zip(QuadrantIndex, bounds):
        if rect.is_empty and buffer_width and buffer_height:
            logger.debug("%s quadrant is empty at midpoint %s", quadrant.label, midpoint)
    return bounds  # type: ignore[return-value]
