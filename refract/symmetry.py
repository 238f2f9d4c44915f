"""Seed-tile extraction and four-fold mirror compositing.

Each quadrant of the canonical buffer is turned into a seed tile that looks
like a top-left corner, then drawn back into all four corners of a canvas the
size of the canonical buffer:

    +---------+---------+
    |  seed   | flip H  |
    +---------+---------+
    | flip V  | flip HV |
    +---------+---------+

When the midpoint is off-centre the tiles do not meet at the canvas centre;
the uncovered band keeps the background colour and overlaps are resolved by
draw order (identity, H, V, HV).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import numpy as np

from .config import BACKGROUND_COLOR, QualityTier, QuadrantIndex
from .partition import partition
from .preprocess import ImageLike, preprocess
from .raster import Midpoint, PixelBounds, RasterBuffer, Rectangle, new_canvas

logger = logging.getLogger(__name__)


def _flip(pixels: np.ndarray, horizontal: bool, vertical: bool) -> np.ndarray:
    if horizontal:
        pixels = pixels[:, ::-1]
    if vertical:
        pixels = pixels[::-1, :]
    return pixels


def _clip_bounds(bounds: PixelBounds, width: int, height: int) -> PixelBounds:
    left = min(max(bounds.left, 0), width)
    top = min(max(bounds.top, 0), height)
    return PixelBounds(
        left=left,
        top=top,
        right=min(max(bounds.right, left), width),
        bottom=min(max(bounds.bottom, top), height),
    )


def normalize(
    canonical: RasterBuffer,
    rect: Union[Rectangle, PixelBounds],
    quadrant: QuadrantIndex,
) -> RasterBuffer:
    """Extract ``rect`` and reorient it as a top-left seed tile."""
    quadrant = QuadrantIndex(quadrant)
    bounds = rect.snap() if isinstance(rect, Rectangle) else rect
    bounds = _clip_bounds(bounds, canonical.width, canonical.height)

    region = canonical.pixels[bounds.top:bounds.bottom, bounds.left:bounds.right]
    flip_h, flip_v = quadrant.flips
    return RasterBuffer(_flip(region, flip_h, flip_v).copy())


def compose(seed: RasterBuffer, output_width: int, output_height: int) -> RasterBuffer:
    """Mirror ``seed`` into all four corners of an ``output_width`` x ``output_height`` canvas."""
    canvas = new_canvas(output_width, output_height, BACKGROUND_COLOR)
    if seed.is_empty or output_width <= 0 or output_height <= 0:
        return RasterBuffer(canvas)

    tile_w = min(seed.width, output_width)
    tile_h = min(seed.height, output_height)
    visible = seed.pixels[:tile_h, :tile_w]

    # QuadrantIndex order doubles as the z-order.
    for quadrant in QuadrantIndex:
        flip_h, flip_v = quadrant.flips
        x0 = output_width - tile_w if flip_h else 0
        y0 = output_height - tile_h if flip_v else 0
        canvas[y0:y0 + tile_h, x0:x0 + tile_w] = _flip(visible, flip_h, flip_v)

    return RasterBuffer(canvas)


def pattern_from_canonical(
    canonical: RasterBuffer,
    midpoint: Midpoint,
    quadrant: QuadrantIndex,
) -> RasterBuffer:
    """Partition, normalize and compose one quadrant of a canonical buffer."""
    quadrant = QuadrantIndex(quadrant)
    rect = partition(canonical.width, canonical.height, midpoint)[quadrant]
    seed = normalize(canonical, rect, quadrant)
    if seed.is_empty:
        logger.debug("Seed tile for %s is empty; pattern is background only", quadrant.label)
    return compose(seed, canonical.width, canonical.height)


def generate_pattern(
    image: Optional[ImageLike],
    midpoint: Midpoint,
    rotation_deg: float = 0.0,
    zoom: float = 1.0,
    tier: QualityTier = QualityTier.PREVIEW,
    quadrant: QuadrantIndex = QuadrantIndex.TOP_LEFT,
) -> RasterBuffer:
    """Build the symmetric pattern seeded by a single quadrant."""
    canonical = preprocess(image, rotation_deg, zoom, tier)
    if canonical.is_empty:
        return RasterBuffer.empty()
    return pattern_from_canonical(canonical, midpoint, quadrant)


def generate_symmetries(
    image: Optional[ImageLike],
    midpoint: Optional[Midpoint],
    rotation_deg: float = 0.0,
    zoom: float = 1.0,
    tier: QualityTier = QualityTier.PREVIEW,
) -> List[RasterBuffer]:
    """Return the four patterns in ``QuadrantIndex`` order.

    An empty list means there is nothing to render (no image or midpoint).
    """
    if midpoint is None:
        return []
    canonical = preprocess(image, rotation_deg, zoom, tier)
    if canonical.is_empty:
        return []

    started = time.perf_counter()
    patterns = [pattern_from_canonical(canonical, midpoint, quadrant) for quadrant in QuadrantIndex]
    logger.debug(
        "Composed 4 patterns at %dx%d (midpoint=%.3f,%.3f) in %.1f ms",
        canonical.width,
        canonical.height,
        midpoint.x,
        midpoint.y,
        (time.perf_counter() - started) * 1000.0,
    )
    return patterns


@dataclass(frozen=True)
class RenderParams:
    """Everything that determines a preview, hashable for staleness checks."""

    midpoint: Midpoint = field(default_factory=Midpoint.center)
    rotation_deg: float = 0.0
    zoom: float = 1.0
    tier: QualityTier = QualityTier.PREVIEW


@dataclass(frozen=True)
class PreviewResult:
    params: RenderParams
    patterns: Tuple[RasterBuffer, ...]

    def is_current(self, latest: RenderParams) -> bool:
        """``False`` when newer parameters were requested after this render."""
        return self.params == latest

    def __getitem__(self, quadrant: int) -> RasterBuffer:
        return self.patterns[QuadrantIndex(quadrant)]

    def __len__(self) -> int:
        return len(self.patterns)


def render_preview(image: Optional[ImageLike], params: RenderParams) -> PreviewResult:
    """Run the pipeline and tag the output with the parameters that made it."""
    patterns = generate_symmetries(
        image,
        params.midpoint,
        rotation_deg=params.rotation_deg,
        zoom=params.zoom,
        tier=params.tier,
    )
    return PreviewResult(params=params, patterns=tuple(patterns))
