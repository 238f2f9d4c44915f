"""Image prep: bake pan, zoom and crop into a new source image.

The prep stage runs before the symmetry studio. Its sliders report positions
on a 0-100 scale; the helpers here map those positions onto transform values
and apply them with the same affine/background conventions as the canonical
preprocessor. ``mirror_halves`` gives the two-fold (left/right or top/bottom)
mirror preview shown while preparing an image.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum

import cv2
import numpy as np

from .config import (
    BACKGROUND_COLOR,
    PREP_PAN_RANGE_PERCENT,
    PREP_SCALE_RANGE,
    SLIDER_DEFAULT,
    SLIDER_MAX,
    SLIDER_MIN,
)
from .preprocess import ImageLike, as_raster
from .raster import RasterBuffer, round_half_up

logger = logging.getLogger(__name__)


class MirrorAxis(str, Enum):
    VERTICAL = "vertical"      # left/right halves
    HORIZONTAL = "horizontal"  # top/bottom halves


class MirrorSide(str, Enum):
    FIRST = "first"    # left or top half is kept
    SECOND = "second"  # right or bottom half is kept


def _clamp_slider(value: float) -> float:
    return min(max(float(value), SLIDER_MIN), SLIDER_MAX)


def _lerp(bounds, value: float) -> float:
    low, high = bounds
    return low + (high - low) * (_clamp_slider(value) / SLIDER_MAX)


def slider_to_scale(value: float) -> float:
    """0..100 -> 0.8x..1.2x"""
    return _lerp(PREP_SCALE_RANGE, value)


def slider_to_pan(value: float) -> float:
    """0..100 -> -15%..+15% of the image size."""
    return _lerp(PREP_PAN_RANGE_PERCENT, value)


@dataclass(frozen=True)
class CropInsets:
    """Percent of the width/height trimmed from each side."""

    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    def __post_init__(self):
        for name in ("left", "right", "top", "bottom"):
            object.__setattr__(self, name, _clamp_slider(getattr(self, name)))
        if self.left + self.right >= 100.0:
            raise ValueError(f"Horizontal crop leaves nothing: left={self.left} right={self.right}")
        if self.top + self.bottom >= 100.0:
            raise ValueError(f"Vertical crop leaves nothing: top={self.top} bottom={self.bottom}")

    @property
    def is_noop(self) -> bool:
        return not (self.left or self.right or self.top or self.bottom)


@dataclass(frozen=True)
class PrepSettings:
    zoom_slider: float = SLIDER_DEFAULT
    pan_x_slider: float = SLIDER_DEFAULT
    pan_y_slider: float = SLIDER_DEFAULT
    crop: CropInsets = field(default_factory=CropInsets)

    @property
    def scale(self) -> float:
        return slider_to_scale(self.zoom_slider)

    @property
    def translate_x(self) -> float:
        return slider_to_pan(self.pan_x_slider)

    @property
    def translate_y(self) -> float:
        return slider_to_pan(self.pan_y_slider)

    @property
    def moves_pixels(self) -> bool:
        return not (
            math.isclose(self.scale, 1.0, abs_tol=1e-9)
            and math.isclose(self.translate_x, 0.0, abs_tol=1e-9)
            and math.isclose(self.translate_y, 0.0, abs_tol=1e-9)
        )


def prep_matrix(width: int, height: int, settings: PrepSettings) -> np.ndarray:
    """Affine for ``scale(s) translate(tx%, ty%)`` about the image centre.

    The pan is applied before the scale, so it grows with the zoom.
    """
    scale = settings.scale
    tx = width * settings.translate_x / 100.0
    ty = height * settings.translate_y / 100.0
    cx = (width - 1) / 2.0
    cy = (height - 1) / 2.0
    return np.array(
        [
            [scale, 0.0, cx + scale * (tx - cx)],
            [0.0, scale, cy + scale * (ty - cy)],
        ],
        dtype=np.float64,
    )


def crop(buffer: RasterBuffer, insets: CropInsets) -> RasterBuffer:
    if insets.is_noop or buffer.is_empty:
        return buffer
    width, height = buffer.size
    left = round_half_up(width * insets.left / 100.0)
    right = width - round_half_up(width * insets.right / 100.0)
    top = round_half_up(height * insets.top / 100.0)
    bottom = height - round_half_up(height * insets.bottom / 100.0)
    return RasterBuffer(buffer.pixels[top:max(top, bottom), left:max(left, right)].copy())


def bake(image: ImageLike, settings: PrepSettings = PrepSettings()) -> RasterBuffer:
    """Apply pan/zoom then crop, returning a new buffer."""
    source = as_raster(image)
    if source is None or source.is_empty:
        logger.warning("Nothing to bake; returning an empty buffer")
        return RasterBuffer.empty()

    if settings.moves_pixels:
        width, height = source.size
        moved = cv2.warpAffine(
            np.array(source.pixels),
            prep_matrix(width, height, settings),
            (width, height),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=BACKGROUND_COLOR,
        )
        baked = RasterBuffer(moved)
    else:
        baked = source

    result = crop(baked, settings.crop)
    logger.debug(
        "Baked prep settings scale=%.3f pan=(%.1f%%, %.1f%%) -> %dx%d",
        settings.scale,
        settings.translate_x,
        settings.translate_y,
        result.width,
        result.height,
    )
    return result


def mirror_halves(
    image: ImageLike,
    axis: MirrorAxis = MirrorAxis.VERTICAL,
    keep: MirrorSide = MirrorSide.FIRST,
) -> RasterBuffer:
    """Two-fold mirror: keep one half and reflect it over the other.

    On odd sizes the centre row/column belongs to both halves.
    """
    axis = MirrorAxis(axis)
    keep = MirrorSide(keep)
    source = as_raster(image)
    if source is None or source.is_empty:
        return RasterBuffer.empty()

    pixels = source.pixels if axis is MirrorAxis.VERTICAL else source.pixels.transpose(1, 0, 2)
    length = pixels.shape[1]
    half = (length + 1) // 2

    out = np.empty_like(pixels)
    if keep is MirrorSide.FIRST:
        kept = pixels[:, :half]
        out[:, :half] = kept
        out[:, length - half:] = kept[:, ::-1]
    else:
        kept = pixels[:, length - half:]
        out[:, length - half:] = kept
        out[:, :half] = kept[:, ::-1]

    if axis is MirrorAxis.HORIZONTAL:
        out = out.transpose(1, 0, 2)
    return RasterBuffer(np.ascontiguousarray(out))
