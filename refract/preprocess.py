"""Canonical preprocessing: resolution tier, rotation and zoom.

The canonical buffer is "the image as it will be mirrored". The source is
first resized to the working size for the requested tier, then drawn through
one explicit affine transform (rotate and zoom about the canvas centre) onto
a canvas pre-filled with the background colour.

Rotation convention: positive degrees turn the image clockwise as displayed
(image rows grow downwards).
"""

from __future__ import annotations

import logging
import math
import time
from typing import Optional, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from .config import BACKGROUND_COLOR, PREVIEW_MAX_DIMENSION, QualityTier
from .raster import RasterBuffer, round_half_up

logger = logging.getLogger(__name__)

ImageLike = Union[RasterBuffer, Image.Image, np.ndarray]


def as_raster(image: Optional[ImageLike]) -> Optional[RasterBuffer]:
    """Accept a ``RasterBuffer``, PIL image or uint8 array."""
    if image is None or isinstance(image, RasterBuffer):
        return image
    if isinstance(image, Image.Image):
        return RasterBuffer.from_image(image)
    if isinstance(image, np.ndarray):
        return RasterBuffer.from_array(image)
    raise TypeError(f"Unsupported image type: {type(image).__name__}")


def working_size(width: int, height: int, tier: QualityTier) -> Tuple[int, int]:
    """Dimensions of the canonical buffer for ``tier``.

    Preview caps the longer side at ``PREVIEW_MAX_DIMENSION``; each side is
    scaled by the same factor and rounded on its own.
    """
    tier = QualityTier(tier)
    longest = max(width, height)
    if tier is not QualityTier.PREVIEW or longest <= PREVIEW_MAX_DIMENSION:
        return width, height
    scale = PREVIEW_MAX_DIMENSION / (width if width > height else height)
    # A side never collapses to zero for a non-empty source.
    return (
        max(1, round_half_up(width * scale)),
        max(1, round_half_up(height * scale)),
    )


def build_transform_matrix(
    width: int,
    height: int,
    rotation_deg: float = 0.0,
    zoom: float = 1.0,
) -> np.ndarray:
    """Return the 2x3 affine mapping source pixels onto the canvas.

    Composition is ``T(center) . R(rotation) . S(zoom) . T(-center)`` in
    pixel-centre coordinates, so the centre pixel stays put.
    """
    theta = math.radians(rotation_deg)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    cx = (width - 1) / 2.0
    cy = (height - 1) / 2.0

    linear = zoom * np.array([[cos_t, -sin_t], [sin_t, cos_t]], dtype=np.float64)
    center = np.array([cx, cy], dtype=np.float64)
    offset = center - linear @ center
    return np.hstack([linear, offset[:, None]])


def is_identity_transform(rotation_deg: float, zoom: float) -> bool:
    return zoom == 1.0 and math.fmod(rotation_deg, 360.0) == 0.0


def _validate_transform(rotation_deg: float, zoom: float) -> None:
    if not math.isfinite(rotation_deg):
        raise ValueError(f"Rotation must be finite, got {rotation_deg}")
    if not math.isfinite(zoom) or zoom <= 0:
        raise ValueError(f"Zoom must be a positive number, got {zoom}")


def _resize(pixels: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    width, height = size
    src_h, src_w = pixels.shape[:2]
    if (src_w, src_h) == (width, height):
        return np.array(pixels)
    shrinking = width < src_w or height < src_h
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    return cv2.resize(np.array(pixels), (width, height), interpolation=interpolation)


def preprocess(
    image: Optional[ImageLike],
    rotation_deg: float = 0.0,
    zoom: float = 1.0,
    tier: QualityTier = QualityTier.PREVIEW,
) -> RasterBuffer:
    """Produce the canonical buffer for ``image``.

    Args:
        image: Decoded source image. ``None`` or a zero-sized image yields an
            empty buffer instead of an error.
        rotation_deg: Clockwise rotation in degrees, applied about the centre.
        zoom: Uniform scale about the centre; ``> 1`` crops in.
        tier: ``PREVIEW`` (capped size) or ``HIGH_RES`` (native size).

    Returns:
        A new ``RasterBuffer`` at the working size for ``tier``.
    """
    rotation_deg = float(rotation_deg)
    zoom = float(zoom)
    _validate_transform(rotation_deg, zoom)
    tier = QualityTier(tier)

    source = as_raster(image)
    if source is None or source.is_empty:
        logger.warning("No image data to preprocess; returning an empty buffer")
        return RasterBuffer.empty()

    started = time.perf_counter()
    width, height = working_size(source.width, source.height, tier)
    resized = _resize(source.pixels, (width, height))

    if is_identity_transform(rotation_deg, zoom):
        canonical = resized
    else:
        matrix = build_transform_matrix(width, height, rotation_deg, zoom)
        canonical = cv2.warpAffine(
            resized,
            matrix,
            (width, height),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=BACKGROUND_COLOR,
        )

    logger.debug(
        "Preprocessed %dx%d -> %dx%d [%s, rot=%.2f, zoom=%.3f] in %.1f ms",
        source.width,
        source.height,
        width,
        height,
        tier.value,
        rotation_deg,
        zoom,
        (time.perf_counter() - started) * 1000.0,
    )
    return RasterBuffer(canonical)
