"""Full-resolution export of a single pattern as PNG bytes.

The exporter never touches the filesystem; it hands back the encoded bytes
together with a suggested filename and leaves saving to the caller.
"""

from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from PIL import Image

from .config import EXPORT_EXTENSION, EXPORT_PREFIX, PNG_COMPRESS_LEVEL, QualityTier, QuadrantIndex
from .preprocess import ImageLike
from .raster import Midpoint, RasterBuffer
from .symmetry import generate_pattern

logger = logging.getLogger(__name__)


class RefractError(Exception):
    """Base class for pipeline failures surfaced to callers."""


class InvalidQuadrantError(RefractError, ValueError):
    """Quadrant index outside 0..3."""


class EncodeError(RefractError):
    """The PNG encoder produced no output."""


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    filename: str
    width: int
    height: int
    quadrant: QuadrantIndex


def validate_quadrant(value: Union[int, QuadrantIndex]) -> QuadrantIndex:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidQuadrantError(f"Quadrant index must be an integer 0-3, got {value!r}")
    try:
        return QuadrantIndex(int(value))
    except ValueError as exc:
        raise InvalidQuadrantError(f"Quadrant index must be 0-3, got {value}") from exc


def suggest_filename(quadrant: QuadrantIndex, timestamp_ms: Optional[int] = None) -> str:
    """``refract-<label>-<unix millis>.png``"""
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    return f"{EXPORT_PREFIX}-{QuadrantIndex(quadrant).label}-{int(timestamp_ms)}{EXPORT_EXTENSION}"


def encode_png(buffer: RasterBuffer) -> bytes:
    """Losslessly encode ``buffer`` as an RGBA PNG."""
    if buffer.is_empty:
        raise EncodeError(f"Nothing to encode: buffer is {buffer.width}x{buffer.height}")

    stream = io.BytesIO()
    try:
        buffer.to_image().save(stream, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"PNG encoding failed: {exc}") from exc

    data = stream.getvalue()
    if not data:
        raise EncodeError("PNG encoder returned no data")
    return data


def decode_png(data: bytes) -> RasterBuffer:
    with Image.open(io.BytesIO(data)) as image:
        return RasterBuffer.from_image(image)


def export(
    image: Optional[ImageLike],
    midpoint: Midpoint,
    rotation_deg: float,
    zoom: float,
    quadrant: Union[int, QuadrantIndex],
    timestamp_ms: Optional[int] = None,
) -> ExportResult:
    """Render ``quadrant``'s pattern at native resolution and encode it.

    Raises:
        InvalidQuadrantError: ``quadrant`` is not one of 0-3.
        EncodeError: there was nothing to encode or the encoder failed.
    """
    quadrant = validate_quadrant(quadrant)

    started = time.perf_counter()
    pattern = generate_pattern(
        image,
        midpoint,
        rotation_deg=rotation_deg,
        zoom=zoom,
        tier=QualityTier.HIGH_RES,
        quadrant=quadrant,
    )
    data = encode_png(pattern)
    filename = suggest_filename(quadrant, timestamp_ms)

    logger.info(
        "Exported %s pattern %dx%d (%d bytes) in %.1f ms",
        quadrant.label,
        pattern.width,
        pattern.height,
        len(data),
        (time.perf_counter() - started) * 1000.0,
    )
    return ExportResult(
        data=data,
        filename=filename,
        width=pattern.width,
        height=pattern.height,
        quadrant=quadrant,
    )
