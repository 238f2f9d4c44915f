"""Public interface for the Refract symmetry toolkit."""

from __future__ import annotations

from .config import BACKGROUND_COLOR, PREVIEW_MAX_DIMENSION, QualityTier, QuadrantIndex
from .exporter import (
    EncodeError,
    ExportResult,
    InvalidQuadrantError,
    RefractError,
    encode_png,
    export,
    suggest_filename,
)
from .partition import partition, partition_pixels
from .preprocess import preprocess, working_size
from .raster import Midpoint, PixelBounds, RasterBuffer, Rectangle, load_image
from .symmetry import (
    PreviewResult,
    RenderParams,
    compose,
    generate_pattern,
    generate_symmetries,
    normalize,
    render_preview,
)

__all__ = [
    "BACKGROUND_COLOR",
    "PREVIEW_MAX_DIMENSION",
    "EncodeError",
    "ExportResult",
    "InvalidQuadrantError",
    "Midpoint",
    "PixelBounds",
    "PreviewResult",
    "QualityTier",
    "QuadrantIndex",
    "RasterBuffer",
    "Rectangle",
    "RefractError",
    "RenderParams",
    "compose",
    "encode_png",
    "export",
    "generate_pattern",
    "generate_symmetries",
    "load_image",
    "normalize",
    "partition",
    "partition_pixels",
    "preprocess",
    "render_preview",
    "suggest_filename",
    "working_size",
]
