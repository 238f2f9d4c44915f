"""Raster primitives shared by every pipeline stage.

``RasterBuffer`` wraps a read-only ``(height, width, 4)`` uint8 array of RGBA
pixels. Stages never write into a buffer they were handed; they allocate a
new array and wrap it, so a buffer can be shared freely once built.
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

CHANNELS = 4


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """Rectangular RGBA8 pixel grid, row-major."""

    pixels: np.ndarray

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise TypeError("RasterBuffer expects a numpy array")
        if pixels.dtype != np.uint8:
            raise ValueError(f"RasterBuffer expects uint8 pixels, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"RasterBuffer expects (H, W, 4) pixels, got {pixels.shape}")
        pixels = np.ascontiguousarray(pixels)
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    # ------------------------------------------------------------------
    # constructors
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls) -> "RasterBuffer":
        return cls(np.zeros((0, 0, CHANNELS), dtype=np.uint8))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "RasterBuffer":
        if width < 0 or height < 0:
            raise ValueError(f"Negative dimensions: {width}x{height}")
        expected = width * height * CHANNELS
        if len(data) != expected:
            raise ValueError(
                f"Pixel data is {len(data)} bytes, expected {expected} for {width}x{height} RGBA"
            )
        array = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, CHANNELS)
        return cls(array.copy())

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RasterBuffer":
        """Wrap a grayscale, RGB or RGBA uint8 array, adding opaque alpha as needed."""
        array = np.asarray(array)
        if array.dtype != np.uint8:
            raise ValueError(f"Expected uint8 image data, got {array.dtype}")
        if array.ndim == 2:
            array = np.repeat(array[:, :, None], 3, axis=2)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported image shape: {array.shape}")
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        else:
            array = array.copy()
        return cls(array)

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterBuffer":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def to_image(self) -> Image.Image:
        if self.is_empty:
            raise ValueError("Cannot convert an empty RasterBuffer to an image")
        return Image.fromarray(self.pixels)

    def __eq__(self, other):
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.pixels, other.pixels)

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height})"


def new_canvas(width: int, height: int, color: Tuple[int, int, int, int]) -> np.ndarray:
    """Allocate a writable ``(height, width, 4)`` array filled with ``color``."""
    canvas = np.empty((max(height, 0), max(width, 0), CHANNELS), dtype=np.uint8)
    canvas[:, :] = color
    return canvas


@dataclass(frozen=True)
class PixelBounds:
    """Integer edges of a rectangle; ``right``/``bottom`` are exclusive."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Rectangle:
    """Real-valued rectangle in pixel units."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def snap(self) -> PixelBounds:
        """Round each edge once; widths are differences of rounded edges.

        Two rectangles sharing an edge coordinate therefore share the same
        pixel boundary, whatever the fractional part.
        """
        return PixelBounds(
            left=round_half_up(self.x),
            top=round_half_up(self.y),
            right=round_half_up(self.right),
            bottom=round_half_up(self.bottom),
        )


@dataclass(frozen=True)
class Midpoint:
    """Normalized anchor point; ``x`` and ``y`` lie in ``[0, 1]``."""

    x: float = 0.5
    y: float = 0.5

    def __post_init__(self):
        for name in ("x", "y"):
            value = float(getattr(self, name))
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Midpoint.{name} must be within [0, 1], got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def center(cls) -> "Midpoint":
        return cls(0.5, 0.5)

    def to_pixels(self, width: int, height: int) -> Tuple[float, float]:
        return self.x * width, self.y * height


ImageSource = Union[str, Path, bytes]


def load_image(source: ImageSource) -> RasterBuffer:
    """Decode a file path or encoded bytes into an RGBA ``RasterBuffer``.

    EXIF orientation is applied so camera photos come out the way viewers
    display them.
    """
    if isinstance(source, (bytes, bytearray)):
        handle = Image.open(io.BytesIO(bytes(source)))
        name = "<bytes>"
    else:
        handle = Image.open(source)
        name = str(source)
    with handle:
        image = ImageOps.exif_transpose(handle)
        buffer = RasterBuffer.from_image(image)
    logger.debug("Loaded %s (%dx%d)", name, buffer.width, buffer.height)
    return buffer
