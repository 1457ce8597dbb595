from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np

from hicolor.codec.errors import UnknownVersionError

MAX_DIMENSION = 0xFFFF


class FormatVariant(str, Enum):
    """Pixel layout of a HiColor file, keyed by its header marker."""

    V15 = "5"  # 5-5-5, bit 15 reserved
    V16 = "6"  # 5-6-5

    @property
    def marker(self) -> bytes:
        return self.value.encode("ascii")

    @property
    def green_bits(self) -> int:
        return 6 if self is FormatVariant.V16 else 5

    @property
    def bits_per_pixel(self) -> int:
        return 16 if self is FormatVariant.V16 else 15

    @classmethod
    def from_marker(cls, marker: int | str | bytes) -> FormatVariant:
        """Parse a header marker ('5' or '6') given as a byte value, str or bytes."""
        if isinstance(marker, int):
            marker = chr(marker) if 0 <= marker < 0x110000 else ""
        elif isinstance(marker, bytes):
            marker = marker.decode("latin-1")
        for variant in cls:
            if variant.value == marker:
                return variant
        raise UnknownVersionError(f"unknown version: {marker!r}")


class DitherPolicy(str, Enum):
    """Dithering applied while reducing colors to a format variant.

    NONE, BAYER and A_DITHER depend only on pixel position and color.
    FLOYD_STEINBERG diffuses error into neighbours and must run
    left-to-right, top-to-bottom.
    """

    NONE = "none"
    BAYER = "bayer"
    A_DITHER = "a-dither"
    FLOYD_STEINBERG = "floyd-steinberg"

    @property
    def position_pure(self) -> bool:
        return self is not DitherPolicy.FLOYD_STEINBERG


class RgbColor(NamedTuple):
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class ImageMetadata:
    variant: FormatVariant
    width: int
    height: int

    def __post_init__(self):
        for name in ("width", "height"):
            value = getattr(self, name)
            if not 0 <= value <= MAX_DIMENSION:
                raise ValueError(f"{name} must be between 0 and {MAX_DIMENSION}, got {value}")

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @classmethod
    def for_image(cls, variant: FormatVariant, image: np.ndarray) -> ImageMetadata:
        """Metadata for an H x W x 3 RGB array."""
        height, width = image.shape[:2]
        return cls(variant=variant, width=int(width), height=int(height))

    def check_buffer(self, image: np.ndarray) -> None:
        """Raise ValueError unless image is a height x width x 3 uint8 pixel buffer."""
        expected = (self.height, self.width, 3)
        if image.shape != expected:
            raise ValueError(f"pixel buffer shape {image.shape} does not match {expected}")
        if image.dtype != np.uint8:
            raise ValueError(f"pixel buffer must be uint8, got {image.dtype}")
