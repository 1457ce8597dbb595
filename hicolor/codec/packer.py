from __future__ import annotations

import numpy as np

from hicolor.codec.errors import InvalidValueError
from hicolor.codec.tables import DOWN_5, DOWN_6, UP_5, UP_6
from hicolor.codec.types import FormatVariant, RgbColor

RESERVED_BIT_15 = 0x8000
MAX_VALUE = 0xFFFF


def pack(variant: FormatVariant, color: RgbColor | tuple[int, int, int]) -> int:
    """Pack an 8-bit RGB color into a 16-bit value.

    V15 stores 5-bit r, g, b at bit offsets 0, 5, 10 and leaves bit 15 clear.
    V16 stores 5-bit r at 0, 6-bit g at 5 and 5-bit b at 11.
    """
    r, g, b = color
    if not (0 <= r <= 255 and 0 <= g <= 255 and 0 <= b <= 255):
        raise ValueError(f"color channels must be between 0 and 255, got {tuple(color)}")
    if variant is FormatVariant.V15:
        return int(DOWN_5[r]) | int(DOWN_5[g]) << 5 | int(DOWN_5[b]) << 10
    return int(DOWN_5[r]) | int(DOWN_6[g]) << 5 | int(DOWN_5[b]) << 11


def unpack(variant: FormatVariant, value: int) -> RgbColor:
    """Expand a packed value back to 8-bit RGB.

    Raises InvalidValueError for values outside 16 bits, and for V15 values
    with the reserved bit 15 set.
    """
    if not 0 <= value <= MAX_VALUE:
        raise InvalidValueError(f"invalid value: {value:#x} does not fit in 16 bits")
    if variant is FormatVariant.V15:
        if value & RESERVED_BIT_15:
            raise InvalidValueError(f"invalid value: {value:#06x} has reserved bit 15 set")
        return RgbColor(
            int(UP_5[value & 0x1F]),
            int(UP_5[(value >> 5) & 0x1F]),
            int(UP_5[(value >> 10) & 0x1F]),
        )
    return RgbColor(
        int(UP_5[value & 0x1F]),
        int(UP_6[(value >> 5) & 0x3F]),
        int(UP_5[value >> 11]),
    )


def pack_array(variant: FormatVariant, image: np.ndarray) -> np.ndarray:
    """Vectorized pack() over an H x W x 3 array. Returns an H x W uint16 array."""
    image = np.asarray(image)
    if image.size and (image.min() < 0 or image.max() > 255):
        raise ValueError("color channels must be between 0 and 255")
    r = DOWN_5[image[..., 0]].astype(np.uint16)
    b = DOWN_5[image[..., 2]].astype(np.uint16)
    if variant is FormatVariant.V15:
        g = DOWN_5[image[..., 1]].astype(np.uint16)
        return r | (g << 5) | (b << 10)
    g = DOWN_6[image[..., 1]].astype(np.uint16)
    return r | (g << 5) | (b << 11)


def unpack_array(variant: FormatVariant, values: np.ndarray) -> np.ndarray:
    """Vectorized unpack(). Returns a uint8 array with a trailing RGB axis."""
    values = np.asarray(values, dtype=np.uint16)
    out = np.empty(values.shape + (3,), dtype=np.uint8)
    if variant is FormatVariant.V15:
        bad = np.flatnonzero(values & RESERVED_BIT_15)
        if bad.size:
            raise InvalidValueError(
                f"invalid value: {int(values.flat[bad[0]]):#06x} at pixel {int(bad[0])} "
                "has reserved bit 15 set"
            )
        out[..., 0] = UP_5[values & 0x1F]
        out[..., 1] = UP_5[(values >> 5) & 0x1F]
        out[..., 2] = UP_5[(values >> 10) & 0x1F]
        return out
    out[..., 0] = UP_5[values & 0x1F]
    out[..., 1] = UP_6[(values >> 5) & 0x3F]
    out[..., 2] = UP_5[values >> 11]
    return out
