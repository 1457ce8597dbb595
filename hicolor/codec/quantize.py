from __future__ import annotations

import logging

import numpy as np

from hicolor.codec.dither import dither_image, dither_pixel
from hicolor.codec.packer import pack, pack_array, unpack, unpack_array
from hicolor.codec.types import DitherPolicy, FormatVariant, ImageMetadata, RgbColor

logger = logging.getLogger(__name__)

# Floyd-Steinberg weights in sixteenths: (dx, dy, weight)
_DIFFUSION = ((1, 0, 7), (-1, 1, 3), (0, 1, 5), (1, 1, 1))


def quantize_rgb(
    variant: FormatVariant,
    dither: DitherPolicy,
    x: int,
    y: int,
    color: RgbColor | tuple[int, int, int],
) -> RgbColor:
    """Return the exact color a HiColor file will store for one pixel."""
    dithered = dither_pixel(dither, variant, x, y, color)
    return unpack(variant, pack(variant, dithered))


def quantize(meta: ImageMetadata, dither: DitherPolicy, image: np.ndarray) -> np.ndarray:
    """Reduce every pixel of ``image`` to the colors ``meta.variant`` can store.

    The buffer is rewritten in place with the unpacked colors, so it shows
    exactly what will be written to a file. Returns the same buffer.

    Args:
        meta: Target variant and dimensions.
        dither: Dithering policy applied before packing.
        image: H x W x 3 uint8 RGB, matching meta.

    Raises:
        ValueError: If the buffer is not uint8 or its shape does not match meta.
        InvalidValueError: If a packed value can't be unpacked.
    """
    meta.check_buffer(image)
    logger.debug(
        "Quantizing %dx%d image to %d-bit with %s dithering",
        meta.width,
        meta.height,
        meta.variant.bits_per_pixel,
        dither.value,
    )

    if dither is DitherPolicy.FLOYD_STEINBERG:
        _quantize_error_diffusion(meta, image)
        return image

    dithered = dither_image(dither, meta.variant, image)
    image[...] = unpack_array(meta.variant, pack_array(meta.variant, dithered))
    return image


def _quantize_error_diffusion(meta: ImageMetadata, image: np.ndarray) -> None:
    """Floyd-Steinberg error diffusion.

    Each pixel's rounding error feeds pixels to its right and below, so
    pixels must be visited left-to-right, top-to-bottom. Errors accumulate
    in sixteenths to stay in integer arithmetic.
    """
    h, w = meta.height, meta.width
    work = image.astype(np.int64) * 16

    for y in range(h):
        for x in range(w):
            color = np.clip((work[y, x] + 8) // 16, 0, 255)
            stored = unpack(meta.variant, pack(meta.variant, tuple(int(c) for c in color)))
            image[y, x] = stored
            error = color - np.array(stored, dtype=np.int64)
            if not error.any():
                continue
            for dx, dy, weight in _DIFFUSION:
                nx, ny = x + dx, y + dy
                if 0 <= nx < w and ny < h:
                    work[ny, nx] += error * weight
