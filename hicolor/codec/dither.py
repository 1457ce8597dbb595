from __future__ import annotations

import numpy as np

from hicolor.codec.types import DitherPolicy, FormatVariant, RgbColor

# Recursive 8x8 Bayer matrix, thresholds k/64 for k in 0..63
BAYER_8X8 = np.array(
    [
        [0, 32, 8, 40, 2, 34, 10, 42],
        [48, 16, 56, 24, 50, 18, 58, 26],
        [12, 44, 4, 36, 14, 46, 6, 38],
        [60, 28, 52, 20, 62, 30, 54, 22],
        [3, 35, 11, 43, 1, 33, 9, 41],
        [51, 19, 59, 27, 49, 17, 57, 25],
        [15, 47, 7, 39, 13, 45, 5, 37],
        [63, 31, 55, 23, 61, 29, 53, 21],
    ],
    dtype=np.int32,
)
BAYER_8X8.flags.writeable = False


def channel_levels(variant: FormatVariant) -> tuple[int, int, int]:
    """Bucket count per channel. Only green depends on the variant."""
    return 32, 2 ** variant.green_bits, 32


def bayer_threshold(x, y):
    return BAYER_8X8[y % 8, x % 8]


def a_dither_mask(x, y):
    """Position-derived threshold in 0..255 (divide by 255 for the [0, 1] mask)."""
    return ((x + y * 237) * 119) & 255


def _ordered_channel(value, threshold, levels):
    # Shift by ((threshold + 0.5) / 64 - 0.5) of one bucket step, rounded
    # half away from zero so thresholds k and 63 - k cancel.
    num = (2 * threshold - 63) * 255
    den = 128 * (levels - 1)
    offset = np.sign(num) * ((np.abs(num) * 2 + den) // (2 * den))
    return np.clip(value + offset, 0, 255)


def _a_dither_channel(value, mask, levels):
    # floor(levels * value/255 + mask/255) / levels, clamped to 1, back to 8 bits
    step = np.minimum((levels * value + mask) // 255, levels)
    return (step * 510 + levels) // (2 * levels)


def dither_pixel(
    policy: DitherPolicy,
    variant: FormatVariant,
    x: int,
    y: int,
    color: RgbColor | tuple[int, int, int],
) -> RgbColor:
    """Perturb one pixel's color ahead of packing.

    The result depends only on the arguments. Floyd-Steinberg needs the
    whole image and is rejected here.
    """
    color = tuple(int(c) for c in color)
    if policy is DitherPolicy.NONE:
        return RgbColor(*color)
    levels = channel_levels(variant)
    if policy is DitherPolicy.BAYER:
        threshold = int(bayer_threshold(x, y))
        return RgbColor(*(int(_ordered_channel(c, threshold, n)) for c, n in zip(color, levels)))
    if policy is DitherPolicy.A_DITHER:
        mask = a_dither_mask(x, y)
        return RgbColor(*(int(_a_dither_channel(c, mask, n)) for c, n in zip(color, levels)))
    raise ValueError(f"{policy.value} dithering is sequential and can't be applied per pixel")


def dither_image(policy: DitherPolicy, variant: FormatVariant, image: np.ndarray) -> np.ndarray:
    """Whole-image form of dither_pixel(). Returns a new H x W x 3 array.

    Gives exactly the per-pixel results; only the position-pure policies
    are accepted.
    """
    if policy is DitherPolicy.NONE:
        return image.copy()
    if not policy.position_pure:
        raise ValueError(f"{policy.value} dithering is sequential and can't be vectorized")

    h, w = image.shape[:2]
    ys, xs = np.indices((h, w), dtype=np.int64)
    work = image.astype(np.int64)
    out = np.empty_like(work)

    if policy is DitherPolicy.BAYER:
        position = bayer_threshold(xs, ys)
        channel = _ordered_channel
    else:
        position = a_dither_mask(xs, ys)
        channel = _a_dither_channel

    for i, levels in enumerate(channel_levels(variant)):
        out[..., i] = channel(work[..., i], position, levels)
    return out
