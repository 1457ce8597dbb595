"""Channel scaling tables between 8-bit intensities and 5/6-bit buckets.

Down-scaling maps every 8-bit value to its nearest bucket; up-scaling maps
each bucket to the nearest 8-bit value. Every bucket is a fixed point:
``DOWN_N[UP_N[k]] == k``, which is what makes pack/unpack idempotent after
the first quantization.
"""

from __future__ import annotations

import numpy as np


def _downscale_table(levels: int) -> np.ndarray:
    # round(v * (levels - 1) / 255), half-up, in integers
    top = levels - 1
    table = np.array([(2 * v * top + 255) // 510 for v in range(256)], dtype=np.uint8)
    table.flags.writeable = False
    return table


def _upscale_table(levels: int) -> np.ndarray:
    # round(k * 255 / (levels - 1)), half-up, in integers
    top = levels - 1
    table = np.array([(2 * k * 255 + top) // (2 * top) for k in range(levels)], dtype=np.uint8)
    table.flags.writeable = False
    return table


DOWN_5 = _downscale_table(32)
DOWN_6 = _downscale_table(64)
UP_5 = _upscale_table(32)
UP_6 = _upscale_table(64)
