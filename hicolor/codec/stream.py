from __future__ import annotations

import logging
from typing import BinaryIO

import numpy as np

from hicolor.codec.binio import read_up_to, write_all
from hicolor.codec.errors import InsufficientDataError
from hicolor.codec.packer import pack_array, unpack_array
from hicolor.codec.types import ImageMetadata

logger = logging.getLogger(__name__)

# One little-endian uint16 per pixel, row-major, no padding
PIXEL_DTYPE = np.dtype("<u2")


def read_pixels(stream: BinaryIO, meta: ImageMetadata) -> np.ndarray:
    """Read ``width * height`` packed values into a fresh H x W x 3 uint8 buffer.

    Raises:
        InsufficientDataError: The stream ended early.
        InvalidValueError: A V15 value has its reserved bit set.
    """
    expected = meta.pixel_count * PIXEL_DTYPE.itemsize
    data = read_up_to(stream, expected)
    if len(data) < expected:
        raise InsufficientDataError(
            f"insufficient data: pixel data has {len(data)} of {expected} bytes"
        )
    values = np.frombuffer(data, dtype=PIXEL_DTYPE).reshape(meta.height, meta.width)
    logger.debug("Read %d pixels", meta.pixel_count)
    return unpack_array(meta.variant, values)


def write_pixels(stream: BinaryIO, meta: ImageMetadata, image: np.ndarray) -> None:
    """Pack and write every pixel of ``image``. Raises HiColorIOError on a short write."""
    meta.check_buffer(image)
    values = pack_array(meta.variant, image).astype(PIXEL_DTYPE, copy=False)
    write_all(stream, values.tobytes())
    logger.debug("Wrote %d pixels", meta.pixel_count)
