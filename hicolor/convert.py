from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from hicolor.codec.errors import HiColorIOError
from hicolor.codec.header import read_header, write_header
from hicolor.codec.quantize import quantize
from hicolor.codec.stream import read_pixels, write_pixels
from hicolor.codec.types import MAX_DIMENSION, DitherPolicy, FormatVariant, ImageMetadata
from hicolor.images import load_image, save_image

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _metadata_for(variant: FormatVariant, image: np.ndarray) -> ImageMetadata:
    height, width = image.shape[:2]
    if width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise ValueError(
            f"image is {width}x{height}; HiColor images are at most {MAX_DIMENSION} pixels per side"
        )
    return ImageMetadata.for_image(variant, image)


def _load(src) -> tuple[np.ndarray, np.ndarray | None]:
    try:
        return load_image(src)
    except (OSError, Image.DecompressionBombError) as e:
        raise HiColorIOError(f"can't load source image {src}: {e}") from e


def _save(dest, rgb: np.ndarray, alpha: np.ndarray | None = None) -> None:
    try:
        save_image(dest, rgb, alpha)
    except OSError as e:
        raise HiColorIOError(f"can't save image {dest}: {e}") from e


def _write_file(dest: PathLike, data: bytes) -> None:
    try:
        Path(dest).write_bytes(data)
    except OSError as e:
        raise HiColorIOError(f"can't open destination {dest} for writing: {e}") from e


def encode_image(
    image: np.ndarray,
    variant: FormatVariant = FormatVariant.V16,
    dither: DitherPolicy = DitherPolicy.NONE,
) -> bytes:
    """Quantize a copy of an RGB image and return the complete HiColor file.

    Args:
        image: H x W x 3 uint8 RGB. Left untouched.
        variant: Target pixel layout.
        dither: Dithering applied during quantization.

    Returns:
        Header followed by the packed pixel data.
    """
    meta = _metadata_for(variant, image)
    quantized = np.array(image, dtype=np.uint8, copy=True)
    quantize(meta, dither, quantized)

    buffer = io.BytesIO()
    write_header(buffer, meta)
    write_pixels(buffer, meta, quantized)
    return buffer.getvalue()


def decode_bytes(data: bytes) -> tuple[ImageMetadata, np.ndarray]:
    """Parse a complete HiColor file held in memory."""
    stream = io.BytesIO(data)
    meta = read_header(stream)
    return meta, read_pixels(stream, meta)


def quantize_image(
    image: np.ndarray,
    variant: FormatVariant = FormatVariant.V16,
    dither: DitherPolicy = DitherPolicy.NONE,
) -> np.ndarray:
    """Return a copy of ``image`` showing exactly what encoding would store."""
    meta = _metadata_for(variant, image)
    return quantize(meta, dither, np.array(image, dtype=np.uint8, copy=True))


def png_to_hicolor(
    src: PathLike,
    dest: PathLike,
    variant: FormatVariant = FormatVariant.V16,
    dither: DitherPolicy = DitherPolicy.NONE,
) -> ImageMetadata:
    """Encode an image file as HiColor. Alpha is dropped.

    The file is assembled in memory first, so a failed encode never leaves
    a partial destination behind.
    """
    rgb, _alpha = _load(src)
    logger.debug("PNG image size: %d x %d", rgb.shape[1], rgb.shape[0])
    data = encode_image(rgb, variant, dither)
    _write_file(dest, data)
    logger.info("Encoded %s -> %s (%d bytes)", src, dest, len(data))
    return _metadata_for(variant, rgb)


def hicolor_to_png(src: PathLike, dest: PathLike) -> ImageMetadata:
    """Decode a HiColor file and save it as a PNG."""
    try:
        with open(src, "rb") as f:
            meta = read_header(f)
            logger.debug("HiColor image size: %d x %d", meta.width, meta.height)
            rgb = read_pixels(f, meta)
    except OSError as e:
        raise HiColorIOError(f"can't open source image {src} for reading: {e}") from e
    _save(dest, rgb)
    logger.info("Decoded %s -> %s", src, dest)
    return meta


def quantize_png(
    src: PathLike,
    dest: PathLike,
    variant: FormatVariant = FormatVariant.V16,
    dither: DitherPolicy = DitherPolicy.NONE,
) -> ImageMetadata:
    """Quantize an image file to HiColor colors and save it as a PNG.

    The alpha plane, if any, is carried over unchanged.
    """
    rgb, alpha = _load(src)
    meta = _metadata_for(variant, rgb)
    quantize(meta, dither, rgb)
    _save(dest, rgb, alpha)
    logger.info("Quantized %s -> %s", src, dest)
    return meta


def read_info(src: PathLike) -> ImageMetadata:
    """Read only the header of a HiColor file."""
    try:
        with open(src, "rb") as f:
            return read_header(f)
    except OSError as e:
        raise HiColorIOError(f"can't open source image {src} for reading: {e}") from e
