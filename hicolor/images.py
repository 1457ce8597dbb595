from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, BinaryIO]


def load_image(src: ImageSource) -> tuple[np.ndarray, np.ndarray | None]:
    """Load a raster image as 8-bit RGB plus an optional alpha plane.

    Args:
        src: Path or binary file object Pillow can read.

    Returns:
        rgb: H x W x 3 uint8 array.
        alpha: H x W uint8 array, or None when the image has no transparency.
    """
    with Image.open(src) as img:
        img.load()
        logger.debug("Loaded %s image %dx%d (mode %s)", img.format, img.width, img.height, img.mode)
        has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
        if has_alpha:
            rgba = np.array(img.convert("RGBA"))
            return np.ascontiguousarray(rgba[..., :3]), np.ascontiguousarray(rgba[..., 3])
        return np.array(img.convert("RGB")), None


def save_image(
    dest: ImageSource,
    rgb: np.ndarray,
    alpha: np.ndarray | None = None,
    format: str | None = "PNG",
) -> None:
    """Save an H x W x 3 uint8 array, re-attaching ``alpha`` when given."""
    if alpha is not None:
        rgba = np.dstack([rgb, alpha]).astype(np.uint8)
        img = Image.fromarray(rgba)
    else:
        img = Image.fromarray(np.ascontiguousarray(rgb, dtype=np.uint8))
    img.save(dest, format=format)
