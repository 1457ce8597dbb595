"""Fixed 12-byte HiColor header.

| Offset | Size | Field                    |
|--------|------|--------------------------|
| 0      | 7    | magic ``HiColor``        |
| 7      | 1    | variant marker '5'/'6'   |
| 8      | 2    | width, uint16 LE         |
| 10     | 2    | height, uint16 LE        |
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from hicolor.codec.binio import read_up_to, write_all
from hicolor.codec.errors import BadMagicError, InsufficientDataError
from hicolor.codec.types import FormatVariant, ImageMetadata

MAGIC = b"HiColor"
HEADER_SIZE = 12

_HEADER = struct.Struct("<7scHH")
_DIMENSIONS = struct.Struct("<HH")


def read_header(stream: BinaryIO) -> ImageMetadata:
    """Read and validate a header from the current stream position.

    Raises:
        BadMagicError: The bytes present disagree with the signature.
        UnknownVersionError: The variant marker is not '5' or '6'.
        InsufficientDataError: Fewer than 12 bytes were available.
    """
    data = read_up_to(stream, HEADER_SIZE)
    magic = data[: len(MAGIC)]
    if magic != MAGIC[: len(magic)]:
        raise BadMagicError(f"bad magic value: {magic!r}")
    if len(data) <= len(MAGIC):
        raise InsufficientDataError(f"insufficient data: header has {len(data)} of {HEADER_SIZE} bytes")

    variant = FormatVariant.from_marker(data[len(MAGIC)])
    if len(data) < HEADER_SIZE:
        raise InsufficientDataError(f"insufficient data: header has {len(data)} of {HEADER_SIZE} bytes")

    width, height = _DIMENSIONS.unpack_from(data, len(MAGIC) + 1)
    return ImageMetadata(variant=variant, width=width, height=height)


def write_header(stream: BinaryIO, meta: ImageMetadata) -> None:
    """Write the header for ``meta``. Raises HiColorIOError on a short write."""
    write_all(stream, _HEADER.pack(MAGIC, meta.variant.marker, meta.width, meta.height))
