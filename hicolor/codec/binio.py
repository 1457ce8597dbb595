from __future__ import annotations

from typing import BinaryIO

from hicolor.codec.errors import HiColorIOError


def read_up_to(stream: BinaryIO, size: int) -> bytes:
    """Read ``size`` bytes, or fewer if the stream ends first."""
    chunks = []
    remaining = size
    try:
        while remaining > 0:
            chunk = stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
    except OSError as e:
        raise HiColorIOError(f"I/O error: {e}") from e
    return b"".join(chunks)


def write_all(stream: BinaryIO, data: bytes) -> None:
    """Write ``data`` in one call. A short write is an error, never retried."""
    try:
        written = stream.write(data)
    except OSError as e:
        raise HiColorIOError(f"I/O error: {e}") from e
    if written is not None and written < len(data):
        raise HiColorIOError(f"I/O error: wrote {written} of {len(data)} bytes")
