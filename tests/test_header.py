import io

import pytest

from hicolor.codec.errors import (
    BadMagicError,
    HiColorIOError,
    InsufficientDataError,
    UnknownVersionError,
)
from hicolor.codec.header import HEADER_SIZE, MAGIC, read_header, write_header
from hicolor.codec.types import FormatVariant, ImageMetadata


def _header_bytes(meta):
    buf = io.BytesIO()
    write_header(buf, meta)
    return buf.getvalue()


class ShortWriter(io.RawIOBase):
    """Accepts at most ``limit`` bytes per write."""

    def __init__(self, limit):
        self.limit = limit

    def writable(self):
        return True

    def write(self, data):
        return min(len(data), self.limit)


class FailingWriter(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise OSError("disk full")


class TestWriteHeader:
    def test_layout(self):
        data = _header_bytes(ImageMetadata(FormatVariant.V16, 0x0102, 0x0304))
        assert data == b"HiColor6\x02\x01\x04\x03"
        assert len(data) == HEADER_SIZE

    def test_15_bit_marker(self):
        data = _header_bytes(ImageMetadata(FormatVariant.V15, 1, 1))
        assert data[7:8] == b"5"

    def test_short_write_is_io_error(self):
        with pytest.raises(HiColorIOError):
            write_header(ShortWriter(11), ImageMetadata(FormatVariant.V16, 1, 1))

    def test_os_error_is_io_error(self):
        with pytest.raises(HiColorIOError):
            write_header(FailingWriter(), ImageMetadata(FormatVariant.V16, 1, 1))


class TestReadHeader:
    @pytest.mark.parametrize(
        "meta",
        [
            ImageMetadata(FormatVariant.V15, 0, 0),
            ImageMetadata(FormatVariant.V16, 640, 480),
            ImageMetadata(FormatVariant.V15, 65535, 1),
            ImageMetadata(FormatVariant.V16, 1, 65535),
        ],
    )
    def test_round_trip(self, meta):
        assert read_header(io.BytesIO(_header_bytes(meta))) == meta

    def test_stops_after_header(self):
        stream = io.BytesIO(_header_bytes(ImageMetadata(FormatVariant.V16, 2, 1)) + b"\xaa\xbb")
        read_header(stream)
        assert stream.read() == b"\xaa\xbb"

    def test_bad_magic(self):
        with pytest.raises(BadMagicError):
            read_header(io.BytesIO(b"LoColor6\x01\x00\x01\x00"))

    def test_bad_magic_regardless_of_rest(self):
        with pytest.raises(BadMagicError):
            read_header(io.BytesIO(b"hicolor" + b"\xff" * 100))
        with pytest.raises(BadMagicError):
            read_header(io.BytesIO(b"abc"))

    @pytest.mark.parametrize("marker", [b"4", b"7", b"0", b"\x00", b"A"])
    def test_unknown_version(self, marker):
        with pytest.raises(UnknownVersionError):
            read_header(io.BytesIO(MAGIC + marker + b"\x01\x00\x01\x00"))

    def test_truncated_to_11_bytes(self):
        data = _header_bytes(ImageMetadata(FormatVariant.V16, 2, 1))[:11]
        with pytest.raises(InsufficientDataError):
            read_header(io.BytesIO(data))

    @pytest.mark.parametrize("length", [0, 3, 7, 8, 10])
    def test_truncated_prefixes(self, length):
        data = _header_bytes(ImageMetadata(FormatVariant.V15, 2, 1))[:length]
        with pytest.raises(InsufficientDataError):
            read_header(io.BytesIO(data))
