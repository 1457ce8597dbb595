import numpy as np
import pytest
from PIL import Image

from hicolor.codec.errors import BadMagicError, HiColorIOError, InsufficientDataError
from hicolor.codec.packer import pack_array, unpack_array
from hicolor.codec.types import DitherPolicy, FormatVariant, ImageMetadata
from hicolor.convert import (
    decode_bytes,
    encode_image,
    hicolor_to_png,
    png_to_hicolor,
    quantize_image,
    quantize_png,
    read_info,
)
from hicolor.images import load_image, save_image


def _write_png(path, array):
    Image.fromarray(array).save(path, format="PNG")
    return path


@pytest.fixture
def rgb_png(tmp_path):
    img = np.random.randint(0, 256, (6, 10, 3), dtype=np.uint8)
    return _write_png(tmp_path / "in.png", img), img


class TestImageIO:
    def test_rgb_has_no_alpha(self, rgb_png):
        path, img = rgb_png
        rgb, alpha = load_image(path)
        np.testing.assert_array_equal(rgb, img)
        assert alpha is None

    def test_rgba_round_trip(self, tmp_path):
        rgba = np.random.randint(0, 256, (5, 4, 4), dtype=np.uint8)
        path = _write_png(tmp_path / "a.png", rgba)
        rgb, alpha = load_image(path)
        np.testing.assert_array_equal(rgb, rgba[..., :3])
        np.testing.assert_array_equal(alpha, rgba[..., 3])

        out = tmp_path / "b.png"
        save_image(out, rgb, alpha)
        np.testing.assert_array_equal(np.array(Image.open(out)), rgba)


class TestInMemory:
    def test_encode_leaves_input_untouched(self):
        img = np.random.randint(0, 256, (4, 4, 3), dtype=np.uint8)
        before = img.copy()
        encode_image(img, FormatVariant.V15, DitherPolicy.BAYER)
        np.testing.assert_array_equal(img, before)

    def test_encode_decode(self):
        img = np.random.randint(0, 256, (4, 5, 3), dtype=np.uint8)
        data = encode_image(img, FormatVariant.V16, DitherPolicy.A_DITHER)
        meta, decoded = decode_bytes(data)
        assert meta == ImageMetadata(FormatVariant.V16, 5, 4)
        np.testing.assert_array_equal(
            decoded, quantize_image(img, FormatVariant.V16, DitherPolicy.A_DITHER)
        )

    def test_decode_bad_magic(self):
        with pytest.raises(BadMagicError):
            decode_bytes(b"GIF89a" + b"\x00" * 20)

    def test_oversized_image_rejected(self):
        img = np.zeros((1, 65536, 3), dtype=np.uint8)
        with pytest.raises(ValueError):
            encode_image(img)


class TestFiles:
    def test_png_to_hicolor_and_back(self, tmp_path, rgb_png):
        src, img = rgb_png
        hic = tmp_path / "out.hic"
        meta = png_to_hicolor(src, hic, FormatVariant.V15, DitherPolicy.NONE)
        assert meta == ImageMetadata(FormatVariant.V15, 10, 6)
        assert hic.stat().st_size == 12 + 2 * 10 * 6

        png = tmp_path / "back.png"
        assert hicolor_to_png(hic, png) == meta
        decoded = np.array(Image.open(png).convert("RGB"))
        expected = unpack_array(FormatVariant.V15, pack_array(FormatVariant.V15, img))
        np.testing.assert_array_equal(decoded, expected)

    def test_read_info(self, tmp_path, rgb_png):
        src, _ = rgb_png
        hic = tmp_path / "out.hic"
        png_to_hicolor(src, hic, FormatVariant.V16, DitherPolicy.BAYER)
        assert read_info(hic) == ImageMetadata(FormatVariant.V16, 10, 6)

    def test_quantize_png_keeps_alpha(self, tmp_path):
        rgba = np.random.randint(0, 256, (8, 8, 4), dtype=np.uint8)
        src = _write_png(tmp_path / "a.png", rgba)
        dest = tmp_path / "q.png"
        quantize_png(src, dest, FormatVariant.V16, DitherPolicy.NONE)
        out = np.array(Image.open(dest))
        assert out.shape == (8, 8, 4)
        np.testing.assert_array_equal(out[..., 3], rgba[..., 3])
        expected = unpack_array(FormatVariant.V16, pack_array(FormatVariant.V16, rgba[..., :3]))
        np.testing.assert_array_equal(out[..., :3], expected)

    def test_missing_source(self, tmp_path):
        with pytest.raises(HiColorIOError):
            png_to_hicolor(tmp_path / "nope.png", tmp_path / "out.hic")
        with pytest.raises(HiColorIOError):
            hicolor_to_png(tmp_path / "nope.hic", tmp_path / "out.png")
        with pytest.raises(HiColorIOError):
            read_info(tmp_path / "nope.hic")

    def test_not_an_image(self, tmp_path):
        src = tmp_path / "junk.png"
        src.write_bytes(b"not a png")
        with pytest.raises(HiColorIOError):
            png_to_hicolor(src, tmp_path / "out.hic")

    def test_decompression_bomb_is_io_error(self, tmp_path, monkeypatch):
        def refuse(src):
            raise Image.DecompressionBombError("too many pixels")

        monkeypatch.setattr("hicolor.convert.load_image", refuse)
        dest = tmp_path / "out.hic"
        with pytest.raises(HiColorIOError, match="too many pixels"):
            png_to_hicolor(tmp_path / "huge.png", dest)
        assert not dest.exists()

    def test_failed_decode_writes_nothing(self, tmp_path):
        src = tmp_path / "bad.hic"
        src.write_bytes(b"HiColor6\x04\x00\x04\x00" + b"\x00" * 3)
        dest = tmp_path / "out.png"
        with pytest.raises(InsufficientDataError):
            hicolor_to_png(src, dest)
        assert not dest.exists()
