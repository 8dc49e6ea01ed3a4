"""
Bitmap codec tests: bit expansion, raster geometry, padding and PNG IO.
"""

import math

import numpy as np
import pytest
from PIL import Image

from shared import (
    BitmapCodec, bytes_to_bit_string, bit_string_to_bytes,
    raster_side, encode_chunk, decode_raster,
    EmptyInputError, CorruptRasterError
)


class TestBitString:

    def test_ab_expands_msb_first(self):
        assert bytes_to_bit_string(b"AB") == "0100000101000010"

    def test_bit_string_back_to_bytes(self):
        assert bit_string_to_bytes("0100000101000010") == b"AB"

    def test_partial_byte_rejected(self):
        with pytest.raises(ValueError):
            bit_string_to_bytes("0101")


class TestEncode:

    def test_ab_scenario(self):
        raster = encode_chunk(b"AB")

        assert raster.shape == (4, 4)
        bits = (raster.ravel() // 255).tolist()
        assert bits == [0, 1, 0, 0, 0, 0, 0, 1, 0, 1, 0, 0, 0, 0, 1, 0]

    @pytest.mark.parametrize("n", [1, 2, 3, 7, 100, 1023, 1024])
    def test_side_is_ceil_sqrt_of_bits(self, n):
        raster = encode_chunk(bytes([0xFF]) * n)

        side = math.ceil(math.sqrt(8 * n))
        assert raster.shape == (side, side)
        assert raster_side(n) == side

    def test_padding_cells_are_black(self):
        # 3 bytes -> 24 bits -> 5x5 grid, one padding cell
        raster = encode_chunk(b"\xff\xff\xff")

        cells = raster.ravel()
        assert cells.size == 25
        assert np.all(cells[:24] == 255)
        assert np.all(cells[24:] == 0)

    def test_only_pure_black_and_white(self):
        raster = encode_chunk(bytes(range(256)))

        assert raster.dtype == np.uint8
        assert set(np.unique(raster).tolist()) <= {0, 255}

    def test_encoding_is_idempotent(self):
        chunk = b"same chunk, same pixels"
        assert np.array_equal(encode_chunk(chunk), encode_chunk(chunk))

    def test_empty_chunk_rejected(self):
        with pytest.raises(EmptyInputError):
            encode_chunk(b"")


class TestDecode:

    def test_ab_scenario(self):
        pixels = np.array(
            [0, 1, 0, 0, 0, 0, 0, 1, 0, 1, 0, 0, 0, 0, 1, 0], dtype=np.uint8
        ) * 255
        assert decode_raster(pixels.reshape(4, 4), 2) == b"AB"

    def test_true_length_drops_padding(self):
        # 5 bytes -> 40 bits -> 7x7 grid with 9 padding cells
        chunk = b"\x01\x02\x03\x04\x05"
        raster = encode_chunk(chunk)

        assert decode_raster(raster, len(chunk)) == chunk
        # Reading past the true length yields a spurious zero byte
        assert decode_raster(raster, 6) == chunk + b"\x00"

    def test_trailing_zero_bytes_preserved(self):
        chunk = b"data\x00\x00\x00"
        assert decode_raster(encode_chunk(chunk), len(chunk)) == chunk

    def test_threshold_tolerates_near_values(self):
        raster = encode_chunk(b"Z").astype(np.int16)
        noisy = np.where(raster > 0, raster - 20, raster + 20).astype(np.uint8)

        assert decode_raster(noisy, 1) == b"Z"

    def test_too_few_cells(self):
        raster = encode_chunk(b"AB")
        with pytest.raises(CorruptRasterError):
            decode_raster(raster, 3)

    def test_non_square_raster(self):
        with pytest.raises(CorruptRasterError):
            decode_raster(np.zeros((4, 8), dtype=np.uint8), 1)


class TestRasterFiles:

    def test_png_is_grayscale_one_pixel_per_bit(self, tmp_path):
        codec = BitmapCodec()
        path = codec.write_raster(codec.encode(b"AB"), tmp_path / "ab.png")

        with Image.open(path) as img:
            assert img.mode == 'L'
            assert img.size == (4, 4)
            pixels = list(img.getdata())

        assert pixels == [0, 255, 0, 0, 0, 0, 0, 255, 0, 255, 0, 0, 0, 0, 255, 0]

    def test_write_read_decode(self, tmp_path):
        codec = BitmapCodec()
        chunk = bytes(range(200))
        path = codec.write_raster(codec.encode(chunk), tmp_path / "c.png")

        assert codec.decode(codec.read_raster(path), len(chunk)) == chunk

    def test_unreadable_raster(self, tmp_path):
        bogus = tmp_path / "bogus.png"
        bogus.write_bytes(b"not an image")

        with pytest.raises(CorruptRasterError):
            BitmapCodec().read_raster(bogus)
