"""
Repo Video - Bitmap Codec

1-bit pixel encoding of archive chunks.

Each byte of a chunk expands to 8 bits, most-significant bit first. The bits
fill a square grid of side ceil(sqrt(bit_count)) in row-major order:
bit 1 -> white (255), bit 0 -> black (0). Cells past the last bit are
zero-filled (black), so decoding needs the true byte length to drop them.
"""

import math
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from .constants import PIXEL_WHITE, PIXEL_BLACK, PIXEL_THRESHOLD
from .errors import EmptyInputError, CorruptRasterError, EncodeVerificationError


def bytes_to_bit_string(data: bytes) -> str:
    """Expand bytes to a '0'/'1' string, 8 characters per byte, MSB first."""
    return ''.join(format(b, '08b') for b in data)


def bit_string_to_bytes(bits: str) -> bytes:
    """Regroup a '0'/'1' string into bytes, 8 characters per byte."""
    if len(bits) % 8:
        raise ValueError(f"Bit string length {len(bits)} is not a multiple of 8")
    return bytes(int(bits[i:i + 8], 2) for i in range(0, len(bits), 8))


def raster_side(byte_length: int) -> int:
    """Side of the square raster holding byte_length bytes."""
    bit_count = byte_length * 8
    if bit_count == 0:
        return 0
    # Integer ceil(sqrt(n)), exact for any size
    return math.isqrt(bit_count - 1) + 1


def encode_chunk(chunk: bytes) -> np.ndarray:
    """
    Encode a chunk as a square monochrome raster.

    Returns:
        numpy array (side, side) uint8 with 0/255 values
    """
    if len(chunk) == 0:
        raise EmptyInputError("Binary data length is zero")

    bits = np.unpackbits(np.frombuffer(chunk, dtype=np.uint8))
    side = raster_side(len(chunk))

    cells = np.full(side * side, PIXEL_BLACK, dtype=np.uint8)
    cells[:len(bits)] = bits * PIXEL_WHITE
    return cells.reshape(side, side)


def decode_raster(raster: np.ndarray, true_byte_length: int) -> bytes:
    """
    Decode a raster back to the chunk it encodes.

    Args:
        raster: (side, side) grayscale image
        true_byte_length: Length of the original chunk in bytes

    Returns:
        Exactly true_byte_length bytes
    """
    if raster.ndim != 2 or raster.shape[0] != raster.shape[1]:
        raise CorruptRasterError(f"Raster is not a square grayscale grid: {raster.shape}")

    bit_count = true_byte_length * 8
    cells = raster.ravel()
    if cells.size < bit_count:
        raise CorruptRasterError(
            f"Raster has {cells.size} cells, need {bit_count} bits"
        )

    bits = (cells[:bit_count] >= PIXEL_THRESHOLD).astype(np.uint8)
    return np.packbits(bits).tobytes()


class BitmapCodec:
    """
    Converts chunks to rasters and back, and moves rasters through PNG files.

    Raster files are 8-bit grayscale PNG, written and read with OpenCV.
    """

    def encode(self, chunk: bytes) -> np.ndarray:
        return encode_chunk(chunk)

    def decode(self, raster: np.ndarray, true_byte_length: int) -> bytes:
        return decode_raster(raster, true_byte_length)

    def write_raster(self, raster: np.ndarray, path: Union[str, Path]) -> Path:
        """Write raster as a grayscale PNG."""
        path = Path(path)
        if not cv2.imwrite(str(path), raster):
            raise EncodeVerificationError(f"Failed to write raster image: {path}")
        return path

    def read_raster(self, path: Union[str, Path]) -> np.ndarray:
        """Read a raster image as a 2D grayscale array."""
        path = Path(path)
        raster = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if raster is None:
            raise CorruptRasterError(f"Failed to read raster image: {path}")
        return raster
