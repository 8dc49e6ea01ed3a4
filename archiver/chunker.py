"""
Repo Video - Stream Chunker

Splits an archive stream into fixed-size chunks.
"""

from pathlib import Path
from typing import Iterator, List

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared import InvalidInputError


def _check_size(size: int):
    if size <= 0:
        raise InvalidInputError(f"Chunk size must be positive, got {size}")


def iter_chunks(stream: bytes, size: int) -> Iterator[bytes]:
    """
    Yield consecutive slices of exactly size bytes; the last holds the remainder.

    An empty stream yields nothing.
    """
    _check_size(size)
    for offset in range(0, len(stream), size):
        yield stream[offset:offset + size]


def chunk_stream(stream: bytes, size: int) -> List[bytes]:
    """Split stream into an ordered list of chunks."""
    return list(iter_chunks(stream, size))


def count_chunks(length: int, size: int) -> int:
    """Number of chunks a stream of length bytes splits into."""
    _check_size(size)
    return (length + size - 1) // size
