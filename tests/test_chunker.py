"""
Chunker tests.
"""

import pytest

from archiver import chunk_stream, iter_chunks, count_chunks
from shared import InvalidInputError


def test_shorter_than_one_chunk():
    assert chunk_stream(b"abc", 1024) == [b"abc"]


def test_remainder_goes_to_last_chunk():
    chunks = chunk_stream(b"abcdefghij", 4)
    assert chunks == [b"abcd", b"efgh", b"ij"]


def test_exact_multiple_has_no_empty_chunk():
    stream = bytes(range(64))
    chunks = chunk_stream(stream, 16)

    assert len(chunks) == 4
    assert all(len(c) == 16 for c in chunks)
    assert b"".join(chunks) == stream


def test_empty_stream_gives_no_chunks():
    assert chunk_stream(b"", 1024) == []
    assert count_chunks(0, 1024) == 0


@pytest.mark.parametrize("size", [0, -1])
def test_non_positive_size_rejected(size):
    with pytest.raises(InvalidInputError):
        chunk_stream(b"data", size)


def test_zero_size_rejected_even_for_empty_stream():
    with pytest.raises(InvalidInputError):
        list(iter_chunks(b"", 0))


@pytest.mark.parametrize("length,size,expected", [
    (1, 1024, 1),
    (1024, 1024, 1),
    (1025, 1024, 2),
    (4096, 1024, 4),
])
def test_count_matches_split(length, size, expected):
    assert count_chunks(length, size) == expected
    assert len(chunk_stream(b"x" * length, size)) == expected
