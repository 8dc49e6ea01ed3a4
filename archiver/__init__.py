"""
Repo Video - Archiver Module

Serializes a directory tree, chunks it, and encodes each chunk as a
one-frame video unit.
"""

from .serializer import walk_records, serialize_records, serialize_tree
from .chunker import iter_chunks, chunk_stream, count_chunks
from .chunk_encoder import ChunkEncoder, ChunkState, EncodeResult

__all__ = [
    'walk_records',
    'serialize_records',
    'serialize_tree',
    'iter_chunks',
    'chunk_stream',
    'count_chunks',
    'ChunkEncoder',
    'ChunkState',
    'EncodeResult',
]
