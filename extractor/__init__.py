"""
Repo Video - Extractor Module

Decodes one-frame video units back into the archive stream and
reconstructs the original file tree.
"""

from .chunk_decoder import ChunkDecoder, DecodeState, DecodeResult, discover_units
from .deserializer import parse_stream, resolve_record_path, write_records, deserialize_stream

__all__ = [
    'ChunkDecoder',
    'DecodeState',
    'DecodeResult',
    'discover_units',
    'parse_stream',
    'resolve_record_path',
    'write_records',
    'deserialize_stream',
]
