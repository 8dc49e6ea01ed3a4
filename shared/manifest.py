"""
Repo Video - Archive Manifest

Sidecar metadata written next to the container units.

Pairs each raster with its side and true byte length, records the chunk
count, and carries integrity data for the reassembled stream.
"""

import hashlib
import json
import os
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from .constants import MANIFEST_FORMAT, MANIFEST_VERSION, MANIFEST_NAME
from .errors import DecodeVerificationError


def compute_crc32(data: bytes) -> int:
    return zlib.crc32(data) & 0xFFFFFFFF


def compute_stream_hash(data: bytes) -> str:
    """SHA-256 hex digest of the full archive stream."""
    return hashlib.sha256(data).hexdigest()


@dataclass
class ChunkEntry:
    """Per-chunk sidecar: raster side, true byte length, CRC-32."""
    index: int
    filename: str
    side: int
    byte_length: int
    crc32: int

    def to_dict(self) -> dict:
        return {
            'index': self.index,
            'filename': self.filename,
            'side': self.side,
            'byte_length': self.byte_length,
            'crc32': self.crc32,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ChunkEntry':
        return cls(
            index=int(data['index']),
            filename=str(data['filename']),
            side=int(data['side']),
            byte_length=int(data['byte_length']),
            crc32=int(data['crc32']),
        )


@dataclass
class Manifest:
    """
    Archive manifest.

    Format (JSON):
      {format, version, chunk_size, chunk_count, stream_length,
       stream_sha256, container: {codec, extension}, chunks: [...]}
    """
    chunk_size: int
    stream_length: int
    stream_sha256: str
    codec: str
    extension: str
    chunks: List[ChunkEntry] = field(default_factory=list)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    def entry(self, index: int) -> ChunkEntry:
        return self.chunks[index]

    def to_dict(self) -> dict:
        return {
            'format': MANIFEST_FORMAT,
            'version': MANIFEST_VERSION,
            'chunk_size': self.chunk_size,
            'chunk_count': self.chunk_count,
            'stream_length': self.stream_length,
            'stream_sha256': self.stream_sha256,
            'container': {
                'codec': self.codec,
                'extension': self.extension,
            },
            'chunks': [c.to_dict() for c in self.chunks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Manifest':
        if data.get('format') != MANIFEST_FORMAT:
            raise DecodeVerificationError(f"Not a {MANIFEST_FORMAT} manifest")
        if data.get('version') != MANIFEST_VERSION:
            raise DecodeVerificationError(
                f"Unsupported manifest version: {data.get('version')}"
            )

        try:
            chunks = [ChunkEntry.from_dict(c) for c in data['chunks']]
            manifest = cls(
                chunk_size=int(data['chunk_size']),
                stream_length=int(data['stream_length']),
                stream_sha256=str(data['stream_sha256']),
                codec=str(data['container']['codec']),
                extension=str(data['container']['extension']),
                chunks=chunks,
            )
            declared_count = int(data['chunk_count'])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeVerificationError(f"Malformed manifest: {e}") from e

        if declared_count != manifest.chunk_count:
            raise DecodeVerificationError(
                f"Manifest declares {declared_count} chunks but lists {manifest.chunk_count}"
            )
        for position, entry in enumerate(chunks):
            if entry.index != position:
                raise DecodeVerificationError(
                    f"Manifest entry {position} has index {entry.index}"
                )

        return manifest

    def save(self, directory: Union[str, Path]) -> Path:
        """Write manifest atomically into directory."""
        path = Path(directory) / MANIFEST_NAME
        temp_path = path.with_name(path.name + '.tmp')

        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)

        os.replace(temp_path, path)
        return path

    @classmethod
    def load(cls, directory: Union[str, Path]) -> 'Manifest':
        path = Path(directory) / MANIFEST_NAME
        if not path.is_file():
            raise DecodeVerificationError(f"Manifest not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise DecodeVerificationError(f"Unreadable manifest {path}: {e}") from e

        if not isinstance(data, dict):
            raise DecodeVerificationError(f"Malformed manifest: {path}")
        return cls.from_dict(data)
