"""
Repo Video - Record Format

A record is one file of the archived tree. On the wire each record is

    \\n=== <escaped path> ===\\n<escaped content>

Escaping replaces backslash, double quote, CR and LF with two-byte escape
sequences, so escaped content never holds a raw LF and the delimiter can
only occur at a record boundary.
"""

import re
from dataclasses import dataclass
from typing import Iterator

from .constants import DELIMITER_PREFIX, DELIMITER_SUFFIX
from .errors import DecodeVerificationError

_ESCAPES = {
    b'\\': b'\\\\',
    b'"': b'\\"',
    b'\r': b'\\r',
    b'\n': b'\\n',
}

_UNESCAPES = {
    b'\\': b'\\',
    b'"': b'"',
    b'r': b'\r',
    b'n': b'\n',
}

_ESCAPE_RE = re.compile(rb'[\\"\r\n]')
_UNESCAPE_RE = re.compile(rb'\\(.?)', re.DOTALL)

PATH_ENCODING = 'utf-8'


@dataclass
class Record:
    """One file: path relative to the archived root and raw content."""
    path: str
    content: bytes


def escape_bytes(data: bytes) -> bytes:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group()], data)


def unescape_bytes(data: bytes) -> bytes:
    """Exact inverse of escape_bytes."""
    def replace(match):
        try:
            return _UNESCAPES[match.group(1)]
        except KeyError:
            raise DecodeVerificationError(
                f"Invalid escape sequence {match.group()!r}"
            ) from None

    return _UNESCAPE_RE.sub(replace, data)


def encode_path(path: str) -> bytes:
    return path.encode(PATH_ENCODING, 'surrogateescape')


def decode_path(data: bytes) -> str:
    return data.decode(PATH_ENCODING, 'surrogateescape')


def pack_record(record: Record) -> bytes:
    """Delimiter line followed by escaped content."""
    return (
        DELIMITER_PREFIX
        + escape_bytes(encode_path(record.path))
        + DELIMITER_SUFFIX + b'\n'
        + escape_bytes(record.content)
    )


def iter_records(stream: bytes) -> Iterator[Record]:
    """
    Scan an archive stream record by record.

    The header line ends at the first LF after the delimiter prefix. The
    content runs up to the next delimiter prefix found after that LF, so
    content that itself starts with '=== ' is not mistaken for a boundary.
    """
    if not stream:
        return
    if not stream.startswith(DELIMITER_PREFIX):
        raise DecodeVerificationError("Archive stream does not start with a record delimiter")

    pos = 0
    while pos < len(stream):
        header_start = pos + len(DELIMITER_PREFIX)
        header_end = stream.find(b'\n', header_start)
        if header_end < 0:
            raise DecodeVerificationError(
                f"Unterminated record delimiter at offset {pos}"
            )

        header = stream[header_start:header_end]
        if not header.endswith(DELIMITER_SUFFIX):
            raise DecodeVerificationError(
                f"Malformed record delimiter at offset {pos}: {header[:80]!r}"
            )

        next_pos = stream.find(DELIMITER_PREFIX, header_end + 1)
        if next_pos < 0:
            next_pos = len(stream)

        path_bytes = unescape_bytes(header[:-len(DELIMITER_SUFFIX)])
        yield Record(
            path=decode_path(path_bytes),
            content=unescape_bytes(stream[header_end + 1:next_pos])
        )
        pos = next_pos
