"""
Repo Video - Tree Serializer

Walks a directory tree and flattens it into one archive stream.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Union

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared import Record, pack_record, InvalidInputError

logger = logging.getLogger(__name__)


def walk_records(root: Union[str, Path]) -> Iterator[Record]:
    """
    Yield one Record per file under root.

    Entries are visited in name order so the same tree always yields the
    same stream. Paths are POSIX-style and relative to root.
    """
    root = Path(root)
    if not root.is_dir():
        raise InvalidInputError(f"Not a directory: {root}")

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            file_path = Path(dirpath) / name
            relative = file_path.relative_to(root).as_posix()
            with open(file_path, 'rb') as f:
                content = f.read()
            yield Record(path=relative, content=content)


def serialize_records(records: Iterable[Record]) -> bytes:
    """Concatenate records into an archive stream."""
    return b''.join(pack_record(record) for record in records)


def serialize_tree(root: Union[str, Path]) -> bytes:
    """Read every file under root into a single archive stream."""
    count = 0
    parts = []
    for record in walk_records(root):
        parts.append(pack_record(record))
        count += 1

    stream = b''.join(parts)
    logger.info("Serialized %d files from %s (%d bytes)", count, root, len(stream))
    return stream
