"""
Repo Video - Tree Deserializer

Splits a reassembled archive stream back into records and writes them
as files under a base directory.
"""

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable, List, Union

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared import Record, iter_records, InvalidInputError

logger = logging.getLogger(__name__)


def parse_stream(stream: bytes) -> List[Record]:
    """Split an archive stream into records, unescaping paths and content."""
    return list(iter_records(stream))


def resolve_record_path(base_path: Path, relative: str) -> Path:
    """
    Map a record path onto base_path.

    Absolute paths, drive letters and '..' components are rejected so a
    record can never land outside base_path.
    """
    posix = PurePosixPath(relative)
    windows = PureWindowsPath(relative)

    if not relative or not posix.parts:
        raise InvalidInputError("Record has an empty path")
    if posix.is_absolute() or windows.drive or windows.root:
        raise InvalidInputError(f"Record path is absolute: {relative!r}")
    if '..' in posix.parts or '..' in windows.parts:
        raise InvalidInputError(f"Record path escapes the output directory: {relative!r}")

    return base_path.joinpath(*posix.parts)


def write_records(records: Iterable[Record], base_path: Union[str, Path]) -> List[Path]:
    """
    Materialize records as files under base_path.

    All paths are validated before anything is written. Each file is
    staged under a unique hidden name and renamed into place, so no
    staging file can clobber another record.
    """
    base_path = Path(base_path)
    targets = [(resolve_record_path(base_path, r.path), r) for r in records]

    base_path.mkdir(parents=True, exist_ok=True)
    written = []

    for target, record in targets:
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix='.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(record.content)
            os.replace(temp_name, target)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        written.append(target)

    logger.info("Wrote %d files to %s", len(written), base_path)
    return written


def deserialize_stream(stream: bytes, base_path: Union[str, Path]) -> List[Path]:
    """Reconstruct the archived tree under base_path."""
    return write_records(parse_stream(stream), base_path)
