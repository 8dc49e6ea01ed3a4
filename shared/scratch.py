"""
Repo Video - Scratch Files

Temporary raster files are scoped resources: each is deleted on every exit
path of the block that created it, whether the step succeeded or not.
"""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from .constants import UNIT_PREFIX, RASTER_EXTENSION

logger = logging.getLogger(__name__)


@contextmanager
def temporary_raster(path: Union[str, Path]) -> Iterator[Path]:
    """Yield path and delete whatever file sits there when the block exits."""
    path = Path(path)
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove temporary raster %s: %s", path, e)


class ScratchDir:
    """
    Private temporary directory for one encode or decode run.

    Raster filenames are keyed by chunk index, so chunks processed
    concurrently never share a file.
    """

    def __init__(self, prefix: str = 'repovid_', parent: Optional[Union[str, Path]] = None):
        self.prefix = prefix
        self.parent = parent
        self.path: Optional[Path] = None

    def __enter__(self) -> 'ScratchDir':
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.parent))
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False

    def raster_path(self, index: int) -> Path:
        if self.path is None:
            raise RuntimeError("Scratch directory not opened")
        return self.path / f"{UNIT_PREFIX}{index}.{RASTER_EXTENSION}"

    def raster(self, index: int):
        """Scoped temporary raster for chunk index."""
        return temporary_raster(self.raster_path(index))

    def cleanup(self):
        if self.path is not None and self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
        self.path = None


def verify_file(path: Union[str, Path]) -> bool:
    """Check that path is an existing, non-empty regular file."""
    path = Path(path)
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError as e:
        logger.debug("Error verifying file %s: %s", path, e)
        return False
