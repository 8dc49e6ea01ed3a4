"""
Repo Video - Error Taxonomy

Every stage fails fast and aborts the run. Errors raised while a chunk is
in flight carry the chunk index and the stage that failed.
"""

from typing import Optional


class ArchiveError(Exception):
    """Base class for all archive codec errors."""

    def __init__(
        self,
        message: str,
        chunk_index: Optional[int] = None,
        stage: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.chunk_index = chunk_index
        self.stage = stage

    def __str__(self) -> str:
        if self.chunk_index is None:
            return self.message
        if self.stage:
            return f"chunk {self.chunk_index} ({self.stage}): {self.message}"
        return f"chunk {self.chunk_index}: {self.message}"


class InvalidInputError(ArchiveError, ValueError):
    """Bad configuration or argument, e.g. a zero chunk size."""


class EmptyInputError(ArchiveError):
    """Nothing to encode."""


class EncodeVerificationError(ArchiveError):
    """An intermediate artifact is missing or empty on the encode side."""


class DecodeVerificationError(ArchiveError):
    """An intermediate artifact or the reassembled stream failed verification."""


class CorruptRasterError(DecodeVerificationError):
    """A raster holds fewer usable bits than its recorded length requires."""


class ChunkMissingError(ArchiveError):
    """An expected chunk index is absent during reassembly."""


class TranscodeFailure(ArchiveError):
    """The external transcoder reported an error."""


class TranscodeTimeoutError(TranscodeFailure):
    """The external transcoder did not finish in time."""
