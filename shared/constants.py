"""
Repo Video - Shared Constants

Defines archive format constants, container profiles, and configuration defaults.
"""

from dataclasses import dataclass, field
from typing import Tuple

from .errors import InvalidInputError

# =============================================================================
# Chunking
# =============================================================================

DEFAULT_CHUNK_SIZE = 1024  # bytes per chunk

# =============================================================================
# Record Delimiter
# =============================================================================

# Each record is introduced by: \n=== <escaped path> ===\n
DELIMITER_PREFIX = b'\n=== '
DELIMITER_SUFFIX = b' ==='

# =============================================================================
# Raster Pixel Format
# =============================================================================

PIXEL_WHITE = 255  # bit 1
PIXEL_BLACK = 0    # bit 0
PIXEL_THRESHOLD = 128

RASTER_EXTENSION = 'png'

# =============================================================================
# Container Units
# =============================================================================

UNIT_PREFIX = 'chunk_'
MANIFEST_NAME = 'manifest.json'

DEFAULT_TRANSCODE_TIMEOUT = 60.0  # seconds per ffmpeg call


@dataclass(frozen=True)
class ContainerProfile:
    """Lossless ffmpeg preset for packing one raster into a one-frame clip."""
    name: str
    codec: str
    extension: str
    pix_fmt: str
    extra_args: Tuple[str, ...] = ()


PROFILE_FFV1 = ContainerProfile("ffv1", "ffv1", "mkv", "gray")
PROFILE_PNG = ContainerProfile("png", "png", "mkv", "gray")
PROFILE_X264RGB = ContainerProfile(
    "libx264rgb", "libx264rgb", "mkv", "rgb24",
    ('-preset', 'ultrafast', '-qp', '0')  # -qp 0 = lossless
)

DEFAULT_PROFILE = PROFILE_FFV1

# Only codecs that reproduce every pixel exactly are accepted
LOSSLESS_PROFILES = {
    p.name: p for p in (PROFILE_FFV1, PROFILE_PNG, PROFILE_X264RGB)
}


def get_profile(name: str) -> ContainerProfile:
    """Look up a lossless container profile by codec name."""
    try:
        return LOSSLESS_PROFILES[name]
    except KeyError:
        raise InvalidInputError(
            f"Codec '{name}' is not a lossless profile. "
            f"Choose one of: {', '.join(sorted(LOSSLESS_PROFILES))}"
        ) from None


# =============================================================================
# Run Configuration
# =============================================================================

@dataclass(frozen=True)
class ArchiveConfig:
    """Settings shared by the encode and decode sides."""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    profile: ContainerProfile = field(default=DEFAULT_PROFILE)
    transcode_timeout: float = DEFAULT_TRANSCODE_TIMEOUT
    workers: int = 1
    ffmpeg_path: str = 'ffmpeg'

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise InvalidInputError(f"Chunk size must be positive, got {self.chunk_size}")
        if self.profile.name not in LOSSLESS_PROFILES:
            raise InvalidInputError(f"Container profile '{self.profile.name}' is not lossless")
        if self.transcode_timeout <= 0:
            raise InvalidInputError(
                f"Transcode timeout must be positive, got {self.transcode_timeout}"
            )
        if self.workers < 1:
            raise InvalidInputError(f"Workers must be at least 1, got {self.workers}")


DEFAULT_CONFIG = ArchiveConfig()

# =============================================================================
# Manifest Format
# =============================================================================

MANIFEST_FORMAT = 'repo-video'
MANIFEST_VERSION = 1
