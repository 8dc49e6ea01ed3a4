"""
Repo Video - Container Adapter

Packs a single raster into a one-frame video clip and extracts it back,
using FFmpeg with a lossless codec profile.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from .constants import (
    ContainerProfile, DEFAULT_PROFILE, DEFAULT_TRANSCODE_TIMEOUT,
    LOSSLESS_PROFILES
)
from .errors import InvalidInputError, TranscodeFailure, TranscodeTimeoutError

logger = logging.getLogger(__name__)

# Hide console windows on Windows
_CREATION_FLAGS = 0x08000000 if os.name == 'nt' else 0


class ContainerAdapter:
    """
    Interface for packing one raster into one container unit.

    Implementations must reproduce every pixel exactly on unwrap.
    """

    extension = ''

    def wrap(self, raster_path: Path, unit_path: Path):
        raise NotImplementedError

    def unwrap(self, unit_path: Path, raster_path: Path):
        raise NotImplementedError


class FFmpegContainerAdapter(ContainerAdapter):
    """
    Lossless single-frame container adapter backed by the ffmpeg binary.

    Holds no per-call state, so one instance may serve several chunks
    concurrently.
    """

    def __init__(
        self,
        profile: ContainerProfile = DEFAULT_PROFILE,
        timeout: float = DEFAULT_TRANSCODE_TIMEOUT,
        ffmpeg_path: str = 'ffmpeg'
    ):
        """
        Initialize adapter.

        Args:
            profile: Lossless container profile
            timeout: Seconds to wait for each ffmpeg call
            ffmpeg_path: ffmpeg executable
        """
        if LOSSLESS_PROFILES.get(profile.name) != profile:
            raise InvalidInputError(
                f"Refusing non-lossless container profile: {profile.name}"
            )

        self.profile = profile
        self.timeout = timeout
        self.ffmpeg_path = ffmpeg_path

    @property
    def extension(self) -> str:
        return self.profile.extension

    def wrap_command(self, raster_path: Union[str, Path], unit_path: Union[str, Path]) -> List[str]:
        return [
            self.ffmpeg_path, '-y',
            '-hide_banner', '-loglevel', 'error',
            '-i', str(raster_path),
            '-frames:v', '1',
            '-c:v', self.profile.codec,
            '-pix_fmt', self.profile.pix_fmt,
            *self.profile.extra_args,
            str(unit_path)
        ]

    def unwrap_command(self, unit_path: Union[str, Path], raster_path: Union[str, Path]) -> List[str]:
        return [
            self.ffmpeg_path, '-y',
            '-hide_banner', '-loglevel', 'error',
            '-i', str(unit_path),
            '-frames:v', '1',
            '-pix_fmt', 'gray',
            '-f', 'image2', '-update', '1',
            str(raster_path)
        ]

    def wrap(self, raster_path: Path, unit_path: Path):
        """Pack raster_path into a one-frame clip at unit_path."""
        self._run(self.wrap_command(raster_path, unit_path), f"wrap {raster_path}")

    def unwrap(self, unit_path: Path, raster_path: Path):
        """Extract the single frame of unit_path to raster_path."""
        self._run(self.unwrap_command(unit_path, raster_path), f"unwrap {unit_path}")

    def _run(self, cmd: List[str], action: str):
        logger.debug("Running: %s", ' '.join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
                creationflags=_CREATION_FLAGS
            )
        except subprocess.TimeoutExpired as e:
            raise TranscodeTimeoutError(
                f"FFmpeg timed out after {self.timeout:g}s during {action}"
            ) from e
        except FileNotFoundError as e:
            raise TranscodeFailure(
                f"FFmpeg not found ({self.ffmpeg_path}). Install ffmpeg and add it to PATH"
            ) from e

        if result.returncode != 0:
            stderr = result.stderr.decode(errors='replace').strip()
            raise TranscodeFailure(f"FFmpeg error during {action}: {stderr}")


def check_ffmpeg_available(ffmpeg_path: str = 'ffmpeg') -> bool:
    """Check if FFmpeg is available for encoding."""
    try:
        result = subprocess.run(
            [ffmpeg_path, '-version'],
            capture_output=True,
            creationflags=_CREATION_FLAGS
        )
        return result.returncode == 0
    except FileNotFoundError:
        return False


def create_adapter(config) -> FFmpegContainerAdapter:
    """Build the ffmpeg adapter described by an ArchiveConfig."""
    return FFmpegContainerAdapter(
        profile=config.profile,
        timeout=config.transcode_timeout,
        ffmpeg_path=config.ffmpeg_path
    )


def get_container_info(ffmpeg_path: Optional[str] = None) -> dict:
    """Get information about available container capabilities."""
    available = check_ffmpeg_available(ffmpeg_path or 'ffmpeg')
    return {
        'ffmpeg_available': available,
        'lossless_profiles': sorted(LOSSLESS_PROFILES),
        'default_profile': DEFAULT_PROFILE.name,
    }
