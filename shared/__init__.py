"""
Repo Video - Shared Module

Common code used by both the archiver and the extractor.
"""

from .errors import (
    ArchiveError, InvalidInputError, EmptyInputError,
    EncodeVerificationError, DecodeVerificationError, CorruptRasterError,
    ChunkMissingError, TranscodeFailure, TranscodeTimeoutError
)

from .constants import (
    DEFAULT_CHUNK_SIZE, DELIMITER_PREFIX, DELIMITER_SUFFIX,
    PIXEL_WHITE, PIXEL_BLACK, PIXEL_THRESHOLD, RASTER_EXTENSION,
    UNIT_PREFIX, MANIFEST_NAME, DEFAULT_TRANSCODE_TIMEOUT,
    ContainerProfile, PROFILE_FFV1, PROFILE_PNG, PROFILE_X264RGB,
    DEFAULT_PROFILE, LOSSLESS_PROFILES, get_profile,
    ArchiveConfig, DEFAULT_CONFIG
)

from .records import (
    Record, escape_bytes, unescape_bytes, pack_record, iter_records
)

from .bitmap import (
    BitmapCodec, bytes_to_bit_string, bit_string_to_bytes,
    raster_side, encode_chunk, decode_raster
)

from .manifest import (
    ChunkEntry, Manifest, compute_crc32, compute_stream_hash
)

from .container import (
    ContainerAdapter, FFmpegContainerAdapter,
    check_ffmpeg_available, create_adapter, get_container_info
)

from .scratch import ScratchDir, temporary_raster, verify_file

__all__ = [
    # Errors
    'ArchiveError', 'InvalidInputError', 'EmptyInputError',
    'EncodeVerificationError', 'DecodeVerificationError', 'CorruptRasterError',
    'ChunkMissingError', 'TranscodeFailure', 'TranscodeTimeoutError',
    # Constants
    'DEFAULT_CHUNK_SIZE', 'DELIMITER_PREFIX', 'DELIMITER_SUFFIX',
    'PIXEL_WHITE', 'PIXEL_BLACK', 'PIXEL_THRESHOLD', 'RASTER_EXTENSION',
    'UNIT_PREFIX', 'MANIFEST_NAME', 'DEFAULT_TRANSCODE_TIMEOUT',
    'ContainerProfile', 'PROFILE_FFV1', 'PROFILE_PNG', 'PROFILE_X264RGB',
    'DEFAULT_PROFILE', 'LOSSLESS_PROFILES', 'get_profile',
    'ArchiveConfig', 'DEFAULT_CONFIG',
    # Records
    'Record', 'escape_bytes', 'unescape_bytes', 'pack_record', 'iter_records',
    # Bitmap
    'BitmapCodec', 'bytes_to_bit_string', 'bit_string_to_bytes',
    'raster_side', 'encode_chunk', 'decode_raster',
    # Manifest
    'ChunkEntry', 'Manifest', 'compute_crc32', 'compute_stream_hash',
    # Container
    'ContainerAdapter', 'FFmpegContainerAdapter',
    'check_ffmpeg_available', 'create_adapter', 'get_container_info',
    # Scratch files
    'ScratchDir', 'temporary_raster', 'verify_file',
]
