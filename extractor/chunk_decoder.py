"""
Repo Video - Chunk Decoder

Reassembles an archive stream from a directory of container units.

Units are discovered by directory listing and keyed by the index parsed
from their filename, never by listing order. The manifest supplies the
chunk count and, per chunk, the raster side and true byte length needed
to drop zero-fill padding.

Per chunk: UNWRAPPED -> DECODED -> APPENDED -> CLEANED_UP. Any missing
index, unreadable raster or checksum mismatch aborts the run.
"""

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared import (
    ArchiveConfig, DEFAULT_CONFIG, ArchiveError, UNIT_PREFIX,
    DecodeVerificationError, CorruptRasterError, ChunkMissingError,
    BitmapCodec, ContainerAdapter, create_adapter,
    ChunkEntry, Manifest, compute_crc32, compute_stream_hash,
    ScratchDir, verify_file
)
from .deserializer import deserialize_stream

logger = logging.getLogger(__name__)

UNIT_PATTERN = re.compile(rf'^{UNIT_PREFIX}(\d+)\.(\w+)$')


class DecodeState(Enum):
    """Decode-side state of one chunk."""
    UNWRAPPED = "unwrapped"     # Raster extracted to scratch
    DECODED = "decoded"         # Bits read and verified
    APPENDED = "appended"       # Bytes stored at their index
    CLEANED_UP = "cleaned_up"   # Scratch raster removed


@dataclass
class DecodeResult:
    """Outcome of a decode run."""
    unit_dir: Path
    chunk_count: int
    stream: bytes
    decode_time: float = 0.0
    written_paths: List[Path] = field(default_factory=list)

    @property
    def stream_length(self) -> int:
        return len(self.stream)


def discover_units(unit_dir: Union[str, Path], extension: str) -> Dict[int, Path]:
    """
    Find container units in unit_dir.

    Returns:
        {chunk_index: path}, keyed by the index in the filename
    """
    unit_dir = Path(unit_dir)
    if not unit_dir.is_dir():
        raise ChunkMissingError(f"Unit directory not found: {unit_dir}")

    units: Dict[int, Path] = {}
    for entry in unit_dir.iterdir():
        match = UNIT_PATTERN.match(entry.name)
        if not match or match.group(2) != extension or not entry.is_file():
            continue

        index = int(match.group(1))
        if index in units:
            raise DecodeVerificationError(
                f"Two units claim index {index}: {units[index].name}, {entry.name}"
            )
        units[index] = entry

    return units


class ChunkDecoder:
    """
    Decodes container units back into the archive stream and file tree.
    """

    def __init__(
        self,
        config: ArchiveConfig = DEFAULT_CONFIG,
        adapter: Optional[ContainerAdapter] = None,
        codec: Optional[BitmapCodec] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
        on_state: Optional[Callable[[int, DecodeState], None]] = None
    ):
        """
        Initialize decoder.

        Args:
            config: Container profile, timeout and worker count
            adapter: Container adapter (defaults to ffmpeg per config)
            codec: Bitmap codec
            on_progress: Callback (chunks_done, total_chunks)
            on_state: Callback (chunk_index, state) on each transition
        """
        self.config = config
        self.adapter = adapter if adapter is not None else create_adapter(config)
        self.codec = codec or BitmapCodec()
        self.on_progress = on_progress
        self.on_state = on_state

    def decode_tree(
        self,
        unit_dir: Union[str, Path],
        dest_dir: Union[str, Path]
    ) -> DecodeResult:
        """Decode all units and write the reconstructed tree to dest_dir."""
        result = self.decode_stream(unit_dir)
        result.written_paths = deserialize_stream(result.stream, dest_dir)
        return result

    def decode_stream(self, unit_dir: Union[str, Path]) -> DecodeResult:
        """Decode all units in unit_dir into the original archive stream."""
        unit_dir = Path(unit_dir)
        start_time = time.time()

        manifest = Manifest.load(unit_dir)
        if manifest.codec != self.config.profile.name:
            # Unwrap does not depend on the codec
            logger.warning(
                "Archive was encoded with %s, decoding with %s settings",
                manifest.codec, self.config.profile.name
            )
        units = self.locate_units(unit_dir, manifest)
        total = manifest.chunk_count

        parts: Dict[int, bytes] = {}
        if total:
            logger.info("Decoding %d chunks from %s", total, unit_dir)
            with ScratchDir(prefix='repovid_decode_') as scratch:
                if self.config.workers > 1 and total > 1:
                    self._decode_parallel(manifest, units, scratch, parts)
                else:
                    for index in range(total):
                        self.decode_chunk(manifest.entry(index), units[index], scratch, parts)
                        self._report_progress(len(parts), total)

        stream = b''.join(parts[i] for i in range(total))
        self._verify_stream(stream, manifest)

        result = DecodeResult(
            unit_dir=unit_dir,
            chunk_count=total,
            stream=stream,
            decode_time=time.time() - start_time
        )
        logger.info(
            "Decoded %d bytes from %d chunks in %.2fs",
            len(stream), total, result.decode_time
        )
        return result

    def locate_units(self, unit_dir: Path, manifest: Manifest) -> Dict[int, Path]:
        """Discover units and require exactly indices 0..N-1."""
        units = discover_units(unit_dir, manifest.extension)

        missing = [i for i in range(manifest.chunk_count) if i not in units]
        if missing:
            raise ChunkMissingError(
                f"Missing {len(missing)} of {manifest.chunk_count} units "
                f"(first: {missing[:10]})",
                chunk_index=missing[0],
                stage='discover'
            )

        extra = sorted(i for i in units if i >= manifest.chunk_count)
        if extra:
            logger.warning("Ignoring %d units past the manifest count: %s", len(extra), extra[:10])

        return units

    def _decode_parallel(
        self,
        manifest: Manifest,
        units: Dict[int, Path],
        scratch: ScratchDir,
        parts: Dict[int, bytes]
    ):
        total = manifest.chunk_count

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = [
                executor.submit(self.decode_chunk, manifest.entry(i), units[i], scratch, parts)
                for i in range(total)
            ]
            try:
                for done, future in enumerate(as_completed(futures), start=1):
                    future.result()
                    self._report_progress(done, total)
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    def decode_chunk(
        self,
        entry: ChunkEntry,
        unit_path: Path,
        scratch: ScratchDir,
        parts: Dict[int, bytes]
    ) -> bytes:
        """Run one unit through the decode state machine, storing parts[index]."""
        index = entry.index
        stage = 'unwrap'

        try:
            if not unit_path.is_file():
                raise ChunkMissingError(f"Container unit vanished: {unit_path}")

            with scratch.raster(index) as raster_path:
                self.adapter.unwrap(unit_path, raster_path)
                if not verify_file(raster_path):
                    raise DecodeVerificationError(
                        f"Failed to extract raster from {unit_path.name}"
                    )
                self._set_state(index, DecodeState.UNWRAPPED)

                stage = 'decode'
                raster = self.codec.read_raster(raster_path)
                if raster.shape != (entry.side, entry.side):
                    raise CorruptRasterError(
                        f"Raster is {raster.shape[1]}x{raster.shape[0]}, "
                        f"expected {entry.side}x{entry.side}"
                    )

                data = self.codec.decode(raster, entry.byte_length)
                if compute_crc32(data) != entry.crc32:
                    raise DecodeVerificationError("CRC-32 mismatch")
                self._set_state(index, DecodeState.DECODED)

                stage = 'append'
                parts[index] = data
                self._set_state(index, DecodeState.APPENDED)

            self._set_state(index, DecodeState.CLEANED_UP)
        except ArchiveError as e:
            if e.chunk_index is None:
                e.chunk_index = index
                e.stage = stage
            logger.error("Decode failed: %s", e)
            raise

        return data

    def _verify_stream(self, stream: bytes, manifest: Manifest):
        if len(stream) != manifest.stream_length:
            raise DecodeVerificationError(
                f"Reassembled {len(stream)} bytes, manifest records {manifest.stream_length}"
            )
        if compute_stream_hash(stream) != manifest.stream_sha256:
            raise DecodeVerificationError("Reassembled stream SHA-256 mismatch")

    def _set_state(self, index: int, state: DecodeState):
        logger.debug("Chunk %d: %s", index, state.value)
        if self.on_state:
            self.on_state(index, state)

    def _report_progress(self, done: int, total: int):
        if self.on_progress:
            self.on_progress(done, total)
