"""
Repo Video - Chunk Encoder

Drives each chunk through raster encoding, container wrapping and cleanup.

Per chunk: ENCODED -> WRAPPED -> VERIFIED -> CLEANED_UP. The temporary
raster is released on every exit path. The first failure aborts the run;
container units already produced for earlier chunks stay on disk and no
manifest is written.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared import (
    ArchiveConfig, DEFAULT_CONFIG, ArchiveError, EncodeVerificationError,
    BitmapCodec, ContainerAdapter, create_adapter,
    ChunkEntry, Manifest, compute_crc32, compute_stream_hash,
    ScratchDir, verify_file, UNIT_PREFIX, MANIFEST_NAME
)
from .chunker import chunk_stream
from .serializer import serialize_tree

logger = logging.getLogger(__name__)


class ChunkState(Enum):
    """Encode-side state of one chunk."""
    ENCODED = "encoded"         # Raster written to scratch
    WRAPPED = "wrapped"         # Container unit produced
    VERIFIED = "verified"       # Container unit confirmed on disk
    CLEANED_UP = "cleaned_up"   # Scratch raster removed


@dataclass
class EncodeResult:
    """Outcome of an encode run."""
    output_dir: Path
    chunk_count: int
    stream_length: int
    unit_paths: List[Path] = field(default_factory=list)
    manifest_path: Optional[Path] = None
    encode_time: float = 0.0

    @property
    def nothing_to_encode(self) -> bool:
        return self.chunk_count == 0

    @property
    def message(self) -> str:
        if self.nothing_to_encode:
            return "Nothing to encode"
        return f"Encoded {self.stream_length} bytes into {self.chunk_count} chunks"


class ChunkEncoder:
    """
    Encodes an archive stream into one container unit per chunk.

    Output layout: output_dir/chunk_<i>.<ext> for i = 0..N-1, plus
    output_dir/manifest.json written after every chunk succeeded.
    """

    def __init__(
        self,
        config: ArchiveConfig = DEFAULT_CONFIG,
        adapter: Optional[ContainerAdapter] = None,
        codec: Optional[BitmapCodec] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
        on_state: Optional[Callable[[int, ChunkState], None]] = None
    ):
        """
        Initialize encoder.

        Args:
            config: Chunk size, container profile, timeout and worker count
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

    def encode_tree(
        self,
        source_dir: Union[str, Path],
        output_dir: Union[str, Path]
    ) -> EncodeResult:
        """Serialize a directory tree and encode it."""
        return self.encode_stream(serialize_tree(source_dir), output_dir)

    def encode_stream(self, stream: bytes, output_dir: Union[str, Path]) -> EncodeResult:
        """
        Encode stream into container units under output_dir.

        An empty stream produces zero chunks and an empty manifest; this is
        reported through EncodeResult.nothing_to_encode, not raised.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        # A manifest left by an earlier run must not vouch for this one
        stale_manifest = output_dir / MANIFEST_NAME
        if stale_manifest.exists():
            logger.info("Removing previous manifest %s", stale_manifest)
            stale_manifest.unlink()

        start_time = time.time()
        chunks = chunk_stream(stream, self.config.chunk_size)

        if not chunks:
            logger.info("Nothing to encode")
            entries: List[ChunkEntry] = []
        else:
            logger.info(
                "Encoding %d bytes as %d chunks of up to %d bytes",
                len(stream), len(chunks), self.config.chunk_size
            )
            with ScratchDir(prefix='repovid_encode_') as scratch:
                if self.config.workers > 1 and len(chunks) > 1:
                    entries = self._encode_parallel(chunks, output_dir, scratch)
                else:
                    entries = self._encode_sequential(chunks, output_dir, scratch)

        manifest = Manifest(
            chunk_size=self.config.chunk_size,
            stream_length=len(stream),
            stream_sha256=compute_stream_hash(stream),
            codec=self.config.profile.name,
            extension=self.adapter.extension,
            chunks=entries
        )
        manifest_path = manifest.save(output_dir)

        result = EncodeResult(
            output_dir=output_dir,
            chunk_count=len(entries),
            stream_length=len(stream),
            unit_paths=[output_dir / e.filename for e in entries],
            manifest_path=manifest_path,
            encode_time=time.time() - start_time
        )
        logger.info("%s in %.2fs", result.message, result.encode_time)
        return result

    def _encode_sequential(
        self,
        chunks: List[bytes],
        output_dir: Path,
        scratch: ScratchDir
    ) -> List[ChunkEntry]:
        entries = []
        for index, chunk in enumerate(chunks):
            entries.append(self.encode_chunk(index, chunk, output_dir, scratch))
            self._report_progress(len(entries), len(chunks))
        return entries

    def _encode_parallel(
        self,
        chunks: List[bytes],
        output_dir: Path,
        scratch: ScratchDir
    ) -> List[ChunkEntry]:
        entries: Dict[int, ChunkEntry] = {}

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = {
                executor.submit(self.encode_chunk, index, chunk, output_dir, scratch): index
                for index, chunk in enumerate(chunks)
            }
            try:
                for future in as_completed(futures):
                    entry = future.result()
                    entries[entry.index] = entry
                    self._report_progress(len(entries), len(chunks))
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

        return [entries[i] for i in range(len(chunks))]

    def encode_chunk(
        self,
        index: int,
        chunk: bytes,
        output_dir: Path,
        scratch: ScratchDir
    ) -> ChunkEntry:
        """Run one chunk through the encode state machine."""
        unit_path = output_dir / f"{UNIT_PREFIX}{index}.{self.adapter.extension}"
        stage = 'encode'

        try:
            with scratch.raster(index) as raster_path:
                raster = self.codec.encode(chunk)
                self.codec.write_raster(raster, raster_path)

                if not verify_file(raster_path):
                    raise EncodeVerificationError(
                        f"Failed to create image file: {raster_path}"
                    )
                self._set_state(index, ChunkState.ENCODED)

                stage = 'wrap'
                self.adapter.wrap(raster_path, unit_path)
                self._set_state(index, ChunkState.WRAPPED)

                stage = 'verify'
                if not verify_file(unit_path):
                    raise EncodeVerificationError(
                        f"Container unit missing or empty: {unit_path}"
                    )
                self._set_state(index, ChunkState.VERIFIED)

            self._set_state(index, ChunkState.CLEANED_UP)
        except ArchiveError as e:
            if e.chunk_index is None:
                e.chunk_index = index
                e.stage = stage
            logger.error("Encode failed: %s", e)
            raise

        return ChunkEntry(
            index=index,
            filename=unit_path.name,
            side=raster.shape[0],
            byte_length=len(chunk),
            crc32=compute_crc32(chunk)
        )

    def _set_state(self, index: int, state: ChunkState):
        logger.debug("Chunk %d: %s", index, state.value)
        if self.on_state:
            self.on_state(index, state)

    def _report_progress(self, done: int, total: int):
        if self.on_progress:
            self.on_progress(done, total)
