#!/usr/bin/env python3
"""
Repo Video - Command Line Interface

Encodes a directory tree into one-frame video chunks and decodes it back.

Usage:
    python repo_video.py encode ./my_repo ./videos
    python repo_video.py encode ./my_repo ./videos --chunk-size 4096 --codec png
    python repo_video.py decode ./videos ./reconstructed
    python repo_video.py info ./videos
    python repo_video.py check
"""

import argparse
import logging
import sys
from pathlib import Path

from shared import (
    ArchiveConfig, ArchiveError, Manifest,
    DEFAULT_CHUNK_SIZE, DEFAULT_PROFILE, DEFAULT_TRANSCODE_TIMEOUT,
    LOSSLESS_PROFILES, get_profile, get_container_info
)
from archiver import ChunkEncoder
from extractor import ChunkDecoder


def setup_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(asctime)s - %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout
    )


def build_config(args) -> ArchiveConfig:
    return ArchiveConfig(
        chunk_size=args.chunk_size,
        profile=get_profile(args.codec),
        transcode_timeout=args.timeout,
        workers=args.workers,
        ffmpeg_path=args.ffmpeg
    )


def print_progress(current: int, total: int):
    pct = current * 100 // total
    print(f"\r  {current}/{total} chunks ({pct}%)", end='', flush=True)
    if current == total:
        print()


def cmd_encode(args) -> int:
    config = build_config(args)
    encoder = ChunkEncoder(config, on_progress=print_progress)

    print(f"Encoding {args.source} -> {args.output}")
    print(f"  Chunk size: {config.chunk_size} bytes, codec: {config.profile.name}")

    result = encoder.encode_tree(args.source, args.output)

    if result.nothing_to_encode:
        print("Nothing to encode (no files found)")
        return 0

    print(f"\n{result.message}")
    print(f"  Manifest: {result.manifest_path}")
    print(f"  Time: {result.encode_time:.1f}s")
    return 0


def cmd_decode(args) -> int:
    config = build_config(args)
    decoder = ChunkDecoder(config, on_progress=print_progress)

    print(f"Decoding {args.units} -> {args.dest}")
    result = decoder.decode_tree(args.units, args.dest)

    print(f"\nDecoded {result.stream_length} bytes from {result.chunk_count} chunks")
    print(f"  Files written: {len(result.written_paths)}")
    print(f"  Time: {result.decode_time:.1f}s")
    return 0


def cmd_info(args) -> int:
    manifest = Manifest.load(args.units)

    print(f"Archive: {args.units}")
    print(f"  Chunks: {manifest.chunk_count} x up to {manifest.chunk_size} bytes")
    print(f"  Stream: {manifest.stream_length} bytes")
    print(f"  SHA-256: {manifest.stream_sha256}")
    print(f"  Container: {manifest.codec} (.{manifest.extension})")

    if args.verbose:
        for entry in manifest.chunks:
            print(f"    {entry.filename}: {entry.side}x{entry.side}, "
                  f"{entry.byte_length} bytes, crc32={entry.crc32:08x}")
    return 0


def cmd_check(args) -> int:
    """Check Python dependencies and the ffmpeg binary."""
    print("Checking dependencies...")

    required = {
        "numpy": "numpy",
        "cv2": "opencv-python",
    }

    all_ok = True
    for module, package in required.items():
        try:
            __import__(module)
            print(f"  {package}: OK")
        except ImportError:
            print(f"  {package}: MISSING")
            all_ok = False

    info = get_container_info(args.ffmpeg)
    if info['ffmpeg_available']:
        print(f"  ffmpeg: OK ({args.ffmpeg})")
    else:
        print(f"  ffmpeg: NOT FOUND ({args.ffmpeg})")
        all_ok = False

    print(f"  Lossless profiles: {', '.join(info['lossless_profiles'])}")
    print(f"  Default profile: {info['default_profile']}")
    return 0 if all_ok else 1


def add_codec_options(parser):
    parser.add_argument(
        '--chunk-size',
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help=f'Bytes per chunk (default: {DEFAULT_CHUNK_SIZE})'
    )
    parser.add_argument(
        '--codec',
        choices=sorted(LOSSLESS_PROFILES),
        default=DEFAULT_PROFILE.name,
        help=f'Lossless container codec (default: {DEFAULT_PROFILE.name})'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=DEFAULT_TRANSCODE_TIMEOUT,
        help=f'Seconds allowed per ffmpeg call (default: {DEFAULT_TRANSCODE_TIMEOUT:g})'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=1,
        help='Chunks processed concurrently (default: 1)'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Encode a directory tree into one-frame video chunks and back"
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--ffmpeg', default='ffmpeg', help='ffmpeg executable')

    sub = parser.add_subparsers(dest='command', required=True)

    p_encode = sub.add_parser('encode', help='Encode a directory tree')
    p_encode.add_argument('source', type=Path, help='Directory to archive')
    p_encode.add_argument('output', type=Path, help='Output directory for chunk videos')
    add_codec_options(p_encode)
    p_encode.set_defaults(func=cmd_encode)

    p_decode = sub.add_parser('decode', help='Reconstruct a directory tree')
    p_decode.add_argument('units', type=Path, help='Directory holding chunk videos')
    p_decode.add_argument('dest', type=Path, help='Directory to write files into')
    add_codec_options(p_decode)
    p_decode.set_defaults(func=cmd_decode)

    p_info = sub.add_parser('info', help='Show archive manifest')
    p_info.add_argument('units', type=Path, help='Directory holding chunk videos')
    p_info.set_defaults(func=cmd_info)

    p_check = sub.add_parser('check', help='Check installation')
    p_check.set_defaults(func=cmd_check)

    return parser


def main(argv=None) -> int:
    """Command-line interface."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return args.func(args)
    except ArchiveError as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
