"""
Manifest tests.
"""

import json

import pytest

from shared import (
    ChunkEntry, Manifest, MANIFEST_NAME, DecodeVerificationError,
    compute_crc32, compute_stream_hash
)


def make_manifest():
    return Manifest(
        chunk_size=4,
        stream_length=6,
        stream_sha256=compute_stream_hash(b"abcdef"),
        codec="ffv1",
        extension="mkv",
        chunks=[
            ChunkEntry(0, "chunk_0.mkv", 6, 4, compute_crc32(b"abcd")),
            ChunkEntry(1, "chunk_1.mkv", 4, 2, compute_crc32(b"ef")),
        ]
    )


def test_save_and_load(tmp_path):
    manifest = make_manifest()
    path = manifest.save(tmp_path)

    assert path.name == MANIFEST_NAME
    assert not (tmp_path / (MANIFEST_NAME + ".tmp")).exists()
    assert Manifest.load(tmp_path) == manifest


def test_records_count_and_lengths(tmp_path):
    make_manifest().save(tmp_path)
    data = json.loads((tmp_path / MANIFEST_NAME).read_text())

    assert data["chunk_count"] == 2
    assert [c["byte_length"] for c in data["chunks"]] == [4, 2]
    assert [c["side"] for c in data["chunks"]] == [6, 4]


def test_missing_manifest(tmp_path):
    with pytest.raises(DecodeVerificationError):
        Manifest.load(tmp_path)


def test_invalid_json(tmp_path):
    (tmp_path / MANIFEST_NAME).write_text("{not json")
    with pytest.raises(DecodeVerificationError):
        Manifest.load(tmp_path)


def test_wrong_format(tmp_path):
    (tmp_path / MANIFEST_NAME).write_text(json.dumps({"format": "other"}))
    with pytest.raises(DecodeVerificationError):
        Manifest.load(tmp_path)


def test_count_mismatch(tmp_path):
    data = make_manifest().to_dict()
    data["chunk_count"] = 3
    (tmp_path / MANIFEST_NAME).write_text(json.dumps(data))

    with pytest.raises(DecodeVerificationError):
        Manifest.load(tmp_path)


def test_entries_must_be_in_index_order(tmp_path):
    data = make_manifest().to_dict()
    data["chunks"].reverse()
    (tmp_path / MANIFEST_NAME).write_text(json.dumps(data))

    with pytest.raises(DecodeVerificationError):
        Manifest.load(tmp_path)


def test_missing_field(tmp_path):
    data = make_manifest().to_dict()
    del data["chunks"][0]["crc32"]
    (tmp_path / MANIFEST_NAME).write_text(json.dumps(data))

    with pytest.raises(DecodeVerificationError):
        Manifest.load(tmp_path)
