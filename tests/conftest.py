"""
Test Configuration

Pytest fixtures shared by the codec, orchestrator and CLI tests.
"""

import shutil
from pathlib import Path

import pytest

from shared import ContainerAdapter, ArchiveConfig, check_ffmpeg_available


requires_ffmpeg = pytest.mark.skipif(
    not check_ffmpeg_available(),
    reason="ffmpeg binary not on PATH"
)


class CopyAdapter(ContainerAdapter):
    """In-process stand-in for ffmpeg: the unit is a byte copy of the raster."""

    extension = 'unit'

    def __init__(self):
        self.wrapped = []
        self.unwrapped = []

    def wrap(self, raster_path: Path, unit_path: Path):
        self.wrapped.append((Path(raster_path), Path(unit_path)))
        shutil.copyfile(raster_path, unit_path)

    def unwrap(self, unit_path: Path, raster_path: Path):
        self.unwrapped.append((Path(unit_path), Path(raster_path)))
        shutil.copyfile(unit_path, raster_path)


@pytest.fixture
def adapter():
    return CopyAdapter()


@pytest.fixture
def small_config():
    return ArchiveConfig(chunk_size=16)


@pytest.fixture
def sample_tree(tmp_path):
    """A small tree with nested dirs, binary data and delimiter-like content."""
    root = tmp_path / "source"
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "docs").mkdir()

    (root / "README.md").write_bytes(b"# Sample\r\nLine two\n")
    (root / "src" / "main.py").write_bytes(b'print("hello \\\\ world")\n')
    (root / "src" / "pkg" / "data.bin").write_bytes(bytes(range(256)))
    (root / "docs" / "tricky.txt").write_bytes(b"before\n=== fake.txt ===\nafter")
    (root / "docs" / "empty.txt").write_bytes(b"")

    return root


def read_tree(root: Path) -> dict:
    """Map relative POSIX path -> content for every file under root."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob('*')) if p.is_file()
    }
