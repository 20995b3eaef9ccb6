import stat
from pathlib import Path

import pytest

from src.models.conversion_options import ConversionOptions
from tests.helpers import COPY_ENCODER


@pytest.fixture
def make_encoder(tmp_path):
    """Write an executable shell script standing in for ffmpeg."""
    def _make(body: str = COPY_ENCODER, name: str = "ffmpeg") -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        path = bin_dir / name
        path.write_text(body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path
    return _make


@pytest.fixture
def library(tmp_path):
    """
    Creates a small music library:
    - artist/album/01 intro.mp3
    - artist/album/02 song.flac
    - single.wav
    - notes.txt (not audio)
    """
    root = tmp_path / "music"
    album = root / "artist" / "album"
    album.mkdir(parents=True)

    (album / "01 intro.mp3").write_bytes(b"FAKE_MP3")
    (album / "02 song.flac").write_bytes(b"FAKE_FLAC")
    (root / "single.wav").write_bytes(b"FAKE_WAV")
    (root / "notes.txt").write_text("liner notes")

    return root


@pytest.fixture
def destination(tmp_path):
    return tmp_path / "alac"


@pytest.fixture
def make_options(library, destination):
    def _make(thread_count=2, format="m4a", **kwargs) -> ConversionOptions:
        return ConversionOptions.create(
            format=format,
            source_path=library,
            destination_path=destination,
            thread_count=thread_count,
            **kwargs
        )
    return _make
