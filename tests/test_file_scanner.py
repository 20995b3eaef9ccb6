import pytest

from src.core.file_scanner import FileScanner


def test_scan_finds_supported_audio_recursively(library):
    result = FileScanner.scan_directory(library)

    names = [p.name for p in result.audio_files]
    assert names == ["01 intro.mp3", "02 song.flac", "single.wav"]
    assert result.total_files_scanned == 4
    assert result.audio_count == 3
    assert result.directories_with_audio == 2
    assert result.total_size_bytes == len(b"FAKE_MP3") + len(b"FAKE_FLAC") + len(b"FAKE_WAV")
    assert all(p.is_absolute() for p in result.audio_files)


def test_extension_match_ignores_case(tmp_path):
    (tmp_path / "LOUD.MP3").write_bytes(b"x")
    (tmp_path / "movie.mkv").write_bytes(b"x")

    result = FileScanner.scan_directory(tmp_path)

    assert [p.name for p in result.audio_files] == ["LOUD.MP3"]


def test_scan_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        FileScanner.scan_directory(tmp_path / "missing")


def test_scan_file_instead_of_directory(tmp_path):
    path = tmp_path / "song.mp3"
    path.write_bytes(b"x")

    with pytest.raises(NotADirectoryError):
        FileScanner.scan_directory(path)


def test_summary_mentions_counts(library):
    summary = FileScanner.scan_directory(library).get_summary()

    assert "Audio files found: 3" in summary
