from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict
from collections import defaultdict
import logging

from src.core.encoder import is_supported_extension

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Results from scanning a directory for convertible audio files."""

    root_path: Path
    audio_files: list[Path] = field(default_factory=list)
    total_files_scanned: int = 0
    total_directories_scanned: int = 0
    audio_by_directory: Dict[Path, int] = field(default_factory=lambda: defaultdict(int))
    total_size_bytes: int = 0
    scan_errors: list[tuple[Path, str]] = field(default_factory=list)

    @property
    def audio_count(self) -> int:
        """Get total number of audio files found."""
        return len(self.audio_files)

    @property
    def total_size_mb(self) -> float:
        """Get total size of audio files in MB."""
        return self.total_size_bytes / (1024 * 1024)

    @property
    def directories_with_audio(self) -> int:
        """Get count of directories containing audio files."""
        return len(self.audio_by_directory)

    def get_summary(self) -> str:
        """Get a human-readable summary of the scan results."""
        summary_lines = [
            f"Scan Summary for: {self.root_path}",
            f"  Audio files found: {self.audio_count:,}",
            f"  Total files scanned: {self.total_files_scanned:,}",
            f"  Total directories: {self.total_directories_scanned:,}",
            f"  Directories with audio: {self.directories_with_audio}",
            f"  Total size: {self.total_size_mb:.2f} MB",
        ]

        if self.scan_errors:
            summary_lines.append(f"  Scan errors: {len(self.scan_errors)}")

        return "\n".join(summary_lines)


class FileScanner:
    """Scans directories for files the encoder accepts."""

    @staticmethod
    def is_audio_file(path: Path) -> bool:
        """Check the file extension against the supported set (case-insensitive)."""
        return is_supported_extension(path.suffix.lower().lstrip('.'))

    @classmethod
    def scan_directory(cls, directory: Path) -> ScanResult:
        """
        Recursively scan a directory for supported audio files.

        Args:
            directory: Root directory to scan

        Returns:
            ScanResult with statistics and the sorted list of absolute file paths
        """
        if not directory.exists():
            logger.error(f"Directory does not exist: {directory}")
            raise FileNotFoundError(f"Directory not found: {directory}")

        if not directory.is_dir():
            logger.error(f"Path is not a directory: {directory}")
            raise NotADirectoryError(f"Not a directory: {directory}")

        directory = directory.resolve()
        logger.info(f"Starting scan of: {directory}")

        result = ScanResult(root_path=directory)

        for item in directory.rglob('*'):
            try:
                if item.is_file():
                    result.total_files_scanned += 1

                    if cls.is_audio_file(item):
                        result.audio_files.append(item)
                        result.audio_by_directory[item.parent] += 1

                        try:
                            result.total_size_bytes += item.stat().st_size
                        except OSError as e:
                            logger.warning(f"Could not get size for {item}: {e}")

                elif item.is_dir():
                    result.total_directories_scanned += 1

            except OSError as e:
                error_msg = f"{type(e).__name__}: {str(e)}"
                result.scan_errors.append((item, error_msg))
                logger.warning(f"Error accessing {item}: {error_msg}")
                continue

        # rglob order depends on the filesystem
        result.audio_files.sort()

        logger.info(result.get_summary())

        return result
