from pathlib import Path
from typing import Optional, Union
import subprocess
import threading
import logging

from src.models.conversion_options import normalize_format

logger = logging.getLogger(__name__)

# Names checked, in order, when the encoder location is a directory
ENCODER_NAMES = ("ffmpeg.exe", "ffmpeg")

# Input containers/codecs handed to the encoder (no leading dot)
SUPPORTED_EXTENSIONS = frozenset({
    "flac", "m3u", "m3u8", "m4a", "m4b", "mp3", "ogg",
    "opus", "pls", "wav", "aac", "webm", "wma", "xspf",
})


class ConversionCancelled(Exception):
    """Raised when a running encoder was stopped by the cancel event."""


def resolve_encoder(candidate: Optional[Union[str, Path]]) -> tuple[bool, Optional[Path]]:
    """
    Locate the encoder executable.

    Args:
        candidate: Either the executable itself or a directory containing it

    Returns:
        Tuple of (found, resolved_path)
    """
    if not candidate:
        return False, None

    path = Path(candidate)

    if path.is_dir():
        for name in ENCODER_NAMES:
            executable = path / name
            if executable.is_file():
                return True, executable

    if path.is_file():
        return True, path

    return False, None


def is_supported_extension(extension: str) -> bool:
    """
    Check whether files with this extension can be handed to the encoder.

    Args:
        extension: File extension without the leading dot (e.g. "flac")

    Returns:
        True if the extension is in the supported set
    """
    return extension in SUPPORTED_EXTENSIONS


def create_output_path(
    input_path: Union[str, Path],
    source_root: Union[str, Path],
    destination_root: Union[str, Path],
    fmt: str
) -> Path:
    """
    Mirror an input file under the destination root with the target extension.

    Only the final suffix is swapped, so a stem that happens to contain the
    old extension text is left alone (``mp3mp3.mp3`` -> ``mp3mp3.flac``).

    Args:
        input_path: Absolute path of the source file
        source_root: Root directory the input lives under
        destination_root: Root directory of the mirrored tree
        fmt: Target format, with or without the leading dot

    Returns:
        Path for the converted file

    Raises:
        ValueError: If the input is not located under the source root
    """
    relative_path = Path(input_path).relative_to(Path(source_root))
    output_path = Path(destination_root) / relative_path
    return output_path.with_suffix(normalize_format(fmt))


class AlacEncoder:
    """Runs the external encoder to produce Apple Lossless files."""

    def __init__(self, executable: Union[str, Path], terminate_timeout: float = 5.0,
                 poll_interval: float = 0.1):
        self.executable = Path(executable)
        self.terminate_timeout = terminate_timeout
        self.poll_interval = poll_interval

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        # -hide_banner: no version banner
        # -n: never overwrite an existing output file
        # -loglevel error: only report errors on the encoder's own stderr
        # -acodec alac: Apple Lossless output
        return [
            str(self.executable),
            "-hide_banner",
            "-n",
            "-loglevel", "error",
            "-i", str(input_path),
            "-acodec", "alac",
            str(output_path)
        ]

    def run(
        self,
        input_path: Path,
        output_path: Path,
        cancel_event: Optional[threading.Event] = None
    ) -> int:
        """
        Encode one file and wait for the encoder to exit.

        Args:
            input_path: Source audio file
            output_path: Destination file (parent directory must exist)
            cancel_event: When set, the encoder is terminated

        Returns:
            The encoder's exit code

        Raises:
            ConversionCancelled: If the cancel event was set while waiting
            OSError: If the encoder could not be started
        """
        cmd = self.build_command(input_path, output_path)
        logger.debug(f"Running encoder: {' '.join(cmd)}")

        # Output streams are inherited so the encoder reports its own errors
        process = subprocess.Popen(cmd, stdin=subprocess.DEVNULL)

        if cancel_event is None:
            return process.wait()

        while process.poll() is None:
            if cancel_event.wait(self.poll_interval):
                if process.poll() is not None:
                    break
                self._terminate(process)
                raise ConversionCancelled(f"Encoding of {input_path} was cancelled")

        return process.returncode

    def _terminate(self, process: subprocess.Popen) -> None:
        """Stop a running encoder, escalating to kill if it does not exit."""
        if process.poll() is not None:
            return

        process.terminate()
        try:
            process.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Encoder pid {process.pid} ignored terminate, killing it")
            process.kill()
            process.wait()
