from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


def normalize_format(fmt: str) -> str:
    """Return the target format as an extension with a leading dot."""
    fmt = (fmt or "").strip()
    if not fmt or fmt == ".":
        raise ValueError("Target format must not be empty")
    if "/" in fmt or "\\" in fmt:
        raise ValueError(f"Target format must be a file extension, got {fmt!r}")
    if not fmt.startswith("."):
        fmt = "." + fmt
    return fmt


@dataclass(frozen=True)
class ConversionOptions:
    """
    Validated, read-only configuration for one conversion run.

    Shared by every worker of the run, so it is never mutated after
    construction. Use ``create`` to build one from raw values.
    """

    format: str
    source_path: Path
    destination_path: Path
    thread_count: int = 1
    trash_source_on_success: bool = False

    @classmethod
    def create(
        cls,
        format: str,
        source_path: Union[str, Path],
        destination_path: Union[str, Path],
        thread_count: Optional[int] = None,
        trash_source_on_success: bool = False
    ) -> 'ConversionOptions':
        """
        Build options from raw configuration values.

        Args:
            format: Target extension, with or without the leading dot
            source_path: Root directory shared by every input file
            destination_path: Root directory the source tree is mirrored under
            thread_count: Concurrency limit; values <= 0 (or None) become 1
            trash_source_on_success: Recycle converted source files

        Returns:
            ConversionOptions

        Raises:
            ValueError: If the format or one of the roots is empty
        """
        if not source_path:
            raise ValueError("Source path must be set")
        if not destination_path:
            raise ValueError("Destination path must be set")

        if thread_count is None or thread_count <= 0:
            thread_count = 1

        return cls(
            format=normalize_format(format),
            source_path=Path(source_path),
            destination_path=Path(destination_path),
            thread_count=int(thread_count),
            trash_source_on_success=bool(trash_source_on_success)
        )

    @classmethod
    def from_config(cls, config: dict) -> 'ConversionOptions':
        """Build options from a ``{Format, SourcePath, DestinationPath, ThreadCount}`` mapping."""
        return cls.create(
            format=config.get('Format', ''),
            source_path=config.get('SourcePath', ''),
            destination_path=config.get('DestinationPath', ''),
            thread_count=config.get('ThreadCount')
        )
