from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class ConversionTask:
    """Represents a single file to ALAC conversion task."""

    input_path: Path
    output_path: Optional[Path] = None
    chunk_index: int = 0
    position: int = 0  # index in the input file list

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if not isinstance(self.input_path, Path):
            self.input_path = Path(self.input_path)
        if self.output_path is not None and not isinstance(self.output_path, Path):
            self.output_path = Path(self.output_path)

    @property
    def input_filename(self) -> str:
        """Get the input filename."""
        return self.input_path.name

    @property
    def output_filename(self) -> Optional[str]:
        """Get the output filename."""
        return self.output_path.name if self.output_path else None
