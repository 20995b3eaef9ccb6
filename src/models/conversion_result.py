from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from datetime import datetime
from enum import Enum


class ConversionOutcome(Enum):
    """How a single file ended up after its chunk resolved."""
    CONVERTED = "converted"
    SKIPPED_EXISTS = "skipped_exists"
    SKIPPED_MISSING = "skipped_missing"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ConversionResult:
    """Represents the result of converting one file to ALAC."""

    outcome: ConversionOutcome
    input_path: Path
    output_path: Optional[Path] = None
    return_code: Optional[int] = None
    error: Optional[str] = None
    conversion_time: Optional[float] = None  # seconds
    chunk_index: int = 0
    position: int = 0  # index in the input file list
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if not isinstance(self.input_path, Path):
            self.input_path = Path(self.input_path)
        if self.output_path and not isinstance(self.output_path, Path):
            self.output_path = Path(self.output_path)

    def to_dict(self) -> dict:
        """Convert result to dictionary for logging/export."""
        return {
            'outcome': self.outcome.value,
            'input_path': str(self.input_path),
            'output_path': str(self.output_path) if self.output_path else None,
            'return_code': self.return_code,
            'error': self.error,
            'conversion_time_seconds': self.conversion_time,
            'chunk_index': self.chunk_index,
            'position': self.position,
            'timestamp': self.timestamp.isoformat()
        }
