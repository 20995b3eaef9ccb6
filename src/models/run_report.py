from dataclasses import dataclass, field
from typing import Optional

from src.models.conversion_result import ConversionResult, ConversionOutcome


@dataclass
class ChunkReport:
    """Timing and results for one chunk of the run."""

    index: int
    file_count: int
    elapsed: float = 0.0  # seconds
    results: list[ConversionResult] = field(default_factory=list)

    def count(self, outcome: ConversionOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)


@dataclass
class RunReport:
    """Aggregated outcome of a whole conversion run."""

    total_files: int = 0
    chunk_size: int = 0
    chunks: list[ChunkReport] = field(default_factory=list)
    cancelled: bool = False

    @property
    def results(self) -> list[ConversionResult]:
        """All per-file results in chunk order."""
        return [r for chunk in self.chunks for r in chunk.results]

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def total_elapsed(self) -> float:
        """Sum of the per-chunk elapsed times, in seconds."""
        return sum(chunk.elapsed for chunk in self.chunks)

    @property
    def converted(self) -> int:
        return self._count(ConversionOutcome.CONVERTED)

    @property
    def skipped(self) -> int:
        return (self._count(ConversionOutcome.SKIPPED_EXISTS)
                + self._count(ConversionOutcome.SKIPPED_MISSING))

    @property
    def failed(self) -> int:
        return self._count(ConversionOutcome.FAILED)

    @property
    def cancelled_files(self) -> int:
        return self._count(ConversionOutcome.CANCELLED)

    def _count(self, outcome: ConversionOutcome) -> int:
        return sum(chunk.count(outcome) for chunk in self.chunks)

    def result_for(self, input_path) -> Optional[ConversionResult]:
        """Find the result recorded for an input path."""
        for result in self.results:
            if str(result.input_path) == str(input_path):
                return result
        return None

    def get_summary(self) -> str:
        """Get a human-readable summary of the run."""
        lines = [
            f"Files: {self.total_files:,} in {self.chunk_count} chunk(s) of {self.chunk_size}",
            f"Converted: {self.converted}",
            f"Skipped: {self.skipped}",
            f"Failed: {self.failed}",
            f"Total time: {self.total_elapsed * 1000:.0f} ms",
        ]
        if self.cancelled:
            lines.append(f"Cancelled: {self.cancelled_files} file(s) not converted")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert report to dictionary for the session log."""
        return {
            'total_files': self.total_files,
            'chunk_size': self.chunk_size,
            'chunk_count': self.chunk_count,
            'cancelled': self.cancelled,
            'converted': self.converted,
            'skipped': self.skipped,
            'failed': self.failed,
            'total_elapsed_ms': round(self.total_elapsed * 1000),
            'chunks': [
                {
                    'index': chunk.index,
                    'file_count': chunk.file_count,
                    'elapsed_ms': round(chunk.elapsed * 1000),
                }
                for chunk in self.chunks
            ],
            'results': [r.to_dict() for r in self.results]
        }
