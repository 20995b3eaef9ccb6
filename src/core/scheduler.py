from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator, Optional, Sequence, TypeVar, Union
import logging
import math
import threading
import time
import uuid

import send2trash

from src.models.conversion_options import ConversionOptions
from src.models.conversion_task import ConversionTask
from src.models.conversion_result import ConversionResult, ConversionOutcome
from src.models.run_report import ChunkReport, RunReport
from src.core.encoder import AlacEncoder, ConversionCancelled, create_output_path

logger = logging.getLogger(__name__)

T = TypeVar("T")


def iter_chunks(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """
    Lazily split a sequence into consecutive, order-preserving chunks.

    Args:
        items: Sequence to split
        size: Maximum chunk length (the last chunk may be shorter)

    Yields:
        Lists of at most ``size`` items
    """
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")

    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def get_chunk_size(file_count: int, thread_count: int) -> int:
    """Chunk size for a run: the concurrency limit, capped by the file count."""
    return min(max(thread_count, 1), file_count)


class ConversionScheduler:
    """
    Converts a fixed list of files to ALAC in sequential, concurrent chunks.

    Every file of a chunk gets its own encoder process; the next chunk only
    starts once every file of the current one has been resolved, so at most
    ``options.thread_count`` encoders run at the same time.
    """

    def __init__(
        self,
        encoder_path: Union[str, Path],
        files: Sequence[Union[str, Path]],
        options: ConversionOptions
    ):
        """
        Initialize the scheduler.

        Args:
            encoder_path: Resolved path of the encoder executable
            files: Ordered absolute paths of the files to convert
            options: Validated run configuration

        Raises:
            FileNotFoundError: If the encoder path is not an existing file
        """
        encoder_path = Path(encoder_path)
        if not encoder_path.is_file():
            raise FileNotFoundError(f"Encoder not found: {encoder_path}")

        self.encoder = AlacEncoder(encoder_path)
        self.files = tuple(Path(f) for f in files)
        self.options = options
        self._claimed: set[Path] = set()
        self._claim_lock = threading.Lock()

    @property
    def chunk_size(self) -> int:
        return get_chunk_size(len(self.files), self.options.thread_count)

    @property
    def chunk_count(self) -> int:
        if not self.files:
            return 0
        return math.ceil(len(self.files) / self.chunk_size)

    def start(self, cancel_event: Optional[threading.Event] = None) -> RunReport:
        """
        Run the conversion over every file.

        Args:
            cancel_event: Set it to stop the run; running encoders are
                terminated and no further chunk is started

        Returns:
            RunReport with per-chunk timing and per-file results
        """
        if cancel_event is None:
            cancel_event = threading.Event()

        self._claimed.clear()
        report = RunReport(total_files=len(self.files), chunk_size=self.chunk_size)

        if not self.files:
            logger.info("No files to convert")
            return report

        logger.info(f"Splitting job into {self.chunk_count} chunks of {self.chunk_size} size")

        for index, chunk in enumerate(iter_chunks(self.files, self.chunk_size)):
            if cancel_event.is_set():
                logger.info(f"Conversion cancelled, {self.chunk_count - index} chunk(s) not started")
                break

            chunk_report = self._process_chunk(index, chunk, cancel_event)
            report.chunks.append(chunk_report)

            logger.info(f"Completed chunk {index} in {chunk_report.elapsed * 1000:.0f} ms.")

        report.cancelled = cancel_event.is_set()

        if report.cancelled:
            logger.warning(f"Conversion cancelled after {report.total_elapsed * 1000:.0f} ms")
        else:
            logger.info(f"Every chunk has been completed in {report.total_elapsed * 1000:.0f} ms")
        logger.info(report.get_summary())

        return report

    def _process_chunk(
        self,
        index: int,
        chunk: list[Path],
        cancel_event: threading.Event
    ) -> ChunkReport:
        """Launch every file of a chunk, then wait for all of them."""
        logger.info(f"Processing chunk #{index}. {len(chunk)} files to convert")

        start_time = time.perf_counter()
        tasks = [
            ConversionTask(
                input_path=path,
                chunk_index=index,
                position=index * self.chunk_size + offset
            )
            for offset, path in enumerate(chunk)
        ]

        with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix=f"chunk-{index}") as executor:
            futures = [executor.submit(self._process_task, task, cancel_event) for task in tasks]
            results = [future.result() for future in futures]

        return ChunkReport(
            index=index,
            file_count=len(chunk),
            elapsed=time.perf_counter() - start_time,
            results=results
        )

    def _process_task(self, task: ConversionTask, cancel_event: threading.Event) -> ConversionResult:
        """Convert a single file, or record why it was not converted."""
        start_time = time.perf_counter()

        def result(outcome: ConversionOutcome, **kwargs) -> ConversionResult:
            return ConversionResult(
                outcome=outcome,
                input_path=task.input_path,
                output_path=task.output_path,
                chunk_index=task.chunk_index,
                position=task.position,
                conversion_time=time.perf_counter() - start_time,
                **kwargs
            )

        if cancel_event.is_set():
            return result(ConversionOutcome.CANCELLED, error="Cancelled before start")

        # The file may have been removed since it was enumerated
        if not task.input_path.exists():
            logger.error(f"The file at path {task.input_path} doesn't exist anymore. Ignoring it")
            return result(ConversionOutcome.SKIPPED_MISSING, error="Input file no longer exists")

        if not task.input_path.is_relative_to(self.options.source_path):
            error = f"Not located under source path {self.options.source_path}"
            logger.error(f"Cannot convert {task.input_path}: {error}")
            return result(ConversionOutcome.FAILED, error=error)

        try:
            task.output_path = create_output_path(
                task.input_path,
                self.options.source_path,
                self.options.destination_path,
                self.options.format
            )
        except ValueError as e:
            logger.error(f"Cannot convert {task.input_path}: {e}")
            return result(ConversionOutcome.FAILED, error=str(e))

        if not self._claim_destination(task.output_path):
            logger.warning(f"The file at path {task.output_path} already exists. Ignoring it")
            return result(ConversionOutcome.SKIPPED_EXISTS)

        logger.info(f"Converting {task.input_filename} to format {self.options.format}")

        # The encoder writes to a file no other task or process knows about
        partial_path = self._partial_path(task.output_path)

        try:
            task.output_path.parent.mkdir(parents=True, exist_ok=True)
            return_code = self.encoder.run(task.input_path, partial_path, cancel_event)
        except ConversionCancelled:
            logger.warning(f"Converting {task.input_filename} was cancelled")
            self._remove_partial_output(partial_path)
            return result(ConversionOutcome.CANCELLED, error="Cancelled while encoding")
        except OSError as e:
            error = f"{type(e).__name__}: {e}"
            logger.error(f"Converting {task.input_filename} failed: {error}")
            self._remove_partial_output(partial_path)
            return result(ConversionOutcome.FAILED, error=error)

        if return_code != 0:
            logger.error(f"Converting {task.input_filename} failed with exit code {return_code}")
            self._remove_partial_output(partial_path)
            return result(
                ConversionOutcome.FAILED,
                return_code=return_code,
                error=f"Encoder exited with code {return_code}"
            )

        if task.output_path.exists():
            logger.warning(f"The file at path {task.output_path} appeared during conversion. Keeping it")
            self._remove_partial_output(partial_path)
            return result(ConversionOutcome.SKIPPED_EXISTS, return_code=return_code)

        try:
            partial_path.replace(task.output_path)
        except OSError as e:
            error = f"{type(e).__name__}: {e}"
            logger.error(f"Could not move {partial_path.name} to {task.output_path}: {error}")
            self._remove_partial_output(partial_path)
            return result(ConversionOutcome.FAILED, return_code=return_code, error=error)

        logger.info(f"Converting {task.output_filename} succeeded!")

        if self.options.trash_source_on_success:
            self._trash_source(task.input_path)

        return result(ConversionOutcome.CONVERTED, return_code=return_code)

    def _claim_destination(self, output_path: Path) -> bool:
        """
        Reserve a destination for the calling task.

        Returns False when the file already exists or another input of this
        run (e.g. ``song.flac`` next to ``song.mp3``) already targets it.
        """
        with self._claim_lock:
            if output_path in self._claimed or output_path.exists():
                return False
            self._claimed.add(output_path)
            return True

    @staticmethod
    def _partial_path(output_path: Path) -> Path:
        # Keep the target suffix so the encoder picks the right container
        return output_path.with_name(f".{output_path.stem}.{uuid.uuid4().hex[:8]}.partial{output_path.suffix}")

    @staticmethod
    def _remove_partial_output(partial_path: Path) -> None:
        try:
            partial_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial output {partial_path}: {e}")

    @staticmethod
    def _trash_source(input_path: Path) -> None:
        try:
            send2trash.send2trash(str(input_path))
            logger.info(f"Moved to recycle bin: {input_path}")
        except OSError as e:
            logger.warning(f"Could not delete source file {input_path}: {e}")
