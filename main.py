import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent))

from src.models.app_settings import AppSettings
from src.core.encoder import resolve_encoder
from src.core.file_scanner import FileScanner
from src.core.scheduler import ConversionScheduler
from src.utils.logger import LoggerSetup, create_session_log

EXIT_OK = 0
EXIT_CANCELLED = 1
EXIT_WITH_FILE_ERRORS = 2
EXIT_PREFLIGHT_FAILED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apple-lossless",
        description="Convert an audio library to Apple Lossless (ALAC), mirroring its folder tree."
    )
    parser.add_argument("source", nargs="?", help="Source directory (default: from settings)")
    parser.add_argument("destination", nargs="?", help="Destination directory (default: from settings)")
    parser.add_argument("-f", "--format", help="Output extension, e.g. m4a")
    parser.add_argument("-t", "--threads", type=int, help="Number of files converted at the same time")
    parser.add_argument("-e", "--encoder", help="ffmpeg executable or the directory containing it")
    parser.add_argument("--settings", type=Path, help="Settings JSON file to load")
    parser.add_argument("--save-settings", action="store_true", help="Persist the effective settings")
    parser.add_argument("--log-dir", type=Path, help="Directory for log files")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--trash-source", action="store_true", default=None,
                        help="Move converted source files to the recycle bin")
    return parser


def apply_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    """Apply command line values on top of the loaded settings."""
    if args.source:
        settings.source_path = args.source
    if args.destination:
        settings.destination_path = args.destination
    if args.format:
        settings.format = args.format
    if args.threads is not None:
        settings.thread_count = args.threads
    if args.encoder:
        settings.encoder_path = args.encoder
    if args.log_level:
        settings.log_level = args.log_level
    if args.trash_source is not None:
        settings.trash_source_on_success = args.trash_source
    return settings


def main(argv: Optional[list[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    settings = apply_overrides(AppSettings.load(args.settings), args)

    log_dir = args.log_dir or Path(__file__).parent / "logs"

    # Set up logging
    LoggerSetup.setup(log_dir=log_dir, log_level=settings.log_level)
    logger = LoggerSetup.get_logger("main")

    if args.save_settings:
        settings.save(args.settings)

    found, encoder_path = resolve_encoder(settings.encoder_path)
    if not found:
        logger.error(f"ffmpeg could not be found at '{settings.encoder_path}'")
        return EXIT_PREFLIGHT_FAILED
    logger.info(f"Using encoder: {encoder_path}")

    try:
        options = settings.to_options()
        scan_result = FileScanner.scan_directory(options.source_path)
    except (ValueError, FileNotFoundError, NotADirectoryError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_PREFLIGHT_FAILED

    # Scanned paths are absolute, so the roots must be too
    settings.source_path = str(scan_result.root_path)
    settings.destination_path = str(Path(settings.destination_path).resolve())
    options = settings.to_options()

    scheduler = ConversionScheduler(encoder_path, scan_result.audio_files, options)

    cancel_event = threading.Event()

    def handle_interrupt(signum, frame):
        logger.warning("Interrupt received, stopping running conversions")
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        report = scheduler.start(cancel_event)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    log_path = create_session_log(log_dir, report)
    logger.info(f"Session log written to {log_path}")

    if report.cancelled:
        return EXIT_CANCELLED
    if report.failed:
        return EXIT_WITH_FILE_ERRORS
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
