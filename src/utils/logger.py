import json
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from datetime import datetime

from src.models.run_report import RunReport


class LoggerSetup:
    """Configure application logging."""

    _initialized = False

    @classmethod
    def setup(cls, log_dir: Path, log_level: str = "INFO") -> None:
        """
        Set up application logging with file and console handlers.

        Args:
            log_dir: Directory for log files
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        if cls._initialized:
            return

        log_dir.mkdir(parents=True, exist_ok=True)

        # Configure root logger
        logger = logging.getLogger()
        logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        logger.handlers.clear()

        formatter = logging.Formatter(
            '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Console handler (INFO and above)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # Main application log file (rotating, 10MB max, keep 5 backups)
        file_handler = RotatingFileHandler(
            log_dir / "app.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        # Skipped inputs and encoder failures
        error_handler = RotatingFileHandler(
            log_dir / "conversion_errors.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        logger.addHandler(error_handler)

        cls._initialized = True

        logger.info("Logging system initialized")
        logger.info(f"Log directory: {log_dir.absolute()}")

    @staticmethod
    def get_logger(name: str) -> logging.Logger:
        """
        Get a logger instance for a module.

        Args:
            name: Usually __name__ from the calling module

        Returns:
            Configured logger instance
        """
        return logging.getLogger(name)


def create_session_log(log_dir: Path, report: RunReport) -> Path:
    """
    Create a detailed JSON log file for a conversion run.

    Args:
        log_dir: Directory for log files
        report: RunReport returned by the scheduler

    Returns:
        Path to the created log file
    """
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"session_{timestamp}.json"

    session_data = {
        'timestamp': timestamp,
        **report.to_dict()
    }

    with open(log_path, 'w', encoding='utf-8') as f:
        json.dump(session_data, f, indent=2, ensure_ascii=False)

    return log_path
