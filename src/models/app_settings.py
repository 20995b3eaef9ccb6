from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional
import json
import logging
import os
import shutil

from src.models.conversion_options import ConversionOptions

logger = logging.getLogger(__name__)


@dataclass
class AppSettings:
    """Application settings with persistence."""

    # Conversion settings
    format: str = "m4a"
    source_path: str = ""
    destination_path: str = ""
    trash_source_on_success: bool = False

    # Performance settings
    thread_count: int = None  # None = auto-detect

    # Encoder
    encoder_path: str = None  # None = look up ffmpeg on PATH

    # Logging settings
    log_level: str = "INFO"

    def __post_init__(self):
        """Set defaults for None values."""
        if self.thread_count is None:
            self.thread_count = os.cpu_count() or 4
        if self.encoder_path is None:
            self.encoder_path = shutil.which("ffmpeg") or ""

    @classmethod
    def get_settings_path(cls) -> Path:
        """Get the path to the settings file."""
        # Store in user's app data directory
        if os.name == 'nt':  # Windows
            app_data = Path(os.environ.get('APPDATA', Path.home()))
            settings_dir = app_data / 'AppleLossless'
        else:  # Unix-like
            settings_dir = Path.home() / '.config' / 'AppleLossless'

        return settings_dir / 'settings.json'

    @classmethod
    def load(cls, settings_path: Optional[Path] = None) -> 'AppSettings':
        """Load settings from file, or create defaults."""
        settings_path = settings_path or cls.get_settings_path()

        if settings_path.exists():
            try:
                with open(settings_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                return cls(**data)
            except (json.JSONDecodeError, TypeError, ValueError) as e:
                # If settings file is corrupted, return defaults
                logger.warning(f"Ignoring unreadable settings file {settings_path}: {e}")

        return cls()

    def save(self, settings_path: Optional[Path] = None) -> None:
        """Save settings to file."""
        settings_path = settings_path or self.get_settings_path()

        try:
            settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(settings_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(self), f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings: {e}")

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return asdict(self)

    def to_options(self) -> ConversionOptions:
        """Build the validated options for a conversion run."""
        return ConversionOptions.create(
            format=self.format,
            source_path=self.source_path,
            destination_path=self.destination_path,
            thread_count=self.thread_count,
            trash_source_on_success=self.trash_source_on_success
        )
