"""Configuration management for the Tazkiyah discovery survey."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class Config:
    """Configuration settings for the Tazkiyah survey service."""

    # Storage Paths
    base_data_dir: Path = Path("data")
    survey_db_path: Path = Path("data/survey.db")

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Path = Path("logs/tazkiyah.log")
    enable_file_logging: bool = True


class ConfigManager:
    """Manages configuration loading and environment setup."""

    @staticmethod
    def load_config() -> Config:
        """Load configuration from environment variables and defaults."""
        file_logging = os.getenv("TAZKIYAH_FILE_LOGGING", "true").strip().lower()

        return Config(
            base_data_dir=Path(os.getenv("TAZKIYAH_DATA_DIR", "data")),
            survey_db_path=Path(os.getenv("TAZKIYAH_DB_PATH", "data/survey.db")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv(
                "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            log_file=Path(os.getenv("LOG_FILE", "logs/tazkiyah.log")),
            enable_file_logging=file_logging in ("1", "true", "yes", "on"),
        )

    @staticmethod
    def initialize_directories(config: Config) -> None:
        """Create necessary directories if they don't exist."""
        directories = [
            config.base_data_dir,
            config.survey_db_path.parent,
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)
            logging.getLogger(__name__).debug(f"Directory ensured: {directory}")

    @staticmethod
    def validate_environment(config: Config) -> None:
        """Validate configuration and environment requirements.

        Raises:
            ValueError: If the log level is unknown or the data directory
                cannot be written to
        """
        if config.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {config.log_level}")

        try:
            config.base_data_dir.mkdir(parents=True, exist_ok=True)
            test_file = config.base_data_dir / ".test_write"
            test_file.write_text("test")
            test_file.unlink()
        except OSError as e:
            raise ValueError(
                f"Cannot write to data directory {config.base_data_dir}: {e}"
            ) from e
