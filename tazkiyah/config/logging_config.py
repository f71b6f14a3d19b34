"""Logging configuration for the Tazkiyah discovery survey."""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional


class SurveyLogFormatter(logging.Formatter):
    """Formatter that prefixes survey context carried in log extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with survey-specific context."""
        prefix = ""
        if hasattr(record, "user_id"):
            prefix += f"[User: {record.user_id}] "

        if hasattr(record, "phase"):
            prefix += f"[Phase: {record.phase}] "

        formatted = super().format(record)
        if not prefix:
            return formatted

        # Prefix the message part only, leaving the record itself untouched
        message = record.getMessage()
        return formatted.replace(message, prefix + message, 1)


def setup_survey_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    log_file: Optional[Path] = None,
    enable_file_logging: bool = True,
    max_log_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """Set up logging for the survey service.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        log_file: Path to log file (if None, uses default location)
        enable_file_logging: Whether to log to file
        max_log_size: Maximum size of log file before rotation
        backup_count: Number of backup log files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    if log_format is None:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = SurveyLogFormatter(log_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if enable_file_logging:
        if log_file is None:
            log_file = Path("logs/tazkiyah.log")

        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_log_size, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)  # File logs more detail
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    configure_logger_levels()

    logging.info(
        f"Tazkiyah survey logging configured - Level: {log_level}, File: {log_file}"
    )


def configure_logger_levels() -> None:
    """Configure specific logger levels for different components."""
    logging.getLogger("tazkiyah").setLevel(logging.INFO)
    logging.getLogger("tazkiyah.survey").setLevel(logging.INFO)
    logging.getLogger("tazkiyah.storage").setLevel(logging.INFO)

    # Database libraries
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_survey_logger(name: str) -> logging.Logger:
    """Get a logger with survey-specific helpers.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    def log_user_action(
        message: str, user_id: str, phase: Optional[int] = None, level: int = logging.INFO
    ) -> None:
        """Log a user action with user and phase context."""
        extra = {"user_id": user_id}
        if phase is not None:
            extra["phase"] = phase
        logger.log(level, message, extra=extra)

    logger.log_user_action = log_user_action

    return logger


def log_performance(operation_name: str):
    """Decorator to log performance metrics for operations."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            perf_logger = logging.getLogger("tazkiyah.performance")
            start_time = time.time()

            try:
                result = func(*args, **kwargs)
                duration = time.time() - start_time
                perf_logger.info(f"{operation_name} completed in {duration:.3f}s")
                return result
            except Exception as e:
                duration = time.time() - start_time
                perf_logger.error(f"{operation_name} failed after {duration:.3f}s: {e}")
                raise

        return wrapper

    return decorator
