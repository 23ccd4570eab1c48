"""Structured logging infrastructure.

Usage:
    from outcome_predictor.utils import get_logger

    logger = get_logger(__name__)
    logger.info("Loading prediction context")
    logger.error("Source failed", exc_info=True)
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import get_settings

# Track if logging has been set up
_logging_configured = False

PACKAGE_LOGGER = "outcome_predictor"


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        record.levelname_colored = f"{color}{record.levelname:8}{self.RESET}"
        return super().format(record)


def setup_logging(
    level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_dir: Optional[Path] = None,
    force: bool = False,
) -> logging.Logger:
    """Configure console (and optionally file) logging for the package.

    Handlers are attached to the ``outcome_predictor`` logger rather than the
    root logger so that applications embedding the library keep control of
    their own logging tree.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to settings.
        log_to_file: Whether to write to file. Defaults to settings.
        log_dir: Directory for log files. Defaults to settings.
        force: Reconfigure even if logging was already set up (used by the CLI
            to apply ``--verbose``).

    Returns:
        The package logger
    """
    global _logging_configured

    settings = get_settings()

    level = level or settings.log_level
    log_to_file = log_to_file if log_to_file is not None else settings.log_to_file
    log_dir = log_dir or settings.logs_dir

    package_logger = logging.getLogger(PACKAGE_LOGGER)

    if _logging_configured and not force:
        return package_logger

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(
        ColoredFormatter(
            "%(asctime)s | %(levelname_colored)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    package_logger.addHandler(console_handler)

    # File handler (daily rotation by filename)
    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"outcome_predictor_{datetime.now():%Y-%m-%d}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        package_logger.addHandler(file_handler)

    _logging_configured = True
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    This is the primary interface for getting loggers throughout the codebase.
    It ensures logging is set up before returning the logger.

    Args:
        name: Usually pass __name__ to get module-specific logger

    Returns:
        Configured logger instance
    """
    if not _logging_configured:
        setup_logging()

    return logging.getLogger(name)
