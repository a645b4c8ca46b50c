"""
Logger utility for consistent logging across the repository toolkit.

This module provides a standardized way to create and configure loggers,
ensuring consistent log formatting and behavior.

Features:
- Consistent log format across all modules
- Configurable log level based on settings or environment variables
- Stream handler to stdout for easy viewing in console/terminal
- Optional rotating file handler
- Prevents duplicate log handlers when called multiple times
"""

import os
import logging
import logging.handlers
import sys
from typing import Optional

from toolkit.utils.config import Settings, get_settings

# Default log format
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
VERBOSE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure global logging for an application using the toolkit.

    Args:
        settings: Settings to read DEBUG, LOG_LEVEL and LOG_FILE from.
            Defaults to the cached settings.

    Returns:
        logging.Logger: The toolkit's package logger
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates when reloading
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else log_level)
    root_logger.addHandler(console_handler)

    if settings.LOG_FILE:
        file_handler = logging.handlers.RotatingFileHandler(
            settings.LOG_FILE,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # SQL echo only in debug mode
    logging.getLogger('sqlalchemy.engine').setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )

    logger = logging.getLogger('toolkit')
    logger.info(f"Logging initialized with level {logging.getLevelName(log_level)}")
    return logger

def get_logger(name: Optional[str] = None, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger instance with consistent formatting.

    If neither the logger nor the root logger has handlers, a stdout handler
    is attached so messages are visible before ``setup_logging`` runs.

    Args:
        name: Optional name for the logger, usually ``__name__``.
        level: The logging level to set. If None, uses LOG_LEVEL from the environment.

    Returns:
        logging.Logger: Configured logger instance ready for use.

    Example:
        ```python
        from toolkit.utils.logger import get_logger

        logger = get_logger(__name__)
        logger.info("Resolved repository")
        ```
    """
    if level is None:
        log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
        level = getattr(logging, log_level_name, logging.INFO)

    logger = logging.getLogger(name or __name__)
    logger.setLevel(level)

    root_logger = logging.getLogger()
    if not logger.handlers and not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
        logger.addHandler(handler)

    return logger
