"""Centralized logging configuration for the application.
This module sets up application-wide logging using Python's logging module.
It configures both console and file logging with UTF-8 encoding.
It also provides helper functions to log messages, replacing special Unicode
characters with their textual equivalents to avoid encoding issues.
"""

import os
import logging
import sys
from logging.handlers import RotatingFileHandler

from backend.app.utils.constant.constant import ERROR_WORD, WARNING_WORD, LOG_DIR

# Create the logs directory if it does not exist
os.makedirs(LOG_DIR, exist_ok=True)

"""The following configuration sets up logging for the application.
It configures both console logging (via sys.stdout) and file logging using a rotating file handler.
Log files are capped at 10 MB with up to 5 backups.
"""
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(stream=sys.stdout),
        RotatingFileHandler(
            os.path.join(LOG_DIR, "app.log"),
            maxBytes=10485760,  # 10 MB
            backupCount=5,
            encoding='utf-8'
        )
    ]
)

# Application logger shared by every service.
default_logger = logging.getLogger("rgpd_compliance")
default_logger.setLevel(logging.INFO)


def _safe(message: str, ok_word: str) -> str:
    # Replace emoji markers so log files stay plain text.
    return message.replace("[OK]", ok_word).replace("❌", ERROR_WORD).replace("⚠️", WARNING_WORD)


def log_info(message, *args, **kwargs):
    """Log an informational message."""
    default_logger.info(message.replace("❌", ERROR_WORD).replace("⚠️", WARNING_WORD), *args, **kwargs)


def log_error(message, *args, **kwargs):
    """Log an error message."""
    default_logger.error(_safe(message, ERROR_WORD), *args, **kwargs)


def log_warning(message, *args, **kwargs):
    """Log a warning message."""
    default_logger.warning(_safe(message, WARNING_WORD), *args, **kwargs)


def log_debug(message, *args, **kwargs):
    """
    Log a debug message.

    Debug messages are emitted at the INFO level so they appear in the default configuration.
    """
    default_logger.info(_safe(message, "[DEBUG]"), *args, **kwargs)


__all__ = ["default_logger", "log_info", "log_error", "log_warning", "log_debug"]
