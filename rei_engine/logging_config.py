"""
logging_config.py

Structured logging for the engine, services and API.

Format: [TIMESTAMP] [LEVEL] [MODULE:FUNCTION:LINE] MESSAGE
Level comes from the LOG_LEVEL environment variable unless given.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from rei_engine.config import settings


class StructuredFormatter(logging.Formatter):
    """
    Single-line formatter with source location.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        location = f"{record.module}:{record.funcName}:{record.lineno}"

        message = f"[{timestamp}] [{record.levelname:8s}] [{location}] {record.getMessage()}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Set up a logger with structured formatting and optional file output.

    Args:
        name: Logger name (usually __name__)
        level: DEBUG, INFO, WARNING, ERROR. Defaults to settings.log_level
        log_file: Optional file path. Defaults to settings.log_file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers on re-import
    if logger.handlers:
        return logger

    level = (level or settings.log_level).upper()
    log_level = getattr(logging, level, logging.INFO)
    logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    log_file = log_file or settings.log_file
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger
