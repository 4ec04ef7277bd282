"""
Logging configuration for Series Sentinel runs.

Console output always; a rotating file under ``config.logs_dir`` unless
``SENTINEL_LOG_TO_FILE=false``. Library modules only call
``logging.getLogger(__name__)`` and never configure handlers themselves.
"""

import logging
import logging.handlers
from typing import Optional

from .config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    logger_name: str = "series_sentinel",
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure and return the package logger.

    Module loggers inside the package propagate to this one, so configuring
    it once per process is enough. Calling again only updates the level.

    Args:
        logger_name: Name of the logger (typically the package name)
        level: Level name overriding ``config.log_level``

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    level = (level or config.log_level).upper()
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.log_to_file:
        file_handler = logging.handlers.RotatingFileHandler(
            config.logs_dir / f"{logger_name}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
