from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def console_level(config: LoggingConfig) -> int:
    return logging.DEBUG if config.verbose else logging.INFO


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """Console at INFO (DEBUG when verbose), rotating file at ``file_level``."""
    log_dir = Path(config.directory)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_level = logging.getLevelName(config.file_level)
    logger = logging.getLogger("pathrepair")
    logger.setLevel(min(console_level(config), file_level))
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setLevel(console_level(config))
    console.setFormatter(formatter)
    logger.addHandler(console)

    file_handler = RotatingFileHandler(
        log_dir / config.text_filename,
        maxBytes=config.rotate_bytes,
        backupCount=config.backups,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
