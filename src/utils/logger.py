"""Logging configuration using loguru.

Every record carries a ``component`` field (``ingestion``, ``retriever``,
``qdrant``, ...) so the console and JSON file sinks can be filtered by
pipeline stage.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from src.utils.config import Settings, get_settings

DEFAULT_COMPONENT = "app"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[component]: <11}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]} | "
    "{name}:{function}:{line} - {message}"
)

# Records logged before setup_logger() still need the field
logger.configure(extra={"component": DEFAULT_COMPONENT})


def setup_logger(settings: Optional[Settings] = None):
    """Configure application logging using loguru.

    Sets up a console sink and a rotating file sink; the file sink is
    JSON-serialised when ``log_format`` is ``json``.
    """
    settings = settings or get_settings()

    logger.remove()
    logger.configure(extra={"component": DEFAULT_COMPONENT})

    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level=settings.log_level,
        colorize=True,
    )

    log_path = Path(settings.log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path,
        format="{message}" if settings.log_format == "json" else FILE_FORMAT,
        level=settings.log_level,
        rotation=f"{settings.log_max_size_mb} MB",
        retention=settings.log_backup_count,
        serialize=settings.log_format == "json",
    )

    logger.bind(component="logging").info(
        f"Logger initialized: level={settings.log_level}, "
        f"format={settings.log_format}, file={log_path}"
    )

    return logger


def get_logger(component: str = DEFAULT_COMPONENT):
    """Get the shared logger bound to one pipeline component."""
    return logger.bind(component=component)
