"""Logging configuration for the CLI and web server."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from dategallery.config.models import LoggingSettings

PACKAGE_LOGGER = "dategallery"
_FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(
    settings: LoggingSettings,
    *,
    console: Console | None = None,
    level_override: str | None = None,
) -> logging.Logger:
    """Attach console and optional rotating file handlers to the package logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        settings: Logging section of the loaded configuration.
        console: Rich console to render log records on; stderr when omitted.
        level_override: Level name taking precedence over ``settings.level``.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level_name = (level_override or settings.level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_dategallery", False):
            logger.removeHandler(handler)
            handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    rich_handler._dategallery = True  # type: ignore[attr-defined]
    logger.addHandler(rich_handler)

    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
            backupCount=max(0, settings.backup_count),
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler._dategallery = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    return logger


__all__ = ["PACKAGE_LOGGER", "configure_logging"]
