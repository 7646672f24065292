"""Logging setup shared by the CLI and embedding applications."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from mediashelf.config.models import LoggingSettings

DEFAULT_LOG_PATH = Path("~/.mediashelf/mediashelf.log")
_HANDLER_MARKER = "_mediashelf_handler"


def configure_logging(
    settings: Optional[LoggingSettings] = None,
    *,
    log_path: Optional[Path] = DEFAULT_LOG_PATH,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach a rotating file handler and a Rich console handler to the package logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        settings: Level and rotation settings; defaults when omitted.
        log_path: Log file location, or None to skip file logging.
        console: Console used for stderr output; a new stderr console by default.

    Returns:
        logging.Logger: The configured ``mediashelf`` logger.
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger("mediashelf")
    level = logging.getLevelName(settings.level.upper())
    logger.setLevel(level if isinstance(level, int) else logging.WARNING)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    setattr(rich_handler, _HANDLER_MARKER, True)
    logger.addHandler(rich_handler)

    if log_path is not None:
        path = log_path.expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                path,
                maxBytes=max(settings.max_size_mb, 1) * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("File logging disabled: %s", exc)
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            setattr(file_handler, _HANDLER_MARKER, True)
            logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "DEFAULT_LOG_PATH"]
