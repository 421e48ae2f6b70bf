from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_MARK = "_notebloc_handler"


def configure_logging(
    level: str | int | None = None,
    log_path: Path | None = None,
    *,
    console: bool = True,
) -> logging.Logger:
    """Attach a rotating file handler (and optionally stderr) to the package logger.

    Calling it again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger("notebloc")
    logger.setLevel(level if level is not None else settings.log_level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    path = log_path if log_path is not None else settings.log_path
    path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        path,
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handlers: list[logging.Handler] = [file_handler]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)

    return logger
