# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-07
# Updated: 2026-02-03
# Description: logging_utils.py
# -----------------------------------------------------------------------------
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import colorlog

BASE_NAME = "qabrew"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# brew runs log one line per skipped record; skips should stand out
MESSAGE_COLORS = {
    "WARNING": "yellow",
    "ERROR": "light_red",
    "CRITICAL": "red",
}


def _level_from_env() -> int:
    return getattr(logging, os.getenv("QABREW_LOG_LEVEL", "INFO").upper(), logging.INFO)


def _file_logging_enabled() -> bool:
    return os.getenv("QABREW_LOG_TO_FILE", "0").strip().lower() in ("1", "true", "yes", "y")


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(
        fmt="%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(name)s: %(message_log_color)s%(message)s",
        datefmt=DATE_FORMAT,
        log_colors=LEVEL_COLORS,
        secondary_log_colors={"message": MESSAGE_COLORS},
    ))
    return handler


def _file_handler() -> Optional[logging.Handler]:
    """Rotating file sink, only when QABREW_LOG_TO_FILE is set."""
    if not _file_logging_enabled():
        return None

    path = Path(os.getenv("QABREW_LOG_FILE", "./logs/qabrew.log"))
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=int(os.getenv("QABREW_LOG_MAX_BYTES", str(5 * 1024 * 1024))),
        backupCount=int(os.getenv("QABREW_LOG_BACKUP_COUNT", "5")),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)-8s %(name)s:%(lineno)d %(message)s",
        datefmt=DATE_FORMAT,
    ))
    return handler


def _configured(full_name: str) -> logging.Logger:
    logger = logging.getLogger(full_name)
    if logger.handlers:
        return logger

    logger.addHandler(_console_handler())
    file_handler = _file_handler()
    if file_handler is not None:
        logger.addHandler(file_handler)

    logger.setLevel(_level_from_env())
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under the qabrew namespace, e.g. qabrew.health.EmbeddingHealth."""
    return _configured(f"{BASE_NAME}.{name}" if name else BASE_NAME)


def get_class_logger(cls: type) -> logging.Logger:
    """
    Logger named after module + class:

      qabrew.embedding.QAEmbedder.QAEmbedder
      qabrew.services.QABrewService.QABrewService
    """
    module = getattr(cls, "__module__", "unknown_module")
    return _configured(f"{BASE_NAME}.{module}.{cls.__name__}")


def set_log_level(level_name: str) -> None:
    """
    Apply a level to every qabrew logger, existing and future.
    Used by the CLI --verbose flag.
    """
    level_name = level_name.upper()
    os.environ["QABREW_LOG_LEVEL"] = level_name
    level = getattr(logging, level_name, logging.INFO)

    for name, existing in logging.Logger.manager.loggerDict.items():
        if not isinstance(existing, logging.Logger):
            continue
        if name == BASE_NAME or name.startswith(f"{BASE_NAME}."):
            existing.setLevel(level)
