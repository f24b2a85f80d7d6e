"""Console logging setup and log-file placement."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from pathlib import Path

from rich.logging import RichHandler

from foldersync.config.models import LoggingConfig

LOGGER_NAME = "foldersync"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format == "json":
        return JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT)


def leaf_name(path: str) -> str:
    """Last component of *path*, ignoring trailing separators."""
    return re.split(r"[\\/]", path.rstrip("/\\"))[-1] or "root"


def sync_log_name(source: str, destination: str, now: datetime | None = None) -> str:
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"sync_{leaf_name(source)}_to_{leaf_name(destination)}_{timestamp}.log"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the package logger for console output."""
    config = config or LoggingConfig()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_LEVELS[config.level])
    logger.propagate = False

    for handler in list(logger.handlers):
        if not isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()

    if config.console:
        if config.format == "json":
            console: logging.Handler = logging.StreamHandler()
            console.setFormatter(JsonFormatter())
        else:
            console = RichHandler(show_path=False, rich_tracebacks=True)
        logger.addHandler(console)
    return logger


class LogConfigurationProvider:
    """Decides where run logs go and attaches the file handler."""

    def __init__(self, config: LoggingConfig | None = None) -> None:
        self.config = config or LoggingConfig()
        self._handler: logging.FileHandler | None = None

    @property
    def log_file(self) -> Path | None:
        return Path(self._handler.baseFilename) if self._handler else None

    def default_log_path(self, source: str, destination: str) -> Path:
        return Path(self.config.log_dir) / sync_log_name(source, destination)

    def set_log_file(self, path: str | Path) -> None:
        """Route package logs to *path*, replacing any previous log file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        logger = logging.getLogger(LOGGER_NAME)
        self.close()
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(_formatter(self.config))
        logger.addHandler(handler)
        self._handler = handler

    def close(self) -> None:
        if self._handler is None:
            return
        logger = logging.getLogger(LOGGER_NAME)
        logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None
