"""Logging setup driven by LoggingSettings.

Console output always; a file handler when LOG_FILE is set.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from .config import LoggingSettings, settings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter()
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(config: LoggingSettings | None = None) -> None:
    """Configure the root logger.

    Safe to call more than once; existing handlers are replaced.

    Args:
        config: Logging settings (defaults to application settings)
    """
    config = config or settings.logging

    root = logging.getLogger()
    root.setLevel(getattr(logging, config.level))
    root.handlers.clear()

    formatter = _build_formatter(config.format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # SQLAlchemy echoes through its own logger; keep it quiet unless DEBUG
    if config.level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
