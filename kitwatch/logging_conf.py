"""Logging configuration: structlog events rendered as JSON by stdlib handlers."""

from __future__ import annotations

import logging
import logging.config
import os
import re
from collections import deque
from pathlib import Path
from typing import Any, Iterable

import structlog

LOGGER_NAME = "kitwatch"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9_.+-]+")

_LOGGING_INITIALISED = False


def _default_log_dir() -> Path:
    env_root = os.environ.get("KITWATCH_HOME")
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "formatter": "json",
        "encoding": "utf-8",
    }


def _logging_dict(log_dir: Path, verbose: bool) -> dict[str, Any]:
    # Console stays quiet unless verbose; the CLI prints its own output.
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "pythonjsonlogger.json.JsonFormatter", "fmt": _JSON_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG" if verbose else "WARNING",
                "formatter": "json",
            },
            "main_file": _file_handler(log_dir / "kitwatch.log", "INFO"),
            "error_file": _file_handler(log_dir / "error.log", "ERROR"),
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["console", "main_file", "error_file"],
                "level": "DEBUG" if verbose else "INFO",
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers once and return the application logger."""

    global _LOGGING_INITIALISED
    log_dir = _default_log_dir()
    (log_dir / "feeds").mkdir(parents=True, exist_ok=True)

    if not _LOGGING_INITIALISED:
        logging.config.dictConfig(_logging_dict(log_dir, verbose))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def feed_logger(feed_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``feed_name`` that also writes to ``logs/feeds/<name>.log``."""

    configure_logging(verbose)
    safe_name = _UNSAFE_NAME.sub("_", feed_name) or "feed"
    path = _default_log_dir() / "feeds" / f"{safe_name}.log"
    path.parent.mkdir(parents=True, exist_ok=True)

    logger_name = f"{LOGGER_NAME}.feed.{safe_name}"
    py_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == str(path)
        for handler in py_logger.handlers
    ):
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(logging.INFO)
        parent_handlers = logging.getLogger(LOGGER_NAME).handlers
        if parent_handlers:
            handler.setFormatter(parent_handlers[0].formatter)
        py_logger.addHandler(handler)

    return structlog.get_logger(logger_name).bind(feed=feed_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return list(deque(stream, maxlen=line_count))


def main_log_path() -> Path:
    return _default_log_dir() / "kitwatch.log"


def available_feed_logs() -> Iterable[Path]:
    feeds_dir = _default_log_dir() / "feeds"
    if not feeds_dir.exists():
        return []
    return sorted(feeds_dir.glob("*.log"))


__all__ = [
    "LOGGER_NAME",
    "available_feed_logs",
    "configure_logging",
    "feed_logger",
    "main_log_path",
    "tail_log",
]
