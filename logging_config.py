"""
Logging setup for ScholarDocsWeb.

Tool jobs run in worker threads named ``Tool-<id8>``. Every record is
tagged with the emitting thread, so one job can be followed from upload
through the compression stages to download.

Log Format:
    2026-06-03 10:15:30 [INFO    ] [MainThread] scholar_docs.app - Starting ScholarDocsWeb
    2026-06-03 10:15:31 [DEBUG   ] [Tool-a1b2c3d4] scholar_docs.tool.a1b2c3d4 - Stage 2 ...

Usage:
    setup_logging(log_level=logging.DEBUG, enable_file_logging=False)
    logger = get_logger(__name__)
    tool_logger = get_tool_logger(job_id)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "scholar_docs"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


class ThreadContextFilter(logging.Filter):
    """Adds ``thread_name`` and ``thread_id`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        record.thread_id = threading.get_ident()
        return True


def _attach(
    logger: logging.Logger,
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    thread_filter: logging.Filter,
) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    logger.addHandler(handler)


def _rotating(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the application logger.

    Console output is always on. With file logging enabled, a rotating
    ``<app_name>.log`` and an ERROR-only ``<app_name>_error.log`` are
    written to log_dir (default: ./logs next to this file).

    Calling it again replaces the handlers, so tests can build several apps.

    Returns:
        The configured application logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    _attach(logger, logging.StreamHandler(sys.stdout), log_level, formatter, thread_filter)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        main_log = log_dir / f"{app_name}.log"
        _attach(logger, _rotating(main_log), log_level, formatter, thread_filter)
        _attach(
            logger, _rotating(log_dir / f"{app_name}_error.log"),
            logging.ERROR, formatter, thread_filter,
        )
        logger.info(f"File logging enabled: {main_log}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the application namespace.

    ``get_logger("services.tool_service")`` -> ``scholar_docs.services.tool_service``
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_tool_logger(job_id: str) -> logging.Logger:
    """Logger for one tool job, named after the first 8 characters of its ID."""
    return logging.getLogger(f"{APP_LOGGER_NAME}.tool.{job_id[:8]}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in every log line."""
    threading.current_thread().name = name
