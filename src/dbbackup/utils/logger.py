"""
Logging utilities for the database backup tool

Console output goes to stdout; an optional rotating log file gets the
caller location as well. Driver loggers are kept at WARNING unless the
tool itself runs at DEBUG.
"""

import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers that are chatty at INFO
DRIVER_LOGGERS = ("asyncio", "aiomysql", "pymongo")


def _resolve_level(log_level: str) -> Optional[int]:
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else None


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> None:
    """Configure the root logger for a backup run.

    An unknown level name falls back to INFO with a warning, so a typo in
    BACKUP_LOG_LEVEL never stops a backup.
    """
    level = _resolve_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level if level is not None else logging.INFO)
    root_logger.handlers.clear()

    root_logger.addHandler(_console_handler())
    if log_file:
        root_logger.addHandler(_file_handler(Path(log_file), max_bytes, backup_count))

    driver_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)

    if level is None:
        root_logger.warning(f"Unknown log level '{log_level}', using INFO")


def get_logger(name: str) -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


class OperationLogger:
    """Logs start, completion time and failure of a pipeline step"""

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self._started: Optional[float] = None

    @property
    def elapsed(self) -> float:
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def __enter__(self):
        self._started = time.monotonic()
        self.logger.log(self.level, f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.log(self.level, f"Completed {self.operation} in {self.elapsed:.2f}s")
        else:
            self.logger.error(
                f"Failed {self.operation} after {self.elapsed:.2f}s "
                f"({exc_type.__name__}): {exc_val}"
            )
        return False
