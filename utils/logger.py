# ==================================================
# ================ Logger Utilities ================
# ==================================================
from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# Public API
__all__ = [
    "DEFAULT_LOG_DIR",
    "LOG_FORMAT",
    "make_file_handler",
    "get_logger",
    "get_error_logger",
    "get_debug_logger",
]

# ====[ Global logging configuration ]====
DEFAULT_LOG_DIR: Path = Path.cwd() / "logs"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _sync_handler_levels(logger: logging.Logger, level: int) -> None:
    """Apply `level` to every handler already attached to `logger`."""
    for h in logger.handlers:
        h.setLevel(level)


def _log_path(log_dir: Optional[Union[str, Path]], stem: str) -> Path:
    base_dir = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
    today = datetime.now().strftime("%Y-%m-%d")
    return base_dir / f"{stem}_{today}.log"


# ====[ Shared rotating file handler generator ]====
def make_file_handler(
    log_path: Union[str, Path],
    level: int,
    when: str = "midnight",
    backupCount: int = 7,
    encoding: str = "utf-8",
    interval: int = 1,
) -> TimedRotatingFileHandler:
    """
    Create a TimedRotatingFileHandler with the standard formatter.

    Parameters
    ----------
    log_path : str | Path
        Output log file path. Parent directories are created.
    level : int
        Logging level (e.g., logging.INFO).
    when : str, default 'midnight'
        Rotation interval basis per logging.handlers.TimedRotatingFileHandler.
    backupCount : int, default 7
        Number of backup files to keep.
    encoding : str, default 'utf-8'
        File encoding.
    interval : int, default 1
        Rotation interval multiplier.

    Returns
    -------
    TimedRotatingFileHandler
    """
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = TimedRotatingFileHandler(
        filename=str(path),
        when=when,
        interval=interval,
        backupCount=backupCount,
        encoding=encoding,
        delay=True,  # open file on first emit
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler

# ==================================================
# ================ Logger Factory ==================
# ==================================================

# ====[ Main logger: console + file ]====
def get_logger(
    name: str = "nd_combiner",
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
    when: str = "midnight",
    backupCount: int = 7,
) -> logging.Logger:
    """
    Return a logger writing to the console and to a daily rotating file.

    Repeated calls with the same `name` reuse the existing handlers (only their
    level is refreshed). Propagation is disabled to avoid duplicate messages.

    Parameters
    ----------
    name : str, optional
        Logger name. Default is "nd_combiner".
    log_dir : str or Path, optional
        Directory of the log file. None uses DEFAULT_LOG_DIR.
    level : int, optional
        Logging level. Default is logging.INFO.
    when : str, optional
        Rotation interval basis. Default is "midnight".
    backupCount : int, optional
        Number of rotated files to keep. Default is 7.

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        file_handler = make_file_handler(_log_path(log_dir, name), level, when=when, backupCount=backupCount)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
    else:
        _sync_handler_levels(logger, level)

    return logger


# ====[ Error logger: file only ]====
def get_error_logger(
    name: str = "nd_combiner.errors",
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.ERROR,
    backupCount: int = 30,
) -> logging.Logger:
    """
    Return a file-only logger for errors, rotated daily and kept 30 days.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        logger.addHandler(make_file_handler(_log_path(log_dir, "errors"), level, backupCount=backupCount))
    else:
        _sync_handler_levels(logger, level)

    return logger


# ====[ Debug logger: file only ]====
def get_debug_logger(
    name: str = "nd_combiner.debug",
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.DEBUG,
    backupCount: int = 7,
) -> logging.Logger:
    """
    Return a file-only logger for debug traces (shapes, chunking).
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        logger.addHandler(make_file_handler(_log_path(log_dir, "debug"), level, backupCount=backupCount))
    else:
        _sync_handler_levels(logger, level)

    return logger
