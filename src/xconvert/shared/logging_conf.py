# src/xconvert/shared/logging_conf.py
"""
Logging Configuration - Root Logger Setup for the Service

Configures the root logger once at startup: a stdout handler (unless a
process supervisor already captures output) and an optional size-rotated
file. Library loggers that are chatty at INFO (pika frames, APScheduler job
executions, uvicorn access lines) are raised to WARNING so the service's own
messages stay readable.

Files that USE this module:
- xconvert.app (main() calls setup_logging before wiring services)

Files that this module USES:
- None (pure configuration module)
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_NAME = "xconvert.log"

QUIET_LOGGERS = ("pika", "apscheduler.executors", "apscheduler.scheduler", "uvicorn.access")


def _log_path(log_file: Optional[Union[str, Path]], log_dir: Optional[Union[str, Path]]) -> Optional[Path]:
    if log_dir:
        return Path(log_dir) / (Path(log_file).name if log_file else DEFAULT_LOG_NAME)
    if log_file:
        return Path(log_file)
    return None


def setup_logging(
    level=logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    log_dir: Optional[Union[str, Path]] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    stdout: bool = True,
) -> Optional[Path]:
    """
    Configure application-wide logging.

    Args:
        level: Root logging level (default: logging.INFO)
        log_file: Log file path, or file name when log_dir is given
        log_dir: Directory for the log file (file name defaults to xconvert.log)
        max_bytes: Size at which the file is rotated (default: 10MB)
        backup_count: Rotated files to keep (default: 5)
        stdout: Also log to stdout (XCONVERT_LOG_STDOUT)

    Returns:
        Path of the log file, or None when logging to stdout only
    """
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    handlers: List[logging.Handler] = []

    path = _log_path(log_file, log_dir)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Never leave the service silent
    if stdout or not handlers:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        handlers.append(stream_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured: %s, level=%s",
                f"file={path}" if path else "stdout", logging.getLevelName(level))
    return path
