"""Logging configuration for crawl runs.

Every record is stamped with the job it belongs to, so lines from
concurrent batch runs writing to one sink can be told apart.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "playwright")

CRAWL_LOG_FORMAT = '%(asctime)s %(levelname)-7s [%(job_id)s] %(name)s: %(message)s'

NO_JOB = "-"


class JobContextFilter(logging.Filter):
    """Attach ``job_id`` to every record passing through a handler."""

    def __init__(self, job_id: Optional[str] = None):
        super().__init__()
        self.job_id = job_id or NO_JOB

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "job_id"):
            record.job_id = self.job_id
        return True


def job_log_path(log_dir: str, job_id: str) -> Path:
    """Per-job log file location, e.g. ``logs/job-42.log``."""
    return Path(log_dir) / f"{job_id}.log"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    job_id: Optional[str] = None,
    library_level: int = logging.WARNING,
) -> None:
    """Configure logging for crawl runs.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path, parent directories are created
        format_string: Optional custom format string
        job_id: Job identifier stamped on every record
        library_level: Level for HTTP/browser library loggers
    """
    if format_string is None:
        format_string = CRAWL_LOG_FORMAT

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    job_filter = JobContextFilter(job_id)
    for handler in handlers:
        handler.addFilter(job_filter)

    logging.basicConfig(
        level=numeric_level,
        format=format_string,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
