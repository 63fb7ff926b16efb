"""Centralized logging configuration for the mark-read job."""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"

NOISY_LOGGERS = ("googleapiclient", "google.auth", "google_auth_httplib2", "urllib3")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log aggregator compatibility.

    Produces one JSON object per line (NDJSON) with fields:
    timestamp, level, logger, thread, message, and optionally exception.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(
    level_override: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """Configure logging based on environment variables.

    Args:
        level_override: If set, takes precedence over LOG_LEVEL env var.
        log_file: If set, takes precedence over LOG_FILE env var.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
            Defaults to INFO.
        LOG_FORMAT: "json" for JSON lines, anything else for
            human-readable. Defaults to "text".
        LOG_FILE: Also write log records to this file.
    """
    level_name = (level_override or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    log_format = os.getenv("LOG_FORMAT", "text").lower()
    formatter = JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    file_path = log_file or os.getenv("LOG_FILE")
    if file_path:
        handlers.append(logging.FileHandler(file_path))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
