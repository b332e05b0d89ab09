"""
logger.py — Structured logging with daily rotation.
"""
import os
import logging
import logging.handlers
from datetime import datetime, timezone

LOGGER_NAME = "assetpipe"

_initialized = False


class StructuredFormatter(logging.Formatter):
    """Flattens each record to ``key=value | key=value``."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        parts = [f"{k}={v}" for k, v in log_entry.items()]
        return " | ".join(parts)


def setup_logging(log_dir="logs", log_level="INFO"):
    """
    Configure the pipeline logger once per process.

    Parameters
    ----------
    log_dir : str — directory for log files
    log_level : str — logging level
    """
    global _initialized
    logger = logging.getLogger(LOGGER_NAME)
    if _initialized:
        return logger

    os.makedirs(log_dir, exist_ok=True)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Daily rotation, keep 30 days
    log_path = os.path.join(log_dir, "assetpipe.log")
    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_path, when="midnight", backupCount=30, encoding="utf-8"
    )
    file_handler.setFormatter(StructuredFormatter())
    logger.addHandler(file_handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(threadName)s %(message)s"
    ))
    logger.addHandler(console)

    _initialized = True
    logger.info("Structured logging initialised")
    return logger
