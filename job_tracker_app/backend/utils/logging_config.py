"""
Logging setup for the Job Tracker API.

Everything goes through the root logger; request access logs, SQL echo and
multipart parsing chatter are held at WARNING.
"""
import logging
import logging.config
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "multipart")


def build_logging_config(level: str = "INFO", log_file: Optional[str] = None) -> Dict[str, Any]:
    """Return a ``logging.config.dictConfig`` mapping for the given level and optional file."""
    level = level.upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stdout",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "standard",
            "filename": log_file,
        }

    return {
        "version": 1,
        # module loggers created at import time must keep working
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT, "datefmt": LOG_DATE_FORMAT}},
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    }


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the root logger; calling it again replaces the previous handlers."""
    logging.config.dictConfig(build_logging_config(level, log_file))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
