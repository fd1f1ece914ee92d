import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from quizora.config import settings


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation in production"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
    return handler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Return a configured logger.

    Parameters:
        name (str): Logger name, usually the module's __name__.
        level (str, optional): Overrides LOG_LEVEL from settings.

    Returns:
        logging.Logger: A logger with a single stdout handler attached.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_build_handler())
        logger.propagate = False
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    return logger
