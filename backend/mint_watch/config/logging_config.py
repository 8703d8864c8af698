"""
Logging configuration
JSON records on stdout plus rotating app and error files under LOG_DIR
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from mint_watch.config.settings import settings


# Attributes passed through `extra=` that end up in the JSON record
EXTRA_FIELDS = (
    "request_id",
    "contract_address",
    "block_number",
    "transaction_hash",
    "subscription",
)

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty libraries; request lines already come from our middleware
QUIET_LOGGERS = {
    "uvicorn": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "asyncio": logging.WARNING,
    "websockets": logging.WARNING,
    "web3": logging.WARNING,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        for field in EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        return json.dumps(log_data, default=str)


def _file_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_dir: Optional[str] = None
) -> None:
    """Install the console, app.log and error.log handlers on the root logger

    Arguments default to LOG_LEVEL, LOG_FORMAT and LOG_DIR.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT
    directory = Path(log_dir or settings.LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        JSONFormatter() if log_format == "json" else logging.Formatter(PLAIN_FORMAT)
    )
    root_logger.addHandler(console_handler)

    # Everything at INFO and above, 5 x 10MB
    root_logger.addHandler(_file_handler(
        RotatingFileHandler(directory / "app.log", maxBytes=10_485_760, backupCount=5),
        logging.INFO
    ))
    # Errors only, one file per day for a month
    root_logger.addHandler(_file_handler(
        TimedRotatingFileHandler(directory / "error.log", when="midnight", backupCount=30),
        logging.ERROR
    ))

    for name, logger_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(logger_level)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name} format={log_format} dir={directory}"
    )
