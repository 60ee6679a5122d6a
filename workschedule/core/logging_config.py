# workschedule/core/logging_config.py
"""
Logging configuration for the work schedule store.

Provides structured logging with file rotation and different levels
for development and production environments.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path

from workschedule.core.config import IS_PRODUCTION, LOG_DIR

APP_LOG_FILENAME = "app.log"
ERROR_LOG_FILENAME = "error.log"


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON for easier parsing by log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        # Store context
        if hasattr(record, "collection"):
            log_data["collection"] = record.collection

        if hasattr(record, "backup_file"):
            log_data["backup_file"] = record.backup_file

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Colored formatter for console output in development.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # Color a copy so file handlers sharing the record keep the plain name
        colored = logging.makeLogRecord(record.__dict__)
        if colored.levelname in self.COLORS:
            colored.levelname = f"{self.COLORS[colored.levelname]}{colored.levelname}{self.RESET}"
        return super().format(colored)


def setup_logging(log_dir: Path | None = None, production: bool | None = None) -> None:
    """
    Configure logging for the application.

    In production:
    - JSON format
    - Logs to rotating files
    - INFO level for app logs
    - Separate error log file

    In development:
    - Colored console output
    - DEBUG level
    - Human-readable format

    Args:
        log_dir: Directory for the log files, defaults to LOG_DIR
        production: Overrides the PRODUCTION environment switch
    """
    log_dir = Path(log_dir) if log_dir is not None else LOG_DIR
    production = IS_PRODUCTION if production is None else production
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO if production else logging.DEBUG)
    root_logger.handlers.clear()

    if production:
        app_handler = logging.handlers.RotatingFileHandler(
            log_dir / APP_LOG_FILENAME,
            maxBytes=10_000_000,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        app_handler.setLevel(logging.INFO)
        app_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(app_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / ERROR_LOG_FILENAME,
            maxBytes=10_000_000,  # 10MB
            backupCount=10,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(error_handler)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)

    else:
        # stderr keeps CLI output on stdout clean
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(ColoredFormatter(
            fmt='%(levelname)-8s %(asctime)s [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(console_handler)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / APP_LOG_FILENAME,
            maxBytes=5_000_000,  # 5MB
            backupCount=2,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(levelname)s %(asctime)s [%(name)s:%(lineno)d] %(message)s'
        ))
        root_logger.addHandler(file_handler)

    # SQL echo is far too chatty for the app log
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging configured (production=%s)",
        production,
        extra={
            "extra_fields": {
                "log_dir": str(log_dir.absolute()),
                "production": production
            }
        }
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class LogContext:
    """
    Context manager for adding extra fields to log records.

    Usage:
        with LogContext(collection="schedule", backup_file="work-schedule-May-2024.json"):
            logger.info("Backup written")
    """

    def __init__(self, **kwargs):
        self.extra_fields = kwargs
        self.old_factory = None

    def __enter__(self):
        self.old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = self.old_factory(*args, **kwargs)
            for key, value in self.extra_fields.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self.old_factory)
