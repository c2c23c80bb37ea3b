"""
Structured logging configuration.

JSON logs for workers and production API processes, a plain formatter for
local development. Every lifecycle transition logs through this setup.
"""

import logging
import sys
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from app.core.timeutils import utcnow


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps every record with a UTC timestamp and its origin.
    """

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = utcnow().isoformat() + 'Z'
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName

        # Location only matters when something went wrong
        if record.levelno >= logging.WARNING:
            log_record['line'] = record.lineno
            log_record['pathname'] = record.pathname


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure root logging for the API and the Celery worker.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: JSON output when True, human-readable lines otherwise
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)

    if json_logs:
        formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(logger)s %(module)s %(funcName)s %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler.setFormatter(formatter)
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.addHandler(console_handler)

    # Quiet the AWS SDK and SQLAlchemy engine chatter
    for noisy in ("urllib3", "boto3", "botocore", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.INFO)
