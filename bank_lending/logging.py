"""Logging setup for bank-lending.

Ledger and service log calls attach the ids they touch through ``extra=``::

    logger.info("Recorded payment", extra={"loan_id": "LOAN_0001", "payment_id": "PAY_0001"})

The standard format appends them as ``[loan_id=LOAN_0001 payment_id=PAY_0001]``;
the JSON format emits them as top-level keys.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

CONTEXT_FIELDS = ("customer_id", "loan_id", "payment_id", "event_type")
QUIET_LOGGERS = ("confluent_kafka", "faker")
STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s%(context)s"


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> None:
    """Configure logging for bank-lending.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown names fall
        back to INFO.
    format_type : str
        Format type: "standard" or "json".
    stream : TextIO | None
        Destination, ``sys.stderr`` by default. CLI responses own stdout.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = ContextFormatter(STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("bank_lending").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_context(record: logging.LogRecord) -> dict[str, Any]:
    """Ledger ids attached to a record, in ``CONTEXT_FIELDS`` order."""
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class ContextFormatter(logging.Formatter):
    """Line formatter that appends the record's ledger ids."""

    def format(self, record: logging.LogRecord) -> str:
        context = log_context(record)
        record.context = (
            " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"
            if context
            else ""
        )
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, ledger ids included."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **log_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
