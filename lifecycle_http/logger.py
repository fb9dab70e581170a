import json
import logging
import os
import sys
from typing import Any, Dict

from lifecycle_http.core.constants import DEFAULT_SERVICE_NAME

# Attribute on LogRecord holding the structured fields of a log call
FIELDS_ATTR = "fields"


class StructuredFormatter(logging.Formatter):
    """Formatter that appends the structured fields of a record as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = getattr(record, FIELDS_ATTR, None)
        if fields:
            message = f"{message}\t{json.dumps(fields, default=str, sort_keys=True)}"
        return message


def log_fields(**fields: Any) -> Dict[str, Dict[str, Any]]:
    """
    Build the ``extra`` argument for a structured log call.

    Example:
        logger.info("Handling request", extra=log_fields(path="/echo"))
    """
    return {FIELDS_ATTR: fields}


def get_logger(name=DEFAULT_SERVICE_NAME, level=None):
    """
    Configures and returns a standardized logger instance.

    The level comes from ``level`` when given, otherwise from the
    ``DEBUG_LOGS_ENABLED`` environment variable (INFO by default).
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(level)
    elif os.environ.get("DEBUG_LOGS_ENABLED", "false").lower() == "true":
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    # Configure handler only if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = StructuredFormatter(
            "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def new_logger(settings) -> logging.Logger:
    """Build the process-wide service logger from settings."""
    logger = get_logger(settings.service_name, level=settings.effective_log_level)
    logger.debug(
        "Logger configured",
        extra=log_fields(
            environment=settings.environment,
            level=logging.getLevelName(logger.level),
        ),
    )
    return logger
