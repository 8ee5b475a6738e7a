# /lineage/logger.py

import logging
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from lineage.config import settings

LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s %(threadName)s %(message)s'
SERVICE_NAME = "lineage-rag"


def build_formatter() -> JsonFormatter:
    """One JSON object per line, tagged with the service name."""
    return JsonFormatter(
        LOG_FORMAT,
        rename_fields={"asctime": "timestamp", "levelname": "level"},
        static_fields={"service": SERVICE_NAME},
    )


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Returns a logger that writes structured JSON to stdout. The level defaults
    to LOG_LEVEL; calling again for the same name reuses the first handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())
    logger.addHandler(handler)
    return logger
