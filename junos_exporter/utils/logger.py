"""Structured JSON logging configuration."""

import logging
import sys
from pythonjsonlogger import jsonlogger

# Transport libraries log every SSH handshake and NETCONF hello at INFO
TRANSPORT_LOGGERS = ("ncclient", "paramiko")


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        timestamp=True
    )
    handler.setFormatter(formatter)
    return handler


def setup_logger(name: str = "junos_exporter", level: str = "INFO") -> logging.Logger:
    """
    Configure structured JSON logging.

    The NETCONF transport libraries get the same JSON handler, capped at
    WARNING unless DEBUG is requested.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        logging.Logger: Configured logger instance
    """
    log_level = getattr(logging, level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers = [_json_handler()]
    logger.propagate = False

    for library in TRANSPORT_LOGGERS:
        library_logger = logging.getLogger(library)
        library_logger.setLevel(log_level if log_level == logging.DEBUG else logging.WARNING)
        library_logger.handlers = [_json_handler()]
        library_logger.propagate = False

    return logger
