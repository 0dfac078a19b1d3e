import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FORMAT_WITH_CORRELATION = '%(asctime)s - %(name)s - %(levelname)s - [{correlation_id}] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _build_formatter(correlation_id: Optional[str] = None) -> logging.Formatter:
    if correlation_id:
        return logging.Formatter(
            LOG_FORMAT_WITH_CORRELATION.format(correlation_id=correlation_id),
            datefmt=DATE_FORMAT
        )
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    correlation_id: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    The handler is attached to the root logger so that module loggers
    obtained with get_logger(__name__) share the same output.

    Args:
        component_name: Name of the component (e.g., 'metadataservice', 'blockserver', 'cli')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        correlation_id: Optional correlation ID to include in log format

    Returns:
        Logger for the component
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, '_bitstore_handler', False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler._bitstore_handler = True
        root.addHandler(handler)

    for handler in root.handlers:
        if getattr(handler, '_bitstore_handler', False):
            handler.setLevel(level)
            handler.setFormatter(_build_formatter(correlation_id))

    logger = logging.getLogger(component_name)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)

