"""
Logging configuration for the auth service.

All modules log through ``get_logger(__name__)``; ``setup_logging`` is called
once from ``main.py`` and routes uvicorn's loggers through the same handler.
"""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Setup logging configuration for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()

    # Remove all existing handlers to prevent duplication
    while root_logger.handlers:
        root_logger.removeHandler(root_logger.handlers[0])

    root_logger.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        log = logging.getLogger(logger_name)
        log.handlers = []
        log.propagate = True

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # sqlalchemy echoes every statement at INFO
    for logger_name in ["sqlalchemy.engine", "httpx", "httpcore"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module."""
    return logging.getLogger(name)
