"""Logging configuration for the swarmplan package."""
import logging
import sys

from .config import Config


def setup_logger(name: str, level: int = None) -> logging.Logger:
    """
    Set up a logger with the specified name and log level.

    Log lines go to stderr so command output on stdout stays parseable.

    Args:
        name: The name of the logger
        level: The logging level (default: Config.LOG_LEVEL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    level = level if level is not None else Config.LOG_LEVEL
    logger.setLevel(level)

    # Don't add handlers if they're already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(Config.LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger
