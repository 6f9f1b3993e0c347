#!/usr/bin/env python3
"""
Logging configuration for videoloop
Supports text or JSON output and environment-based config
"""

import os
import sys

from loguru import logger

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "{name}:{function} - <level>{message}</level>"
)

_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def setup_logging(
    level: str = None,
    format_type: str = None,
    verbose: bool = False,
    sink=None,
) -> int:
    """
    Setup logging configuration

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_type: Log format (json, text)
        verbose: Force DEBUG regardless of level
        sink: Where records go; stderr by default

    Returns:
        The loguru handler id of the installed sink
    """
    # Get configuration from environment
    if level is None:
        level = os.getenv('LOG_LEVEL', 'INFO')

    if format_type is None:
        format_type = os.getenv('LOG_FORMAT', 'text')

    level = level.upper()
    if level not in _LEVELS:
        level = 'INFO'
    if verbose:
        level = 'DEBUG'

    # Replace the default handler so repeated setup never duplicates output
    logger.remove()

    if format_type.lower() == 'json':
        return logger.add(sink or sys.stderr, level=level, serialize=True)

    return logger.add(
        sink or sys.stderr,
        level=level,
        format=TEXT_FORMAT,
        colorize=sink is None and sys.stderr.isatty(),
    )
