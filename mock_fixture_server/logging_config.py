"""
Logging Configuration Module

Provides centralized logging configuration via LOG_LEVEL environment variable.

Usage:
    from mock_fixture_server.logging_config import configure_logging
    configure_logging()  # Call once at startup

Environment Variables:
    LOG_LEVEL: Controls console log verbosity (default: INFO)
        - DEBUG: Every request, stage and registration
        - INFO: Lifecycle and registration (default)
        - WARNING: Failed requests and rejected paths only
        - ERROR: Malformed fixtures and observer crashes only

Note:
    Test harnesses that embed MockServer usually leave logging alone and let
    loguru's default stderr handler (or pytest's capture) deal with it.
"""

import os
import sys

from loguru import logger


# Valid log levels (loguru-compatible)
VALID_LOG_LEVELS: set[str] = {"DEBUG", "INFO", "WARNING", "ERROR"}

# Default log level when not specified
DEFAULT_LOG_LEVEL = "INFO"


def get_log_level() -> str:
    """
    Get the configured log level from environment variable.

    Returns:
        str: Log level (DEBUG, INFO, WARNING, or ERROR).
             Falls back to INFO if invalid or not set.
    """
    level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    if level not in VALID_LOG_LEVELS:
        return DEFAULT_LOG_LEVEL

    return level


def configure_logging(level: str | None = None) -> None:
    """
    Configure loguru's console handler.

    Args:
        level: Explicit level (e.g. from a CLI flag). Falls back to LOG_LEVEL.
    """
    level = level.upper() if level else get_log_level()
    if level not in VALID_LOG_LEVELS:
        level = DEFAULT_LOG_LEVEL

    # Remove default stderr handler
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - {message}",
        colorize=True,
    )

    logger.debug(f"Logging configured: console level={level}")
