"""
Logger setup shared by the Lambda handler, the CLI and the pipeline stages.

Every logger writes to stdout, which the Lambda runtime forwards to
CloudWatch and the CLI leaves on the terminal. ``LOG_LEVEL`` and
``LOG_FORMAT`` tune verbosity and layout without redeploying.
"""

import os
import sys
import logging
from typing import Optional

DEFAULT_LOGGER_NAME = "image-derivatives"

STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)-8s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, name, logging.INFO)
    # Names such as "BASIC_FORMAT" exist on the module but are not levels
    return resolved if isinstance(resolved, int) else logging.INFO


def _stdout_handler(format_type: str) -> logging.Handler:
    layout = os.getenv("LOG_FORMAT", format_type).lower()
    if layout == "structured":
        formatter = logging.Formatter(STRUCTURED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    else:
        formatter = logging.Formatter(SIMPLE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure the named logger for a pipeline component.

    Args:
        name: Logger name, one per component or invocation entry point
        level: Level name overriding ``LOG_LEVEL``; unknown names mean INFO
        format_type: ``"structured"`` (file, line and function of the call)
            or ``"simple"``; ``LOG_FORMAT`` takes precedence

    Returns:
        The logger, with exactly one stdout handler attached
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    # Warm Lambda containers call this again on every invocation
    if not logger.handlers:
        logger.addHandler(_stdout_handler(format_type))

    # The Lambda runtime installs its own root handler
    logger.propagate = False
    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Return the configured logger for ``name``."""
    return setup_logger(name)
