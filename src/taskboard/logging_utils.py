"""Logging utilities with custom trace level."""

import logging

# Define custom TRACE level (lower than DEBUG)
TRACE_LEVEL = 5

VERBOSE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def add_trace_level() -> None:
    """Register the custom TRACE level name."""
    logging.addLevelName(TRACE_LEVEL, "TRACE")


def configure_logging(verbose: bool = False, trace: bool = False) -> int:
    """
    Configure root logging for the command line.

    Args:
        verbose: Log DEBUG and above with logger names
        trace: Log everything down to TRACE, including HTTP client internals

    Returns:
        The root level that was configured
    """
    add_trace_level()

    if trace:
        level = TRACE_LEVEL
        logging.basicConfig(level=level, format=VERBOSE_FORMAT)
        logging.getLogger("httpx").setLevel(logging.DEBUG)
    elif verbose:
        level = logging.DEBUG
        logging.basicConfig(level=level, format=VERBOSE_FORMAT)
        logging.getLogger("httpx").setLevel(logging.INFO)
    else:
        level = logging.INFO
        logging.basicConfig(level=level, format=DEFAULT_FORMAT)
        # Request lines from httpx are noise in normal mode
        logging.getLogger("httpx").setLevel(logging.WARNING)

    return level
