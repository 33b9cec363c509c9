"""Logging utilities for the MCP agent bridge."""

import logging
import sys

_LOGGER_NAME = "mcp_agent_bridge"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance for the bridge.

    Module names that already live under the package (``__name__``) are used as-is,
    anything else becomes a child of the bridge's root logger.

    Args:
        name: Optional sub-logger name. If None, returns the root bridge logger.

    Returns:
        The requested logger.
    """
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    if name == _LOGGER_NAME or name.startswith(f"{_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def setup_logging(
    level: int = logging.INFO, format_str: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
) -> None:
    """Setup default logging configuration for the bridge.

    This adds a StreamHandler to the bridge's root logger.
    Should typically be called by the application embedding the bridge (or by the
    server entry point), not by library code.

    Args:
        level: Logging level.
        format_str: Log format string.
    """
    logger = logging.getLogger(_LOGGER_NAME)

    # Avoid adding multiple handlers if called multiple times
    if any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_str))
    logger.addHandler(handler)
    logger.setLevel(level)


# Set default NullHandler to avoid "No handler found" warnings
logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
