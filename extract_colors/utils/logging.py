"""
Extract Colors Structured Logging
Structured log records on loguru's shared logger.

The library never removes or adds sinks on its own; records go to whatever
sinks the host application has configured. Call ``configure_logging`` to
install the package's own stderr sink.
"""
import sys
from typing import Dict, Any, Optional

from loguru import logger

from extract_colors.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message} | {extra}"


def configure_logging(level: Optional[str] = None, serialize: bool = False) -> int:
    """
    Replace loguru's sinks with a single stderr sink.

    Args:
        level: Minimum level, defaults to EXTRACT_COLORS_LOG_LEVEL
        serialize: Emit JSON lines instead of formatted text

    Returns:
        The loguru sink id, usable with ``logger.remove``
    """
    logger.remove()
    return logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level or config.LOG_LEVEL,
        serialize=serialize
    )


class StructuredLogger:
    """Structured logger reporting extraction summaries with bound fields."""

    def __init__(self, component: str = "extract_colors"):
        self.component = component

    def _log(self, level: str, message: str, extra: Optional[Dict[str, Any]]):
        logger.bind(component=self.component, **(extra or {})).log(level, message)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("INFO", message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("WARNING", message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("ERROR", message, extra)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("DEBUG", message, extra)


# Global logger instance
_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get or create global logger instance."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
