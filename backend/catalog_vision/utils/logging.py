"""
Catalog Vision Structured Logging
Loguru sink configuration and a thin wrapper binding run context to records.
"""
import sys
from typing import Dict, Any, Optional

from loguru import logger

from catalog_vision.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message} | {extra}"


class StructuredLogger:
    """
    Logger for analysis and training runs.
    
    ``extra`` is bound onto the record (run id, durations, predictions) so
    the sink prints it next to the message.
    """
    
    def __init__(self, level: Optional[str] = None):
        self.level = level or config.LOG_LEVEL
        self._configure_logger()
    
    def _configure_logger(self):
        logger.remove()
        logger.add(sys.stderr, format=LOG_FORMAT, level=self.level, serialize=False)
    
    def _emit(self, level: str, message: str, extra: Optional[Dict[str, Any]]):
        # depth=2 reports the caller of info()/warning()/..., not this helper
        bound = logger.bind(**extra) if extra else logger
        bound.opt(depth=2).log(level, message)
    
    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("INFO", message, extra)
    
    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("WARNING", message, extra)
    
    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("ERROR", message, extra)
    
    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("DEBUG", message, extra)


_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Process-wide logger, configuring the loguru sink on first use."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
