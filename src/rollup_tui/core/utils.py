"""Utility functions"""

from pathlib import Path
from typing import Optional, Union

from loguru import logger

from rollup_tui.core.constants import LOG_PATH

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logger(log_file: Optional[Union[str, Path]] = None, level: Optional[str] = None):
    """Configure the logger for the application.

    The dashboard owns the terminal, so records go to a rotating file. Calling
    again with an explicit path or level replaces the previous sink.
    """
    if hasattr(configure_logger, "configured") and log_file is None and level is None:
        return logger

    logger.remove()
    logger.add(
        str(log_file or LOG_PATH),
        rotation="10 MB",
        level=level or "INFO",
        format=LOG_FORMAT,
    )

    configure_logger.configured = True
    return logger


def format_age(seconds: Optional[float]) -> str:
    """Human readable age like ``4s`` or ``2m 05s``."""
    if seconds is None:
        return ""
    seconds = max(0, int(seconds))
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"
