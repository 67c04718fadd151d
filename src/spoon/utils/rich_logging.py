"""Console logging with level colours for diagnostic output."""

import logging
import sys
from datetime import datetime
from typing import Optional, TextIO


class SpoonLogFormatter(logging.Formatter):
    """Compact formatter: time, coloured level, logger name, message."""

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record."""
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        if self.use_colors:
            level_colors = {
                "DEBUG": "\033[36m",      # Cyan
                "INFO": "\033[32m",       # Green
                "WARNING": "\033[33m",    # Yellow
                "ERROR": "\033[31m",      # Red
                "CRITICAL": "\033[35m",   # Magenta
            }
            reset = "\033[0m"
            level_color = level_colors.get(record.levelname, "")
        else:
            level_color = ""
            reset = ""

        message = (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"[{record.name}] {record.getMessage()}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(log_level: str = "WARNING", stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Install a single console handler on the ``spoon`` logger.

    Diagnostics go to stderr so they never mix with the launched command's
    output. Calling this again replaces the previous handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        stream: Target stream (default: stderr)

    Returns:
        The configured ``spoon`` logger
    """
    stream = stream or sys.stderr
    logger = logging.getLogger("spoon")
    logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    use_colors = hasattr(stream, "isatty") and stream.isatty()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(SpoonLogFormatter(use_colors=use_colors))
    logger.addHandler(handler)

    return logger
