"""
Colored logging formatter for Entity Auto Generator.

Console output is coloured by level and, for INFO/DEBUG records, by the kind
of message (success, progress, highlight, section header) so that a long run
over many tables stays readable.
"""

import logging
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """
    Colored logging formatter that adds ANSI color codes to log messages.

    Message kinds are recognised by the prefix the ``log_*`` helpers below
    attach, not by guessing from message wording.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '',
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }

    SUCCESS_PREFIX = "✓ "
    PROGRESS_PREFIX = "→ "
    HIGHLIGHT_PREFIX = "• "
    SECTION_MARKER = "="

    SPECIAL_COLORS = {
        'success': '\033[92m',    # Bright Green
        'progress': '\033[94m',   # Bright Blue
        'highlight': '\033[96m',  # Bright Cyan
    }

    RESET = '\033[0m'
    BOLD = '\033[1m'

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True, stream=None):
        """
        Args:
            fmt: Log format string (uses default if None)
            use_colors: Whether to use colors at all
            stream: Stream the handler writes to; colours are off unless it is a TTY
        """
        if fmt is None:
            fmt = "%(levelname)s: %(message)s"
        super().__init__(fmt)

        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)
        if not self.use_colors:
            return formatted_message

        color = self.color_for(record)
        if not color:
            return formatted_message
        return f"{color}{formatted_message}{self.RESET}"

    def color_for(self, record: logging.LogRecord) -> str:
        """ANSI prefix for a record; empty string for plain output."""
        if record.levelno >= logging.WARNING:
            return self.COLORS.get(record.levelname, '')

        message = record.getMessage()
        if message.startswith(self.SUCCESS_PREFIX):
            return self.SPECIAL_COLORS['success'] + self.BOLD
        if message.startswith(self.PROGRESS_PREFIX):
            return self.SPECIAL_COLORS['progress']
        if message.startswith(self.HIGHLIGHT_PREFIX):
            return self.SPECIAL_COLORS['highlight']
        if message.lstrip().startswith(self.SECTION_MARKER * 3):
            return self.BOLD + self.SPECIAL_COLORS['highlight']
        return self.COLORS.get(record.levelname, '')


def setup_colored_logging(level: int = logging.INFO, use_colors: bool = True) -> None:
    """
    Set up colored logging for the application.

    Replaces any handler already on the root logger.
    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors, stream=sys.stderr))
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)


# Convenience functions for special message types
def log_success(logger: logging.Logger, message: str) -> None:
    logger.info(f"{ColoredFormatter.SUCCESS_PREFIX}{message}")


def log_progress(logger: logging.Logger, message: str) -> None:
    logger.info(f"{ColoredFormatter.PROGRESS_PREFIX}{message}")


def log_highlight(logger: logging.Logger, message: str) -> None:
    logger.info(f"{ColoredFormatter.HIGHLIGHT_PREFIX}{message}")


def log_section(logger: logging.Logger, section_name: str) -> None:
    """Log a section header framed by separator lines."""
    separator = ColoredFormatter.SECTION_MARKER * 60
    logger.info(separator)
    logger.info(f"  {section_name.upper()}")
    logger.info(separator)
