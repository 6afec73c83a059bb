"""
Colored console logging for the Sequelize model generator.

Log levels get their own colors; INFO and DEBUG lines are additionally colored
by what they report (created files, skipped tables, progress steps).
"""

import logging
import sys
from typing import Optional, TextIO


class ColoredFormatter(logging.Formatter):
    """
    Logging formatter that wraps messages in ANSI color codes.

    Colors are only used when the output stream is a TTY.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }

    SPECIAL_COLORS = {
        'success': '\033[92m',    # Bright Green
        'skipped': '\033[93m',    # Bright Yellow
        'progress': '\033[94m',   # Bright Blue
        'highlight': '\033[96m',  # Bright Cyan
    }

    RESET = '\033[0m'
    BOLD = '\033[1m'

    # Checked in order; the first matching style wins
    MESSAGE_STYLES = (
        ('success', ('(created)', 'generated', 'successfully', 'complete', '✓')),
        ('skipped', ('(skipped table)', '(skipped relation)')),
        ('progress', ('→', 'loading', 'reading', 'walking', 'writing', 'preparing')),
        ('highlight', ('•', 'found', 'schema(s)')),
    )

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True,
                 stream: Optional[TextIO] = None):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log format string (uses default if None)
            use_colors: Whether to use colors at all
            stream: Stream the handler writes to, checked for TTY support
        """
        super().__init__(fmt or "%(levelname)s: %(message)s")
        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def message_style(self, message: str) -> Optional[str]:
        """Return the special style for a message, if any."""
        if '=' * 20 in message:
            return 'section'
        message_lower = message.lower()
        for style, indicators in self.MESSAGE_STYLES:
            if any(indicator in message_lower for indicator in indicators):
                return style
        return None

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)
        if not self.use_colors:
            return formatted_message

        # Errors and warnings always keep their level color
        if record.levelno >= logging.WARNING:
            color = self.COLORS.get(record.levelname, '')
            return f"{color}{formatted_message}{self.RESET}" if color else formatted_message

        style = self.message_style(record.getMessage())
        if style == 'section':
            return f"{self.BOLD}{self.SPECIAL_COLORS['highlight']}{formatted_message}{self.RESET}"
        if style == 'success':
            return f"{self.SPECIAL_COLORS['success']}{self.BOLD}{formatted_message}{self.RESET}"
        if style is not None:
            return f"{self.SPECIAL_COLORS[style]}{formatted_message}{self.RESET}"
        if record.levelname == 'DEBUG':
            return f"{self.COLORS['DEBUG']}{formatted_message}{self.RESET}"
        return formatted_message


def setup_colored_logging(level: int = logging.INFO, use_colors: bool = True) -> None:
    """
    Install the colored formatter on the root logger.

    Args:
        level: Logging level (default: INFO)
        use_colors: Whether to use colors (default: True)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplication
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors, stream=sys.stderr))
    console_handler.setLevel(level)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)


def log_success(logger: logging.Logger, message: str) -> None:
    logger.info(f"✓ {message}")


def log_progress(logger: logging.Logger, message: str) -> None:
    logger.info(f"→ {message}")


def log_highlight(logger: logging.Logger, message: str) -> None:
    logger.info(f"• {message}")


def log_section(logger: logging.Logger, section_name: str) -> None:
    """Log a section header framed by separator lines."""
    separator = "=" * 60
    logger.info(separator)
    logger.info(f"  {section_name.upper()}")
    logger.info(separator)
