"""
ANSI Color Utilities for Console Output.

Colors are disabled when:
    - Output is not a TTY (e.g., piped to file, CloudWatch)
    - NO_COLOR environment variable is set
    - TTS_STORE_NO_COLOR=1 environment variable is set
"""
from __future__ import annotations

import os
import sys


class Colors:
    """ANSI escape code constants for terminal colors."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def supports_color() -> bool:
    """Check if the console should receive ANSI color codes."""
    if os.getenv("TTS_STORE_NO_COLOR", "0") == "1":
        return False
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(sys.stderr, "isatty", None)
    if isatty is None or not isatty():
        return False
    return sys.platform != "win32" or "WT_SESSION" in os.environ


# Checked once at import time, rechecked by configure_logging()
USE_COLORS = supports_color()


def colorize(text: str, color: str) -> str:
    """Apply color to text if colors are enabled."""
    if not USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


_TAG_COLORS = {
    "SUCCESS": Colors.BRIGHT_GREEN,
    "FAIL": Colors.BRIGHT_RED,
    "ERROR": Colors.BRIGHT_RED,
    "WARN": Colors.BRIGHT_YELLOW,
    "WARNING": Colors.BRIGHT_YELLOW,
    "INFO": Colors.BRIGHT_CYAN,
    "DEBUG": Colors.GRAY,
    "TRACE": Colors.DIM,
}


def get_tag_color(tag: str) -> str:
    """Get the color for a log tag (SUCCESS green, FAIL red, ...)."""
    return _TAG_COLORS.get(tag.upper(), Colors.WHITE)
