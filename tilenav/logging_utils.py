"""Logging utilities for tilenav.

Provides color-coded output to distinguish map precomputation, path searches
and occupancy diagnostics.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Deterministic grid operations (map load, occupancy)
    YELLOW = "\033[93m"    # Path searches
    RED = "\033[91m"       # Errors and protocol violations
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/diagnostics

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if TILENAV_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("TILENAV_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def log_deterministic(message: str) -> None:
    """Log a deterministic grid operation (blue)."""
    print(colored(f"{LOG_TAG_DETERMINISTIC} {message}", Color.BLUE))


def log_search(message: str) -> None:
    """Log a path search (yellow)."""
    print(colored(f"{LOG_TAG_SEARCH} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or denied request (red)."""
    print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(message, Color.CYAN))


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"  # Grid operation
LOG_TAG_SEARCH = "[A*]"        # Path search
LOG_TAG_ERROR = "[!]"          # Error/denial
LOG_TAG_SUCCESS = "[✓]"        # Success
