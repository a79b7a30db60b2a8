"""Terminal color helpers for template error messages.

ANSI colors are applied only when the output is a TTY, unless ``NO_COLOR``
disables or ``FORCE_COLOR`` forces them. Without colors every helper returns
its input unchanged, so messages stay plain in logs and test output.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
}

ColorName = Literal[
    "reset", "bold", "dim", "red", "green", "yellow", "cyan", "bright_red", "bright_green"
]

_ANSI_ESCAPE_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    return _USE_COLORS


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap text in ANSI codes when colors are enabled."""
    if not _USE_COLORS or not colors:
        return text
    prefix = "".join(_COLORS.get(color, "") for color in colors)
    if not prefix:
        return text
    return f"{prefix}{text}{_COLORS['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI color codes from text.

    Example:
        >>> strip_colors("\033[31mError\033[0m")
        'Error'
    """
    return _ANSI_ESCAPE_RE.sub("", text)


def error_code(text: str) -> str:
    return colorize(text, "bright_red", "bold")


def location(text: str) -> str:
    return colorize(text, "cyan")


def line_number(text: str) -> str:
    return colorize(text, "yellow")


def error_line(text: str) -> str:
    return colorize(text, "bright_red")


def hint(text: str) -> str:
    return colorize(text, "green")


def suggestion(text: str) -> str:
    return colorize(text, "bright_green", "bold")


def format_error_header(code: str | None, message: str) -> str:
    """Prefix message with a colored error code when one is given."""
    if code:
        return f"{error_code(code)}: {message}"
    return message
