"""Color output support for automark CLI.

Color palette:
  - Red: errors and cyclic packages
  - Orange: warnings
  - Green: success, packages marked automatic
"""

import os
import sys

# ANSI color codes
_COLORS = {
    'reset': '\033[0m',
    'bold': '\033[1m',
    'red': '\033[91m',
    'orange': '\033[93m',   # No true orange in ANSI
    'green': '\033[92m',
}

# Global state
_colors_enabled = True


def init(nocolor: bool = False):
    """Initialize color support.

    Args:
        nocolor: If True, disable colors unconditionally
    """
    global _colors_enabled

    if nocolor:
        _colors_enabled = False
    elif os.environ.get('NO_COLOR'):
        # https://no-color.org/
        _colors_enabled = False
    elif not sys.stdout.isatty():
        _colors_enabled = False
    else:
        _colors_enabled = True


def _wrap(text: str, color: str) -> str:
    if not _colors_enabled:
        return text
    code = _COLORS.get(color, '')
    return f"{code}{text}{_COLORS['reset']}"


def error(text: str) -> str:
    """Format text as error (red)."""
    return _wrap(text, 'red')


def warning(text: str) -> str:
    """Format text as warning (orange/yellow)."""
    return _wrap(text, 'orange')


def success(text: str) -> str:
    """Format text as success (green)."""
    return _wrap(text, 'green')


def bold(text: str) -> str:
    return _wrap(text, 'bold')


def pkg_auto(name: str) -> str:
    """Format package name marked automatic (green)."""
    return success(name)


def pkg_cyclic(name: str) -> str:
    """Format package name caught in a cycle (red)."""
    return error(name)


def count(n: int) -> str:
    return bold(str(n))
