"""Display utilities for automark CLI.

Output modes:
- columns: Multi-column layout (default, human-friendly)
- flat: One item per line (parsable by scripts)
- json: JSON output (programmatic consumption)
"""

import json
import shutil
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from . import colors


class DisplayMode(Enum):
    """Output display mode."""
    COLUMNS = "columns"  # Multi-column, human-friendly (default)
    FLAT = "flat"        # One per line, parsable
    JSON = "json"        # JSON output


# Global display settings
_display_mode = DisplayMode.COLUMNS
_show_all = False


def init(mode: str = "columns", show_all: bool = False):
    """Initialize display settings.

    Args:
        mode: Display mode ("columns", "flat", "json")
        show_all: If True, never truncate output
    """
    global _display_mode, _show_all
    _display_mode = DisplayMode(mode) if mode else DisplayMode.COLUMNS
    _show_all = show_all


def get_mode() -> DisplayMode:
    """Get current display mode."""
    return _display_mode


def get_terminal_width() -> int:
    """Get terminal width, with fallback to 80 columns."""
    try:
        return shutil.get_terminal_size().columns
    except (OSError, ValueError):
        return 80


def format_package_list(
    packages: List[str],
    max_lines: int = 10,
    show_all: Optional[bool] = None,
    indent: int = 2,
    column_gap: int = 2,
    color_func: Optional[Callable[[str], str]] = None,
    mode: Optional[DisplayMode] = None,
    terminal_width: Optional[int] = None
) -> List[str]:
    """Format a list of packages according to display mode.

    Args:
        packages: List of package names to display
        max_lines: Maximum lines before truncation (columns mode only)
        show_all: Override global show_all setting
        indent: Spaces to indent (columns mode only)
        column_gap: Gap between columns (columns mode only)
        color_func: Optional colorize function (columns mode only)
        mode: Override global display mode
        terminal_width: Override terminal width (for testing)

    Returns:
        List of formatted lines ready to print
    """
    if not packages:
        return []

    effective_mode = mode if mode is not None else _display_mode
    effective_show_all = show_all if show_all is not None else _show_all

    if effective_mode == DisplayMode.JSON:
        return [json.dumps(packages, ensure_ascii=False)]

    if effective_mode == DisplayMode.FLAT:
        return list(packages)

    return _format_columns(
        packages,
        max_lines=max_lines,
        show_all=effective_show_all,
        indent=indent,
        column_gap=column_gap,
        color_func=color_func,
        terminal_width=terminal_width
    )


def _format_columns(
    packages: List[str],
    max_lines: int,
    show_all: bool,
    indent: int,
    column_gap: int,
    color_func: Optional[Callable[[str], str]],
    terminal_width: Optional[int]
) -> List[str]:
    """Format packages in multi-column layout."""
    width = terminal_width or get_terminal_width()
    usable_width = width - indent

    max_pkg_len = max(len(p) for p in packages)
    col_width = max_pkg_len + column_gap
    num_cols = max(1, usable_width // col_width)

    total_packages = len(packages)
    total_lines_needed = (total_packages + num_cols - 1) // num_cols

    if show_all:
        lines_to_show = total_lines_needed
        hidden_count = 0
    else:
        lines_to_show = min(max_lines, total_lines_needed)
        hidden_count = max(0, total_packages - lines_to_show * num_cols)

    result = []
    prefix = " " * indent

    for line_idx in range(lines_to_show):
        cols = []
        for col_idx in range(num_cols):
            pkg_idx = line_idx * num_cols + col_idx
            if pkg_idx < total_packages:
                pkg = packages[pkg_idx]
                if color_func:
                    # Pad based on raw length, not colored length
                    cols.append(color_func(pkg) + " " * (col_width - len(pkg)))
                else:
                    cols.append(pkg.ljust(col_width))
        if cols:
            result.append(prefix + "".join(cols).rstrip())

    if hidden_count > 0:
        result.append(prefix + f"... and {hidden_count} more")

    return result


def print_package_list(packages: List[str], **kwargs) -> None:
    """Print a list of packages according to display mode.

    Accepts the keyword arguments of format_package_list().
    """
    for line in format_package_list(packages, **kwargs):
        print(line)


def format_cycle_report(
    cycles: Sequence[str],
    indent: int = 2,
    mode: Optional[DisplayMode] = None
) -> List[str]:
    """Format cycle group strings as numbered, aligned lines.

    Args:
        cycles: Formatted groups ("a, b") in display order
        indent: Spaces to indent (columns mode only)
        mode: Override global display mode

    Returns:
        Lines like "  [ 1] a, b" (columns), the bare groups (flat), or a
        JSON array (json)
    """
    if not cycles:
        return []

    effective_mode = mode if mode is not None else _display_mode
    if effective_mode == DisplayMode.JSON:
        return [json.dumps(list(cycles), ensure_ascii=False)]
    if effective_mode == DisplayMode.FLAT:
        return list(cycles)

    width = len(str(len(cycles)))
    prefix = " " * indent
    return [
        f"{prefix}[{str(i).rjust(width)}] {colors.pkg_cyclic(group)}"
        for i, group in enumerate(cycles, 1)
    ]


def format_status_table(
    rows: Sequence[Any],
    indent: int = 2,
    mode: Optional[DisplayMode] = None
) -> List[str]:
    """Format node status rows (name, auto flag, verdict) as a table.

    Args:
        rows: Objects with name, auto and verdict attributes
        indent: Spaces to indent (columns mode only)
        mode: Override global display mode

    Returns:
        Aligned table lines (columns), tab-separated lines (flat), or a
        JSON array of objects (json)
    """
    if not rows:
        return []

    effective_mode = mode if mode is not None else _display_mode
    if effective_mode == DisplayMode.JSON:
        return [json.dumps([_status_dict(row) for row in rows], ensure_ascii=False)]
    if effective_mode == DisplayMode.FLAT:
        return [f"{row.name}\t{_flag(row)}\t{row.verdict}" for row in rows]

    name_width = max(len("Package"), max(len(row.name) for row in rows))
    prefix = " " * indent
    lines = [colors.bold(f"{prefix}{'Package'.ljust(name_width)}  Flag    Verdict")]
    for row in rows:
        name = row.name.ljust(name_width)
        flag = _flag(row).ljust(6)
        if row.cyclic:
            verdict = colors.pkg_cyclic(row.verdict)
        else:
            verdict = colors.pkg_auto(row.verdict)
        lines.append(f"{prefix}{name}  {flag}  {verdict}")
    return lines


def _flag(row: Any) -> str:
    return 'auto' if row.auto else 'manual'


def _status_dict(row: Any) -> Dict[str, Any]:
    return {'name': row.name, 'flag': _flag(row), 'verdict': row.verdict}


def print_json(data: Any) -> None:
    """Print data as JSON."""
    print(json.dumps(data, ensure_ascii=False, indent=2))
