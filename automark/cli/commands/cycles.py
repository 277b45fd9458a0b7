"""Cycle detection command: run the detection on control-format text."""

import sys

from ...core.resolution import CycleReport, detect_cycles


def _read_input(path: str) -> str:
    if path == '-':
        return sys.stdin.read()
    with open(path, encoding='utf-8', errors='replace') as f:
        return f.read()


def print_report(report: CycleReport) -> None:
    """Print acyclic packages and cycle groups according to display mode."""
    from .. import colors, display

    if display.get_mode() == display.DisplayMode.JSON:
        display.print_json({
            'acyclic': sorted(report.acyclic),
            'cycles': report.cycles,
            'residual': sorted(report.residual),
        })
        return

    flat = display.get_mode() == display.DisplayMode.FLAT

    if report.acyclic:
        if not flat:
            print(f"Acyclic packages ({colors.count(len(report.acyclic))}):")
        display.print_package_list(sorted(report.acyclic), color_func=colors.pkg_auto)

    if not report.has_cycles():
        if not flat:
            print(colors.success("No dependency cycles found"))
        return

    if not flat:
        print(f"Dependency cycles ({colors.count(len(report.groups))}):")
    for line in display.format_cycle_report(report.cycles):
        print(line)


def cmd_cycles(args) -> int:
    """Handle cycles command."""
    from .. import colors

    try:
        content = _read_input(args.file)
    except OSError as e:
        print(colors.error(f"Cannot read {args.file}: {e}"))
        return 1

    report = detect_cycles(content, args.candidates or None)
    print_report(report)
    return 0
