"""Reconcile command: mark pass, cycle detection and status display."""

import os
from pathlib import Path

from ...core.apt import AptBackend, AptError
from ...core.config import load_config
from ...core.lock import AutomarkLock, LockError
from ...core.reconcile import InconsistencyError, Reconciler, ReconcileResult
from .cycles import print_report


def check_root() -> bool:
    """Check if running as root."""
    return os.geteuid() == 0


def print_result(result: ReconcileResult) -> None:
    """Print the outcome of a reconcile run."""
    from .. import colors, display

    if display.get_mode() == display.DisplayMode.JSON:
        display.print_json({
            'dry_run': result.dry_run,
            'marked': sorted(result.marked),
            'candidates': sorted(result.candidates),
            'acyclic': sorted(result.report.acyclic),
            'cycles': result.report.cycles,
            'status': [
                {'name': row.name, 'flag': 'auto' if row.auto else 'manual',
                 'verdict': row.verdict}
                for row in result.status
            ],
            'still_pending': sorted(result.still_pending),
        })
        return

    if not result.marked:
        print(colors.success("Nothing to mark: automatic flags are consistent"))
        return

    verb = "Would mark" if result.dry_run else "Marked"
    print(f"{verb} {colors.count(len(result.marked))} package(s) as automatic:")
    display.print_package_list(sorted(result.marked), color_func=colors.pkg_auto)

    if result.dry_run:
        return

    if not result.candidates:
        print(colors.success("No package left pending removal"))
        return

    print(f"\n{colors.count(len(result.candidates))} package(s) would have been "
          f"autoremoved and were checked for cycles")
    print_report(result.report)

    if result.status:
        print("\nStatus:")
        for line in display.format_status_table(result.status):
            print(line)

    if result.report.has_cycles():
        print(colors.warning(
            "\nCyclic packages were kept manual. Mark a group automatic with "
            "'apt-mark auto' to let apt remove it."
        ))


def cmd_reconcile(args) -> int:
    """Handle reconcile command."""
    from .. import colors

    dry_run = getattr(args, 'dry_run', False)
    if not dry_run and not check_root():
        print(colors.error("Error: reconcile requires root privileges (or use --dry-run)"))
        return 1

    try:
        config = load_config(Path(args.config) if args.config else None)
    except FileNotFoundError as e:
        print(colors.error(f"Error: {e}"))
        return 1

    reconciler = Reconciler(AptBackend(config), keep=config.keep, dry_run=dry_run)
    lock = AutomarkLock(config.lock_file)

    try:
        if dry_run:
            result = reconciler.run()
        else:
            with lock:
                result = reconciler.run()
    except LockError as e:
        print(colors.error(f"Error: {e}"))
        return 1
    except AptError as e:
        print(colors.error(f"Error: {e}"))
        return 1
    except InconsistencyError as e:
        print(colors.error(f"FATAL: {e}"))
        print(colors.error("Cycle detection disagrees with apt; no further flags were changed."))
        return 2

    print_result(result)
    return 0
