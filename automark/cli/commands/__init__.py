"""CLI command modules."""

from .cycles import (
    cmd_cycles,
    print_report,
)
from .reconcile import (
    cmd_reconcile,
    print_result,
)

__all__ = [
    'cmd_cycles',
    'print_report',
    'cmd_reconcile',
    'print_result',
]
