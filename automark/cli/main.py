"""
Main CLI entry point for automark

Commands, with short aliases:
- automark reconcile / automark r  (mark pass + cycle detection)
- automark cycles / automark c     (cycle detection on dpkg-query output)
"""

import argparse
import logging
import sys

from .. import __version__
from .commands import cmd_cycles, cmd_reconcile


class AliasedSubParsersAction(argparse._SubParsersAction):
    """Custom action to support command aliases in argparse."""

    def add_parser(self, name, **kwargs):
        aliases = kwargs.pop('aliases', [])
        parser = super().add_parser(name, **kwargs)

        for alias in aliases:
            self._name_parser_map[alias] = parser

        return parser


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all commands and aliases."""

    parser = argparse.ArgumentParser(
        prog='automark',
        description='Keep automatic/manual package flags consistent with dependencies',
        epilog='Use "automark <command> --help" for command-specific help.'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'automark {__version__}'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Quiet output'
    )
    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )

    # Parent parser for display options (inherited by subparsers)
    display_parent = argparse.ArgumentParser(add_help=False)
    display_parent.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )
    display_parent.add_argument(
        '--flat',
        action='store_true',
        help='Flat output (one item per line, parsable)'
    )
    display_parent.add_argument(
        '--show-all',
        action='store_true',
        help='Show all items without truncation'
    )

    parser.register('action', 'parsers', AliasedSubParsersAction)

    subparsers = parser.add_subparsers(
        dest='command',
        title='commands',
        metavar='<command>'
    )

    # =========================================================================
    # reconcile / r
    # =========================================================================
    reconcile_parser = subparsers.add_parser(
        'reconcile', aliases=['r'],
        help='Mark required packages automatic and report dependency cycles',
        parents=[display_parent]
    )
    reconcile_parser.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Only show which packages would be marked automatic'
    )
    reconcile_parser.add_argument(
        '--config', '-c',
        metavar='PATH',
        help='Configuration file (default: $AUTOMARK_CONFIG, /etc/automark.conf)'
    )

    # =========================================================================
    # cycles / c
    # =========================================================================
    cycles_parser = subparsers.add_parser(
        'cycles', aliases=['c'],
        help='Detect dependency cycles in dpkg-query/apt-cache output',
        parents=[display_parent]
    )
    cycles_parser.add_argument(
        'file', nargs='?', default='-',
        help='Control-format input (default: stdin)'
    )
    cycles_parser.add_argument(
        '--candidates', action='append', metavar='PACKAGE',
        help='Candidate package, repeatable (also counted when absent from the input)'
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr
        )
    elif not args.quiet:
        logging.basicConfig(
            level=logging.WARNING,
            format='%(levelname)s: %(message)s',
            stream=sys.stderr
        )
    else:
        logging.basicConfig(
            level=logging.ERROR,
            format='%(levelname)s: %(message)s',
            stream=sys.stderr
        )

    from . import colors
    colors.init(nocolor=args.nocolor)

    from . import display
    if getattr(args, 'json', False):
        display.init(mode='json', show_all=True)  # JSON always shows all
    elif getattr(args, 'flat', False):
        display.init(mode='flat', show_all=True)  # Flat always shows all
    else:
        display.init(mode='columns', show_all=getattr(args, 'show_all', False))

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command in ('reconcile', 'r'):
            return cmd_reconcile(args)

        elif args.command in ('cycles', 'c'):
            return cmd_cycles(args)

        parser.print_help()
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
