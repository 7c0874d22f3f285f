"""
mmdlsp – Mermaid Diagram Language Server CLI entry point.

Usage
-----
    mmdlsp                      # stdio mode (default, for use with editors)
    mmdlsp --stdio              # explicit stdio mode
    mmdlsp --tcp 2087           # listen on TCP port (useful for debugging)
    mmdlsp --format a.mmd ...   # reindent files in place
    mmdlsp --check --format a.mmd
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger('mmdlsp')


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='mmdlsp',
        description='Mermaid diagram Language Server (LSP) for .mmd and .mermaid files.',
    )
    mode = p.add_mutually_exclusive_group()
    mode.add_argument(
        '--stdio',
        action='store_true',
        default=False,
        help='Communicate over stdin/stdout (default when no flag given)',
    )
    mode.add_argument(
        '--tcp',
        metavar='PORT',
        type=int,
        default=None,
        help='Listen for connections on the given TCP port instead of stdio',
    )
    mode.add_argument(
        '--format',
        metavar='FILE',
        nargs='+',
        default=None,
        help='Reindent the given files in place and exit',
    )
    p.add_argument(
        '--check',
        action='store_true',
        default=False,
        help='With --format: only report files that would change (exit 1 if any)',
    )
    p.add_argument(
        '--indent-width',
        metavar='N',
        type=int,
        default=4,
        help='With --format: spaces per indentation level (default: 4)',
    )
    p.add_argument(
        '--version',
        action='store_true',
        default=False,
        help='Print the mmdlsp version and exit',
    )
    p.add_argument(
        '--log-level',
        metavar='LEVEL',
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level written to stderr (default: WARNING)',
    )
    return p


def format_files(paths: list[str], check: bool = False, indent_width: int = 4) -> int:
    """Reindent *paths*; return the process exit status."""
    from mmdlsp.formatter import format_text

    status = 0
    for name in paths:
        path = Path(name)
        try:
            source = path.read_text(encoding='utf-8')
        except OSError as e:
            logger.error('%s: %s', name, e)
            status = 2
            continue
        formatted = format_text(source, indent_width)
        if formatted == source:
            continue
        if check:
            print(f'would reformat {name}')
            status = max(status, 1)
        else:
            path.write_text(formatted, encoding='utf-8')
            logger.info('reformatted %s', name)
    return status


def mmdlsp(argv: list[str] | None = None) -> None:
    """Entry point for the ``mmdlsp`` command."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    from mmdlsp import __version__

    if args.version:
        print(f'mmdlsp {__version__}')
        sys.exit(0)

    if args.format is not None:
        sys.exit(format_files(args.format, check=args.check, indent_width=args.indent_width))

    from mmdlsp.server import server

    if args.tcp is not None:
        server.start_tcp('127.0.0.1', args.tcp)
    else:
        # Default (and --stdio): communicate via stdin/stdout
        server.start_io()


if __name__ == '__main__':
    mmdlsp()
