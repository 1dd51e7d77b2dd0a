#!/usr/bin/env python3
"""
bittrace demo command: traces a small workload to stderr
"""

from __future__ import annotations

import argparse
import logging
import sys

from bittrace.__version__ import __version__
from bittrace.engine import TraceEngine
from bittrace.levels import NEXT, upto
from bittrace.tracer import Tracer

logger = logging.getLogger(__name__)

DEB_TRACE = NEXT << 0
DEB_THIS = NEXT << 1
DEB_THAT = NEXT << 2
DEB_ALL = upto(DEB_THAT)

# Console handler installed by setup_logging()
_console_handler: logging.Handler | None = None


def setup_logging(debug: bool = False) -> logging.Logger:
    """Route bittrace's own diagnostics to the console.

    Args:
        debug: Enable debug level logging
    """
    global _console_handler

    log = logging.getLogger('bittrace')
    log.setLevel(logging.DEBUG if debug else logging.WARNING)

    # Replace the handler from a previous call: sys.stderr may have changed
    if _console_handler is not None:
        log.removeHandler(_console_handler)
    _console_handler = logging.StreamHandler(sys.stderr)
    _console_handler.setFormatter(logging.Formatter(
        '[%(asctime)s] %(levelname)-8s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    ))
    log.addHandler(_console_handler)
    return log


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='bittrace',
        description='Run a small traced workload and print its trace to stderr',
    )
    parser.add_argument(
        '--level',
        default='0x1',
        help='Initial trace level bitmask, e.g. 0x1 or 7 (default: 0x1, frames only)'
    )
    parser.add_argument(
        '--prefix',
        default='demo: ',
        help='Prefix of every trace line'
    )
    parser.add_argument(
        '--frame-source',
        action='store_true',
        help='Print source locations for enter/exit lines'
    )
    parser.add_argument(
        '--trace-source',
        action='store_true',
        help='Print source locations for trace lines'
    )
    parser.add_argument(
        '--callers',
        type=int,
        default=0,
        help='Number of extra caller frames printed with source locations'
    )
    parser.add_argument(
        '--fail',
        action='store_true',
        help='Raise inside the workload to show a panic exit'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging of bittrace internals'
    )
    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s ' + __version__
    )
    return parser.parse_args(argv)


def foo(tracer: Tracer, fail: bool = False) -> None:
    with tracer.frame():
        tracer.trace(DEB_TRACE, "output only for DEB_TRACE level, tracer: %r", tracer)
        tracer.trace(DEB_TRACE | DEB_THIS, "output only for DEB_TRACE|DEB_THIS level")
        tracer.trace(DEB_ALL, "output only for all levels")
        if fail:
            raise RuntimeError("demo failure")


def another_foo(tracer: Tracer, fail: bool = False) -> None:
    with tracer.frame():
        tracer.trace_level |= DEB_TRACE
        foo(tracer)
        tracer.trace_level |= DEB_THIS
        foo(tracer)
        tracer.trace_level |= DEB_ALL
        foo(tracer, fail)


def run_demo(tracer: Tracer, fail: bool = False) -> int:
    """Run the demo workload. Returns the process exit code."""
    try:
        another_foo(tracer, fail)
    except RuntimeError as e:
        logger.debug("Workload failed as requested: %s", e)
        return 3
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the bittrace demo"""
    args = parse_args(argv)
    log = setup_logging(debug=args.debug)

    try:
        tracer_config = {
            'trace_level': args.level,
            'prefix': args.prefix,
            'frame_source': args.frame_source,
            'trace_source': args.trace_source,
            'callers_source': args.callers,
        }
        engine = TraceEngine()
        tracer = Tracer.from_config(tracer_config, engine=engine)
    except ValueError as e:
        log.error("Invalid tracer configuration: %s", e)
        return 2

    log.debug("Tracer: %r", tracer)
    engine.start()
    try:
        return run_demo(tracer, args.fail)
    finally:
        engine.stop()
        log.debug("Trace engine drained")


if __name__ == '__main__':
    sys.exit(main())
