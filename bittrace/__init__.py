"""bittrace — bitmask-gated debug tracing to stderr.

Exports:
    - Tracer: per-module trace configuration and entry point
    - TraceEngine: queue + writer thread behind every Tracer
    - FRAME, NEXT: reserved level bits
    - start/stop/default_engine: process-wide engine lifecycle
"""

from bittrace.__version__ import __version__
from bittrace.engine import TraceEngine, default_engine, start, stop
from bittrace.levels import FRAME, NEXT, category, enabled, upto
from bittrace.resolver import CallerFrame, ICallerResolver, StackCallerResolver
from bittrace.tracer import NO_TOKEN, Tracer

__all__ = [
    "__version__",
    "Tracer",
    "TraceEngine",
    "default_engine",
    "start",
    "stop",
    "FRAME",
    "NEXT",
    "category",
    "enabled",
    "upto",
    "CallerFrame",
    "ICallerResolver",
    "StackCallerResolver",
    "NO_TOKEN",
]
