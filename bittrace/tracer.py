"""Tracer — bitmask-gated debug trace output.

A Tracer is a small value owned by a module, typically created once:

    from bittrace import Tracer
    from bittrace.levels import FRAME, NEXT, upto

    DEB_TRACE = NEXT << 0
    DEB_THIS = NEXT << 1
    DEB_THAT = NEXT << 2
    DEB_ALL = upto(DEB_THAT)

    tracer = Tracer(trace_level=FRAME, prefix="prefix: ",
                    trace_source=True, frame_source=True, callers_source=1)

and used at call sites:

    def foo():
        with tracer.frame():
            tracer.trace(DEB_TRACE, "only for DEB_TRACE, tracer: %r", tracer)
            tracer.trace(DEB_TRACE | DEB_THIS, "only for DEB_TRACE|DEB_THIS")
            tracer.trace(DEB_ALL, "only once every level is on")

The trace level may be changed on the fly (``tracer.trace_level |= DEB_THIS``).
Sample output:

    prefix: app.foo: enter
    	at /home/user/app.py:23
    	at /home/user/app.py:34
    prefix: app.foo: only for DEB_TRACE, tracer: Tracer(trace_level=3, ...)
    	at /home/user/app.py:24
    	at /home/user/app.py:34
    prefix: app.foo: exit
    	at /home/user/app.py:23
    	at /home/user/app.py:34
"""

from __future__ import annotations

import functools
import sys
from dataclasses import dataclass, field
from types import FrameType
from typing import Any, Callable, Optional, Tuple

from bittrace.config import validate_config
from bittrace.engine import TraceEngine, default_engine
from bittrace.levels import FRAME, enabled
from bittrace.resolver import CallerFrame, ICallerResolver, StackCallerResolver

NO_TOKEN = 0

_NO_FAULT = (None, None, None)
_STACK_RESOLVER = StackCallerResolver()

Producer = Callable[[], Tuple[str, bool]]


def _unwinding(frame: FrameType) -> tuple:
    """Return ``sys.exc_info()`` if that exception passes through *frame*.

    An exception handled by some outer ``except`` block is not in flight
    for a frame it never travelled through.
    """
    exc_info = sys.exc_info()
    tb = exc_info[2]
    while tb is not None:
        if tb.tb_frame is frame:
            return exc_info
        tb = tb.tb_next
    return _NO_FAULT


def _render(fmt: str, args: tuple) -> str:
    if not args:
        return fmt
    try:
        return fmt % args
    except (TypeError, ValueError, KeyError):
        return f"{fmt} {args!r}"


@dataclass
class Tracer:
    trace_level: int = 0        # currently enabled categories
    prefix: str = ""            # prepended to every line
    frame_source: bool = False  # source locations for enter/exit
    trace_source: bool = False  # source locations for trace lines
    callers_source: int = 0     # extra ancestor frames after the caller
    engine: Optional[TraceEngine] = field(default=None, repr=False, compare=False)
    resolver: Optional[ICallerResolver] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_config(
        cls,
        conf: dict | None,
        engine: TraceEngine | None = None,
        resolver: ICallerResolver | None = None,
    ) -> "Tracer":
        """Build a tracer from a config dict (see ``bittrace.config``)."""
        return cls(**validate_config(conf), engine=engine, resolver=resolver)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enabled(self, level: int) -> bool:
        """True if a trace at *level* would be emitted."""
        return enabled(level, self.trace_level)

    def enter(self) -> CallerFrame | int:
        """Trace the entrance into the calling frame.

        Returns the caller's call site, or ``NO_TOKEN`` when frame tracing
        is off, the engine is stopped or the caller is unknown. Pair with
        ``exit()`` in a ``finally`` block, or use ``frame()``.
        """
        return self._enter(2)

    def exit(self, token: CallerFrame | int, exc_info: tuple | None = None) -> None:
        """Trace the exit from the calling frame.

        When an exception is in flight (*exc_info*, or the exception
        currently unwinding through the calling frame) a ``panic exit``
        line without source is traced instead. The exception itself is
        left alone and keeps propagating from the enclosing ``finally``.
        """
        if exc_info is None:
            exc_info = _unwinding(sys._getframe(1))
        self._exit(2, exc_info)

    def frame(self) -> "_FrameScope":
        """Context manager tracing enter/exit of the enclosing block."""
        return _FrameScope(self)

    def traced(self, func: Callable) -> Callable:
        """Decorator tracing enter/exit of every call of *func*.

        Lines name *func* and point at the place it was called from.
        """
        name = f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            self._enter(2, name)
            try:
                result = func(*args, **kwargs)
            except BaseException:
                self._exit(2, sys.exc_info(), name)
                raise
            self._exit(2, _NO_FAULT, name)
            return result

        return wrapper

    def trace(self, level: int, fmt: str, *args: Any) -> None:
        """Trace ``fmt % args`` if every bit of *level* is enabled."""
        if not enabled(level, self.trace_level):
            return
        self._emit(2, _render(fmt, args), self.trace_source)

    def trace_func(self, level: int, producer: Producer | None) -> None:
        """Trace lines from *producer* while it returns a true flag.

        *producer* returns ``(line, more)``; the first false ``more``
        ends the loop and its line is not traced.
        """
        if producer is None or not enabled(level, self.trace_level):
            return
        line, more = producer()
        while more:
            self._emit(2, line, self.trace_source)
            line, more = producer()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _engine(self) -> TraceEngine:
        return self.engine if self.engine is not None else default_engine()

    def _enter(self, skip: int, name: str | None = None) -> CallerFrame | int:
        if not self.trace_level & FRAME:
            return NO_TOKEN
        return self._emit(skip + 1, "enter", self.frame_source, name)

    def _exit(self, skip: int, exc_info: tuple, name: str | None = None) -> None:
        if not self.trace_level & FRAME:
            return
        if exc_info[1] is not None:
            self._emit(skip + 1, "panic exit", False, name)
        else:
            self._emit(skip + 1, "exit", self.frame_source, name)

    def _emit(self, skip: int, message: str, source: bool, name: str | None = None) -> CallerFrame | int:
        """Format *message* for the frame *skip* levels up and queue it.

        Returns the resolved caller frame, or ``NO_TOKEN``.
        """
        engine = self._engine()
        if not engine.accepting:
            return NO_TOKEN

        resolver = self.resolver if self.resolver is not None else _STACK_RESOLVER
        limit = 1 + self.callers_source if source else 1
        try:
            frames = resolver.callers(skip, limit)
        except Exception:
            frames = []

        if not frames:
            engine.emit(f"{self.prefix}{message}\n")
            return NO_TOKEN

        caller = frames[0]
        text = f"{self.prefix}{name or caller.function}: {message}\n"
        if source:
            text += "".join(f"\tat {f.filename}:{f.lineno}\n" for f in frames)
        if not engine.emit(text):
            return NO_TOKEN
        return caller


class _FrameScope:
    """Traces ``enter`` on entry and ``exit``/``panic exit`` on exit."""

    def __init__(self, tracer: Tracer):
        self._tracer = tracer
        self.token: CallerFrame | int = NO_TOKEN

    def __enter__(self) -> CallerFrame | int:
        self.token = self._tracer._enter(2)
        return self.token

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._tracer._exit(2, (exc_type, exc, tb))
        return False
