"""Caller resolution — abstraction over call stack introspection."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import FrameType


@dataclass(frozen=True)
class CallerFrame:
    function: str   # fully-qualified: module.qualname
    filename: str
    lineno: int


class ICallerResolver(ABC):
    @abstractmethod
    def callers(self, skip: int, limit: int) -> list[CallerFrame]:
        """Return up to *limit* frames, the first one *skip* levels above
        the caller of this method. Empty when the stack is shorter."""


def _qualified_name(frame: FrameType) -> str:
    code = frame.f_code
    name = getattr(code, "co_qualname", code.co_name)
    module = frame.f_globals.get("__name__")
    if not module:
        return name
    return f"{module}.{name}"


class StackCallerResolver(ICallerResolver):
    """Resolves callers from the live interpreter stack."""

    def callers(self, skip: int, limit: int) -> list[CallerFrame]:
        if limit <= 0:
            return []
        try:
            frame: FrameType | None = sys._getframe(skip + 1)
        except ValueError:
            return []

        out: list[CallerFrame] = []
        while frame is not None and len(out) < limit:
            out.append(CallerFrame(
                function=_qualified_name(frame),
                filename=frame.f_code.co_filename,
                lineno=frame.f_lineno,
            ))
            frame = frame.f_back
        return out
