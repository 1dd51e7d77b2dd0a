"""Trace level bits.

Levels are plain unsigned bitmasks. Two bits are reserved:

    FRAME — entry/exit tracing of frames
    NEXT  — origin of user-defined categories

Usage:
    from bittrace.levels import NEXT

    DEB_TRACE = NEXT << 0
    DEB_THIS = NEXT << 1
    DEB_THAT = NEXT << 2
    DEB_ALL = upto(DEB_THAT)
"""

from __future__ import annotations

FRAME: int = 1 << 0
NEXT: int = 1 << 1


def category(n: int) -> int:
    """Return the *n*-th user category bit."""
    if n < 0:
        raise ValueError(f"Invalid category index: {n}")
    return NEXT << n


def upto(level: int) -> int:
    """Return *level* together with every lower bit."""
    if level <= 0:
        raise ValueError(f"Invalid level: {level} (must be > 0)")
    return (level - 1) | level


def enabled(level: int, mask: int) -> bool:
    """True if every bit of *level* is set in *mask*.

    A zero *level* shares no bit with anything and never fires.
    """
    return (level & mask) != 0 and (level & ~mask) == 0
