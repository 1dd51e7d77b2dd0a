"""Internal diagnostics logging for bittrace.

Levels used by the library (ascending):
    TRACE =  5  — engine lifecycle chatter, every start/stop request
    DEBUG = 10  — worker write failures, CLI progress

This is the library's own diagnostic channel. Lines produced by a
``Tracer`` are the product and never go through ``logging``.

Usage:
    import bittrace.log  # registers TRACE and Logger.trace()
    logger = logging.getLogger(__name__)
    logger.trace("engine started")
"""

import logging

TRACE: int = 5


def _trace(self: logging.Logger, message: object, *args: object, **kwargs: object) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)  # type: ignore[attr-defined]


def install() -> None:
    """Register the TRACE level name and ``Logger.trace`` (idempotent)."""
    if logging.getLevelName(TRACE) != "TRACE":
        logging.addLevelName(TRACE, "TRACE")
    if getattr(logging.Logger, "trace", None) is not _trace:
        logging.Logger.trace = _trace  # type: ignore[attr-defined]


install()
