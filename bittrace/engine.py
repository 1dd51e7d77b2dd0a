"""TraceEngine — bounded queue drained by one writer thread."""

from __future__ import annotations

import atexit
import logging
import queue
import sys
import threading
from typing import TextIO

import bittrace.log  # registers TRACE level and logger.trace()

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10

_CLOSE = object()


class TraceEngine:
    """Serializes trace messages to an output stream.

    Parameters:
        stream:    Destination; ``None`` means ``sys.stderr`` looked up at
                   write time.
        capacity:  Maximum number of pending messages. Producers block
                   while the queue is full.
        autostart: Start the writer on the first ``emit()`` unless
                   ``stop()`` was called explicitly.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        capacity: int = DEFAULT_CAPACITY,
        autostart: bool = False,
    ):
        if capacity < 1:
            raise ValueError(f"Invalid capacity: {capacity} (must be >= 1)")
        self.stream = stream
        self.capacity = capacity
        self._autostart = autostart
        self._queue: queue.Queue | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Create the queue and launch the writer. No-op if running."""
        with self._lock:
            if self._queue is not None:
                return
            self._queue = queue.Queue(maxsize=self.capacity)
            self._thread = threading.Thread(
                target=self._run, args=(self._queue,),
                name="bittrace-writer", daemon=True,
            )
            self._thread.start()
        logger.trace("TraceEngine started (capacity=%d)", self.capacity)  # type: ignore[attr-defined]

    def stop(self) -> None:
        """Flush every pending message, then stop the writer.

        Blocks until the writer has drained the queue and exited. No-op if
        not running.
        """
        with self._lock:
            self._autostart = False
            q, thread = self._queue, self._thread
            if q is None:
                return
            self._queue = None
            self._thread = None
            q.put(_CLOSE)
            thread.join()
        logger.trace("TraceEngine stopped")  # type: ignore[attr-defined]

    @property
    def is_running(self) -> bool:
        return self._queue is not None

    @property
    def accepting(self) -> bool:
        """True if ``emit()`` would queue rather than drop a message."""
        return self._queue is not None or self._autostart

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def emit(self, message: str) -> bool:
        """Queue *message* for writing.

        Returns False (message dropped) when the engine is not running.
        Blocks while the queue is full.
        """
        q = self._queue
        if q is None:
            if not self._autostart:
                return False
            self.start()
            q = self._queue
            if q is None:
                return False
        q.put(message)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write(self, message: str) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        try:
            stream.write(message)
            stream.flush()
        except Exception as exc:
            logger.debug("TraceEngine write error: %s", exc)

    def _run(self, q: queue.Queue) -> None:
        """Writer loop — runs in a daemon thread."""
        while True:
            message = q.get()
            if message is _CLOSE:
                break
            self._write(message)


# ----------------------------------------------------------------------
# Process-wide default engine
# ----------------------------------------------------------------------

_default: TraceEngine | None = None
_default_lock = threading.Lock()


def default_engine() -> TraceEngine:
    """Return the process-wide engine, creating it on first use.

    The default engine writes to ``sys.stderr`` and starts itself on the
    first emitted message, so tracing works without any setup. It is
    stopped, flushing pending lines, at interpreter exit.
    """
    global _default
    with _default_lock:
        if _default is None:
            _default = TraceEngine(autostart=True)
            atexit.register(_default.stop)
        return _default


def start() -> None:
    """Start the process-wide engine."""
    default_engine().start()


def stop() -> None:
    """Stop the process-wide engine, flushing every pending message."""
    default_engine().stop()
