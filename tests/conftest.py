import io
import threading

import pytest

from bittrace.engine import TraceEngine
from bittrace.resolver import CallerFrame, ICallerResolver


class FakeResolver(ICallerResolver):
    """Returns canned frames and records every request."""

    def __init__(self, frames=None):
        self.frames = list(frames or [])
        self.requests = []

    def callers(self, skip, limit):
        self.requests.append((skip, limit))
        return self.frames[:limit]


class BrokenResolver(ICallerResolver):
    def callers(self, skip, limit):
        raise RuntimeError("no stack here")


class GatedStream:
    """Stream whose write() blocks until the gate is opened."""

    def __init__(self):
        self.lines = []
        self.entered = threading.Event()
        self.gate = threading.Event()

    def write(self, s):
        self.entered.set()
        self.gate.wait()
        self.lines.append(s)

    def flush(self):
        pass


CANNED = [
    CallerFrame("app.foo", "/src/app.py", 23),
    CallerFrame("app.main", "/src/app.py", 34),
    CallerFrame("app.<module>", "/src/app.py", 40),
]


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def engine(stream):
    """Running engine writing to an in-memory stream; stopped on teardown."""
    eng = TraceEngine(stream=stream)
    eng.start()
    yield eng
    eng.stop()


@pytest.fixture
def resolver():
    return FakeResolver(CANNED)
