"""Tests for bittrace.engine — queue, writer thread and lifecycle."""

from __future__ import annotations

import io
import threading
import time

import pytest

import bittrace.engine as engine_mod
from bittrace.engine import DEFAULT_CAPACITY, TraceEngine
from tests.conftest import GatedStream


class _FailingStream:
    def __init__(self):
        self.lines = []

    def write(self, s):
        if s.startswith("bad"):
            raise OSError("disk on fire")
        self.lines.append(s)

    def flush(self):
        pass


# ------------------------------------------------------------------
# Lifecycle
# ------------------------------------------------------------------

class TestLifecycle:

    def test_new_engine_is_stopped(self):
        eng = TraceEngine(stream=io.StringIO())
        assert eng.is_running is False
        assert eng.accepting is False

    def test_start_launches_daemon_writer(self):
        eng = TraceEngine(stream=io.StringIO())
        eng.start()
        try:
            assert eng.is_running is True
            assert eng._thread is not None
            assert eng._thread.daemon is True
            assert eng._thread.is_alive()
        finally:
            eng.stop()

    def test_start_twice_keeps_one_writer(self):
        eng = TraceEngine(stream=io.StringIO())
        eng.start()
        try:
            thread, q = eng._thread, eng._queue
            eng.start()
            assert eng._thread is thread
            assert eng._queue is q
        finally:
            eng.stop()

    def test_stop_joins_writer(self):
        eng = TraceEngine(stream=io.StringIO())
        eng.start()
        thread = eng._thread
        eng.stop()
        assert eng.is_running is False
        assert not thread.is_alive()

    def test_stop_when_stopped_is_noop(self):
        eng = TraceEngine(stream=io.StringIO())
        eng.stop()
        eng.stop()
        assert eng.is_running is False

    def test_restart_after_stop(self, stream):
        eng = TraceEngine(stream=stream)
        eng.start()
        eng.emit("one\n")
        eng.stop()
        eng.start()
        eng.emit("two\n")
        eng.stop()
        assert stream.getvalue() == "one\ntwo\n"

    def test_invalid_capacity_rejected(self):
        with pytest.raises(ValueError):
            TraceEngine(capacity=0)


# ------------------------------------------------------------------
# Emission
# ------------------------------------------------------------------

class TestEmit:

    def test_messages_written_in_order(self, engine, stream):
        for i in range(25):
            assert engine.emit(f"line {i}\n") is True
        engine.stop()
        assert stream.getvalue() == "".join(f"line {i}\n" for i in range(25))

    def test_written_verbatim(self, engine, stream):
        engine.emit("no newline")
        engine.emit("\ttabbed\n")
        engine.stop()
        assert stream.getvalue() == "no newline\ttabbed\n"

    def test_stopped_engine_drops(self, stream):
        eng = TraceEngine(stream=stream)
        assert eng.emit("lost\n") is False
        assert stream.getvalue() == ""

    def test_drop_after_stop(self, engine, stream):
        engine.emit("kept\n")
        engine.stop()
        assert engine.emit("lost\n") is False
        assert stream.getvalue() == "kept\n"

    @pytest.mark.timeout(10)
    def test_stop_flushes_pending_messages(self):
        out = GatedStream()
        eng = TraceEngine(stream=out)
        eng.start()
        for i in range(5):
            eng.emit(f"m{i}\n")

        stopper = threading.Thread(target=eng.stop)
        stopper.start()
        time.sleep(0.05)
        assert stopper.is_alive()  # still draining
        out.gate.set()
        stopper.join()
        assert out.lines == [f"m{i}\n" for i in range(5)]

    def test_concurrent_producers_lose_nothing(self, engine, stream):
        def produce(n):
            for i in range(50):
                engine.emit(f"{n}:{i}\n")

        threads = [threading.Thread(target=produce, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        engine.stop()

        lines = stream.getvalue().splitlines()
        assert len(lines) == 200
        for n in range(4):
            own = [line for line in lines if line.startswith(f"{n}:")]
            assert own == [f"{n}:{i}" for i in range(50)]

    def test_write_error_does_not_kill_writer(self):
        out = _FailingStream()
        eng = TraceEngine(stream=out)
        eng.start()
        eng.emit("good 1\n")
        eng.emit("bad\n")
        eng.emit("good 2\n")
        eng.stop()
        assert out.lines == ["good 1\n", "good 2\n"]

    def test_default_stream_is_current_stderr(self, capsys):
        eng = TraceEngine()
        eng.start()
        eng.emit("to stderr\n")
        eng.stop()
        assert capsys.readouterr().err == "to stderr\n"


# ------------------------------------------------------------------
# Backpressure
# ------------------------------------------------------------------

class TestBackpressure:

    def test_default_capacity(self):
        assert DEFAULT_CAPACITY == 10
        assert TraceEngine().capacity == 10

    @pytest.mark.timeout(10)
    def test_full_queue_blocks_producer(self):
        out = GatedStream()
        eng = TraceEngine(stream=out)
        eng.start()

        eng.emit("first\n")
        assert out.entered.wait(5)  # writer holds "first", queue is empty
        for i in range(DEFAULT_CAPACITY):
            eng.emit(f"queued {i}\n")
        assert eng._queue.full()

        extra = threading.Thread(target=eng.emit, args=("extra\n",))
        extra.start()
        time.sleep(0.1)
        assert extra.is_alive()  # blocked on the full queue

        out.gate.set()
        extra.join(5)
        assert not extra.is_alive()
        eng.stop()
        assert out.lines == (
            ["first\n"]
            + [f"queued {i}\n" for i in range(DEFAULT_CAPACITY)]
            + ["extra\n"]
        )


# ------------------------------------------------------------------
# Autostart and the process-wide engine
# ------------------------------------------------------------------

class TestAutostart:

    def test_autostart_on_first_emit(self, stream):
        eng = TraceEngine(stream=stream, autostart=True)
        assert eng.is_running is False
        assert eng.accepting is True
        assert eng.emit("hello\n") is True
        assert eng.is_running is True
        eng.stop()
        assert stream.getvalue() == "hello\n"

    def test_explicit_stop_disables_autostart(self, stream):
        eng = TraceEngine(stream=stream, autostart=True)
        eng.emit("one\n")
        eng.stop()
        assert eng.accepting is False
        assert eng.emit("two\n") is False
        assert eng.is_running is False
        assert stream.getvalue() == "one\n"

    def test_explicit_start_after_stop(self, stream):
        eng = TraceEngine(stream=stream, autostart=True)
        eng.stop()
        eng.start()
        assert eng.emit("back\n") is True
        eng.stop()
        assert stream.getvalue() == "back\n"


class TestDefaultEngine:

    @pytest.fixture(autouse=True)
    def fresh_default(self, monkeypatch):
        monkeypatch.setattr(engine_mod, "_default", None)
        yield
        if engine_mod._default is not None:
            engine_mod._default.stop()

    def test_default_engine_is_singleton(self):
        assert engine_mod.default_engine() is engine_mod.default_engine()

    def test_default_engine_not_started_on_creation(self):
        eng = engine_mod.default_engine()
        assert eng.is_running is False
        assert eng.accepting is True

    def test_exit_hook_flushes_pending_lines(self, monkeypatch, stream):
        hooks = []
        monkeypatch.setattr(engine_mod.atexit, "register", hooks.append)
        eng = engine_mod.default_engine()
        engine_mod.default_engine()
        assert hooks == [eng.stop]

        eng.stream = stream
        for i in range(5):
            eng.emit(f"late {i}\n")
        hooks[0]()
        assert eng.is_running is False
        assert stream.getvalue() == "".join(f"late {i}\n" for i in range(5))

    def test_module_start_stop(self):
        engine_mod.start()
        assert engine_mod.default_engine().is_running
        engine_mod.start()
        engine_mod.stop()
        assert not engine_mod.default_engine().is_running
        engine_mod.stop()
