import io
import threading

import pytest

from foildrive.errors import SolverExitedError, UnresponsiveSolverError
from foildrive.runner.dispatch import CommandDispatcher, SessionPhase


class StubMonitor(object):
    """In-memory monitor: tests append bytes to simulate solver output."""

    def __init__(self, data=b"", eof=False):
        self.data = bytearray(data)
        self.eof = eof

    def feed(self, data):
        self.data.extend(data)

    @property
    def received(self):
        return len(self.data)

    def snapshot(self):
        return bytes(self.data[-200:])


class EchoPrompt(object):
    """Byte sink that answers every line with a fresh idle prompt."""

    def __init__(self, monitor):
        self.monitor = monitor
        self.sink = io.BytesIO()

    def __call__(self, data):
        self.sink.write(data)
        self.monitor.feed(b"\n.OPERi   c>  ")


def _dispatcher(monitor, write=None, **kw):
    kw.setdefault("poll_s", 0.001)
    kw.setdefault("timeout_s", 0.2)
    return CommandDispatcher(write or (lambda data: None), monitor, **kw)


def test_send_writes_lines_in_order_and_logs_them():
    mon = StubMonitor()
    echo = EchoPrompt(mon)
    log = io.StringIO()
    d = _dispatcher(mon, echo, input_log=log)
    d.send_all(["oper", "v", "1000000"])
    d.newline()
    assert echo.sink.getvalue() == b"oper\nv\n1000000\n\n"
    assert d.history == ["oper\n", "v\n", "1000000\n", "\n"]
    assert log.getvalue() == "".join(d.history)


def test_dispatch_async_keeps_order():
    mon = StubMonitor()
    echo = EchoPrompt(mon)
    d = _dispatcher(mon, echo)
    d.dispatch_async(["aseq", "-2", "8", "1"])
    assert echo.sink.getvalue() == b"aseq\n-2\n8\n1\n"


def test_dispatch_async_reraises_write_errors():
    def broken(data):
        raise BrokenPipeError("closed")

    d = _dispatcher(StubMonitor(), broken)
    with pytest.raises(BrokenPipeError):
        d.dispatch_async(["a 4"])


def test_non_ascii_line_is_rejected():
    d = _dispatcher(StubMonitor())
    with pytest.raises(UnicodeEncodeError):
        d.send("load é.dat")


def test_phase_flips_busy_then_idle():
    mon = StubMonitor(b"\n XFOIL   c>  ")
    echo = EchoPrompt(mon)
    d = _dispatcher(mon, echo)
    assert d.phase is SessionPhase.IDLE
    d.send("oper")
    assert d.phase is SessionPhase.BUSY
    d.await_idle()
    assert d.phase is SessionPhase.IDLE


def test_phase_left_alone_while_configuring():
    mon = StubMonitor()
    d = _dispatcher(mon, EchoPrompt(mon), phase=SessionPhase.CONFIGURING)
    d.send("plop")
    d.await_idle()
    assert d.phase is SessionPhase.CONFIGURING


def test_stale_prompt_is_not_an_answer():
    mon = StubMonitor(b"\n.OPERi   c>  ")
    d = _dispatcher(mon)
    assert d.is_idle()
    d.send("a 4")
    assert d.is_idle()
    assert not d.ready()
    with pytest.raises(UnresponsiveSolverError):
        d.await_idle(timeout_s=0.05)
    mon.feed(b"\n a =   4.000      CL =   0.7493\n.OPERi   c>  ")
    assert d.ready()


def test_await_idle_times_out_on_sub_prompt():
    mon = StubMonitor()
    d = _dispatcher(mon, lambda data: mon.feed(b"\n Enter Reynolds number   s>  "))
    d.send("r")
    with pytest.raises(UnresponsiveSolverError) as ei:
        d.await_idle(timeout_s=0.05)
    assert "Reynolds" in ei.value.context["last"]


def test_await_idle_cancel():
    mon = StubMonitor()
    d = _dispatcher(mon, timeout_s=None)
    d.send("a 4")
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    try:
        with pytest.raises(UnresponsiveSolverError) as ei:
            d.await_idle(cancel=cancel)
        assert "cancelled" in str(ei.value)
    finally:
        timer.cancel()


def test_await_idle_raises_when_output_closes():
    mon = StubMonitor(b"\n XFOIL   c>  ")
    d = _dispatcher(mon)
    d.send("quit")
    mon.eof = True
    with pytest.raises(SolverExitedError):
        d.await_idle()


def test_prompt_just_before_eof_still_counts():
    mon = StubMonitor()
    d = _dispatcher(mon, lambda data: mon.feed(b"\n XFOIL   c>  "))
    d.send("")
    mon.eof = True
    d.await_idle()


def test_await_condition_uses_predicate():
    mon = StubMonitor(b"\n Polar accumulation enabled\n")
    d = _dispatcher(mon)
    d.await_condition(lambda: d.contains("accumulation enabled"))
    with pytest.raises(UnresponsiveSolverError):
        d.await_condition(lambda: d.contains("LOAD NOT COMPLETED"), timeout_s=0.02, what="load reply")
