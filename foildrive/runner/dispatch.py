# -*- coding: utf-8 -*-
# Foildrive/foildrive/runner/dispatch.py

"""
Project: Foildrive
Date: 10/15/2025 (Updated: 10/19/2025)

Purpose
-------
Write command lines to the solver and wait for it to become idle again. This is the
request/poll half of the driver: `send` pushes one line, `await_idle` polls the prompt
detector until the prompt reappears, the solver dies, the wait times out, or the caller
cancels.

Main Tasks
----------
    1. `send(line)`: write `line + "\\n"` as ASCII, flush, append to the command log
       (and optional `input.log` mirror), mark the session busy.
    2. `await_idle(timeout_s, cancel)`: fixed-interval polling with a bounded wait.
    3. `is_idle()` / `contains()`: lock-protected reads of the monitor window.
    4. `dispatch_async(lines)`: send from one short-lived worker, joined before returning.

Notes
-----
- Commands reach the child in `send` order; callers must await idle before starting a
  new logical operation.
- `ready()` is `is_idle()` plus "some output arrived after the last send", so the prompt
  left over from the previous command never counts as an answer to the next one.
- The dispatcher only needs a byte sink with `write(bytes)` and a monitor exposing
  `snapshot()`, `received` and `eof`; tests can pass in-memory stand-ins.
"""

from __future__ import absolute_import
import enum
import logging
import threading
import time
from typing import IO, Callable, Iterable, List, Optional

from ..errors import SolverExitedError, UnresponsiveSolverError
from .prompt import IDLE_PROMPT, is_idle as _is_idle, contains as _contains

logger = logging.getLogger(__name__)


class SessionPhase(enum.Enum):
    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    CONFIGURING = "configuring"
    IDLE = "idle"
    BUSY = "busy"
    TERMINATED = "terminated"


# phases in which send/await may flip BUSY <-> IDLE
_RUNNING = (SessionPhase.IDLE, SessionPhase.BUSY)


class CommandDispatcher(object):
    """
    Line writer + idle poller for one solver session.

    Args
    ----
    write : Callable[[bytes], None]
        Byte sink that writes and flushes (e.g. `ProcessSession.write`).
    monitor : OutputMonitor
        Source of window snapshots, the byte counter and the EOF flag.
    poll_s : float
        Sleep between idle checks.
    settle_s : float
        Fixed pause used where the solver gives no prompt to wait for.
    timeout_s : float | None
        Default bound for `await_idle` (None waits forever).
    prompt : bytes
        Idle prompt suffix.
    input_log : IO[str], optional
        Text sink mirroring every line sent.
    phase : SessionPhase
        Initial phase; BUSY/IDLE transitions only happen while the phase is one of them.
    """

    def __init__(self, write, monitor, poll_s=0.01, settle_s=0.01, timeout_s=60.0,
                 prompt=IDLE_PROMPT, input_log=None, phase=SessionPhase.IDLE):
        # type: (Callable[[bytes], None], object, float, float, Optional[float], bytes, Optional[IO[str]], SessionPhase) -> None
        self._write = write
        self.monitor = monitor
        self.poll_s = float(poll_s)
        self.settle_s = float(settle_s)
        self.timeout_s = timeout_s
        self.prompt = prompt
        self.input_log = input_log
        self.history = []  # type: List[str]
        self.phase = phase
        self._mark = None  # type: Optional[int]
        self._send_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------
    def send(self, line=""):
        # type: (str) -> None
        """Write one command line (newline appended) and flush."""
        text = line + "\n"
        data = text.encode("ascii")
        with self._send_lock:
            self._mark = getattr(self.monitor, "received", None)
            self._write(data)
            self.history.append(text)
            if self.input_log is not None:
                try:
                    self.input_log.write(text)
                    self.input_log.flush()
                except (OSError, ValueError):
                    self.input_log = None
        if self.phase in _RUNNING:
            self.phase = SessionPhase.BUSY
        logger.debug("[CommandDispatcher] >> %r", line)

    def newline(self):
        self.send("")

    def send_all(self, lines):
        # type: (Iterable[str]) -> None
        for line in lines:
            self.send(line)

    def dispatch_async(self, lines):
        # type: (Iterable[str]) -> None
        """
        Send `lines` from a short-lived worker thread and join it.

        Any error raised while writing is re-raised in the caller.
        """
        lines = list(lines)
        errors = []  # type: List[BaseException]

        def _worker():
            try:
                self.send_all(lines)
            except BaseException as e:  # re-raised below
                errors.append(e)

        t = threading.Thread(target=_worker, name="xfoil-dispatch", daemon=True)
        t.start()
        t.join()
        if errors:
            raise errors[0]

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------
    def is_idle(self):
        # type: () -> bool
        return _is_idle(self.monitor.snapshot(), self.prompt)

    def contains(self, text):
        # type: (str) -> bool
        return _contains(self.monitor.snapshot(), text)

    def fresh(self):
        # type: () -> bool
        """True once output has arrived after the most recent send."""
        if self._mark is None:
            return True
        return getattr(self.monitor, "received", 0) > self._mark

    def ready(self):
        # type: () -> bool
        return self.fresh() and self.is_idle()

    def settle(self):
        time.sleep(self.settle_s)

    def await_condition(self, predicate, timeout_s=-1.0, cancel=None, what="solver prompt"):
        # type: (Callable[[], bool], Optional[float], Optional[threading.Event], str) -> None
        """
        Poll `predicate` every `poll_s` until it holds.

        Raises
        ------
        UnresponsiveSolverError
            Timeout expired or the wait was cancelled.
        SolverExitedError
            The output stream reached EOF before the predicate held.
        """
        if timeout_s is not None and timeout_s < 0:
            timeout_s = self.timeout_s
        start = time.time()
        while True:
            if predicate():
                return
            if self.monitor.eof:
                # one last look: the answer may have arrived right before EOF
                if predicate():
                    return
                raise SolverExitedError("solver output closed while waiting for the {}".format(what),
                                        {"last": self._tail_text()})
            if cancel is not None and cancel.is_set():
                raise UnresponsiveSolverError("wait for the {} was cancelled".format(what),
                                              {"last": self._tail_text()})
            if timeout_s is not None and (time.time() - start) > float(timeout_s):
                raise UnresponsiveSolverError(
                    "{} did not appear within {} s".format(what, timeout_s),
                    {"last": self._tail_text()},
                )
            time.sleep(self.poll_s)

    def await_idle(self, timeout_s=-1.0, cancel=None):
        # type: (Optional[float], Optional[threading.Event]) -> None
        """
        Poll until the idle prompt is the tail of the output window.

        Args
        ----
        timeout_s : float | None, optional
            Maximum wait; the dispatcher default is used when omitted, None waits forever.
        cancel : threading.Event, optional
            Set by another thread to abandon the wait.

        Raises
        ------
        UnresponsiveSolverError
            Timeout expired or the wait was cancelled.
        SolverExitedError
            The output stream reached EOF without a prompt.
        """
        self.await_condition(self.ready, timeout_s=timeout_s, cancel=cancel)
        if self.phase in _RUNNING:
            self.phase = SessionPhase.IDLE

    def _tail_text(self):
        raw = self.monitor.snapshot().lstrip(b"\x00")
        return raw.decode("latin-1")[-80:]
