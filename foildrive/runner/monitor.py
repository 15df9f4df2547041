# -*- coding: utf-8 -*-
# Foildrive/foildrive/runner/monitor.py

"""
Project: Foildrive
Date: 10/14/2025 (Updated: 10/18/2025)

Purpose
-------
Continuously drain the solver's stdout on a background thread. Every byte lands in a
fixed-size sliding window (the only thing the prompt detector looks at); complete lines
also feed a bounded tail and a case-insensitive marker counter so failure messages that
scrolled out of the window are not lost.

Main Tasks
----------
    1. `OutputWindow`: lock-protected fixed-capacity byte window (push / snapshot only).
    2. `OutputMonitor`: daemon reader thread, one byte per read, optional byte mirror
       to a log file, EOF detection, bounded join.
    3. Line assembly: tail of the last N lines and latched hit counts for watched markers.
    4. `tail_lines`: join the last N lines of any iterable for summaries.

Notes
-----
- The lock is held only for buffer access, never across the blocking read.
- `received` counts bytes read, so a waiter can insist on output newer than its last command.
- A reader that outlives `join(timeout)` is logged as a leak; the thread is a daemon so
  it cannot keep the interpreter alive.
"""

from __future__ import absolute_import
import logging
import threading
from collections import deque
from typing import Dict, Iterable, IO, List, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 200


class OutputWindow(object):
    """
    Fixed-capacity window over the most recent output bytes.

    The window starts filled with NUL bytes; each push evicts the oldest byte.
    """

    def __init__(self, capacity=DEFAULT_WINDOW):
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError("window capacity must be >= 1")
        self._buf = deque([0] * capacity, maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self):
        return self._buf.maxlen

    def push(self, byte):
        # type: (int) -> None
        with self._lock:
            self._buf.append(byte)

    def snapshot(self):
        # type: () -> bytes
        with self._lock:
            return bytes(self._buf)


class OutputMonitor(object):
    """
    Background reader for a binary stream.

    Args
    ----
    stream : IO[bytes]
        Readable, unbuffered binary stream (the child's stdout).
    window : OutputWindow, optional
        Shared window; a fresh one of `window_size` bytes is created when omitted.
    watch : Sequence[str], optional
        Marker substrings counted (case-insensitively) per complete line.
    mirror : IO[bytes], optional
        Sink that receives every byte read (diagnostic log).
    tail_n : int
        Number of complete lines retained for `tail()`.
    """

    def __init__(self, stream, window=None, watch=(), mirror=None,
                 tail_n=200, window_size=DEFAULT_WINDOW, name="xfoil-monitor"):
        # type: (IO[bytes], Optional[OutputWindow], Sequence[str], Optional[IO[bytes]], int, int, str) -> None
        self.stream = stream
        self.window = window if window is not None else OutputWindow(window_size)
        self.mirror = mirror
        self._watch = [w.lower() for w in watch]
        self._hits = {w: 0 for w in self._watch}  # type: Dict[str, int]
        self._tail = deque(maxlen=int(tail_n))
        self._line = bytearray()
        self._received = 0
        self._state_lock = threading.Lock()
        self._stop = threading.Event()
        self._eof = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self):
        self._thread.start()
        return self

    def stop(self):
        """Ask the loop to exit after its current (possibly blocking) read."""
        self._stop.set()

    def join(self, timeout=1.0):
        # type: (Optional[float]) -> bool
        """
        Wait for the reader to exit. Returns True if it did.

        A reader still blocked after `timeout` is reported as a leak.
        """
        if not self._thread.is_alive():
            return True
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("[OutputMonitor] reader thread still alive after %.2fs; leaking it", timeout or 0.0)
            return False
        return True

    @property
    def eof(self):
        return self._eof.is_set()

    @property
    def running(self):
        return self._thread.is_alive()

    # ------------------------------------------------------------------
    # Reader loop
    # ------------------------------------------------------------------
    def _run(self):
        try:
            while not self._stop.is_set():
                try:
                    chunk = self.stream.read(1)
                except (OSError, ValueError):
                    # closed under us during teardown
                    break
                if not chunk:
                    break
                b = chunk[0]
                self.window.push(b)
                self._received += 1
                if self.mirror is not None:
                    try:
                        self.mirror.write(chunk)
                    except (OSError, ValueError):
                        self.mirror = None
                self._feed_line(b)
        finally:
            self._flush_line()
            self._eof.set()
            logger.debug("[OutputMonitor] reader loop exited")

    def _feed_line(self, b):
        if b == 0x0A:  # \n
            self._flush_line()
        elif b != 0x0D:
            with self._state_lock:
                self._line.append(b)

    def _flush_line(self):
        with self._state_lock:
            if not self._line:
                return
            text = self._line.decode("latin-1")
            self._line = bytearray()
            low = text.lower()
            self._tail.append(text)
            for w in self._watch:
                if w in low:
                    self._hits[w] += 1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def snapshot(self):
        # type: () -> bytes
        return self.window.snapshot()

    @property
    def received(self):
        # type: () -> int
        """Total bytes read so far."""
        return self._received

    def pending(self):
        # type: () -> str
        """The incomplete last line (usually the prompt the solver is sitting at)."""
        with self._state_lock:
            return self._line.decode("latin-1")

    def hits(self, marker):
        # type: (str) -> int
        """Number of complete lines containing `marker` since the last reset."""
        with self._state_lock:
            return self._hits.get(marker.lower(), 0)

    def seen(self, marker):
        # type: (str) -> bool
        return self.hits(marker) > 0

    def reset_hits(self):
        with self._state_lock:
            for w in self._hits:
                self._hits[w] = 0

    def tail(self, n=25):
        # type: (int) -> List[str]
        with self._state_lock:
            lines = list(self._tail)
        return lines[-int(n):] if n else lines


def tail_lines(iter_lines, n_tail=25):
    # type: (Iterable[str], int) -> str
    """
    Return the last `n_tail` lines from a line iterator, joined by '\\n'.
    """
    dq = deque(maxlen=int(n_tail))
    for line in iter_lines:
        dq.append(line.rstrip("\n"))
    return "\n".join(dq)
