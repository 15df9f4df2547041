# -*- coding: utf-8 -*-
# Foildrive/foildrive/runner/process.py

"""
Project: Foildrive
Date: 10/14/2025 (Updated: 10/18/2025)

Purpose
-------
Own the solver child process: spawn it with stdin/stdout wired to pipes held by the
driver, write command bytes, close its input, and terminate and reap it. Everything
above this layer talks to the child only through `ProcessSession`.

Main Tasks
----------
    1. Resolve the executable (absolute path, `XFOIL_BIN`, or `PATH`).
    2. Spawn with unbuffered binary pipes; turn spawn failures into `SpawnError`.
    3. Write/flush bytes, mapping a dead pipe to `SolverExitedError`.
    4. Terminate with SIGTERM (process group on POSIX), escalate to kill after a
       bounded wait, reap, and close the parent-side handles.

Notes
-----
- The solver is launched with no arguments; `extra_args` exists for scripted doubles.
- stderr is inherited; the solver reports everything interesting on stdout.
- `terminate()` and `close()` are idempotent.
"""

from __future__ import absolute_import
import logging
import os
import shutil
import signal
import subprocess
import sys
from typing import IO, Mapping, Optional, Sequence

from ..errors import SessionError, SpawnError, SolverExitedError

logger = logging.getLogger(__name__)


def resolve_executable(exe_name="xfoil"):
    # type: (str) -> str
    """
    Find the solver binary or raise a clear error.

    Checks an existing file path first, then the environment variable '<NAME>_BIN'
    (uppercased basename, e.g. XFOIL_BIN), then PATH.

    Raises
    ------
    SpawnError
        If the executable cannot be found.
    """
    if os.path.sep in exe_name and os.path.isfile(exe_name):
        return os.path.abspath(exe_name)

    base = os.path.basename(exe_name)
    env_key = (base + "_BIN").upper()
    candidate = os.environ.get(env_key)
    if candidate:
        candidate = candidate.strip().strip('"').strip("'")
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return os.path.abspath(candidate)

    exe = shutil.which(exe_name) or shutil.which(exe_name + ".exe")
    if exe is None:
        raise SpawnError(
            "'{}' not found on PATH. Install it or set the {} environment variable "
            "to its full path.".format(exe_name, env_key),
            {"exe": exe_name},
        )
    return os.path.abspath(exe)


class ProcessSession(object):
    """
    One spawned solver process and its pipes.

    Args
    ----
    exe_path : str
        Solver executable (resolved through `resolve_executable`).
    extra_args : Sequence[str], optional
        Extra argv entries (scripted test doubles only).
    cwd : str, optional
        Working directory for the child; the solver drops stray files there.
    env : Mapping[str, str], optional
        Environment for the child.
    """

    def __init__(self, exe_path, extra_args=(), cwd=None, env=None):
        # type: (str, Sequence[str], Optional[str], Optional[Mapping[str, str]]) -> None
        self.exe_path = exe_path
        self.extra_args = list(extra_args)
        self.cwd = cwd
        self.env = dict(env) if env is not None else None
        self._proc = None  # type: Optional[subprocess.Popen]
        self._closed = False

    # ------------------------------------------------------------------
    # Spawn
    # ------------------------------------------------------------------
    def start(self):
        # type: () -> bool
        """
        Spawn the child with piped stdin/stdout.

        Returns
        -------
        bool
            True on success.

        Raises
        ------
        SessionError
            If called twice.
        SpawnError
            If the binary cannot be found or launched (no partial state is kept).
        """
        if self._proc is not None or self._closed:
            raise SessionError("process already started", {"exe": self.exe_path})

        exe = resolve_executable(self.exe_path)
        cmd = [exe] + self.extra_args
        # own process group on POSIX so terminate() reaches anything the solver forks
        preexec = os.setsid if sys.platform != "win32" else None
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=self.cwd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                bufsize=0,
                env=self.env,
                preexec_fn=preexec,
            )
        except (OSError, ValueError) as e:
            raise SpawnError("Failed to start process: {}".format(e), {"cmd": cmd})

        if proc.stdin is None or proc.stdout is None:
            proc.kill()
            proc.wait()
            raise SpawnError("Child pipes were not opened", {"cmd": cmd})

        self._proc = proc
        logger.info("[ProcessSession] started %s (pid=%d)", exe, proc.pid)
        return True

    # ------------------------------------------------------------------
    # Handles
    # ------------------------------------------------------------------
    @property
    def stdout(self):
        # type: () -> IO[bytes]
        return self._require().stdout

    @property
    def stdin(self):
        # type: () -> IO[bytes]
        return self._require().stdin

    @property
    def pid(self):
        return self._proc.pid if self._proc is not None else None

    @property
    def started(self):
        return self._proc is not None

    @property
    def alive(self):
        return self._proc is not None and self._proc.poll() is None

    @property
    def returncode(self):
        return self._proc.poll() if self._proc is not None else None

    def _require(self):
        if self._proc is None:
            raise SessionError("process not started", {"exe": self.exe_path})
        return self._proc

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------
    def write(self, data):
        # type: (bytes) -> None
        """Write `data` to the child's stdin and flush immediately."""
        proc = self._require()
        try:
            proc.stdin.write(data)
            proc.stdin.flush()
        except (BrokenPipeError, ValueError) as e:
            raise SolverExitedError("solver input pipe is closed: {}".format(e),
                                    {"pid": proc.pid, "rc": proc.poll()})

    def send_eof(self):
        """Close the child's stdin so a batch-fed solver sees end-of-input."""
        proc = self._require()
        try:
            proc.stdin.close()
        except OSError as e:
            logger.debug("[ProcessSession] closing stdin: %s", e)

    def wait(self, timeout=None):
        # type: (Optional[float]) -> Optional[int]
        """Wait for the child to exit; returns its code, or None on timeout."""
        proc = self._require()
        try:
            return proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def terminate(self, timeout_s=2.0):
        # type: (float) -> bool
        """
        Send SIGTERM, wait up to `timeout_s`, escalate to kill, and reap.

        Returns
        -------
        bool
            True if the signal was delivered or the child had already exited.
        """
        proc = self._proc
        if proc is None:
            return False

        delivered = True
        if proc.poll() is None:
            try:
                if sys.platform != "win32":
                    os.killpg(os.getpgid(proc.pid), signal.SIGTERM)
                else:
                    proc.terminate()
            except ProcessLookupError:
                # exited between poll() and the signal
                pass
            except OSError as e:
                logger.warning("[ProcessSession] SIGTERM to pid %d failed: %s", proc.pid, e)
                delivered = False

        try:
            proc.wait(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            logger.warning("[ProcessSession] pid %d ignored SIGTERM; killing", proc.pid)
            proc.kill()
            proc.wait()
        return delivered

    def close(self):
        """Close parent-side pipe handles (idempotent)."""
        if self._closed:
            return
        self._closed = True
        proc = self._proc
        if proc is None:
            return
        for handle in (proc.stdin, proc.stdout):
            if handle is None:
                continue
            try:
                handle.close()
            except OSError as e:
                logger.debug("[ProcessSession] closing pipe: %s", e)
