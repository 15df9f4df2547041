# -*- coding: utf-8 -*-
# Foildrive/foildrive/runner/run.py

"""
Project: Foildrive
Date: 10/17/2025 (Updated: 10/19/2025)

Purpose
-------
Thin, robust batch launcher: feed a finished command list to a fresh solver process,
close its input, wait for it to exit with optional timeout control, and return
returncode/stdout/diagnostics. No prompt handshake is involved; the solver simply reads
the script until `quit` (or end-of-input).

Main Tasks
----------
    1. Verify the executable (rc=127 when missing) and spawn it in `workdir`.
    2. Drain stdout on the monitor thread (full capture + watched-marker counts).
    3. Write the rendered script, close stdin, poll for exit; on timeout terminate the
       process group and return rc=124.

Notes
-----
- stdout is captured byte-for-byte through the monitor's mirror and decoded as latin-1
  (the solver prints plain ASCII; latin-1 never fails).
- The third tuple element carries runner diagnostics, not the child's stderr (which is
  inherited).
"""

from __future__ import absolute_import
import io
import logging
import time
from typing import Mapping, Optional, Sequence, Tuple

from ..build.config import render_commands
from ..errors import SolverExitedError, SpawnError
from .monitor import OutputMonitor, tail_lines
from .process import ProcessSession, resolve_executable

logger = logging.getLogger(__name__)


def run_commands(commands: Sequence[str],
                 xfoil_exec: str = "xfoil",
                 workdir: Optional[str] = None,
                 timeout_s: Optional[float] = None,
                 env: Optional[Mapping[str, str]] = None,
                 *,
                 extra_args: Sequence[str] = (),
                 tail_n: int = 200,
                 join_timeout_s: float = 1.0,
                 poll_s: float = 0.05) -> Tuple[int, str, str]:
    """
    Run the solver non-interactively on `commands` and return (rc, stdout, diagnostics).

    Options
    -------
    timeout_s         → wall-clock timeout; on expiry, kill and return rc=124
    env               → environment for the child
    extra_args        → argv additions (scripted doubles only)
    tail_n            → lines kept for the diagnostic tail
    """
    try:
        exe = resolve_executable(xfoil_exec)
    except SpawnError as e:
        return (127, "", str(e))

    script = render_commands(commands)
    proc = ProcessSession(exe, extra_args=extra_args, cwd=workdir, env=env)
    try:
        proc.start()
    except SpawnError as e:
        return (2, "", str(e))

    captured = io.BytesIO()
    monitor = OutputMonitor(proc.stdout, mirror=captured, tail_n=tail_n, name="xfoil-batch").start()

    diag = []
    timed_out = False
    start = time.time()
    try:
        try:
            proc.write(script.encode("ascii"))
        except SolverExitedError as e:
            # exited before reading everything; its output still tells why
            diag.append("[runner] {}".format(e))
        proc.send_eof()

        while proc.returncode is None:
            if timeout_s is not None and (time.time() - start) > float(timeout_s):
                timed_out = True
                break
            time.sleep(poll_s)
    finally:
        if proc.alive:
            proc.terminate()
        # reader sees EOF once the child is gone
        monitor.join(timeout=join_timeout_s)
        proc.close()

    rc = proc.returncode
    if timed_out:
        rc = 124
        diag.append("[runner] Timed out after {} s.".format(timeout_s))
        diag.append(tail_lines(monitor.tail(tail_n), n_tail=25))

    logger.info("[runner] %s exited with rc=%s after %.2fs", exe, rc, time.time() - start)
    stdout = captured.getvalue().decode("latin-1")
    return (int(rc if rc is not None else 0), stdout, "\n".join(diag))
