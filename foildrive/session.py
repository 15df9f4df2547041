# -*- coding: utf-8 -*-
# Foildrive/foildrive/session.py

"""
Project: Foildrive
Date: 10/16/2025 (Updated: 10/19/2025)

Purpose
-------
Interactive XFOIL session: one child process, one output monitor, one dispatcher, and
the menu protocols that turn solver commands (geometry, viscosity, accumulation,
iteration limit, single points, sweeps, pressure distributions) into typed results and
typed errors.

Main Tasks
----------
    1. Start: spawn, start the monitor, wait for the banner prompt, then configure
       (graphics off, Ncrit, polar accumulation, viscosity, iteration limit).
    2. Settings protocols with acknowledgement checks; state changes only on success.
    3. Run protocols: send, wait for the prompt, read new rows at the accumulation cursor.
    4. Quit: leave the solver, terminate and reap it, join the reader, remove scratch files.

Notes
-----
- Every protocol starts and ends at the top-level `XFOIL   c>` prompt.
- Solver messages are matched against the lines received since the protocol began plus
  the line the solver is currently prompting on, never against older output.
- Accumulation files the session named itself are deleted at quit; a file passed in by
  the caller is kept.
"""

from __future__ import absolute_import
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, IO, List, Mapping, Optional, Sequence, Tuple

from .build.config import build_options
from .errors import (
    ConvergenceError, IterationError, LoadError, NacaError, PaccError, ResultFileError,
    SessionError, SpawnError, ViscosityError,
)
from .interface.cpdist import read_cp
from .interface.formats import remove_quietly, unique_path
from .interface.polar import (
    DATA_LINE_INDEX, PolarTable, read_polar, read_polar_rows, sweep_count, table_from_rows,
)
from .runner import prompt as P
from .runner.dispatch import CommandDispatcher, SessionPhase
from .runner.monitor import OutputMonitor
from .runner.process import ProcessSession

logger = logging.getLogger(__name__)

# Geometry loaded before settings that need one
DUMMY_NACA = "1111"

# Stray boundary-layer dump XFOIL leaves in its working directory
STRAY_BL_FILE = ":00.bl"


@dataclass
class SessionState:
    viscous: bool = False
    reynolds: int = 0
    pacc: bool = False
    pacc_file: Optional[str] = None
    foil_loaded: bool = False
    foil_name: Optional[str] = None
    iterations: int = 20
    ncrit: float = 9.0
    graphics_disabled: bool = False
    cursor: int = DATA_LINE_INDEX


class XfoilSession(object):
    """
    Driver for one interactive solver process.

    Args
    ----
    xfoil_exec : str
        Executable name or path (`XFOIL_BIN` and PATH are consulted).
    options : Mapping[str, Any], optional
        Session options (aliases accepted); merged over `build.config` defaults.
    extra_args : Sequence[str]
        argv additions (scripted doubles only).
    env : Mapping[str, str], optional
        Child environment.
    **params
        Same as `options`, as keywords (`reynolds=1e6, iterations=50, log_dir="logs"`).

    Example
    -------
    >>> with XfoilSession(reynolds=1_000_000) as xf:
    ...     xf.naca("2414")
    ...     row = xf.angle_of_attack(4.0)
    """

    def __init__(self, xfoil_exec="xfoil", options=None, extra_args=(), env=None, **params):
        # type: (str, Optional[Mapping[str, Any]], Sequence[str], Optional[Mapping[str, str]], Any) -> None
        merged = dict(options or {})
        merged.update(params)
        self.opts = build_options(merged)
        self.xfoil_exec = xfoil_exec
        self.extra_args = list(extra_args)
        self.env = env

        self.state = SessionState(
            iterations=self.opts["ITER"],
            ncrit=self.opts["NCRIT"],
        )
        self.cancel_event = threading.Event()

        self._phase = SessionPhase.UNINITIALIZED
        self._proc = None        # type: Optional[ProcessSession]
        self._monitor = None     # type: Optional[OutputMonitor]
        self._dispatcher = None  # type: Optional[CommandDispatcher]
        self._xfoil_log = None   # type: Optional[IO[bytes]]
        self._input_log = None   # type: Optional[IO[str]]
        self._owned = []         # type: List[str]
        self._quit = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def phase(self):
        # type: () -> SessionPhase
        if self._dispatcher is not None:
            return self._dispatcher.phase
        return self._phase

    def _set_phase(self, phase):
        self._phase = phase
        if self._dispatcher is not None:
            self._dispatcher.phase = phase

    @property
    def history(self):
        # type: () -> List[str]
        """Every line sent so far, newline included."""
        return list(self._dispatcher.history) if self._dispatcher is not None else []

    @property
    def dispatcher(self):
        return self._dispatcher

    @property
    def monitor(self):
        return self._monitor

    @property
    def pid(self):
        return self._proc.pid if self._proc is not None else None

    def tail(self, n=25):
        # type: (int) -> List[str]
        return self._monitor.tail(n) if self._monitor is not None else []

    def cancel(self):
        """Abort the wait in progress (from another thread); the next protocol clears it."""
        self.cancel_event.set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self):
        # type: () -> XfoilSession
        """
        Spawn the solver, wait for its banner prompt and configure it.

        Raises
        ------
        SessionError
            If the session was already started.
        SpawnError
            If the binary cannot be launched (the session can be started again).
        ProtocolError, UnresponsiveSolverError, SolverExitedError
            If configuration fails; the process is shut down first.
        """
        if self._phase is not SessionPhase.UNINITIALIZED:
            raise SessionError("session already started", {"phase": self.phase.value})
        self._set_phase(SessionPhase.STARTING)
        self._open_logs()

        proc = ProcessSession(self.xfoil_exec, extra_args=self.extra_args,
                              cwd=self.opts["WORK_DIR"], env=self.env)
        try:
            proc.start()
        except SpawnError:
            self._close_logs()
            self._set_phase(SessionPhase.UNINITIALIZED)
            raise

        self._proc = proc
        self._monitor = OutputMonitor(
            proc.stdout,
            watch=P.WATCHED_MARKERS,
            mirror=self._xfoil_log,
            window_size=self.opts["WINDOW_SIZE"],
        ).start()
        self._dispatcher = CommandDispatcher(
            proc.write,
            self._monitor,
            poll_s=self.opts["POLL_S"],
            settle_s=self.opts["SETTLE_S"],
            timeout_s=self.opts["AWAIT_TIMEOUT_S"],
            input_log=self._input_log,
            phase=SessionPhase.STARTING,
        )

        try:
            self._dispatcher.await_idle(cancel=self.cancel_event)
            self._set_phase(SessionPhase.CONFIGURING)
            self.configure()
        except Exception:
            logger.error("[XfoilSession] start-up failed; shutting the solver down")
            self.quit()
            raise

        self._set_phase(SessionPhase.IDLE)
        logger.info("[XfoilSession] ready (pid=%s, polar=%s)", proc.pid, self.state.pacc_file)
        return self

    def configure(self):
        """Graphics off, Ncrit, polar accumulation, viscosity and iteration limit."""
        self.disable_graphics()
        self.set_ncrit(self.state.ncrit)
        pacc = self.opts["PACC_FILE"]
        if pacc is None:
            pacc = self._scratch_path(".pol")
        self.enable_pacc(pacc)
        self.set_viscosity(self.opts["REYNOLDS"])
        self.set_iterations(self.state.iterations)

    def quit(self):
        # type: () -> bool
        """
        Leave the solver, terminate and reap it, and clean up.

        Returns
        -------
        bool
            True if the termination signal was delivered (or the solver had already
            exited); False on a second call or if the session never started.
        """
        if self._quit:
            return False
        self._quit = True

        delivered = False
        if self._proc is not None:
            if self._proc.alive:
                try:
                    self._dispatcher.newline()
                    self._dispatcher.send("Quit")
                except Exception as e:
                    logger.debug("[XfoilSession] quit command not delivered: %s", e)
            self._monitor.stop()
            delivered = self._proc.terminate(self.opts["TERM_TIMEOUT_S"])
            self._monitor.join(self.opts["JOIN_TIMEOUT_S"])
            self._proc.close()

        self._close_logs()
        for path in self._owned:
            remove_quietly(path)
        self._owned = []
        remove_quietly(os.path.join(self.opts["WORK_DIR"] or os.getcwd(), STRAY_BL_FILE))

        self._set_phase(SessionPhase.TERMINATED)
        self.state.pacc = False
        logger.info("[XfoilSession] terminated (signal delivered: %s)", delivered)
        return delivered

    def __enter__(self):
        if self._phase is SessionPhase.UNINITIALIZED:
            self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.quit()
        return False

    # ------------------------------------------------------------------
    # Low-level helpers
    # ------------------------------------------------------------------
    def _open_logs(self):
        log_dir = self.opts["LOG_DIR"]
        if not log_dir:
            return
        os.makedirs(log_dir, exist_ok=True)
        self._xfoil_log = open(os.path.join(log_dir, "xfoil.log"), "wb")
        self._input_log = open(os.path.join(log_dir, "input.log"), "w", encoding="ascii")
        logger.info("[XfoilSession] logging solver I/O to %s", log_dir)

    def _close_logs(self):
        for handle in (self._xfoil_log, self._input_log):
            if handle is None:
                continue
            try:
                handle.close()
            except OSError as e:
                logger.warning("[XfoilSession] closing log: %s", e)
        self._xfoil_log = None
        self._input_log = None

    def _scratch_path(self, suffix):
        # type: (str) -> str
        path = unique_path(suffix=suffix, directory=self.opts["TMP_DIR"])
        self._owned.append(path)
        return path

    def _require_live(self):
        if self._quit or self._phase is SessionPhase.TERMINATED:
            raise SessionError("session terminated")
        if self._dispatcher is None:
            raise SessionError("session not started; call start() or use it as a context manager")

    def _begin(self):
        """Start a protocol: session must be live; marker latches and cancel are cleared."""
        self._require_live()
        self.cancel_event.clear()
        self._monitor.reset_hits()

    def _do(self, *lines):
        """Send `lines` and wait for the idle prompt (only the last line may produce one)."""
        self._dispatcher.send_all(lines)
        self._dispatcher.await_idle(cancel=self.cancel_event)

    def _saw(self, marker):
        # type: (str) -> bool
        return self._monitor.seen(marker) or marker.lower() in self._monitor.pending().lower()

    def _at_prompt(self, marker):
        # type: (str) -> bool
        return marker in self._monitor.pending()

    def _wait_for(self, *markers):
        """Settle, then wait until the solver is idle or one of `markers` shows up."""
        self._dispatcher.settle()
        self._dispatcher.await_condition(
            lambda: self._dispatcher.ready() or any(self._saw(m) for m in markers),
            cancel=self.cancel_event,
            what="solver reply",
        )

    def _ensure_geometry(self):
        if not self.state.foil_loaded:
            self.naca(DUMMY_NACA)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def naca(self, code):
        # type: (str) -> None
        """
        Generate a NACA 4- or 5-digit airfoil.

        Raises
        ------
        NacaError
            If the solver rejects the designation (state unchanged).
        """
        self._begin()
        code = str(code).strip()
        self._dispatcher.send_all(["naca", code])
        self._wait_for(P.NACA_REJECTED)
        if self._saw(P.NACA_REJECTED) or not self._dispatcher.ready():
            self._do("")
            raise NacaError("NACA designation rejected", {"naca": code})
        self.state.foil_loaded = True
        self.state.foil_name = code
        logger.info("[XfoilSession] NACA %s loaded", code)

    def load_foil_file(self, path, name=None):
        # type: (str, Optional[str]) -> None
        """
        Load a coordinate file; `name` answers the solver's name prompt for unlabeled files.

        Raises
        ------
        LoadError
            If the solver reports LOAD NOT COMPLETED (state unchanged).
        """
        self._begin()
        self._dispatcher.send("load {}".format(path))
        self._wait_for(P.LOAD_FAILED, P.NAME_PROMPT)
        if self._saw(P.LOAD_FAILED):
            self._dispatcher.await_idle(cancel=self.cancel_event)
            raise LoadError("LOAD NOT COMPLETED", {"path": str(path)})
        foil_name = name or os.path.splitext(os.path.basename(str(path)))[0]
        if not self._dispatcher.ready():
            # unlabeled coordinates: the solver asks for a name
            self._do(foil_name)
        self.state.foil_loaded = True
        self.state.foil_name = foil_name
        logger.info("[XfoilSession] loaded %s as %r", path, foil_name)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def disable_graphics(self):
        self._begin()
        self._do("plop")
        self._do("G")
        self._do("")
        self.state.graphics_disabled = True

    def set_ncrit(self, ncrit):
        # type: (float) -> None
        """Set the e^N transition criterion (VPAR menu)."""
        self._ensure_geometry()
        self._begin()
        self._do("oper")
        self._do("vpar")
        self._do("N {:f}".format(float(ncrit)))
        self._do("")
        self._do("")
        self.state.ncrit = float(ncrit)

    def set_viscosity(self, reynolds):
        # type: (float) -> None
        """
        Switch viscous mode / Reynolds number; 0 means inviscid.

        Accumulation is paused around the change (the solver will not change parameters
        of an open polar) and re-enabled afterwards, possibly on a fresh file.

        Raises
        ------
        ViscosityError
            If the solver does not acknowledge the change (state unchanged).
        """
        re = int(reynolds)
        if re < 0:
            raise ViscosityError("Reynolds number must be >= 0", {"reynolds": reynolds})
        self._ensure_geometry()
        self._begin()
        st = self.state
        if re == 0 and not st.viscous:
            return

        was_pacc = st.pacc
        if was_pacc:
            self.disable_pacc()
        try:
            self._begin()
            if not st.viscous:
                self._do("oper")
                self._dispatcher.send_all(["v", str(re)])
                self._wait_for(P.VISCOUS_ENABLED)
                ok = self._saw(P.VISCOUS_ENABLED)
                self._leave_oper()
                if not ok:
                    raise ViscosityError("viscous mode not acknowledged", {"reynolds": re})
                st.viscous, st.reynolds = True, re
            elif re > 0:
                self._do("oper")
                self._do("r", str(re))
                ok = self._at_prompt(P.VISCOUS_UPDATED)
                self._do("")
                if not ok:
                    raise ViscosityError("Reynolds update not acknowledged", {"reynolds": re})
                st.reynolds = re
            else:
                # viscous -> inviscid has no acknowledgement to check
                self._do("oper")
                self._do("v")
                self._do("")
                st.viscous, st.reynolds = False, 0
            logger.info("[XfoilSession] Reynolds=%d (viscous=%s)", st.reynolds, st.viscous)
        finally:
            if was_pacc and st.pacc_file:
                self.enable_pacc(st.pacc_file)

    def _leave_oper(self):
        """Back to the top level from OPER, also when a sub-prompt is still open."""
        if not self._dispatcher.ready():
            self._dispatcher.newline()
            self._dispatcher.settle()
        self._do("")

    def set_iterations(self, n):
        # type: (int) -> None
        """
        Set the viscous iteration limit.

        Raises
        ------
        IterationError
            If the solver does not acknowledge the new limit (state unchanged).
        """
        n = int(n)
        self._begin()
        self._do("oper")
        self._do("iter", str(n))
        ok = self._saw(P.ITERATION_ACK)
        self._do("")
        if not ok:
            raise IterationError("iteration limit not acknowledged", {"iter": n})
        self.state.iterations = n

    # ------------------------------------------------------------------
    # Polar accumulation
    # ------------------------------------------------------------------
    def enable_pacc(self, path):
        # type: (str) -> bool
        """
        Start accumulating converged points into `path`.

        If the file exists with different parameters, the solver's append offer is
        declined once and accumulation moves to a fresh scratch file.

        Raises
        ------
        PaccError
            If the solver does not confirm accumulation.
        """
        self._begin()
        st = self.state
        path = str(path)
        if st.pacc:
            self.disable_pacc()
            self._begin()
        cursor = self._cursor_for(path)

        self._do("oper")
        self._dispatcher.send_all(["pacc", path])
        self._wait_for(P.PACC_DIFFERS, P.DUMP_PROMPT, P.PACC_OPEN_ERROR)
        if self._saw(P.PACC_DIFFERS):
            logger.info("[XfoilSession] %s holds a different polar; switching files", path)
            self._do("n")
            path = self._scratch_path(".pol")
            cursor = DATA_LINE_INDEX
            self._dispatcher.send_all(["pacc", path])
            self._wait_for(P.DUMP_PROMPT, P.PACC_OPEN_ERROR)

        if self._saw(P.DUMP_PROMPT) and not self._saw(P.PACC_OPEN_ERROR):
            self._do("")  # no dump file
        enabled = self._saw(P.PACC_ENABLED)
        self._leave_oper()

        if not enabled:
            raise PaccError(
                "polar accumulation not enabled",
                {"path": path, "open_error": self._saw(P.PACC_OPEN_ERROR)},
            )
        st.pacc = True
        st.pacc_file = path
        st.cursor = cursor
        logger.info("[XfoilSession] accumulating into %s (next row at line %d)", path, cursor)
        return True

    def _cursor_for(self, path):
        # type: (str) -> int
        st = self.state
        if not os.path.exists(path):
            return DATA_LINE_INDEX
        if path == st.pacc_file:
            return st.cursor
        # appending to an existing polar: continue after its last row
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            n = sum(1 for _ in f)
        return max(DATA_LINE_INDEX, n)

    def disable_pacc(self):
        """Stop accumulating (the file is kept until quit)."""
        self._begin()
        self._do("oper")
        self._do("pacc")
        self._do("")
        self.state.pacc = False

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------
    def _run(self, lines, expected):
        # type: (Sequence[str], int) -> List[Dict[str, float]]
        """Send one run command from a worker, wait, and collect up to `expected` new rows."""
        self._begin()
        self._do("oper")
        self._dispatcher.dispatch_async(lines)
        self._dispatcher.await_idle(cancel=self.cancel_event)

        rows = []  # type: List[Dict[str, float]]
        st = self.state
        if st.pacc and st.pacc_file:
            rows = read_polar_rows(st.pacc_file, st.cursor, expected, fmt=self.opts["POLAR_FORMAT"])
            st.cursor += len(rows)
        failed = self._saw(P.CONVERGENCE_FAILED)
        self._do("")
        if failed:
            raise ConvergenceError("VISCAL:  Convergence failed",
                                   {"command": lines[0], "rows_read": len(rows)})
        return rows

    def _require_rows(self, rows, expected, command):
        if not self.state.pacc:
            raise ResultFileError("polar accumulation is off; no rows to read", {"command": command})
        if len(rows) < expected:
            raise ResultFileError(
                "expected {} new polar rows, found {}".format(expected, len(rows)),
                {"path": self.state.pacc_file, "cursor": self.state.cursor},
            )

    def angle_of_attack(self, alpha):
        # type: (float) -> Dict[str, float]
        """
        Solve one point at angle of attack `alpha` (degrees).

        Returns
        -------
        Dict[str, float]
            The new polar row (alpha, CL, CD, CDp, CM, ...).

        Raises
        ------
        ConvergenceError
            The viscous solution did not converge.
        ResultFileError
            No new row could be read.
        """
        cmd = "a {:f}".format(float(alpha))
        rows = self._run([cmd], 1)
        self._require_rows(rows, 1, cmd)
        return rows[0]

    def lift_coefficient(self, cl):
        # type: (float) -> Dict[str, float]
        """Solve one point at prescribed lift coefficient `cl`; see `angle_of_attack`."""
        cmd = "cl {:f}".format(float(cl))
        rows = self._run([cmd], 1)
        self._require_rows(rows, 1, cmd)
        return rows[0]

    def _sweep(self, command, start, end, increment):
        # type: (str, float, float, float) -> PolarTable
        n = sweep_count(start, end, increment)
        lines = [command] + ["{:f}".format(float(v)) for v in (start, end, increment)]
        rows = self._run(lines, n)
        self._require_rows(rows, n, command)
        return table_from_rows(rows)

    def angle_sweep(self, start, end, increment):
        # type: (float, float, float) -> PolarTable
        """
        Sweep the angle of attack from `start` to `end` (`aseq`).

        Returns 1 + ceil((end - start) / increment) rows as a `PolarTable`.
        """
        return self._sweep("aseq", start, end, increment)

    def cl_sweep(self, start, end, increment):
        # type: (float, float, float) -> PolarTable
        """Sweep the lift coefficient (`cseq`); see `angle_sweep`."""
        return self._sweep("cseq", start, end, increment)

    def pressure_distribution(self, value, mode="alpha"):
        # type: (float, str) -> List[Tuple[float, float]]
        """
        Solve one point and return its surface pressure distribution [(x, Cp), ...].

        Args
        ----
        value : float
            Angle of attack (degrees) or lift coefficient.
        mode : {"alpha", "cl"}
            How `value` is interpreted ("aoa" is accepted for "alpha").
        """
        mode = str(mode).lower()
        if mode in ("alpha", "aoa"):
            cmd = "a {:f}".format(float(value))
        elif mode == "cl":
            cmd = "cl {:f}".format(float(value))
        else:
            raise ValueError("mode must be 'alpha' or 'cl', got {!r}".format(mode))

        self._run([cmd], 1)
        fname = self._scratch_path(".cp")
        self._begin()
        self._do("oper")
        self._do("cpwr {}".format(fname))
        self._do("")
        return read_cp(fname, fmt=self.opts["CP_FORMAT"])

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    def polar(self):
        # type: () -> PolarTable
        """Everything accumulated in the current polar file so far."""
        self._require_live()
        if not self.state.pacc_file:
            raise ResultFileError("no accumulation file")
        return read_polar(self.state.pacc_file, fmt=self.opts["POLAR_FORMAT"])
