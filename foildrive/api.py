# -*- coding: utf-8 -*-
# Foildrive/foildrive/api.py

"""
Project: Foildrive
Date: 10/17/2025 (Updated: 10/19/2025)

Purpose
-------
High-level entry points. A batch run takes a frozen `RunPlan`, feeds its command script to
a fresh solver process, checks the output for known failures and parses the accumulated
polar. Post-processing condenses a polar into a few headline numbers and quick-look plots.

Main Tasks
----------
    1. `dispatch_plan(plan, xfoil_exec)`: run + failure scan + full polar parse.
    2. `run_plan(plan, workdir)`: same, plus `commands.inp`, `tail.txt` and a manifest
       in a working directory for provenance.
    3. `summarize_polar(table)`: CLmax, alpha at CLmax, CDmin, max L/D (numpy).
    4. `post_polar(table, workdir)`: summary + PNG quick-looks (best-effort).

Notes
-----
- Without a polar file in the plan, the returned table is empty.
- A run that does not exit cleanly but wrote rows still returns them; errors are raised
  for convergence failures, polar open errors and timeouts.
"""

import json
import logging
import os
import time

import matplotlib.pyplot as plt
import numpy as np

from .build.config import render_commands, write_commands
from .errors import ConvergenceError, PaccError, ResultFileError, SpawnError, UnresponsiveSolverError
from .interface.polar import POLAR_KEYS, PolarTable, read_polar
from .ops.polar import plot_drag_polar, plot_lift_curve, plot_moment
from .runner.prompt import CONVERGENCE_FAILED, PACC_OPEN_ERROR
from .runner.run import run_commands

logger = logging.getLogger(__name__)


def _scan_output(stdout):
    """Raise the error matching the first known failure line in batch output."""
    for line in (stdout or "").splitlines():
        if CONVERGENCE_FAILED in line:
            raise ConvergenceError("Xfoil failed to converge", {"line": line.strip()})
        if PACC_OPEN_ERROR in line:
            raise PaccError("Xfoil failed to open polar save file", {"line": line.strip()})


def _timestamped_dir(base="case_xfoil"):
    ts = time.strftime("%Y%m%d_%H%M%S")
    path = os.path.join(base, "run_" + ts)
    os.makedirs(path, exist_ok=True)
    return path


def dispatch_plan(plan, xfoil_exec="xfoil", *, workdir=None, timeout_s=None, env=None,
                  extra_args=(), polar_format="columns"):
    """
    Run `plan` non-interactively and return its polar.

    Args
    ----
    plan : RunPlan
        Output of `RunPlanBuilder.build()`.
    xfoil_exec : str
        Solver executable (name, path, or resolved via XFOIL_BIN).
    workdir : Optional[str], keyword-only
        Working directory of the child.
    timeout_s : Optional[float], keyword-only
        Wall-clock limit; exceeding it raises `UnresponsiveSolverError`.
    polar_format : {"columns", "legacy"}, keyword-only
        Parser used for the accumulation file.

    Returns
    -------
    PolarTable
        Parsed accumulation file, or an empty nine-series table if the plan has none.

    Raises
    ------
    SpawnError
        The executable is missing or could not be started.
    ConvergenceError, PaccError
        The solver printed a convergence failure or a polar open error.
    UnresponsiveSolverError
        The run exceeded `timeout_s`.
    """
    table, _ = _dispatch(plan, xfoil_exec, workdir, timeout_s, env, extra_args, polar_format)
    return table


def _dispatch(plan, xfoil_exec, workdir, timeout_s, env, extra_args, polar_format):
    rc, out, diag = run_commands(plan.commands, xfoil_exec, workdir=workdir,
                                 timeout_s=timeout_s, env=env, extra_args=extra_args)
    if rc == 127 or (rc == 2 and not out):
        raise SpawnError(diag or "could not start solver", {"exe": xfoil_exec})
    if rc == 124:
        raise UnresponsiveSolverError("batch run timed out", {"timeout_s": timeout_s, "tail": diag[-200:]})
    if rc != 0:
        logger.warning("[api] solver exited with rc=%d", rc)

    _scan_output(out)

    if not plan.polar_path:
        return PolarTable(POLAR_KEYS), (rc, out)
    if not os.path.exists(plan.polar_path):
        raise ResultFileError("solver did not write the polar file", {"path": plan.polar_path, "rc": rc})
    table = read_polar(plan.polar_path, fmt=polar_format)
    if table.n_rows < plan.expected_rows:
        logger.warning("[api] expected %d polar rows, got %d", plan.expected_rows, table.n_rows)
    return table, (rc, out)


def run_plan(plan, workdir=None, xfoil_exec="xfoil", *, timeout_s=None, env=None,
             extra_args=(), tail_n=25):
    """
    Run `plan` in a working directory and keep the artefacts next to the results.

    Writes `commands.inp` (replayable with `xfoil < commands.inp`), `tail.txt` and
    `manifest.json`.

    Returns
    -------
    dict
        {
          "workdir": str,
          "rc": int,
          "table": PolarTable,
          "tail": str,
          "commands_path": str
        }
    """
    if workdir is None:
        workdir = _timestamped_dir("case_xfoil")
    elif not os.path.exists(workdir):
        os.makedirs(workdir)

    cmd_path = write_commands(render_commands(plan.commands), os.path.join(workdir, "commands.inp"))
    table, (rc, out) = _dispatch(plan, xfoil_exec, workdir, timeout_s, env, extra_args, "columns")

    tail = "\n".join((out or "").splitlines()[-int(tail_n):])
    with open(os.path.join(workdir, "tail.txt"), "w", encoding="utf-8") as f:
        f.write(tail)

    manifest = {
        "airfoil": plan.airfoil,
        "mode": plan.mode.value,
        "points": list(plan.points),
        "reynolds": plan.reynolds,
        "ncrit": plan.ncrit,
        "iterations": plan.iterations,
        "polar_path": os.path.abspath(plan.polar_path) if plan.polar_path else None,
        "rows": table.n_rows,
        "rc": rc,
        "time": time.strftime("%Y-%m-%d %H:%M:%S"),
    }
    with open(os.path.join(workdir, "manifest.json"), "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)

    return {"workdir": workdir, "rc": rc, "table": table, "tail": tail, "commands_path": cmd_path}


def summarize_polar(table):
    """
    Headline numbers of a polar.

    Returns
    -------
    dict
        {
          "n_points": int,
          "cl_max": float | None,
          "alpha_cl_max": float | None,
          "cd_min": float | None,
          "ld_max": float | None,      # None when every CD is zero (inviscid)
          "alpha_ld_max": float | None
        }
    """
    out = {"n_points": 0, "cl_max": None, "alpha_cl_max": None,
           "cd_min": None, "ld_max": None, "alpha_ld_max": None}
    if "CL" not in table or "alpha" not in table:
        return out
    cl = np.asarray(table["CL"], dtype=float)
    alpha = np.asarray(table["alpha"], dtype=float)
    if not cl.size:
        return out

    i = int(np.argmax(cl))
    out.update({"n_points": int(cl.size), "cl_max": float(cl[i]), "alpha_cl_max": float(alpha[i])})

    if "CD" in table:
        cd = np.asarray(table["CD"], dtype=float)
        out["cd_min"] = float(cd.min())
        ok = cd > 0.0
        if ok.any():
            ld = np.where(ok, cl / np.where(ok, cd, 1.0), -np.inf)
            j = int(np.argmax(ld))
            out["ld_max"] = float(ld[j])
            out["alpha_ld_max"] = float(alpha[j])
    return out


def post_polar(table, workdir, label=None):
    """
    Summarize `table` and save `lift_curve.png`, `drag_polar.png` and `moment.png`
    into `workdir` (plotting is best-effort).

    Returns
    -------
    dict
        `summarize_polar` output plus "plots": list of written paths.
    """
    summary = summarize_polar(table)
    written = []
    if not os.path.exists(workdir):
        os.makedirs(workdir)
    for name, fn in (("lift_curve.png", plot_lift_curve),
                     ("drag_polar.png", plot_drag_polar),
                     ("moment.png", plot_moment)):
        path = os.path.join(workdir, name)
        try:
            fig, _ = fn(table, label=label)
            try:
                fig.savefig(path)
            finally:
                plt.close(fig)
            written.append(path)
        except (OSError, ValueError) as e:
            logger.warning("[api] could not save %s: %s", path, e)
    summary["plots"] = written
    return summary
