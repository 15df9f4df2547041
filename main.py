# -*- coding: utf-8 -*-
# Foildrive/main.py

"""
End-to-end driver:
  1) Interactive session: NACA 2414, inviscid point, viscous point, sweep, Cp
  2) Batch run plan: viscous alpha sweep through a fresh process
  3) Polar summary + quick-look plots
"""

import logging
import os
import sys

from foildrive import (
    XfoilSession, RunPlanBuilder, dispatch_plan, post_polar, ConvergenceError, FoildriveError,
)
from foildrive.ops.polar import plot_cp


if __name__ == "__main__":
    # ------------------------------------------------------------------
    # 0) Logging
    # ------------------------------------------------------------------
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    log = logging.getLogger("Foildrive")

    os.makedirs("plots", exist_ok=True)
    xfoil_exec = os.environ.get("XFOIL_BIN", "xfoil")

    # ------------------------------------------------------------------
    # 1) Interactive session
    #    log_dir keeps the raw solver output (xfoil.log) and every command (input.log).
    # ------------------------------------------------------------------
    try:
        with XfoilSession(xfoil_exec, log_dir="logs", iterations=100) as xf:
            xf.naca("2414")

            row = xf.angle_of_attack(4.0)
            log.info("Inviscid alpha=4: CL=%.4f CM=%.4f", row["CL"], row["CM"])

            xf.set_viscosity(1_000_000)
            try:
                row = xf.angle_of_attack(4.0)
                log.info("Re=1e6 alpha=4: CL=%.4f CD=%.5f", row["CL"], row["CD"])
            except ConvergenceError as e:
                log.warning("Point did not converge: %s", e)

            sweep = xf.angle_sweep(-2.0, 8.0, 1.0)
            log.info("Sweep: %d points, CL from %.3f to %.3f",
                     sweep.n_rows, min(sweep["CL"]), max(sweep["CL"]))

            cp = xf.pressure_distribution(4.0, "alpha")
            fig, _ = plot_cp(cp, title="NACA 2414, alpha=4, Re=1e6")
            fig.savefig(os.path.join("plots", "cp_alpha4.png"))
    except FoildriveError as e:
        log.error("Interactive session failed: %s", e)
        sys.exit(1)

    # ------------------------------------------------------------------
    # 2) Batch run plan (one fresh process, command script on stdin)
    # ------------------------------------------------------------------
    plan = (RunPlanBuilder()
            .naca("2414")
            .reynolds(1_000_000)
            .ncrit(9)
            .iterations(100)
            .angle_sweep(0.0, 10.0, 0.5)
            .polar_random()
            .build())
    log.info("Batch plan: %d command lines, %d expected rows", len(plan.commands), plan.expected_rows)

    try:
        table = dispatch_plan(plan, xfoil_exec, timeout_s=600)
    except FoildriveError as e:
        log.error("Batch run failed: %s", e)
        sys.exit(1)

    # ------------------------------------------------------------------
    # 3) Summary + plots
    # ------------------------------------------------------------------
    summary = post_polar(table, "plots", label="NACA 2414, Re=1e6")
    log.info("Polar summary: %s", summary)
