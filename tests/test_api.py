import json
import os
import sys

import pytest

from foildrive.api import dispatch_plan, post_polar, run_plan, summarize_polar
from foildrive.build.plan import RunPlanBuilder
from foildrive.errors import ConvergenceError, SpawnError, UnresponsiveSolverError
from foildrive.interface.polar import POLAR_KEYS, PolarTable, read_polar

from conftest import FAKE_XFOIL


def _dispatch(plan, **kw):
    return dispatch_plan(plan, sys.executable, extra_args=[FAKE_XFOIL], timeout_s=30, **kw)


def test_batch_sweep_returns_polar(tmp_path):
    plan = RunPlanBuilder().naca("2414").angle_sweep(-2, 8, 1).polar_random(str(tmp_path)).build()
    table = _dispatch(plan)
    assert table.n_rows == plan.expected_rows == 11
    assert table["alpha"] == pytest.approx([float(a) for a in range(-2, 9)])
    assert table["CD"] == [0.0] * 11


def test_batch_viscous_point_with_settings(tmp_path):
    plan = (RunPlanBuilder().naca("0012").reynolds(1e6).ncrit(7).iterations(60)
            .angle_of_attack(3).polar_file(str(tmp_path / "v.pol")).build())
    table = _dispatch(plan, polar_format="legacy")
    assert table.n_rows == 1
    assert table["CD"][0] > 0.0
    assert "Ncrit =   7.000" in (tmp_path / "v.pol").read_text()


def test_batch_without_polar_is_empty():
    plan = RunPlanBuilder().naca("2414").angle_of_attack(4).build()
    table = _dispatch(plan)
    assert table.n_rows == 0
    assert table.columns == list(POLAR_KEYS)


def test_batch_convergence_failure(tmp_path):
    plan = (RunPlanBuilder().naca("2414").reynolds(500).angle_of_attack(4)
            .polar_random(str(tmp_path)).build())
    with pytest.raises(ConvergenceError):
        _dispatch(plan)


def test_batch_missing_executable(tmp_path):
    plan = RunPlanBuilder().naca("2414").build()
    with pytest.raises(SpawnError):
        dispatch_plan(plan, str(tmp_path / "no-such-xfoil"))


def test_batch_timeout():
    plan = RunPlanBuilder().naca("2414").build()
    with pytest.raises(UnresponsiveSolverError):
        dispatch_plan(plan, sys.executable, extra_args=["-c", "import time; time.sleep(30)"],
                      timeout_s=0.5)


def test_run_plan_keeps_artefacts(tmp_path):
    work = tmp_path / "case"
    plan = (RunPlanBuilder().naca("4412").cl_sweep(0.0, 0.6, 0.2)
            .polar_file(str(tmp_path / "c.pol")).build())
    res = run_plan(plan, str(work), sys.executable, extra_args=[FAKE_XFOIL], timeout_s=30)
    assert res["rc"] == 0
    assert res["table"].n_rows == 4
    assert (work / "commands.inp").read_text().splitlines() == list(plan.commands)
    assert (work / "tail.txt").exists()
    manifest = json.loads((work / "manifest.json").read_text())
    assert manifest["mode"] == "cseq"
    assert manifest["rows"] == 4
    assert manifest["airfoil"] == "4412"


def test_summarize_inviscid_polar(polar_path):
    summary = summarize_polar(read_polar(polar_path))
    assert summary["n_points"] == 3
    assert summary["cl_max"] == pytest.approx(0.9685)
    assert summary["alpha_cl_max"] == pytest.approx(6.0)
    assert summary["cd_min"] == 0.0
    assert summary["ld_max"] is None


def test_summarize_viscous_polar():
    table = PolarTable(("alpha", "CL", "CD"))
    table.extend([[0.0, 0.30, 0.0060], [4.0, 0.75, 0.0100], [8.0, 1.10, 0.0200]])
    summary = summarize_polar(table)
    assert summary["cd_min"] == pytest.approx(0.006)
    assert summary["ld_max"] == pytest.approx(75.0)
    assert summary["alpha_ld_max"] == pytest.approx(4.0)


def test_summarize_empty_table():
    summary = summarize_polar(PolarTable())
    assert summary["n_points"] == 0
    assert summary["cl_max"] is None


def test_post_polar_writes_plots(polar_path, tmp_path):
    out = tmp_path / "plots"
    summary = post_polar(read_polar(polar_path), str(out), label="NACA 2414")
    assert sorted(os.path.basename(p) for p in summary["plots"]) == [
        "drag_polar.png", "lift_curve.png", "moment.png",
    ]
    assert all(os.path.getsize(p) > 0 for p in summary["plots"])
    assert summary["n_points"] == 3


def test_post_polar_empty_table(tmp_path):
    summary = post_polar(PolarTable(), str(tmp_path))
    assert len(summary["plots"]) == 3
