import dataclasses

import pytest

from foildrive.build.plan import Mode, RunPlanBuilder, fmt_number
from foildrive.errors import SchemaError, ValidationError


def test_fmt_number():
    assert fmt_number(4.0) == "4"
    assert fmt_number(0.5) == "0.5"
    assert fmt_number(-2.25) == "-2.25"
    assert fmt_number(1000000) == "1000000"


def test_missing_airfoil_is_rejected():
    with pytest.raises(ValidationError):
        RunPlanBuilder().angle_of_attack(4).build()


def test_two_airfoil_sources_are_rejected(tmp_path):
    dat = tmp_path / "clarky.dat"
    dat.write_text("CLARK Y\n1.0 0.0\n")
    with pytest.raises(ValidationError):
        RunPlanBuilder().naca("2414").airfoil_file(str(dat)).build()


def test_bad_naca_is_a_schema_error():
    with pytest.raises(SchemaError):
        RunPlanBuilder().naca("24a14").build()


def test_bad_sweep_is_rejected():
    with pytest.raises(ValidationError):
        RunPlanBuilder().naca("2414").angle_sweep(0, 8, -1).build()


def test_inviscid_point_commands():
    plan = RunPlanBuilder().naca("2414").angle_of_attack(4).build()
    assert plan.commands == ("plop", "g", "", "naca 2414", "oper", "a 4", "", "quit")
    assert plan.mode is Mode.ALPHA
    assert plan.points == (4.0,)
    assert plan.polar_path is None
    assert not plan.viscous
    assert plan.expected_rows == 1


def test_full_viscous_sweep_commands(tmp_path):
    pol = str(tmp_path / "out.pol")
    plan = (RunPlanBuilder()
            .naca(2414)
            .reynolds(1e6)
            .ncrit(9)
            .iterations(100)
            .angle_sweep(-2, 8, 1)
            .polar_file(pol)
            .build())
    assert plan.commands == (
        "plop", "g", "",
        "naca 2414",
        "oper",
        "vpar", "n 9", "",
        "v", "1000000",
        "iter", "100",
        "pacc", pol, "",
        "aseq", "-2", "8", "1",
        "pacc",
        "", "quit",
    )
    assert plan.viscous
    assert plan.expected_rows == 11
    assert plan.airfoil == "2414"


def test_cl_sweep_and_coordinate_file(tmp_path):
    dat = tmp_path / "clarky.dat"
    dat.write_text("1.0 0.0\n0.0 0.0\n1.0 0.0\n")
    plan = RunPlanBuilder().airfoil_file(str(dat), name="CLARK Y").cl_sweep(0, 0.7, 0.1).build()
    assert plan.commands[3:6] == ("load {}".format(dat), "CLARK Y", "oper")
    assert plan.commands[6:10] == ("cseq", "0", "0.7", "0.1")
    assert plan.mode is Mode.CL_SWEEP
    assert plan.expected_rows == 8


def test_later_mode_replaces_earlier():
    plan = RunPlanBuilder().naca("0012").angle_sweep(0, 4, 1).lift_coefficient(0.5).build()
    assert plan.mode is Mode.CL
    assert "cl 0.5" in plan.commands
    assert "aseq" not in plan.commands
    assert not plan.mode.is_sweep


def test_polar_random_names_a_fresh_file(tmp_path):
    plan = RunPlanBuilder().naca("0012").polar_random(str(tmp_path)).build()
    assert plan.polar_path.startswith(str(tmp_path))
    assert plan.polar_path.endswith(".pol")
    assert plan.commands[-3:] == ("pacc", "", "quit")


def test_plan_is_frozen():
    plan = RunPlanBuilder().naca("0012").build()
    with pytest.raises(dataclasses.FrozenInstanceError):
        plan.reynolds = 5


def test_from_params_aliases():
    plan = RunPlanBuilder.from_params({"naca": "4412", "aoa": 2.5, "re": 500000, "iter": 40}).build()
    assert plan.commands[3] == "naca 4412"
    assert "a 2.5" in plan.commands
    assert plan.reynolds == 500000
    assert plan.iterations == 40

    sweep = RunPlanBuilder.from_params({"NACA": "0012", "CL_SWEEP": (0.0, 1.0, 0.25)}).build()
    assert sweep.mode is Mode.CL_SWEEP
    assert sweep.expected_rows == 5
