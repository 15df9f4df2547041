import os
import sys

import pytest

from foildrive import SessionPhase, XfoilSession
from foildrive.errors import (
    ConvergenceError, LoadError, NacaError, SessionError, SpawnError, ViscosityError,
)
from foildrive.interface.polar import DATA_LINE_INDEX

from conftest import FAKE_XFOIL

LIFT_SLOPE = 0.1097
ALPHA_ZERO = -2.83


def _cl(alpha):
    return LIFT_SLOPE * (alpha - ALPHA_ZERO)


def test_start_configures_solver(make_session):
    xf = make_session()
    st = xf.state
    assert xf.phase is SessionPhase.IDLE
    assert st.graphics_disabled
    assert st.pacc
    assert os.path.exists(st.pacc_file)
    assert st.cursor == DATA_LINE_INDEX
    assert not st.viscous
    assert st.foil_loaded  # placeholder geometry for the Ncrit menu
    assert xf.history[:3] == ["plop\n", "G\n", "\n"]
    assert xf.pid is not None


def test_inviscid_point_reads_new_row(make_session):
    xf = make_session()
    xf.naca("2414")
    row = xf.angle_of_attack(4.0)
    assert row["alpha"] == pytest.approx(4.0)
    assert row["CL"] == pytest.approx(_cl(4.0), abs=1e-4)
    assert row["CD"] == 0.0
    assert row["CDp"] == pytest.approx(-0.00131)
    assert row["CM"] == pytest.approx(-0.0633)
    assert xf.state.cursor == DATA_LINE_INDEX + 1

    row = xf.lift_coefficient(0.5)
    assert row["CL"] == pytest.approx(0.5, abs=1e-4)
    assert xf.state.cursor == DATA_LINE_INDEX + 2
    assert xf.polar().n_rows == 2


def test_viscous_switch_moves_to_fresh_polar(make_session):
    xf = make_session()
    xf.naca("2414")
    xf.angle_of_attack(0.0)
    old = xf.state.pacc_file

    xf.set_viscosity(1_000_000)
    st = xf.state
    assert st.viscous and st.reynolds == 1000000
    assert st.pacc
    assert st.pacc_file != old
    assert st.cursor == DATA_LINE_INDEX
    # the append offer for the inviscid polar is declined exactly once
    assert xf.history.count("n\n") == 1

    row = xf.angle_of_attack(4.0)
    assert row["CD"] == pytest.approx(0.0055 + 0.008 * _cl(4.0) ** 2, abs=1e-5)
    assert row["Top_Xtr"] == pytest.approx(0.6)


def test_reynolds_update_and_back_to_inviscid(make_session):
    xf = make_session(reynolds=1e6)
    assert xf.state.viscous
    xf.set_viscosity(2_000_000)
    assert xf.state.reynolds == 2000000
    assert "r\n" in xf.history
    xf.set_viscosity(0)
    assert not xf.state.viscous
    assert xf.state.pacc
    assert xf.angle_of_attack(2.0)["CD"] == 0.0


def test_negative_reynolds_is_rejected(make_session):
    xf = make_session()
    with pytest.raises(ViscosityError):
        xf.set_viscosity(-5)
    assert not xf.state.viscous


def test_angle_sweep_rows(make_session):
    xf = make_session(reynolds=1e6)
    xf.naca("2414")
    table = xf.angle_sweep(-2.0, 8.0, 1.0)
    assert table.n_rows == 11
    assert table["alpha"][0] == pytest.approx(-2.0)
    assert table["alpha"][-1] == pytest.approx(8.0)
    assert xf.state.cursor == DATA_LINE_INDEX + 11

    cl_table = xf.cl_sweep(0.2, 0.6, 0.2)
    assert cl_table.n_rows == 3
    assert cl_table["CL"] == pytest.approx([0.2, 0.4, 0.6], abs=1e-4)


def test_low_reynolds_fails_to_converge(make_session):
    xf = make_session()
    xf.naca("2414")
    xf.set_viscosity(500)
    cursor = xf.state.cursor
    with pytest.raises(ConvergenceError):
        xf.angle_of_attack(4.0)
    assert xf.state.cursor == cursor
    assert xf.phase is SessionPhase.IDLE
    # the session stays usable
    xf.set_viscosity(1_000_000)
    assert xf.angle_of_attack(4.0)["alpha"] == pytest.approx(4.0)


def test_partial_sweep_advances_cursor_by_rows_written(make_session):
    xf = make_session(reynolds=1e6)
    xf.naca("0012")
    cursor = xf.state.cursor
    with pytest.raises(ConvergenceError) as ei:
        xf.angle_sweep(16.0, 20.0, 2.0)
    assert ei.value.context["rows_read"] == 2
    assert xf.state.cursor == cursor + 2
    assert xf.angle_of_attack(5.0)["alpha"] == pytest.approx(5.0)


def test_rejected_naca_keeps_previous_geometry(make_session):
    xf = make_session()
    xf.naca("2414")
    with pytest.raises(NacaError):
        xf.naca("99999")
    assert xf.state.foil_name == "2414"
    xf.naca("23012")
    assert xf.state.foil_name == "23012"


def test_missing_coordinate_file(make_session, tmp_path):
    xf = make_session()
    with pytest.raises(LoadError):
        xf.load_foil_file(str(tmp_path / "missing.dat"))
    assert xf.phase is SessionPhase.IDLE


def test_coordinate_files(make_session, tmp_path):
    plain = tmp_path / "plain.dat"
    plain.write_text("1.0 0.0\n0.5 0.05\n0.0 0.0\n0.5 -0.05\n1.0 0.0\n")
    labeled = tmp_path / "clarky.dat"
    labeled.write_text("CLARK Y\n1.0 0.0\n0.0 0.0\n1.0 0.0\n")

    xf = make_session()
    xf.load_foil_file(str(plain), name="MYFOIL")
    assert xf.state.foil_name == "MYFOIL"
    assert "MYFOIL\n" in xf.history

    xf.load_foil_file(str(labeled))
    assert xf.state.foil_name == "clarky"
    assert xf.angle_of_attack(1.0)["alpha"] == pytest.approx(1.0)


def test_iteration_limit(make_session):
    xf = make_session(iterations=75)
    assert xf.state.iterations == 75
    xf.set_iterations(200)
    assert xf.state.iterations == 200
    assert "200\n" in xf.history


def test_pressure_distribution(make_session):
    xf = make_session()
    xf.naca("2414")
    cp = xf.pressure_distribution(4.0, "aoa")
    assert len(cp) == 81
    assert cp[0] == pytest.approx((1.0, 0.2))
    assert cp[40] == pytest.approx((0.0, -1.0))
    assert min(c for _, c in cp) == pytest.approx(-1.0)
    with pytest.raises(ValueError):
        xf.pressure_distribution(4.0, "cd")


def test_user_polar_file_is_kept(make_session, tmp_path):
    target = tmp_path / "kept.pol"
    xf = make_session(polar_file=str(target))
    xf.naca("2414")
    xf.angle_of_attack(3.0)
    assert xf.state.pacc_file == str(target)
    xf.quit()
    assert target.exists()


def test_scratch_files_are_removed_at_quit(make_session):
    xf = make_session()
    xf.naca("2414")
    cp = xf.pressure_distribution(1.0)
    assert cp
    pol = xf.state.pacc_file
    assert xf.quit() is True
    assert not os.path.exists(pol)
    assert xf.quit() is False
    assert xf.phase is SessionPhase.TERMINATED
    with pytest.raises(SessionError):
        xf.angle_of_attack(1.0)


def test_logs_are_written(make_session, tmp_path):
    log_dir = tmp_path / "logs"
    xf = make_session(log_dir=str(log_dir))
    xf.naca("2414")
    xf.quit()
    assert "naca\n2414\n" in (log_dir / "input.log").read_text()
    assert b"XFOIL   c>" in (log_dir / "xfoil.log").read_bytes()


def test_start_twice_and_context_manager(tmp_path):
    with XfoilSession(sys.executable, extra_args=[FAKE_XFOIL], tmp_dir=str(tmp_path),
                      work_dir=str(tmp_path)) as xf:
        with pytest.raises(SessionError):
            xf.start()
        xf.naca("0012")
    assert xf.phase is SessionPhase.TERMINATED


def test_operations_before_start(tmp_path):
    xf = XfoilSession("xfoil", tmp_dir=str(tmp_path))
    with pytest.raises(SessionError):
        xf.naca("2414")
    assert xf.history == []


def test_missing_executable(tmp_path):
    xf = XfoilSession(str(tmp_path / "no-such-xfoil"))
    with pytest.raises(SpawnError):
        xf.start()
    assert xf.phase is SessionPhase.UNINITIALIZED
