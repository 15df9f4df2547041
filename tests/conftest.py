# ruff: noqa: E402

import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("MPLBACKEND", "Agg")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from foildrive import XfoilSession

FAKE_XFOIL = str(Path(__file__).resolve().parent / "fake_xfoil.py")

POLAR_TEXT = (
    " \n"
    "       XFOIL         Version 6.99\n"
    " \n"
    " Calculated polar for: NACA 2414\n"
    " \n"
    " 1 1 Reynolds number fixed          Mach number fixed\n"
    " \n"
    " xtrf =   1.000 (top)        1.000 (bottom)\n"
    " Mach =   0.000     Re =     0.000 e 6     Ncrit =   9.000\n"
    " \n"
    "   alpha    CL        CD       CDp       CM     Top_Xtr  Bot_Xtr\n"
    "  ------ -------- --------- --------- -------- -------- --------\n"
    "   4.000   0.7492   0.00000  -0.00131  -0.0633   0.0000   0.0000\n"
    "   5.000   0.8589   0.00000  -0.00112  -0.0641   0.0000   0.0000\n"
    "   6.000   0.9685   0.00000  -0.00090  -0.0649   0.0000   0.0000\n"
)


@pytest.fixture()
def polar_path(tmp_path):
    path = tmp_path / "naca2414.pol"
    path.write_text(POLAR_TEXT)
    return str(path)


@pytest.fixture()
def make_session(tmp_path):
    """Factory for started sessions on the scripted solver; all are quit at teardown."""
    sessions = []

    def _make(**opts):
        params = {"tmp_dir": str(tmp_path), "work_dir": str(tmp_path), "timeout_s": 20.0}
        params.update(opts)
        xf = XfoilSession(sys.executable, extra_args=[FAKE_XFOIL], **params)
        sessions.append(xf)
        return xf.start()

    yield _make
    for xf in sessions:
        xf.quit()
