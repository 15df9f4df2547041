# -*- coding: utf-8 -*-
# Foildrive/foildrive/build/plan.py

"""
Project: Foildrive
Date: 10/17/2025 (Updated: 10/19/2025)

Purpose
-------
Describe one non-interactive solver run (geometry, viscosity, operating point or sweep,
accumulation file) through named setters and freeze it into an immutable `RunPlan` whose
`commands` are the exact lines the batch runner feeds to the solver's stdin.

Main Tasks
----------
    1. `RunPlanBuilder`: fluent setters; angle and lift-coefficient modes replace each
       other; `from_params` accepts alias dicts (`{"naca": "2414", "aoa": 4, "re": 1e6}`).
    2. `build()`: schema + cross-key validation, then command assembly.
    3. `RunPlan`: frozen result (commands, polar path, mode, parameters, expected rows).

Notes
-----
- The command sequence disables graphics first, ends accumulation before leaving OPER,
  and finishes with `quit`, so the process exits on its own once stdin is drained.
- A coordinate file name is only sent when one is set explicitly: labeled files carry
  their own name and XFOIL would read an unsolicited line as a top-level command.
"""

from __future__ import absolute_import
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..interface.formats import unique_path
from ..interface.polar import sweep_count
from .schema import check_naca, normalize_keys, validate
from .validate import cross_validate_plan

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    ALPHA = "alpha"
    CL = "cl"
    ALPHA_SWEEP = "aseq"
    CL_SWEEP = "cseq"

    @property
    def is_sweep(self):
        # type: () -> bool
        return self in (Mode.ALPHA_SWEEP, Mode.CL_SWEEP)


def fmt_number(x):
    # type: (Any) -> str
    """Compact numeric text for a command line (`4`, `0.5`, `-2.25`)."""
    f = float(x)
    if f.is_integer():
        return str(int(f))
    return repr(f)


@dataclass(frozen=True)
class RunPlan:
    commands: Tuple[str, ...]
    polar_path: Optional[str]
    mode: Mode
    airfoil: str
    points: Tuple[float, ...]
    reynolds: int = 0
    ncrit: Optional[float] = None
    iterations: Optional[int] = None
    expected_rows: int = 1

    @property
    def viscous(self):
        # type: () -> bool
        return self.reynolds > 0


class RunPlanBuilder(object):
    """
    Named-setter builder for `RunPlan`.

    Example
    -------
    >>> plan = (RunPlanBuilder().naca("2414").reynolds(1_000_000)
    ...         .angle_sweep(0, 8, 1).polar_random().build())
    """

    def __init__(self):
        self._naca = None          # type: Optional[str]
        self._dat = None           # type: Optional[str]
        self._name = None          # type: Optional[str]
        self._mode = Mode.ALPHA
        self._points = (0.0,)      # type: Tuple[float, ...]
        self._reynolds = 0
        self._ncrit = None         # type: Optional[float]
        self._iter = None          # type: Optional[int]
        self._polar = None         # type: Optional[str]

    # ---- geometry ----
    def naca(self, code):
        self._naca = str(code).strip()
        return self

    def airfoil_file(self, path, name=None):
        self._dat = str(path)
        self._name = name
        return self

    # ---- operating point (each replaces the previous mode) ----
    def angle_of_attack(self, alpha):
        self._mode = Mode.ALPHA
        self._points = (float(alpha),)
        return self

    def lift_coefficient(self, cl):
        self._mode = Mode.CL
        self._points = (float(cl),)
        return self

    def angle_sweep(self, start, end, increment):
        self._mode = Mode.ALPHA_SWEEP
        self._points = (float(start), float(end), float(increment))
        return self

    def cl_sweep(self, start, end, increment):
        self._mode = Mode.CL_SWEEP
        self._points = (float(start), float(end), float(increment))
        return self

    # ---- solver settings ----
    def reynolds(self, re):
        self._reynolds = int(re)
        return self

    def ncrit(self, n):
        self._ncrit = float(n)
        return self

    def iterations(self, n):
        self._iter = int(n)
        return self

    # ---- accumulation file ----
    def polar_file(self, path):
        self._polar = str(path)
        return self

    def polar_random(self, directory=None):
        self._polar = unique_path(suffix=".pol", directory=directory)
        return self

    @classmethod
    def from_params(cls, params):
        # type: (Mapping[str, Any]) -> RunPlanBuilder
        """
        Builder pre-filled from a (possibly aliased) parameter dict.

        Recognized keys: NACA, AIRFOIL_FILE, AIRFOIL_NAME, ALPHA, CL, ALPHA_SWEEP,
        CL_SWEEP (3-sequences), REYNOLDS, NCRIT, ITER, PACC_FILE.
        """
        p = normalize_keys(params)
        b = cls()
        if p.get("NACA") is not None:
            b.naca(p["NACA"])
        if p.get("AIRFOIL_FILE") is not None:
            b.airfoil_file(p["AIRFOIL_FILE"], p.get("AIRFOIL_NAME"))
        if p.get("ALPHA") is not None:
            b.angle_of_attack(p["ALPHA"])
        if p.get("CL") is not None:
            b.lift_coefficient(p["CL"])
        if p.get("ALPHA_SWEEP") is not None:
            b.angle_sweep(*p["ALPHA_SWEEP"])
        if p.get("CL_SWEEP") is not None:
            b.cl_sweep(*p["CL_SWEEP"])
        if p.get("REYNOLDS") is not None:
            b.reynolds(p["REYNOLDS"])
        if p.get("NCRIT") is not None:
            b.ncrit(p["NCRIT"])
        if p.get("ITER") is not None:
            b.iterations(p["ITER"])
        if p.get("PACC_FILE") is not None:
            b.polar_file(p["PACC_FILE"])
        return b

    def _params(self):
        # type: () -> Dict[str, Any]
        p = {
            "NACA": self._naca,
            "AIRFOIL_FILE": self._dat,
            "MODE": self._mode.value,
            "REYNOLDS": self._reynolds,
            "NCRIT": self._ncrit,
            "ITER": self._iter,
            "SWEEP": self._points if self._mode.is_sweep else None,
        }  # type: Dict[str, Any]
        if self._mode is Mode.ALPHA:
            p["ALPHA"] = self._points[0]
        elif self._mode is Mode.CL:
            p["CL"] = self._points[0]
        return p

    def _commands(self):
        # type: () -> List[str]
        cmds = ["plop", "g", ""]

        if self._naca is not None:
            cmds.append("naca {}".format(self._naca))
        else:
            cmds.append("load {}".format(self._dat))
            if self._name:
                cmds.append(self._name)

        cmds.append("oper")
        if self._ncrit is not None:
            cmds.extend(["vpar", "n {}".format(fmt_number(self._ncrit)), ""])
        if self._reynolds > 0:
            cmds.extend(["v", str(self._reynolds)])
        if self._iter is not None:
            cmds.extend(["iter", str(self._iter)])
        if self._polar:
            cmds.extend(["pacc", self._polar, ""])

        if self._mode is Mode.ALPHA:
            cmds.append("a {}".format(fmt_number(self._points[0])))
        elif self._mode is Mode.CL:
            cmds.append("cl {}".format(fmt_number(self._points[0])))
        else:
            cmds.append(self._mode.value)
            cmds.extend(fmt_number(v) for v in self._points)

        if self._polar:
            cmds.append("pacc")
        cmds.extend(["", "quit"])
        return cmds

    def build(self):
        # type: () -> RunPlan
        """
        Validate and freeze the plan.

        Raises
        ------
        SchemaError
            On a malformed NACA code or an out-of-range setting.
        ValidationError
            On a missing/duplicate airfoil source or an impossible sweep.
        """
        params = self._params()
        validate({k: v for k, v in params.items() if v is not None})
        cross_validate_plan(params)

        airfoil = check_naca(self._naca) if self._naca is not None else self._dat
        expected = sweep_count(*self._points) if self._mode.is_sweep else 1
        plan = RunPlan(
            commands=tuple(self._commands()),
            polar_path=self._polar,
            mode=self._mode,
            airfoil=str(airfoil),
            points=tuple(self._points),
            reynolds=self._reynolds,
            ncrit=self._ncrit,
            iterations=self._iter,
            expected_rows=expected,
        )
        logger.debug("[plan] %s on %s, %d command lines", plan.mode.value, plan.airfoil, len(plan.commands))
        return plan
