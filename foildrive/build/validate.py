# -*- coding: utf-8 -*-
# Foildrive/foildrive/build/validate.py

"""
Project: Foildrive
Date: 10/16/2025

Purpose
-------
Cross-key validation after defaults and user params are merged: a run plan needs exactly
one airfoil source and a sweep that actually reaches its end value; session options need
a sane timing relationship. Fails fast with `ValidationError`.

Main Tasks
----------
    1. `cross_validate_plan(params)`: airfoil source present and unique, coordinate file
       exists, sweep direction consistent with its increment.
    2. `cross_validate_options(opts)`: polling interval shorter than the wait bound.

Notes
-----
- Per-key checks (ranges, enums, NACA digits) happen earlier in `build.schema`.
"""

from __future__ import absolute_import
import os
from typing import Any, Mapping

from ..errors import ValidationError
from ..interface.polar import sweep_count


def _require(params, key):
    # type: (Mapping[str, Any], str) -> None
    if params.get(key) is None:
        raise ValidationError("Missing required key: {}".format(key), {"key": key})


def cross_validate_plan(params):
    # type: (Mapping[str, Any]) -> None
    """
    Validate a merged run-plan parameter dict.

    Raises
    ------
    ValidationError
        If the plan has no airfoil source, two of them, a missing coordinate file,
        or an impossible sweep.
    """
    naca = params.get("NACA")
    dat = params.get("AIRFOIL_FILE")
    if naca is None and dat is None:
        raise ValidationError(
            "No airfoil specified; set a NACA code or a coordinate file.",
            {"hint": "RunPlanBuilder().naca('2414') or .airfoil_file('clarky.dat')"},
        )
    if naca is not None and dat is not None:
        raise ValidationError(
            "Both a NACA code and a coordinate file were given; choose one.",
            {"NACA": naca, "AIRFOIL_FILE": dat},
        )
    if dat is not None and not os.path.isfile(str(dat)):
        raise ValidationError("Airfoil coordinate file not found", {"AIRFOIL_FILE": dat})

    _require(params, "MODE")
    sweep = params.get("SWEEP")
    if sweep is not None:
        start, end, inc = sweep
        try:
            sweep_count(start, end, inc)
        except ValueError as e:
            raise ValidationError(str(e), {"start": start, "end": end, "increment": inc})


def cross_validate_options(opts):
    # type: (Mapping[str, Any]) -> None
    """
    Validate merged session options.

    Raises
    ------
    ValidationError
        If the idle poll interval is not shorter than the wait bound.
    """
    timeout = opts.get("AWAIT_TIMEOUT_S")
    poll = float(opts.get("POLL_S", 0.0))
    if timeout is not None and poll >= float(timeout):
        raise ValidationError(
            "POLL_S must be shorter than AWAIT_TIMEOUT_S",
            {"POLL_S": poll, "AWAIT_TIMEOUT_S": timeout},
        )
