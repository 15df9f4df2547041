# -*- coding: utf-8 -*-
# Foildrive/foildrive/build/schema.py

"""
Project: Foildrive
Date: 10/16/2025 (Updated: 10/18/2025)

Purpose
-------
Lightweight schema for session options and run-plan parameters. Canonicalizes
user-friendly keys (`re`, `aoa`, `iter`, ...) to Foildrive's upper-case names,
validates categorical options against enumerations, and checks numeric scalars against
ranges, raising `SchemaError` with actionable messages.

Main Tasks
----------
    1. Canonicalize params via `normalize_keys` using curated `ALIASES`.
    2. Enforce categorical constraints using `ENUMS` (case-insensitive matching).
    3. Enforce numeric constraints using `RANGES` with inclusive/strict bounds.
    4. Check NACA designations (4 or 5 digits).

Notes
-----
- No defaults are filled here; `build.config` merges defaults and `build.validate`
  handles cross-key consistency.
- `None` is accepted for ranged keys that may be disabled (timeouts, paths).
- Unknown keys pass through untouched.
"""

from __future__ import absolute_import
from typing import Any, Dict, Mapping

from ..errors import SchemaError

__all__ = ["normalize_keys", "validate", "check_naca", "ALIASES", "ENUMS", "RANGES"]

# --------------------------
# Canonicalization (aliases)
# --------------------------
ALIASES = {
    # Operating point
    "aoa": "ALPHA",
    "alpha": "ALPHA",
    "angle_of_attack": "ALPHA",
    "cl": "CL",
    "lift_coefficient": "CL",
    "re": "REYNOLDS",
    "reynolds": "REYNOLDS",
    "ncrit": "NCRIT",
    "iter": "ITER",
    "iterations": "ITER",

    # Geometry
    "naca": "NACA",
    "airfoil_file": "AIRFOIL_FILE",
    "dat_file": "AIRFOIL_FILE",
    "airfoil_name": "AIRFOIL_NAME",

    # Files
    "polar": "PACC_FILE",
    "polar_file": "PACC_FILE",
    "pacc_file": "PACC_FILE",
    "polar_format": "POLAR_FORMAT",
    "cp_format": "CP_FORMAT",
    "log_dir": "LOG_DIR",
    "work_dir": "WORK_DIR",
    "tmp_dir": "TMP_DIR",

    # Protocol timing
    "window": "WINDOW_SIZE",
    "window_size": "WINDOW_SIZE",
    "poll": "POLL_S",
    "poll_s": "POLL_S",
    "settle": "SETTLE_S",
    "settle_s": "SETTLE_S",
    "timeout": "AWAIT_TIMEOUT_S",
    "timeout_s": "AWAIT_TIMEOUT_S",
    "join_timeout_s": "JOIN_TIMEOUT_S",
    "term_timeout_s": "TERM_TIMEOUT_S",
}

# --------------------------
# Enumerations (exact sets)
# --------------------------
ENUMS = {
    "POLAR_FORMAT": {"COLUMNS", "LEGACY"},
    "CP_FORMAT": {"COLUMNS", "LEGACY"},
}

# --------------------------
# Numeric ranges (inclusive flag)
# --------------------------
# key -> (min, max, inclusive_bounds)
RANGES = {
    "ALPHA": (-90.0, 90.0, True),
    "CL": (-10.0, 10.0, True),
    "REYNOLDS": (0.0, 1e12, True),
    "NCRIT": (0.0, 100.0, False),
    "ITER": (1, 10**6, True),
    "WINDOW_SIZE": (8, 1 << 16, True),
    "POLL_S": (1e-4, 10.0, True),
    "SETTLE_S": (0.0, 60.0, True),
    "AWAIT_TIMEOUT_S": (1e-3, 1e6, True),
    "JOIN_TIMEOUT_S": (0.0, 60.0, True),
    "TERM_TIMEOUT_S": (0.0, 60.0, True),
}

_NULLABLE = {"AWAIT_TIMEOUT_S", "ALPHA", "CL"}


def normalize_keys(params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Map user-friendly keys to canonical keys (no value coercion).

    Keys already in canonical form, and unknown keys, pass through unchanged.
    """
    out = {}  # type: Dict[str, Any]
    for k, v in params.items():
        can = ALIASES.get(k, ALIASES.get(str(k).lower(), k))
        out[can] = v
    return out


def check_naca(code: Any) -> str:
    """
    Validate a NACA designation and return it as a string.

    Raises
    ------
    SchemaError
        If the code is not 4 or 5 digits.
    """
    s = str(code).strip()
    if not (s.isdigit() and len(s) in (4, 5)):
        raise SchemaError("NACA designation must be 4 or 5 digits: {!r}".format(code), {"NACA": code})
    return s


def _check_enum(key: str, val: Any) -> None:
    if key in ENUMS:
        sval = str(val).upper()
        if sval not in ENUMS[key]:
            raise SchemaError(
                "Invalid value for {k}: {v!r}. Allowed: {opts}".format(
                    k=key, v=val, opts=sorted(ENUMS[key])
                )
            )


def _check_range(key: str, val: Any) -> None:
    if key not in RANGES:
        return
    if val is None and key in _NULLABLE:
        return
    lo, hi, inclusive = RANGES[key]
    if isinstance(val, bool):
        raise SchemaError("Non-numeric value for {k}: {v!r}".format(k=key, v=val))
    try:
        fval = float(val)
    except (TypeError, ValueError):
        raise SchemaError("Non-numeric value for {k}: {v!r}".format(k=key, v=val))
    ok = (lo <= fval <= hi) if inclusive else (lo < fval < hi)
    if not ok:
        raise SchemaError(
            "Out-of-range {k}: {v} (expected {lo} {ineq} {hi})".format(
                k=key, v=fval, lo=lo, ineq="<= ... <=" if inclusive else "< ... <", hi=hi
            ),
            {key: val},
        )


def validate(params: Mapping[str, Any]) -> None:
    """
    Validate a parameter dict *after* canonicalization via `normalize_keys`.

    Raises
    ------
    SchemaError
        On a bad enum, a non-numeric ranged value, an out-of-range value, or a bad NACA code.
    """
    for k, v in params.items():
        _check_enum(k, v)
        _check_range(k, v)
        if k == "NACA" and v is not None:
            check_naca(v)
