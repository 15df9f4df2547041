# -*- coding: utf-8 -*-
# Foildrive/foildrive/interface/cpdist.py

"""
Project: Foildrive
Date: 10/16/2025

Purpose
-------
Read the one-shot pressure distribution file written by the solver's `cpwr` command into
(x, Cp) pairs.

Main Tasks
----------
    1. Skip the single header line.
    2. `fmt="legacy"`: slice x from bytes [5:12] and Cp from [16:23]; a literal '-' at
       byte 15 is the sign the fixed-width slice would drop, so Cp is negated.
    3. `fmt="columns"`: whitespace tokens, x first and Cp last (handles the three-column
       x/y/Cp variant); '#' comment lines are ignored.
    4. `as_array(pairs)`: (N, 2) numpy view for plotting/integration.

Notes
-----
- Malformed numeric fields follow the polar parser's strtod behaviour (0.0).
"""

from __future__ import absolute_import
from typing import List, Sequence, Tuple

import numpy as np

from .formats import open_text
from .polar import to_float

X_COLUMN = (5, 7)
CP_COLUMN = (16, 7)
CP_SIGN_INDEX = 15


def parse_legacy_line(line):
    # type: (str) -> Tuple[float, float]
    x0, xw = X_COLUMN
    c0, cw = CP_COLUMN
    x = to_float(line[x0:x0 + xw])
    cp = to_float(line[c0:c0 + cw])
    if line[CP_SIGN_INDEX:CP_SIGN_INDEX + 1] == "-":
        cp = -cp
    return x, cp


def read_cp(path, fmt="legacy"):
    # type: (str, str) -> List[Tuple[float, float]]
    """
    Parse a distribution file into [(x, Cp), ...] in file order.

    Raises
    ------
    ResultFileError
        If the file cannot be opened.
    ValueError
        On an unknown `fmt`.
    """
    if fmt not in ("legacy", "columns"):
        raise ValueError("Unknown distribution format {!r}".format(fmt))

    out = []  # type: List[Tuple[float, float]]
    with open_text(path) as f:
        f.readline()  # header
        for raw in f:
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue
            if fmt == "legacy":
                out.append(parse_legacy_line(line))
                continue
            if line.lstrip().startswith("#"):
                continue
            tokens = line.split()
            if len(tokens) < 2:
                continue
            out.append((to_float(tokens[0]), to_float(tokens[-1])))
    return out


def as_array(pairs):
    # type: (Sequence[Tuple[float, float]]) -> np.ndarray
    if not pairs:
        return np.zeros((0, 2), dtype=float)
    return np.asarray(pairs, dtype=float).reshape(-1, 2)
