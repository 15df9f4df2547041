# -*- coding: utf-8 -*-
# Foildrive/foildrive/interface/polar.py

"""
Project: Foildrive
Date: 10/15/2025 (Updated: 10/19/2025)

Purpose
-------
Parse XFOIL polar accumulation files into labeled numeric series. The solver appends one
row per converged point below a fixed 12-line header region; the driver reads rows at a
cursor while the file grows, or the whole table once a batch run is over.

Main Tasks
----------
    1. `PolarTable`: ordered mapping series-name -> list of floats; all series always have
       equal length (ragged rows are rejected).
    2. `read_polar_rows(path, start, count, fmt)`: read up to `count` rows from zero-based
       line `start`. `fmt="columns"` tokenizes on whitespace and names tokens from the
       file's header line; `fmt="legacy"` slices five fixed byte columns.
    3. `read_polar(path)`: the full table below the header region.
    4. `sweep_count(start, end, inc)`: rows produced by a sequence command.

Notes
-----
- Legacy slicing converts like C `strtod`: the longest numeric prefix is used and an
  unparsable field becomes 0.0 instead of an error.
- Missing lines are not an error here; callers compare the row count they expected.
- A missing file raises `ResultFileError` (via `open_text`).
"""

from __future__ import absolute_import
import logging
import math
import re
from collections import OrderedDict
from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

from .formats import open_text

logger = logging.getLogger(__name__)

# Zero-based line holding the column names, and first data row
HEADER_LINE_INDEX = 10
DATA_LINE_INDEX = 12

POLAR_KEYS = ("alpha", "CL", "CD", "CDp", "CM", "Top_Xtr", "Bot_Xtr", "Top_Itr", "Bot_Itr")
LEGACY_KEYS = POLAR_KEYS[:5]

# (start, width) of alpha, CL, CD, CDp, CM in the fixed-width row layout
LEGACY_COLUMNS = ((2, 8), (10, 8), (20, 7), (29, 8), (39, 8))

FORMATS = ("columns", "legacy")

_NUM_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eEdD][+-]?\d+)?)")


def to_float(text, default=0.0):
    # type: (str, float) -> float
    """
    Convert the longest numeric prefix of `text` (strtod-like); `default` if there is none.
    Fortran 'D' exponents are accepted.
    """
    m = _NUM_PREFIX.match(text or "")
    if not m:
        return default
    try:
        return float(m.group(1).replace("d", "e").replace("D", "e"))
    except ValueError:
        return default


class PolarTable(Mapping):
    """
    Labeled polar: series name -> list of floats, one entry per accumulated row.

    `len(table)` is the number of series (Mapping semantics); use `n_rows` for rows.
    """

    def __init__(self, columns=POLAR_KEYS):
        # type: (Sequence[str]) -> None
        self.columns = list(columns)
        self._series = OrderedDict((c, []) for c in self.columns)  # type: Dict[str, List[float]]

    # Mapping protocol
    def __getitem__(self, key):
        return self._series[key]

    def __iter__(self):
        return iter(self._series)

    def __len__(self):
        return len(self._series)

    def __repr__(self):
        return "PolarTable(columns={!r}, n_rows={})".format(self.columns, self.n_rows)

    @property
    def n_rows(self):
        # type: () -> int
        if not self.columns:
            return 0
        return len(self._series[self.columns[0]])

    def append(self, values):
        # type: (Union[Sequence[float], Mapping]) -> bool
        """
        Append one row (sequence in column order, or mapping keyed by column).

        Returns False (and leaves the table untouched) when the row width does not match.
        """
        if isinstance(values, Mapping):
            if any(c not in values for c in self.columns):
                return False
            vals = [float(values[c]) for c in self.columns]
        else:
            vals = [float(v) for v in values]
            if len(vals) != len(self.columns):
                return False
        for c, v in zip(self.columns, vals):
            self._series[c].append(v)
        return True

    def extend(self, rows):
        # type: (Iterable) -> int
        return sum(1 for r in rows if self.append(r))

    def row(self, i):
        # type: (int) -> Dict[str, float]
        return OrderedDict((c, self._series[c][i]) for c in self.columns)

    def rows(self):
        # type: () -> List[Dict[str, float]]
        return [self.row(i) for i in range(self.n_rows)]

    def as_array(self):
        # type: () -> np.ndarray
        """(n_rows, n_columns) float array in column order."""
        if not self.n_rows:
            return np.zeros((0, len(self.columns)), dtype=float)
        return np.column_stack([np.asarray(self._series[c], dtype=float) for c in self.columns])

    def to_dict(self):
        # type: () -> Dict[str, List[float]]
        return {c: list(v) for c, v in self._series.items()}


# ----------------------------
# Parsing helpers
# ----------------------------
def parse_header(line):
    # type: (str) -> Optional[List[str]]
    """Return the column names if `line` is a polar header ('alpha CL CD ...'), else None."""
    tokens = line.split()
    if tokens and tokens[0].lower() == "alpha":
        return tokens
    return None


def _find_header(lines):
    # type: (Sequence[str]) -> List[str]
    if len(lines) > HEADER_LINE_INDEX:
        names = parse_header(lines[HEADER_LINE_INDEX])
        if names:
            return names
    # tolerate header drift: scan the header region
    for line in lines[:DATA_LINE_INDEX]:
        names = parse_header(line)
        if names:
            return names
    return list(POLAR_KEYS)


def parse_legacy_row(line):
    # type: (str) -> Dict[str, float]
    """Slice alpha, CL, CD, CDp, CM from their fixed byte columns."""
    out = OrderedDict()  # type: Dict[str, float]
    for key, (start, width) in zip(LEGACY_KEYS, LEGACY_COLUMNS):
        out[key] = to_float(line[start:start + width])
    return out


def parse_columns_row(line, names):
    # type: (str, Sequence[str]) -> Optional[Dict[str, float]]
    """Whitespace-split row; tokens are named positionally. None for blank lines."""
    tokens = line.split()
    if not tokens:
        return None
    if len(tokens) > len(names):
        names = list(names) + list(POLAR_KEYS[len(names):len(tokens)])
    return OrderedDict((n, to_float(t)) for n, t in zip(names, tokens))


def _read_lines(path):
    # type: (str) -> List[str]
    with open_text(path) as f:
        return [line.rstrip("\r\n") for line in f]


def _check_fmt(fmt):
    if fmt not in FORMATS:
        raise ValueError("Unknown polar format {!r}; expected one of {}".format(fmt, FORMATS))


# ----------------------------
# Public API
# ----------------------------
def read_polar_rows(path, start=DATA_LINE_INDEX, count=1, fmt="columns"):
    # type: (str, int, int, str) -> List[Dict[str, float]]
    """
    Read up to `count` rows beginning at zero-based line `start`.

    Parameters
    ----------
    path : str
        Accumulation file.
    start : int
        Zero-based line index of the first row to read (the session cursor).
    count : int
        Number of rows wanted.
    fmt : {"columns", "legacy"}
        Header-driven whitespace parsing, or fixed byte columns (five fields).

    Returns
    -------
    List[Dict[str, float]]
        One mapping per row present; fewer than `count` if the file is short.
    """
    _check_fmt(fmt)
    lines = _read_lines(path)
    names = _find_header(lines) if fmt == "columns" else list(LEGACY_KEYS)

    rows = []  # type: List[Dict[str, float]]
    for i in range(int(start), int(start) + int(count)):
        if i >= len(lines):
            break
        line = lines[i]
        if fmt == "legacy":
            rows.append(parse_legacy_row(line))
            continue
        row = parse_columns_row(line, names)
        if row is None:
            logger.debug("[polar] blank line %d in %s", i, path)
            break
        rows.append(row)
    return rows


def read_polar(path, fmt="columns", header_lines=DATA_LINE_INDEX):
    # type: (str, str, int) -> PolarTable
    """
    Parse every row below the header region into a `PolarTable`.

    Rows whose width does not match the header are skipped so all series stay aligned.
    """
    _check_fmt(fmt)
    lines = _read_lines(path)
    if fmt == "legacy":
        table = PolarTable(LEGACY_KEYS)
        for line in lines[header_lines:]:
            if line.strip():
                table.append(parse_legacy_row(line))
        return table

    names = _find_header(lines)
    table = PolarTable(names)
    skipped = 0
    for line in lines[header_lines:]:
        tokens = line.split()
        if not tokens:
            continue
        if len(tokens) != len(names):
            skipped += 1
            continue
        table.append([to_float(t) for t in tokens])
    if skipped:
        logger.debug("[polar] skipped %d ragged rows in %s", skipped, path)
    return table


def table_from_rows(rows, columns=None):
    # type: (Sequence[Mapping], Optional[Sequence[str]]) -> PolarTable
    """Build a `PolarTable` from row mappings (columns default to the first row's keys)."""
    if columns is None:
        columns = list(rows[0].keys()) if rows else list(POLAR_KEYS)
    table = PolarTable(columns)
    table.extend(rows)
    return table


def sweep_count(start, end, increment):
    # type: (float, float, float) -> int
    """
    Number of rows a sequence command produces: 1 + ceil((end - start) / increment).

    A small tolerance absorbs float noise (e.g. 0.7/0.1 = 6.999999999999999).

    Raises
    ------
    ValueError
        If `increment` is zero or points away from `end`.
    """
    inc = float(increment)
    if inc == 0.0:
        raise ValueError("sweep increment must be non-zero")
    steps = (float(end) - float(start)) / inc
    if steps < -1e-9:
        raise ValueError("sweep increment {} does not move from {} towards {}".format(inc, start, end))
    return 1 + int(math.ceil(max(0.0, steps) - 1e-9))
