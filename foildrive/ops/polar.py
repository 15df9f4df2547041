# -*- coding: utf-8 -*-
# Foildrive/foildrive/ops/polar.py

"""
Project: Foildrive
Date: 10/18/2025

Purpose
-------
Quick-look plots of solver results: lift curve, drag polar, moment curve and surface
pressure distribution, all in the project style.

Main Tasks
----------
    1. `plot_lift_curve(table)`: CL vs alpha.
    2. `plot_drag_polar(table)`: CL vs CD.
    3. `plot_moment(table)`: CM vs alpha.
    4. `plot_cp(pairs)`: -Cp vs x/c (aerodynamic convention, suction side up).

Notes
-----
- Inputs are a `PolarTable` (or any mapping of series) and a list of (x, Cp) pairs.
- Missing series or empty tables give a labeled empty axes instead of an error.
"""

from __future__ import absolute_import
from typing import Mapping, Optional, Sequence, Tuple

import numpy as np

from ..interface.cpdist import as_array
from .style import figure


def _empty(ax, text):
    ax.text(0.5, 0.5, text, ha="center", va="center")
    ax.set_axis_off()


def _series(table, key):
    # type: (Mapping, str) -> Optional[np.ndarray]
    if key not in table:
        return None
    y = np.asarray(table[key], dtype=float)
    return y if y.size else None


def _xy_plot(table, xkey, ykey, xlabel, ylabel, title, label=None):
    x = _series(table, xkey)
    y = _series(table, ykey)
    with figure() as (fig, ax):
        if x is None or y is None:
            _empty(ax, "No polar data")
            return fig, ax
        ax.plot(x, y, marker="o", label=label)
        ax.set_xlabel(xlabel)
        ax.set_ylabel(ylabel)
        ax.set_title(title)
        if label:
            ax.legend()
        return fig, ax


def plot_lift_curve(table, label=None):
    """CL vs alpha. Returns (fig, ax)."""
    return _xy_plot(table, "alpha", "CL", "alpha [deg]", "CL", "Lift curve", label)


def plot_drag_polar(table, label=None):
    """CL vs CD. Returns (fig, ax)."""
    return _xy_plot(table, "CD", "CL", "CD", "CL", "Drag polar", label)


def plot_moment(table, label=None):
    """CM vs alpha. Returns (fig, ax)."""
    return _xy_plot(table, "alpha", "CM", "alpha [deg]", "CM", "Moment curve", label)


def plot_cp(pairs, title="Pressure distribution"):
    # type: (Sequence[Tuple[float, float]], str) -> tuple
    """
    Plot -Cp against x/c so the suction peak points up.

    Returns
    -------
    (matplotlib.figure.Figure, matplotlib.axes.Axes)
    """
    arr = as_array(pairs)
    with figure() as (fig, ax):
        if not len(arr):
            _empty(ax, "No pressure data")
            return fig, ax
        ax.plot(arr[:, 0], -arr[:, 1])
        ax.set_xlabel("x/c")
        ax.set_ylabel("-Cp")
        ax.set_title(title)
        return fig, ax
