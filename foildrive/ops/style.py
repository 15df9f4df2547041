# -*- coding: utf-8 -*-
# Foildrive/foildrive/ops/style.py

"""
Project: Foildrive
Date: 10/18/2025

Purpose
-------
One place for the Matplotlib look of every Foildrive quick-look plot, plus a `figure()`
context manager that applies it and hands back a ready `(fig, ax)` pair.

Main Tasks
----------
    1. `apply_base_style()`: DPI, grid, fonts, line widths and marker size.
    2. `figure(width, height)`: styled figure with best-effort tight layout on exit.

Notes
-----
- The style is re-applied on every `figure()` call so import order does not matter.
"""

from __future__ import absolute_import
import contextlib
import logging

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)

DEFAULT_DPI = 120


def apply_base_style():
    """Apply project-wide Matplotlib rcParams."""
    plt.rcParams.update({
        "figure.dpi": DEFAULT_DPI,
        "savefig.dpi": DEFAULT_DPI,
        "axes.grid": True,
        "grid.alpha": 0.25,
        "axes.titlesize": 12,
        "axes.labelsize": 11,
        "xtick.labelsize": 10,
        "ytick.labelsize": 10,
        "legend.fontsize": 9,
        "lines.linewidth": 1.4,
        "lines.markersize": 4,
        "axes.linewidth": 0.8,
    })


@contextlib.contextmanager
def figure(width=6.0, height=4.0):
    """
    Context manager yielding a styled `(fig, ax)`; `tight_layout()` runs on exit.
    """
    apply_base_style()
    fig, ax = plt.subplots(figsize=(float(width), float(height)))
    try:
        yield fig, ax
    finally:
        try:
            fig.tight_layout()
        except (ValueError, RuntimeError) as e:
            logger.debug("[style] tight_layout skipped: %s", e)
