# -*- coding: utf-8 -*-
# Foildrive/foildrive/ops/__init__.py
"""
Project: Foildrive
Date: 10/18/2025

Modules
-------
- style:    Centralized Matplotlib style and figure() context for consistent plots.

- polar:    Lift curve, drag polar, moment curve and Cp distribution quick-looks.
"""

from .style import apply_base_style, figure
from .polar import plot_lift_curve, plot_drag_polar, plot_moment, plot_cp

__all__ = [
    "apply_base_style", "figure",
    "plot_lift_curve", "plot_drag_polar", "plot_moment", "plot_cp",
]
