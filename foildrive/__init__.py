# -*- coding: utf-8 -*-
# Foildrive/foildrive/__init__.py

"""
Project: Foildrive
Date: 10/14/2025 (Updated: 10/19/2025)

Modules
-------
- session:  XfoilSession, the interactive driver (menus, acknowledgements, polar cursor).
            Start -> configure -> settings/runs -> quit; typed errors for every rejection.

- api:      Batch helpers: dispatch a frozen RunPlan through a fresh process and parse the
            polar; summaries (CLmax, max L/D) and quick-look plots.

- errors:   Unified exception hierarchy with compact context suffixes.

Packages
--------
- runner:     process, monitor, prompt, dispatch, run
- interface:  polar, cpdist, formats
- build:      plan, schema, validate, config
- ops:        style, polar
"""

from .errors import *  # noqa: F401,F403
from .errors import __all__ as _errors_all
from .session import XfoilSession, SessionState
from .runner.dispatch import SessionPhase
from .build.plan import RunPlan, RunPlanBuilder, Mode
from .interface.polar import PolarTable, read_polar, read_polar_rows, sweep_count
from .interface.cpdist import read_cp
from .api import dispatch_plan, run_plan, summarize_polar, post_polar

__version__ = "0.1.0"

__all__ = [
    "XfoilSession", "SessionState", "SessionPhase",
    "RunPlan", "RunPlanBuilder", "Mode",
    "PolarTable", "read_polar", "read_polar_rows", "sweep_count", "read_cp",
    "dispatch_plan", "run_plan", "summarize_polar", "post_polar",
] + list(_errors_all)
