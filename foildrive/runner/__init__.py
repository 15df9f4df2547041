# -*- coding: utf-8 -*-
# Foildrive/foildrive/runner/__init__.py

"""
Project: Foildrive
Date: 10/14/2025 (Updated: 10/19/2025)

Modules
-------
- process:  Spawn/own the solver child (piped stdin/stdout), write bytes, terminate + reap.
            Executable lookup honours XFOIL_BIN before PATH.

- monitor:  Background reader: 200-byte output window, line tail, latched marker counts.
            Bounded join; a reader that outlives it is logged as a leak.

- prompt:   Pure predicates over window snapshots (idle prompt, message present) and the
            solver messages the session looks for.

- dispatch: Send lines, poll for the idle prompt with timeout/cancel, session phase enum.

- run:      Batch launcher: feed a command script, wait with timeout, return (rc, out, diag).
"""

from .process import ProcessSession, resolve_executable
from .monitor import OutputMonitor, OutputWindow, tail_lines
from .prompt import IDLE_PROMPT, is_idle, contains
from .dispatch import CommandDispatcher, SessionPhase
from .run import run_commands

__all__ = [
    "ProcessSession", "resolve_executable",
    "OutputMonitor", "OutputWindow", "tail_lines",
    "IDLE_PROMPT", "is_idle", "contains",
    "CommandDispatcher", "SessionPhase",
    "run_commands",
]
