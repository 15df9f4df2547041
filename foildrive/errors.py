# -*- coding: utf-8 -*-
# Foildrive/foildrive/errors.py

"""
Project: Foildrive
Date: 10/14/2025 (Updated: 10/19/2025)

Purpose
-------
Typed exceptions for every layer of Foildrive with compact, context-aware messages, so
callers can tell a bad run request from a solver that rejected a command, a run that did
not converge, or a result file that could not be read.

Main Tasks
----------
    1. Define FoildriveError(message, context) with a compact context suffix in __str__.
    2. Build layer: ConfigError -> SchemaError, ValidationError, RenderError.
    3. Session layer: SessionError, SpawnError, ProtocolError (+ per-command subclasses),
       ConvergenceError, ResultFileError, UnresponsiveSolverError, SolverExitedError.

Notes
-----
- Context is optional; long values are truncated for readability.
- Protocol errors leave the session usable; SpawnError and SolverExitedError do not.
"""

from __future__ import absolute_import

__all__ = [
    "FoildriveError",
    "ConfigError",
    "SchemaError",
    "ValidationError",
    "RenderError",
    "SessionError",
    "SpawnError",
    "ProtocolError",
    "LoadError",
    "NacaError",
    "ViscosityError",
    "IterationError",
    "PaccError",
    "ConvergenceError",
    "ResultFileError",
    "UnresponsiveSolverError",
    "SolverExitedError",
]


def _format_context(ctx):
    """Return a compact ' | key1=val1, key2=val2' string or '' if no context."""
    if not ctx:
        return ""
    try:
        parts = []
        for k in sorted(ctx.keys()):
            sv = repr(ctx[k])
            if len(sv) > 120:
                sv = sv[:117] + "..."
            parts.append("{}={}".format(k, sv))
        return " | " + ", ".join(parts)
    except Exception:
        # Context should never break error rendering
        return ""


class FoildriveError(Exception):
    """
    Base class for all Foildrive errors.

    Parameters
    ----------
    message : str
        Human-readable error.
    context : dict, optional
        Extra fields appended to the string form (e.g., {"path": "/tmp/x.pol", "line": 12}).
    """
    def __init__(self, message, context=None):
        self.context = dict(context) if context else None
        super(FoildriveError, self).__init__(message)

    def __str__(self):
        base = super(FoildriveError, self).__str__()
        return base + _format_context(self.context)


# ---------------------------------------------------------------------------
# Build layer (options and run plans)
# ---------------------------------------------------------------------------
class ConfigError(FoildriveError):
    """Base class for option and run-plan problems."""


class SchemaError(ConfigError):
    """
    Per-key issues detected by the schema:
      - unknown enum values (e.g., POLAR_FORMAT)
      - non-numeric where numeric is required
      - out-of-range scalars (negative Reynolds, zero iterations, ...)
    """


class ValidationError(ConfigError):
    """
    Cross-key problems detected after merging:
      - no airfoil source, or two of them
      - a sweep whose increment points away from its end value
    """


class RenderError(ConfigError):
    """Errors while rendering or writing a command script (encoding, IO)."""


# ---------------------------------------------------------------------------
# Session layer
# ---------------------------------------------------------------------------
class SessionError(FoildriveError):
    """Session misuse: operation before start, after quit, or start called twice."""


class SpawnError(SessionError):
    """The solver binary could not be launched or its pipes could not be opened."""


class ProtocolError(FoildriveError):
    """The solver answered a command with a known failure message (or no acknowledgement)."""


class LoadError(ProtocolError):
    """Coordinate file could not be loaded (`LOAD NOT COMPLETED`)."""


class NacaError(ProtocolError):
    """NACA designation was rejected by the solver."""


class ViscosityError(ProtocolError):
    """Viscous mode or Reynolds number change was not acknowledged."""


class IterationError(ProtocolError):
    """Iteration limit change was not acknowledged."""


class PaccError(ProtocolError):
    """Polar accumulation could not be enabled."""


class ConvergenceError(FoildriveError):
    """The solver reported `VISCAL:  Convergence failed` for a requested point."""


class ResultFileError(FoildriveError):
    """An accumulation or distribution file is missing, unreadable, or short of rows."""


class UnresponsiveSolverError(FoildriveError):
    """The idle prompt did not reappear within the allowed time, or the wait was cancelled."""


class SolverExitedError(FoildriveError):
    """The solver closed its output stream or input pipe while a reply was expected."""
