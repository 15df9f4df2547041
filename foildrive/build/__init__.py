# -*- coding: utf-8 -*-
# Foildrive/foildrive/build/__init__.py

"""
Project: Foildrive
Date: 10/16/2025 (Updated: 10/19/2025)

Modules:
--------
- plan:     RunPlanBuilder (named setters) -> frozen RunPlan with the batch command lines.
            Order of ops: setters -> per-key validate -> cross-validate -> assemble commands.

- config:   Sectioned session defaults (SOLVER / PROTOCOL / FILES), `build_options`, and
            deterministic command-script rendering with an atomic writer.

- schema:   Canonical key normalization (aliases -> upper-case keys) and per-key validation.
            Enforces enums, numeric ranges and NACA digits; raises SchemaError.

- validate: Cross-key consistency after merge: one airfoil source, sane sweeps and timing.
"""

from .plan import RunPlan, RunPlanBuilder, Mode
from .config import build_options, render_commands, write_commands
from .schema import normalize_keys, validate as validate_schema, check_naca
from .validate import cross_validate_plan, cross_validate_options
from ..errors import ConfigError, SchemaError, ValidationError, RenderError

__all__ = [
    # Plans
    "RunPlan", "RunPlanBuilder", "Mode",
    # Options and scripts
    "build_options", "render_commands", "write_commands",
    # Validation helpers
    "normalize_keys", "validate_schema", "check_naca",
    "cross_validate_plan", "cross_validate_options",
    # Error types
    "ConfigError", "SchemaError", "ValidationError", "RenderError",
]
