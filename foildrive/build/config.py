# -*- coding: utf-8 -*-
# Foildrive/foildrive/build/config.py

"""
Project: Foildrive
Date: 10/16/2025 (Updated: 10/19/2025)

Purpose
-------
Assemble session options from sectioned defaults and user overrides, enforce schema and
cross-key validation, and render a run plan's command lines as a deterministic script
with an atomic writer (useful for replaying a batch run by hand: `xfoil < run.inp`).

Main Tasks
----------
    1. Flatten curated defaults (SOLVER / PROTOCOL / FILES) and merge normalized,
       schema-checked user params: `build_options(params)`.
    2. Render plan commands to text: `render_commands(commands)`.
    3. Write the script atomically: `write_commands(text, path)`.

Notes
-----
- Solver settings that a run needs (Reynolds, Ncrit, iterations) default to the solver's
  own start-up values, so an empty options dict reproduces a bare XFOIL session.
- Timing values are seconds.
"""

from __future__ import absolute_import
import io
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from ..errors import RenderError
from .schema import normalize_keys, validate
from .validate import cross_validate_options


# -----------------------------
_DEFAULTS_SECTIONS = [
    ("SOLVER", {
        "NCRIT": 9.0,
        "ITER": 20,
        "REYNOLDS": 0,
    }),
    ("PROTOCOL", {
        "WINDOW_SIZE": 200,
        "POLL_S": 0.01,
        "SETTLE_S": 0.01,
        "AWAIT_TIMEOUT_S": 60.0,
        "JOIN_TIMEOUT_S": 1.0,
        "TERM_TIMEOUT_S": 2.0,
    }),
    ("FILES", {
        "POLAR_FORMAT": "columns",
        "CP_FORMAT": "legacy",
        "PACC_FILE": None,
        "LOG_DIR": None,
        "WORK_DIR": None,
        "TMP_DIR": None,
    }),
]


def _flatten_defaults(sections):
    """
    Turn sectioned defaults into a single flat dict (stable order preserved).
    """
    flat = {}  # type: Dict[str, Any]
    for _name, block in sections:
        flat.update(block)
    return flat


_DEFAULTS = _flatten_defaults(_DEFAULTS_SECTIONS)


# ---------- Public API ----------
def build_options(params=None):
    # type: (Optional[Mapping[str, Any]]) -> Dict[str, Any]
    """
    Merge user params over sectioned defaults and return a flat options dict.

    Enum values (`POLAR_FORMAT`, `CP_FORMAT`) are lower-cased so callers can pass them
    straight to the parsers.

    Raises
    ------
    SchemaError
        On unknown enum values or out-of-range numbers.
    ValidationError
        On inconsistent timing options.
    """
    opts = dict(_DEFAULTS)
    if params:
        params = normalize_keys(params)
        validate(params)
        opts.update(params)

    for key in ("POLAR_FORMAT", "CP_FORMAT"):
        opts[key] = str(opts[key]).lower()
    opts["ITER"] = int(opts["ITER"])
    opts["REYNOLDS"] = int(opts["REYNOLDS"] or 0)
    opts["NCRIT"] = float(opts["NCRIT"])
    opts["WINDOW_SIZE"] = int(opts["WINDOW_SIZE"])

    cross_validate_options(opts)
    return opts


def render_commands(commands):
    # type: (Sequence[str]) -> str
    """
    One command per line, newline-terminated. Blank entries are kept: they are the
    solver's "accept default / leave menu" answers.

    Raises
    ------
    RenderError
        If a command contains a line break or non-ASCII text (the solver reads ASCII lines).
    """
    buf = io.StringIO()
    for i, cmd in enumerate(commands):
        text = str(cmd)
        if "\n" in text or "\r" in text:
            raise RenderError("Command contains a line break", {"index": i, "command": text})
        try:
            text.encode("ascii")
        except UnicodeEncodeError:
            raise RenderError("Command is not ASCII", {"index": i, "command": text})
        buf.write(text)
        buf.write("\n")
    return buf.getvalue()


def write_commands(text, path):
    # type: (str, str) -> str
    """
    Atomic UTF-8 write.
    """
    p = Path(path)
    if not p.parent.exists():
        p.parent.mkdir(parents=True)
    tf = tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=str(p.parent), delete=False)
    try:
        tf.write(text)
        tmp_name = tf.name
    finally:
        tf.close()
    os.replace(tmp_name, str(p))
    return str(p)
