# -*- coding: utf-8 -*-
# Foildrive/foildrive/runner/prompt.py

"""
Project: Foildrive
Date: 10/14/2025

Purpose
-------
Pure predicates over a snapshot of the solver's recent output. The solver never says
"done"; it only prints its prompt again. These helpers decide whether a snapshot ends
with the idle prompt and whether a known status/error message is present.

Main Tasks
----------
    1. `is_idle(snapshot)`: the snapshot's trailing bytes equal the idle prompt.
    2. `contains(snapshot, text)`: the snapshot holds `text` anywhere.
    3. Collect the solver messages the session protocols look for.

Notes
-----
- Snapshots are raw bytes; leading NUL padding (window not yet filled) is harmless.
- Matching here is exact and case-sensitive; the monitor's line latch is the
  case-insensitive counterpart.
"""

from __future__ import absolute_import
from typing import Union

# Every top-level and menu prompt ends in "c>  " (e.g. "XFOIL   c>  ", ".OPERi   c>  ").
IDLE_PROMPT = b"c>  "

# Known solver messages
LOAD_FAILED = "LOAD NOT COMPLETED"
NACA_REJECTED = "not implemented"
VISCOUS_ENABLED = "Re = "
VISCOUS_UPDATED = ".OPERv"
PACC_ENABLED = "Polar accumulation enabled"
ITERATION_ACK = "iteration"
PACC_DIFFERS = "different from old"
CONVERGENCE_FAILED = "VISCAL:  Convergence failed"
PACC_OPEN_ERROR = "New polar save file OPEN error"

# Sub-prompts that wait for a text answer (never end in the idle prompt)
NAME_PROMPT = "airfoil name"
DUMP_PROMPT = "polar dump filename"

WATCHED_MARKERS = (
    LOAD_FAILED, NACA_REJECTED, VISCOUS_ENABLED, VISCOUS_UPDATED, PACC_ENABLED,
    ITERATION_ACK, PACC_DIFFERS, CONVERGENCE_FAILED, PACC_OPEN_ERROR,
    NAME_PROMPT, DUMP_PROMPT,
)


def _as_bytes(text):
    # type: (Union[str, bytes]) -> bytes
    if isinstance(text, bytes):
        return text
    return text.encode("latin-1")


def is_idle(snapshot, prompt=IDLE_PROMPT):
    # type: (bytes, Union[str, bytes]) -> bool
    """
    Return True iff `snapshot` ends with the idle prompt.

    Args
    ----
    snapshot : bytes
        Copy of the output window.
    prompt : str | bytes, optional
        Trailing sequence printed when the solver waits for a command.
    """
    p = _as_bytes(prompt)
    if not p or len(snapshot) < len(p):
        return False
    return snapshot[-len(p):] == p


def contains(snapshot, text):
    # type: (bytes, Union[str, bytes]) -> bool
    """Return True iff `text` occurs anywhere in `snapshot`."""
    return _as_bytes(text) in snapshot
