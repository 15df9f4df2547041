# -*- coding: utf-8 -*-
# Foildrive/foildrive/interface/__init__.py

"""
Project: Foildrive
Date: 10/15/2025

Modules:
--------
- polar:   Parses XFOIL polar accumulation files (12-line header region) into labeled
           series; cursor reads for live sessions, full-table reads for batch runs.

- cpdist:  Parses `cpwr` pressure distribution files into (x, Cp) pairs.

- formats: Plain/gzip text opening, unique scratch paths, best-effort file removal.
"""

from .polar import PolarTable, read_polar, read_polar_rows, table_from_rows, sweep_count, POLAR_KEYS
from .cpdist import read_cp
from .formats import open_text, unique_path, remove_quietly

__all__ = ["PolarTable", "read_polar", "read_polar_rows", "table_from_rows", "sweep_count",
           "POLAR_KEYS", "read_cp", "open_text", "unique_path", "remove_quietly"]
