# -*- coding: utf-8 -*-
# Foildrive/foildrive/interface/formats.py

"""
Project: Foildrive
Date: 10/15/2025

Purpose
-------
Tiny file helpers shared by the result parsers and the session: open solver text files
(optionally gzip-compressed archives of them), allocate unique scratch paths the solver
can create, and remove scratch files without failing teardown.

Main Tasks
----------
    1. `open_text(path)`: UTF-8 text stream for plain or `.gz` files; raises
       `ResultFileError` when the file cannot be opened.
    2. `unique_path(suffix)`: a fresh, not-yet-existing path under the temp directory.
    3. `remove_quietly(path)`: best-effort delete that logs instead of raising.

Notes
-----
- The solver refuses to reuse some files and appends to others, so scratch paths are
  never created here, only named.
"""

from __future__ import absolute_import
import gzip
import io
import logging
import os
import tempfile
import uuid
from typing import IO, Optional

from ..errors import ResultFileError

logger = logging.getLogger(__name__)


def open_text(path):  # type: (str) -> IO[str]
    """
    Open a text file as UTF-8, transparently supporting gzip-compressed inputs.

    Raises
    ------
    ResultFileError
        If the file is missing or unreadable.
    """
    try:
        if str(path).lower().endswith(".gz"):
            return io.TextIOWrapper(gzip.open(path, "rb"), encoding="utf-8", errors="replace")
        return open(path, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        raise ResultFileError("Could not open result file: {}".format(e), {"path": str(path)})


def unique_path(suffix=".pol", prefix="foildrive_", directory=None):
    # type: (str, str, Optional[str]) -> str
    """
    Return a path that does not exist yet (the solver creates the file itself).

    XFOIL truncates long file names, so the random part is kept short.
    """
    base = directory or tempfile.gettempdir()
    while True:
        name = "{}{}{}".format(prefix, uuid.uuid4().hex[:12], suffix)
        path = os.path.join(base, name)
        if not os.path.exists(path):
            return path


def remove_quietly(path):
    # type: (Optional[str]) -> bool
    """Delete `path` if present; returns True if a file was removed."""
    if not path:
        return False
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("[formats] could not remove %s: %s", path, e)
        return False
