# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Disk utility functions for modifying existing files or creating new ones."""

from __future__ import annotations

import os
import stat
import tempfile
from logging import getLogger
from os.path import basename, dirname, isdir, lexists, realpath

from ..logging import TRACE
from . import mkdir_p

log = getLogger(__name__)

# bytes that are not utf-8 survive a read and write unchanged
ENCODING_ERRORS = "surrogateescape"


def write_file_atomic(path: str, content: str, mkdir: bool = False) -> None:
    """Replace the contents of ``path`` with ``content``.

    The new content is written to a temporary file next to ``path`` and then moved over
    it with ``os.replace``, so readers see either the old or the new file, never a
    partial one.  The permission bits of an existing file are carried over.  Any
    ``OSError`` propagates after the temporary file has been removed; the original
    file is left untouched.  A symlinked ``path`` is written through to its target.
    """
    path = realpath(path)
    dirpath = dirname(path) or os.curdir
    if mkdir and not isdir(dirpath):
        mkdir_p(dirpath)

    mode = stat.S_IMODE(os.stat(path).st_mode) if lexists(path) else None

    fd, tmp_path = tempfile.mkstemp(
        prefix=f".{basename(path)}.", suffix=".tmp", dir=dirpath
    )
    log.log(TRACE, "writing %s through %s", path, tmp_path)
    try:
        # newline="" so that line endings are written exactly as given
        with os.fdopen(
            fd, "w", encoding="utf-8", errors=ENCODING_ERRORS, newline=""
        ) as fh:
            fh.write(content)
        if mode is not None:
            os.chmod(tmp_path, mode)
        else:
            umask = os.umask(0)
            os.umask(umask)
            os.chmod(tmp_path, 0o666 & ~umask)
        os.replace(tmp_path, path)
    except OSError:
        if lexists(tmp_path):
            os.unlink(tmp_path)
        raise


def read_file(path: str) -> str:
    """Return the text of ``path``, or an empty string if it does not exist."""
    if not lexists(path):
        return ""
    with open(path, encoding="utf-8", errors=ENCODING_ERRORS, newline="") as fh:
        return fh.read()
