# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Common path utilities."""

from __future__ import annotations

import os
import re
from os.path import abspath, expanduser, expandvars, normcase
from typing import TYPE_CHECKING

from .compat import on_win

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Union

    PathType = Union[str, os.PathLike[str]]
    PathsType = Iterable[PathType]

_DRIVE_RE = re.compile(r"^([a-zA-Z]):[/\\]?")


def expand(path):
    return abspath(expanduser(expandvars(path)))


def paths_equal(path1, path2):
    """
    Examples:
        >>> paths_equal('/a/b/c', '/a/b/c/d/..')
        True

    """
    if on_win:
        return normcase(abspath(path1)) == normcase(abspath(path2))
    else:
        return abspath(path1) == abspath(path2)


def path_identity(paths: PathType | PathsType | None) -> str | tuple[str, ...] | None:
    if paths is None:
        return None
    elif isinstance(paths, (str, os.PathLike)):
        return os.path.normpath(paths)
    else:
        return tuple(os.path.normpath(path) for path in paths)


def _win_to_unix(path: str) -> str:
    path = path.replace("\\", "/")
    return _DRIVE_RE.sub(lambda match: f"/{match.group(1).lower()}/", path)


def win_path_to_unix(
    paths: PathType | PathsType | None,
) -> str | tuple[str, ...] | None:
    """Convert Windows paths to MSYS2-style Unix paths.

    Examples:
        >>> win_path_to_unix("C:\\\\Users\\\\me\\\\env")
        '/c/Users/me/env'

    """
    if paths is None:
        return None
    elif isinstance(paths, (str, os.PathLike)):
        return _win_to_unix(os.fspath(paths))
    else:
        return tuple(_win_to_unix(os.fspath(path)) for path in paths)


def backslash_to_forwardslash(
    paths: str | Iterable[str] | None,
) -> str | tuple[str, ...] | None:
    if paths is None:
        return None
    elif isinstance(paths, str):
        return paths.replace("\\", "/")
    else:
        return tuple(path.replace("\\", "/") for path in paths)


#: Path conversion used by the POSIX-like shells on this platform.
native_path_to_unix = win_path_to_unix if on_win else path_identity
