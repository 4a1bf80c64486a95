# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Mambashell exceptions."""

from __future__ import annotations

import json
import os
import sys
from logging import getLogger
from traceback import format_exception, format_exception_only

from . import MambaShellError
from .auxlib.ish import dals
from .base.constants import COMPATIBLE_SHELLS
from .common.compat import on_win

log = getLogger(__name__)


class ArgumentError(MambaShellError):
    return_code = 2

    def __init__(self, message, **kwargs):
        super().__init__(message, **kwargs)


class UnsupportedShellError(MambaShellError):
    def __init__(self, shell, **kwargs):
        message = dals(
            """
            '%(shell)s' is not a supported shell.
            Supported shells: %(supported)s
            """
        )
        super().__init__(
            message, shell=shell, supported=", ".join(COMPATIBLE_SHELLS), **kwargs
        )


class NoShellSpecifiedError(MambaShellError):
    def __init__(self, **kwargs):
        message = dals(
            """
            Please provide a shell type.
            Run with --help for more information.
            """
        )
        super().__init__(message, **kwargs)


class RcFileUnwritableError(MambaShellError, OSError):
    def __init__(self, path, reason, errno=None, **kwargs):
        kwargs.update(
            {
                "path": path,
                "reason": reason,
            }
        )
        if on_win:
            message = dals(
                """
            Unable to modify the shell startup file.
              path: %(path)s
              reason: %(reason)s
            """
            )
        else:
            message = dals(
                """
            Unable to modify the shell startup file.
              path: %(path)s
              reason: %(reason)s
              uid: %(uid)s
              gid: %(gid)s
            """
            )
            kwargs.update(
                {
                    "uid": os.geteuid(),
                    "gid": os.getegid(),
                }
            )
        super().__init__(message, **kwargs)
        self.errno = errno
        self.path = path


class PrefixResolutionError(MambaShellError):
    def __init__(self, env_name_or_prefix, reason, **kwargs):
        message = "Could not resolve environment '%(name)s': %(reason)s"
        super().__init__(message, name=env_name_or_prefix, reason=reason, **kwargs)


class PrefixResolutionWarning(UserWarning):
    """The resolved prefix does not exist; activation code is generated anyway."""


class SpawnFailureError(MambaShellError):
    return_code = 127

    def __init__(self, command, reason, **kwargs):
        message = "Unable to launch '%(command)s': %(reason)s"
        super().__init__(message, command=command, reason=reason, **kwargs)


def print_mamba_exception(exc_val, exc_tb=None, json_output=False, debug=False):
    rc = getattr(exc_val, "return_code", None)
    if debug:
        print(_format_exc(exc_val, exc_tb), file=sys.stderr)
    elif json_output:
        logger = getLogger("mambashell.stdout" if rc else "mambashell.stderr")
        exc_json = json.dumps(exc_val.dump_map(), indent=2, sort_keys=True, default=str)
        logger.info("%s\n" % exc_json)
    else:
        stderrlog = getLogger("mambashell.stderr")
        stderrlog.error("\n%r\n", exc_val)


def _format_exc(exc_val=None, exc_tb=None):
    if exc_val is None:
        exc_type, exc_val, exc_tb = sys.exc_info()
    else:
        exc_type = type(exc_val)
    if exc_tb:
        formatted_exception = format_exception(exc_type, exc_val, exc_tb)
    else:
        formatted_exception = format_exception_only(exc_type, exc_val)
    return "".join(formatted_exception)
