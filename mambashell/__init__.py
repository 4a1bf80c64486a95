# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Shell integration for prefix-based environments: init, hook, activate and launch."""

from __future__ import annotations

import sys
from os.path import abspath, dirname
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from subprocess import Popen
    from typing import Any

__version__ = "1.0.0"

__all__ = (
    "__name__",
    "__version__",
    "__author__",
    "__license__",
    "__summary__",
    "MAMBASHELL_PACKAGE_ROOT",
    "MambaShellError",
    "MambaShellMultiError",
    "ACTIVE_SUBPROCESSES",
    "__copyright__",
)

__name__ = "mambashell"
__author__ = "The mambashell developers"
__license__ = "BSD-3-Clause"
__copyright__ = "Copyright (c) 2012, Anaconda, Inc."
__summary__ = __doc__

#: The mambashell package directory; hook sources live in its ``shell`` subdirectory.
MAMBASHELL_PACKAGE_ROOT = abspath(dirname(__file__))


class MambaShellError(Exception):
    return_code: int = 1

    def __init__(self, message: str | None, caused_by: Any = None, **kwargs):
        self.message = message or ""
        self._kwargs = kwargs
        self._caused_by = caused_by
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}: {self}"

    def __str__(self) -> str:
        try:
            return str(self.message) % self._kwargs
        except Exception:
            debug_message = "\n".join(
                (
                    "class: " + self.__class__.__name__,
                    "message:",
                    self.message,
                    "kwargs:",
                    str(self._kwargs),
                    "",
                )
            )
            print(debug_message, file=sys.stderr)
            raise

    def dump_map(self) -> dict[str, Any]:
        result = {k: v for k, v in vars(self).items() if not k.startswith("_")}
        result.update(
            exception_type=str(type(self)),
            exception_name=self.__class__.__name__,
            message=str(self),
            error=repr(self),
            caused_by=repr(self._caused_by),
            **self._kwargs,
        )
        return result


class MambaShellMultiError(MambaShellError):
    def __init__(self, errors: Iterable[MambaShellError]):
        self.errors = errors
        super().__init__(None)

    def __repr__(self) -> str:
        return "\n".join(e.__repr__() for e in self.errors)

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self.errors) + "\n"

    def dump_map(self) -> dict[str, str | tuple[str, ...]]:
        return dict(
            exception_type=str(type(self)),
            exception_name=self.__class__.__name__,
            errors=tuple(error.dump_map() for error in self.errors),
            error="Multiple Errors Encountered.",
        )


#: Child processes currently owned by this process; signals are forwarded to them.
ACTIVE_SUBPROCESSES: set[Popen] = set()


def mambashell_signal_handler(signum: int, frame: Any):
    # forward to the children and let them decide; the parent keeps waiting on them
    for p in ACTIVE_SUBPROCESSES:
        if p.poll() is None:
            p.send_signal(signum)
