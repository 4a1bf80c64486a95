# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Error handling and error reporting."""

import sys
from logging import getLogger

log = getLogger(__name__)


class ExceptionHandler:
    # toggled by the cli once arguments are parsed
    json = False
    debug = False

    def __call__(self, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BaseException:
            _, exc_val, exc_tb = sys.exc_info()
            return self.handle_exception(exc_val, exc_tb)

    def handle_exception(self, exc_val, exc_tb):
        from . import MambaShellError

        if isinstance(exc_val, MambaShellError):
            return self.handle_application_exception(exc_val, exc_tb)
        if isinstance(exc_val, KeyboardInterrupt):
            self._print_mamba_exception(MambaShellError("KeyboardInterrupt"), None)
            return 1
        if isinstance(exc_val, SystemExit):
            return exc_val.code
        return self.handle_unexpected_exception(exc_val, exc_tb)

    def handle_application_exception(self, exc_val, exc_tb):
        self._print_mamba_exception(exc_val, exc_tb)
        return exc_val.return_code

    def _print_mamba_exception(self, exc_val, exc_tb):
        from .exceptions import print_mamba_exception

        print_mamba_exception(exc_val, exc_tb, json_output=self.json, debug=self.debug)

    def handle_unexpected_exception(self, exc_val, exc_tb):
        from .exceptions import _format_exc

        message = "\n".join(
            (
                "",
                "# >>>>>>>>>>>>>>>>>>>>>> ERROR REPORT <<<<<<<<<<<<<<<<<<<<<<",
                "",
                "    Traceback (most recent call last):",
                *(
                    "    " + line
                    for line in _format_exc(exc_val, exc_tb).splitlines()[1:]
                ),
                "",
                "    `$ %s`" % " ".join(sys.argv),
                "",
            )
        )
        getLogger("mambashell.stderr").error(message)
        rc = getattr(exc_val, "return_code", None)
        return rc if rc is not None else 1


exception_handler = ExceptionHandler()


def mamba_exception_handler(func, *args, **kwargs):
    return_value = exception_handler(func, *args, **kwargs)
    return return_value
