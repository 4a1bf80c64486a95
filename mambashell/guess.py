# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Best-effort detection of the shell mambashell was called from."""

from __future__ import annotations

import ntpath
import os
from logging import getLogger
from os.path import basename
from typing import TYPE_CHECKING

import psutil

from .common.compat import on_win
from .exceptions import NoShellSpecifiedError
from .shells import ShellDialect

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

# process or executable name -> dialect identifier
KNOWN_SHELL_NAMES = {
    "bash": ShellDialect.BASH.value,
    "zsh": ShellDialect.ZSH.value,
    "xonsh": ShellDialect.XONSH.value,
    "fish": ShellDialect.FISH.value,
    "tcsh": ShellDialect.TCSH.value,
    "csh": ShellDialect.TCSH.value,
    "dash": ShellDialect.DASH.value,
    "pwsh": ShellDialect.POWERSHELL.value,
    "powershell": ShellDialect.POWERSHELL.value,
    "cmd": ShellDialect.CMD_EXE.value,
    "cmd.exe": ShellDialect.CMD_EXE.value,
}


def match_shell_name(name: str | None) -> str | None:
    """Map a process or executable name to a dialect identifier.

    Examples:
        >>> match_shell_name("/usr/bin/zsh")
        'zsh'
        >>> match_shell_name("-bash")
        'bash'
        >>> match_shell_name("pwsh.exe")
        'powershell'

    """
    if not name:
        return None
    name = basename(name.replace("\\", "/")).lstrip("-").lower()
    if name.endswith(".exe") and name != "cmd.exe":
        name = name[: -len(".exe")]
    return KNOWN_SHELL_NAMES.get(name)


def _parent_process_shell() -> str | None:
    try:
        parent = psutil.Process(os.getpid()).parent()
        if parent is None:
            return None
        name = parent.name()
        if name.lower().startswith("python"):
            # xonsh runs as a python interpreter; look at what it is running
            cmdline = parent.cmdline()
            if any(basename(arg).startswith("xonsh") for arg in cmdline[1:]):
                return "xonsh"
        return name
    except (psutil.Error, OSError) as e:
        log.debug("could not inspect the parent process: %r", e)
        return None


def guess_shell(
    environ: Mapping[str, str] | None = None, parent_name: str | None = None
) -> str | None:
    """Guess the dialect of the calling shell, or return None.

    The parent process is looked at first, then the ``SHELL`` variable.  On Windows,
    ``PSModulePath`` pointing into the user's documents means PowerShell, and cmd.exe
    is assumed otherwise.  This function never raises.
    """
    environ = os.environ if environ is None else environ
    if parent_name is None:
        parent_name = _parent_process_shell()

    guessed = match_shell_name(parent_name)
    if guessed:
        log.debug("guessed shell '%s' from parent process '%s'", guessed, parent_name)
        return guessed

    guessed = match_shell_name(environ.get("SHELL"))
    if guessed:
        log.debug("guessed shell '%s' from SHELL", guessed)
        return guessed

    if on_win:
        ps_module_path = environ.get("PSModulePath", "")
        user_profile = environ.get("USERPROFILE", "")
        documents = ntpath.join(user_profile, "Documents") if user_profile else None
        if documents and documents.lower() in ps_module_path.lower():
            return ShellDialect.POWERSHELL.value
        return ShellDialect.CMD_EXE.value

    return None


def consolidate_shell(
    shell_type: str | None, environ: Mapping[str, str] | None = None
) -> str:
    """The explicitly requested shell, else the guessed one."""
    if shell_type:
        return shell_type

    log.debug("No shell type provided")
    guessed = guess_shell(environ)
    if guessed:
        log.debug("Guessed shell: '%s'", guessed)
        return guessed
    raise NoShellSpecifiedError()
