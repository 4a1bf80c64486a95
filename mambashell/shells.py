# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""The closed set of shell dialects and where each one keeps its startup file."""

from __future__ import annotations

from enum import Enum
from logging import getLogger
from os.path import join
from typing import TYPE_CHECKING

from .base.constants import CMD_EXE_AUTORUN_KEY
from .common.compat import on_mac, on_win
from .exceptions import UnsupportedShellError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .activate import _Activator

log = getLogger(__name__)


class ShellDialect(Enum):
    BASH = "bash"
    POSIX = "posix"
    POWERSHELL = "powershell"
    CMD_EXE = "cmd.exe"
    XONSH = "xonsh"
    ZSH = "zsh"
    FISH = "fish"
    TCSH = "tcsh"
    DASH = "dash"

    def __str__(self):
        return self.value

    @classmethod
    def resolve(cls, identifier: str | ShellDialect) -> ShellDialect:
        if isinstance(identifier, cls):
            return identifier
        try:
            return cls(identifier)
        except ValueError:
            raise UnsupportedShellError(identifier)

    @property
    def activator_cls(self) -> type[_Activator]:
        from .activate import activator_map

        return activator_map[self]

    @property
    def is_posix_family(self) -> bool:
        return self in (
            ShellDialect.BASH,
            ShellDialect.ZSH,
            ShellDialect.POSIX,
            ShellDialect.DASH,
        )

    @property
    def uses_registry(self) -> bool:
        return self is ShellDialect.CMD_EXE

    def rc_paths(
        self, home: str, environ: Mapping[str, str] | None = None
    ) -> tuple[str, ...]:
        """The startup files this dialect reads, for a user whose home is ``home``.

        cmd.exe has no startup file; its hook lives in the registry instead.
        """
        environ = environ or {}
        if self is ShellDialect.BASH:
            return (join(home, ".bash_profile" if on_mac else ".bashrc"),)
        elif self is ShellDialect.ZSH:
            zdotdir = environ.get("ZDOTDIR")
            return (join(zdotdir or home, ".zshrc"),)
        elif self in (ShellDialect.POSIX, ShellDialect.DASH):
            return (join(home, ".profile"),)
        elif self is ShellDialect.FISH:
            return (join(home, ".config", "fish", "config.fish"),)
        elif self is ShellDialect.TCSH:
            return (join(home, ".tcshrc"),)
        elif self is ShellDialect.XONSH:
            return (join(home, ".xonshrc"),)
        elif self is ShellDialect.POWERSHELL:
            if on_win:
                return (join(home, "Documents", "PowerShell", "profile.ps1"),)
            return (join(home, ".config", "powershell", "profile.ps1"),)
        elif self is ShellDialect.CMD_EXE:
            return ()
        raise NotImplementedError(self)  # pragma: no cover

    def rc_targets(
        self, home: str, environ: Mapping[str, str] | None = None
    ) -> tuple[str, ...]:
        """What ``init`` modifies: the rc files, or the registry key for cmd.exe."""
        if self.uses_registry:
            return (CMD_EXE_AUTORUN_KEY,)
        return self.rc_paths(home, environ)


def resolve(identifier: str | ShellDialect) -> ShellDialect:
    """Return the dialect named by ``identifier``, or raise ``UnsupportedShellError``.

    Examples:
        >>> resolve("cmd.exe")
        <ShellDialect.CMD_EXE: 'cmd.exe'>

    """
    return ShellDialect.resolve(identifier)

