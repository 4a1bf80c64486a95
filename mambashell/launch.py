# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Run a command, by default an interactive shell, inside an activated environment."""

from __future__ import annotations

import os
import shlex
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum
from logging import getLogger
from os.path import abspath
from subprocess import DEVNULL, PIPE, Popen
from typing import TYPE_CHECKING

from . import ACTIVE_SUBPROCESSES, mambashell_signal_handler
from .activate import get_activator
from .base.context import Context
from .common.compat import encode_environment, isiterable, on_mac, on_win
from .common.signals import signal_handler
from .exceptions import SpawnFailureError
from .gateways.logging import TRACE
from .shells import ShellDialect

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

log = getLogger(__name__)
Response = namedtuple("Response", ("stdout", "stderr", "rc"))


class StreamMode(Enum):
    INHERIT = "inherit"
    CAPTURE = "capture"
    NULL = "null"

    def popen_arg(self):
        if self is StreamMode.CAPTURE:
            return PIPE
        elif self is StreamMode.NULL:
            return DEVNULL
        return None


@dataclass(frozen=True)
class StreamPolicy:
    """What the child does with each of its standard streams."""

    stdin: StreamMode = StreamMode.INHERIT
    stdout: StreamMode = StreamMode.INHERIT
    stderr: StreamMode = StreamMode.INHERIT

    @classmethod
    def inherit(cls) -> StreamPolicy:
        return cls()

    @classmethod
    def capture(cls) -> StreamPolicy:
        return cls(
            stdin=StreamMode.NULL,
            stdout=StreamMode.CAPTURE,
            stderr=StreamMode.CAPTURE,
        )


def get_default_shell(environ: Mapping[str, str] | None = None) -> str:
    """``SHELL`` if set, else the platform's usual interactive shell.

    Examples:
        >>> get_default_shell({"SHELL": "/bin/fish"})
        '/bin/fish'

    """
    environ = os.environ if environ is None else environ
    shell = environ.get("SHELL")
    if shell:
        return shell
    if on_win:
        return "cmd.exe"
    elif on_mac:
        return "zsh"
    return "bash"


def activated_environ(
    prefix: str, context: Context, environ: Mapping[str, str] | None = None
) -> dict[str, str]:
    """The environment a shell would have after ``mamba activate <prefix>``."""
    dialect = ShellDialect.CMD_EXE if on_win else ShellDialect.POSIX
    activator = get_activator(dialect, context, environ)
    cmds_dict = activator.build_activate(prefix, stack=activator.should_stack())
    return activator.build_env(cmds_dict)


def run_in_environment(
    prefix: str,
    command: str | Sequence[str] | None,
    cwd: str | None = None,
    stream_policy: StreamPolicy | None = None,
    context: Context | None = None,
    environ: Mapping[str, str] | None = None,
) -> Response:
    """Run ``command`` with ``prefix`` activated and wait for it.

    Captured streams are returned decoded in the ``Response``; inherited or discarded
    ones come back as ``None``.  Interrupt signals received while waiting are passed on
    to the child.
    """
    if context is None:
        context = Context.from_sources(environ=environ)
    if environ is None:
        environ = context.environ
    stream_policy = stream_policy or StreamPolicy.inherit()

    if not command:
        command = [get_default_shell(environ)]
    elif not isiterable(command):
        command = shlex.split(command, posix=not on_win)
    command = list(command)
    command_str = " ".join(command)
    cwd = abspath(cwd or os.curdir)

    env = encode_environment(activated_environ(prefix, context, environ))
    log.debug("executing>> %s", command_str)
    log.log(TRACE, "environment for %s: %s", command_str, env)

    try:
        process = Popen(
            command,
            cwd=cwd,
            env=env,
            stdin=stream_policy.stdin.popen_arg(),
            stdout=stream_policy.stdout.popen_arg(),
            stderr=stream_policy.stderr.popen_arg(),
        )
    except OSError as e:
        raise SpawnFailureError(command_str, str(e), caused_by=e) from e

    ACTIVE_SUBPROCESSES.add(process)
    try:
        with signal_handler(mambashell_signal_handler):
            stdout, stderr = process.communicate()
    finally:
        ACTIVE_SUBPROCESSES.discard(process)

    if hasattr(stdout, "decode"):
        stdout = stdout.decode("utf-8", errors="replace")
    if hasattr(stderr, "decode"):
        stderr = stderr.decode("utf-8", errors="replace")
    log.debug("%s exited with %d", command_str, process.returncode)
    return Response(stdout, stderr, process.returncode)


def launch(
    prefix: str,
    command: str | Sequence[str] | None = None,
    cwd: str | None = None,
    stream_policy: StreamPolicy | None = None,
    context: Context | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    return run_in_environment(prefix, command, cwd, stream_policy, context, environ).rc
