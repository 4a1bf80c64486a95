# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""CLI implementation for `mamba shell`.

Each subcommand has an ``execute_<name>`` function taking the parsed arguments and the
``Context`` of the invocation and returning the process exit code.  Shell code meant to
be evaluated by the calling shell is the only thing written to stdout.
"""

from __future__ import annotations

import sys
from logging import getLogger
from typing import TYPE_CHECKING

from ..auxlib.ish import dals
from ..common.compat import on_win
from ..common.path import expand
from .helpers import (
    add_parser_global,
    add_parser_positional_prefix,
    add_parser_prefix,
    add_parser_shell,
)

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

    from ..base.context import Context

log = getLogger(__name__)

#: Subcommand names; anything else on the command line selects ``launch``.
SUBCOMMANDS = (
    "init",
    "deinit",
    "reinit",
    "hook",
    "activate",
    "reactivate",
    "deactivate",
    "enable_long_path_support",
    "launch",
)

#: Options taking a value, needed to find the first positional argument.
OPTIONS_WITH_VALUES = (
    "-s",
    "--shell",
    "-r",
    "--root-prefix",
    "-p",
    "--prefix",
    "-n",
    "--name",
)


def configure_parser(sub_parsers: _SubParsersAction, **kwargs) -> None:
    epilog = dals(
        """
        The `activate`, `deactivate` and `reactivate` commands print shell code for the
        calling shell to evaluate; the `mamba` shell function installed by `init` does
        this for you.  To see the files and registry keys `init` would touch, use the
        '--dry-run' flag.  To see the exact changes, use the '--verbose' flag.
        """
    )

    p = _add_subcommand(
        sub_parsers,
        "init",
        "Add the mamba hook to the startup file of a shell.",
        epilog=epilog,
        **kwargs,
    )
    add_parser_shell(p)
    add_parser_positional_prefix(p, "Root prefix to initialize; defaults to the root.")
    add_parser_prefix(p)

    p = _add_subcommand(
        sub_parsers,
        "deinit",
        "Remove the mamba hook from the startup file of a shell.",
        epilog=epilog,
        **kwargs,
    )
    add_parser_shell(p)
    add_parser_positional_prefix(
        p, "Root prefix to deinitialize; defaults to the root."
    )
    add_parser_prefix(p)

    p = _add_subcommand(
        sub_parsers,
        "reinit",
        "Re-render the hook in every shell initialized for a root prefix.",
        **kwargs,
    )
    p.add_argument(
        "-p",
        "--prefix",
        action="store",
        metavar="PATH",
        help="Root prefix to reinitialize; defaults to the root.",
    )

    p = _add_subcommand(
        sub_parsers,
        "hook",
        "Print the code defining the `mamba` shell function.",
        **kwargs,
    )
    add_parser_shell(p)
    p.add_argument(
        "-p",
        "--prefix",
        action="store",
        metavar="PATH",
        help="Root prefix the hook refers to; defaults to the root.",
    )

    p = _add_subcommand(
        sub_parsers,
        "activate",
        "Print the code activating an environment.",
        **kwargs,
    )
    add_parser_shell(p)
    add_parser_positional_prefix(
        p, "Name or path of the environment to activate; defaults to base."
    )
    stack_group = p.add_mutually_exclusive_group()
    stack_group.add_argument(
        "--stack",
        action="store_true",
        dest="stack",
        default=None,
        help="Keep the current environment active underneath the new one.",
    )
    stack_group.add_argument(
        "--no-stack",
        action="store_false",
        dest="stack",
        default=None,
        help="Replace the current environment (default unless auto_stack says so).",
    )

    p = _add_subcommand(
        sub_parsers,
        "reactivate",
        "Print the code refreshing the active environment.",
        **kwargs,
    )
    add_parser_shell(p)

    p = _add_subcommand(
        sub_parsers,
        "deactivate",
        "Print the code deactivating the active environment.",
        **kwargs,
    )
    add_parser_shell(p)

    _add_subcommand(
        sub_parsers,
        "enable_long_path_support",
        "Allow paths longer than 260 characters on Windows.",
        **kwargs,
    )

    p = _add_subcommand(
        sub_parsers,
        "launch",
        "Start a shell with an environment activated "
        "(the default when no command is given).",
        **kwargs,
    )
    add_parser_shell(p)
    add_parser_positional_prefix(
        p, "Name or path of the environment to activate; defaults to base."
    )


def _add_subcommand(sub_parsers, name, summary, **kwargs) -> ArgumentParser:
    p = sub_parsers.add_parser(name, help=summary, description=summary, **kwargs)
    add_parser_global(p, suppress=True)
    p.set_defaults(func=f"{__name__}.execute_{name}")
    return p


def implicit_launch(args) -> bool:
    """True when ``args`` name no subcommand, i.e. a subshell should be launched.

    Examples:
        >>> implicit_launch(["-s", "bash", "myenv"])
        True
        >>> implicit_launch(["-v", "activate", "myenv"])
        False

    """
    expects_value = False
    for arg in args:
        if expects_value:
            expects_value = False
            continue
        if arg in ("-h", "--help", "-V", "--version"):
            return False
        if arg.startswith("-"):
            expects_value = arg in OPTIONS_WITH_VALUES
            continue
        return arg not in SUBCOMMANDS
    return True


def execute_init(args: Namespace, context: Context) -> int:
    from ..guess import consolidate_shell
    from ..initialize import shell_init

    shell = consolidate_shell(args.shell, context.environ)
    plan = shell_init(shell, _target_prefix(args, context), context)
    return _plan_exit_code(plan)


def execute_deinit(args: Namespace, context: Context) -> int:
    from ..guess import consolidate_shell
    from ..initialize import shell_deinit

    shell = consolidate_shell(args.shell, context.environ)
    plan = shell_deinit(shell, _target_prefix(args, context), context)
    return _plan_exit_code(plan)


def execute_reinit(args: Namespace, context: Context) -> int:
    from ..initialize import shell_reinit

    root_prefix = expand(args.prefix) if args.prefix else context.root_prefix
    return _plan_exit_code(shell_reinit(root_prefix, context))


def execute_hook(args: Namespace, context: Context) -> int:
    from ..guess import consolidate_shell
    from ..initialize import shell_hook

    shell = consolidate_shell(args.shell, context.environ)
    root_prefix = expand(args.prefix) if args.prefix else context.root_prefix
    print(shell_hook(shell, context, root_prefix=root_prefix), end="")
    return 0


def execute_activate(args: Namespace, context: Context) -> int:
    activator = _get_activator(args, context)
    stack = activator.should_stack() if args.stack is None else args.stack
    print(activator.activate(args.prefix_or_name, stack=stack), end="")
    return 0


def execute_reactivate(args: Namespace, context: Context) -> int:
    print(_get_activator(args, context).reactivate(), end="")
    return 0


def execute_deactivate(args: Namespace, context: Context) -> int:
    print(_get_activator(args, context).deactivate(), end="")
    return 0


def execute_enable_long_path_support(args: Namespace, context: Context) -> int:
    from ..initialize import Result, enable_long_path_support

    result = enable_long_path_support(context)
    if result == Result.NEEDS_SUDO:
        print("Operation failed.", file=sys.stderr)
        return 1
    return 0


def execute_launch(args: Namespace, context: Context) -> int:
    from ..launch import launch
    from ..shells import resolve

    prefix = context.locate_prefix(args.prefix_or_name)
    command = [shell_executable(resolve(args.shell).value)] if args.shell else None
    return launch(prefix, command, context=context)


def shell_executable(shell: str) -> str:
    """The program started for ``shell`` by ``launch``."""
    if shell == "posix":
        return "sh"
    elif shell == "powershell":
        return "powershell" if on_win else "pwsh"
    return shell


def _get_activator(args: Namespace, context: Context):
    from ..activate import get_activator
    from ..guess import consolidate_shell

    shell = consolidate_shell(args.shell, context.environ)
    return get_activator(shell, context)


def _target_prefix(args: Namespace, context: Context) -> str:
    from ..base.context import locate_prefix_by_name
    from ..exceptions import ArgumentError

    given = [value for value in (args.prefix_or_name, args.prefix, args.name) if value]
    if len(given) > 1:
        raise ArgumentError("Give only one of PREFIX, --prefix and --name.")
    if args.prefix:
        return expand(args.prefix)
    elif args.name:
        return locate_prefix_by_name(args.name, context.root_prefix)
    return context.locate_prefix(args.prefix_or_name)


def _plan_exit_code(plan) -> int:
    from ..initialize import Result

    if any(step.get("result") == Result.NEEDS_SUDO for step in plan):
        print("Operation failed.", file=sys.stderr)
        return 1
    return 0
