# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""
Collection of helper functions to standardize reused CLI arguments.
"""

from __future__ import annotations

from argparse import SUPPRESS, _HelpAction
from typing import TYPE_CHECKING

from ..base.constants import COMPATIBLE_SHELLS
from .actions import NullCountAction

if TYPE_CHECKING:
    from argparse import ArgumentParser, _ArgumentGroup, _MutuallyExclusiveGroup


def add_parser_help(p: ArgumentParser) -> None:
    """
    So we can use consistent capitalization and periods in the help. You must
    use the add_help=False argument to ArgumentParser or add_parser to use
    this. Add this first to be consistent with the default argparse output.

    """
    p.add_argument(
        "-h",
        "--help",
        action=_HelpAction,
        help="Show this help message and exit.",
    )


def add_parser_global(p: ArgumentParser, suppress: bool = False) -> _ArgumentGroup:
    """Options accepted both before and after the subcommand.

    On subcommand parsers the defaults are suppressed, otherwise an option given
    before the subcommand would be reset by the subcommand parser's default.
    """
    default = SUPPRESS if suppress else None
    global_options = p.add_argument_group("Global Options")
    global_options.add_argument(
        "-r",
        "--root-prefix",
        action="store",
        dest="root_prefix",
        metavar="PATH",
        default=default,
        help="Path to the root prefix of the installation.",
    )
    add_parser_verbose(global_options, default)
    global_options.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        default=default,
        help="Only display what would have been done.",
    )
    global_options.add_argument(
        "--json",
        action="store_true",
        default=default,
        help="Report errors as json.",
    )
    return global_options


def add_parser_verbose(
    parser: ArgumentParser | _ArgumentGroup, default: str | None = None
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action=NullCountAction,
        help=(
            "Can be used multiple times. Once for detailed output, twice for INFO "
            "logging, thrice for DEBUG logging, four times for TRACE logging."
        ),
        dest="verbosity",
        default=default,
    )


def add_parser_shell(p: ArgumentParser) -> None:
    p.add_argument(
        "-s",
        "--shell",
        metavar="SHELL",
        default=None,
        help=(
            "The shell to target; guessed from the calling process when omitted. "
            f"Available shells: {', '.join(COMPATIBLE_SHELLS)}"
        ),
    )


def add_parser_prefix(p: ArgumentParser) -> _MutuallyExclusiveGroup:
    target_environment_group = p.add_argument_group("Target Environment Specification")
    npgroup = target_environment_group.add_mutually_exclusive_group()
    npgroup.add_argument(
        "-n",
        "--name",
        action="store",
        help="Name of environment.",
        metavar="ENVIRONMENT",
    )
    npgroup.add_argument(
        "-p",
        "--prefix",
        action="store",
        help="Full path to environment location (i.e. prefix).",
        metavar="PATH",
    )
    return npgroup


def add_parser_positional_prefix(p: ArgumentParser, help: str) -> None:
    p.add_argument(
        "prefix_or_name",
        nargs="?",
        default=None,
        metavar="PREFIX",
        help=help,
    )
