# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""`mamba shell` command line interface parsers."""

from __future__ import annotations

from argparse import ArgumentParser as ArgumentParserBase
from argparse import RawDescriptionHelpFormatter
from importlib import import_module
from logging import getLogger
from typing import TYPE_CHECKING

from .. import __version__
from .helpers import add_parser_global, add_parser_help
from .main_shell import configure_parser as configure_parser_shell

if TYPE_CHECKING:
    from argparse import Namespace

    from ..base.context import Context

log = getLogger(__name__)


def generate_parser(**kwargs) -> ArgumentParser:
    parser = ArgumentParser(
        prog="mamba shell",
        description="Set up shells to activate and deactivate environments.",
        **kwargs,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"mambashell {__version__}",
        help="Show the mambashell version number and exit.",
    )
    add_parser_global(parser)

    sub_parsers = parser.add_subparsers(
        metavar="COMMAND",
        title="commands",
        description="The following built-in commands are available.",
        dest="cmd",
    )
    configure_parser_shell(sub_parsers)
    return parser


def do_call(args: Namespace, parser: ArgumentParser, context: Context):
    """Import the module named by ``args.func`` and call the function it names."""
    module_name, func_name = args.func.rsplit(".", 1)
    module = import_module(module_name)
    log.debug("dispatching to %s", args.func)
    return getattr(module, func_name)(args, context)


class ArgumentParser(ArgumentParserBase):
    def __init__(self, *args, add_help=True, **kwargs):
        kwargs.setdefault("formatter_class", RawDescriptionHelpFormatter)
        super().__init__(*args, add_help=False, **kwargs)

        if add_help:
            add_parser_help(self)
