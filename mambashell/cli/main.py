# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Entry point for all `mamba shell` subcommands."""

import sys


def init_loggers(context):
    from ..gateways.logging import initialize_logging, set_verbosity

    initialize_logging()

    # diagnostics always go to stderr, so stdout stays evaluable (or JSON) either way
    set_verbosity(context.verbosity)


def generate_parser(*args, **kwargs):
    """
    Some code paths import this function directly from this module instead
    of from mamba_argparse. We add the forwarder for convenience.
    """
    from .mamba_argparse import generate_parser

    return generate_parser(*args, **kwargs)


def main_shell(*args, **kwargs):
    """Parse ``args``, build the invocation's context and run the subcommand."""
    import warnings

    from ..base.context import Context
    from ..exception_handler import exception_handler
    from ..exceptions import PrefixResolutionWarning
    from .main_shell import implicit_launch
    from .mamba_argparse import do_call

    if implicit_launch(args):
        args = ("launch", *args)

    parser = generate_parser()
    args = parser.parse_args(args)
    exception_handler.json = bool(args.json)
    exception_handler.debug = (args.verbosity or 0) >= 3

    context = Context.from_sources(argparse_args=args, **kwargs)
    init_loggers(context)

    with warnings.catch_warnings():
        # already reported through the log; stdout must stay evaluable
        warnings.simplefilter("ignore", PrefixResolutionWarning)
        exit_code = do_call(args, parser, context)
    if isinstance(exit_code, int):
        return exit_code
    elif hasattr(exit_code, "rc"):
        return exit_code.rc


def main(*args, **kwargs):
    # mambashell.common.compat contains only stdlib imports
    from ..common.compat import ensure_text_type
    from ..exception_handler import mamba_exception_handler

    # cleanup argv
    args = args or sys.argv[1:]  # drop executable/script
    args = tuple(ensure_text_type(s) for s in args)

    # the hook functions call `$MAMBA_EXE shell <command>`
    if args and args[0] == "shell":
        args = args[1:]

    return mamba_exception_handler(main_shell, *args, **kwargs)

