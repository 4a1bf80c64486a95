# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import pytest

from mambashell.cli.main import main
from mambashell.exception_handler import exception_handler

from ..helpers import DEFAULT_PROMPT, MAMBA_EXE, default_path

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Callable

    from pytest import CaptureFixture


class CliResult(NamedTuple):
    out: str
    err: str
    rc: int


@pytest.fixture
def shell_cli(
    home: Path, root_prefix: Path, capsys: CaptureFixture
) -> Callable[..., CliResult]:
    """Run ``mambashell shell <args>`` in-process against the test root prefix.

    The process environment and the user's ``.mambarc`` files are never consulted.
    """

    def _shell_cli(*args: str, environ=None, with_root=True) -> CliResult:
        environ = {
            "PATH": default_path(),
            "PS1": DEFAULT_PROMPT,
            "MAMBA_EXE": MAMBA_EXE,
            **(environ or {}),
        }
        if with_root:
            args = ("-r", str(root_prefix), *args)
        # set again by main() once the arguments parse
        exception_handler.json = exception_handler.debug = False
        rc = main("shell", *args, environ=environ, search_path=())
        out, err = capsys.readouterr()
        return CliResult(out, err, rc)

    return _shell_cli
