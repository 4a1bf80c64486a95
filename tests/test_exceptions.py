# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import json

import pytest

from mambashell import MambaShellError
from mambashell.common.compat import on_win
from mambashell.exception_handler import ExceptionHandler
from mambashell.exceptions import (
    ArgumentError,
    NoShellSpecifiedError,
    PrefixResolutionError,
    RcFileUnwritableError,
    SpawnFailureError,
    UnsupportedShellError,
)
from mambashell.gateways.logging import initialize_logging


@pytest.fixture
def handler():
    initialize_logging()
    return ExceptionHandler()


def _raise(exc):
    raise exc


def test_messages():
    error = UnsupportedShellError("ksh")
    assert str(error).startswith("'ksh' is not a supported shell.\n")
    supported = "bash, posix, powershell, cmd.exe, xonsh, zsh, fish, tcsh, dash"
    assert supported in str(error)
    assert repr(error).startswith("UnsupportedShellError: 'ksh'")

    assert "Please provide a shell type." in str(NoShellSpecifiedError())
    assert str(SpawnFailureError("fish -l", "No such file")) == (
        "Unable to launch 'fish -l': No such file"
    )
    assert "'a b'" in str(PrefixResolutionError("a b", "bad name"))


def test_return_codes():
    assert UnsupportedShellError("ksh").return_code == 1
    assert NoShellSpecifiedError().return_code == 1
    assert ArgumentError("bad").return_code == 2
    assert SpawnFailureError("x", "y").return_code == 127


def test_rc_file_unwritable_error():
    error = RcFileUnwritableError("/home/me/.bashrc", "Permission denied", errno=13)
    assert isinstance(error, OSError)
    assert error.errno == 13
    assert error.path == "/home/me/.bashrc"
    message = str(error)
    assert "path: /home/me/.bashrc" in message
    assert "reason: Permission denied" in message
    if not on_win:
        assert "uid: " in message


def test_dump_map():
    cause = OSError(2, "missing")
    dump = SpawnFailureError("fish", "missing", caused_by=cause).dump_map()
    assert dump["exception_name"] == "SpawnFailureError"
    assert dump["command"] == "fish"
    assert dump["message"] == "Unable to launch 'fish': missing"
    assert "missing" in dump["caused_by"]
    json.dumps(dump, default=str)


def test_handler_application_error(handler, capsys):
    assert handler(_raise, UnsupportedShellError("ksh")) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert "\nUnsupportedShellError: 'ksh' is not a supported shell." in err


def test_handler_json(handler, capsys):
    handler.json = True
    assert handler(_raise, ArgumentError("bad things")) == 2
    out, err = capsys.readouterr()
    assert json.loads(out)["message"] == "bad things"
    assert err == ""


def test_handler_unexpected_error(handler, capsys):
    assert handler(_raise, ZeroDivisionError("boom")) == 1
    _, err = capsys.readouterr()
    assert "ERROR REPORT" in err
    assert "ZeroDivisionError: boom" in err


def test_handler_system_exit_and_interrupt(handler, capsys):
    assert handler(_raise, SystemExit(2)) == 2
    assert handler(_raise, KeyboardInterrupt()) == 1
    assert "KeyboardInterrupt" in capsys.readouterr().err


def test_handler_passes_through_return_value(handler):
    assert handler(lambda a, b=0: a + b, 1, b=2) == 3
    assert MambaShellError("x").return_code == 1
