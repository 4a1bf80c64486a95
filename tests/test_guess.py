# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

from typing import TYPE_CHECKING

import psutil
import pytest

from mambashell import guess
from mambashell.exceptions import NoShellSpecifiedError
from mambashell.guess import consolidate_shell, guess_shell, match_shell_name

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.parametrize(
    "name,expected",
    [
        ("bash", "bash"),
        ("/bin/bash", "bash"),
        ("-zsh", "zsh"),
        ("/usr/local/bin/fish", "fish"),
        ("tcsh", "tcsh"),
        ("csh", "tcsh"),
        ("dash", "dash"),
        ("xonsh", "xonsh"),
        ("pwsh", "powershell"),
        ("pwsh.exe", "powershell"),
        ("powershell.exe", "powershell"),
        ("C:\\Windows\\System32\\cmd.exe", "cmd.exe"),
        ("CMD.EXE", "cmd.exe"),
        ("python3", None),
        ("sh", None),
        ("", None),
        (None, None),
    ],
)
def test_match_shell_name(name, expected):
    assert match_shell_name(name) == expected


def test_guess_from_parent_process():
    assert guess_shell({"SHELL": "/bin/bash"}, parent_name="zsh") == "zsh"


def test_guess_from_shell_variable():
    assert guess_shell({"SHELL": "/usr/bin/fish"}, parent_name="sshd") == "fish"


@pytest.mark.skipif(guess.on_win, reason="non-Windows fallback")
def test_guess_nothing_matches():
    assert guess_shell({}, parent_name="init") is None
    assert guess_shell({"SHELL": "/bin/sh"}, parent_name="sshd") is None


def test_guess_windows(mocker: MockerFixture):
    mocker.patch.object(guess, "on_win", True)
    environ = {
        "USERPROFILE": "C:\\Users\\me",
        "PSModulePath": "C:\\Users\\me\\Documents\\PowerShell\\Modules;C:\\Windows",
    }
    assert guess_shell(environ, parent_name="explorer.exe") == "powershell"
    assert guess_shell({"USERPROFILE": "C:\\Users\\me"}, parent_name="x") == "cmd.exe"


def test_guess_probes_parent_process(mocker: MockerFixture):
    parent = mocker.MagicMock()
    parent.name.return_value = "bash"
    mocker.patch.object(psutil.Process, "parent", return_value=parent)
    assert guess_shell({}) == "bash"


def test_guess_xonsh_parent(mocker: MockerFixture):
    parent = mocker.MagicMock()
    parent.name.return_value = "python3.11"
    parent.cmdline.return_value = ["/usr/bin/python3.11", "/usr/bin/xonsh"]
    mocker.patch.object(psutil.Process, "parent", return_value=parent)
    assert guess_shell({}) == "xonsh"


def test_guess_never_raises(mocker: MockerFixture):
    mocker.patch.object(psutil.Process, "parent", side_effect=psutil.AccessDenied())
    assert guess_shell({"SHELL": "/bin/zsh"}) == "zsh"


def test_consolidate_shell(mocker: MockerFixture):
    assert consolidate_shell("fish", {"SHELL": "/bin/bash"}) == "fish"

    mocker.patch.object(guess, "guess_shell", return_value="tcsh")
    assert consolidate_shell(None) == "tcsh"

    mocker.patch.object(guess, "guess_shell", return_value=None)
    with pytest.raises(NoShellSpecifiedError) as exc:
        consolidate_shell(None)
    assert "Please provide a shell type." in str(exc.value)
    assert "Run with --help for more information." in str(exc.value)
