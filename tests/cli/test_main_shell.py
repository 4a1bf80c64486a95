# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

import mambashell.launch as launch_module
from mambashell import __version__, guess
from mambashell.base.constants import INITIALIZE_BEGIN
from mambashell.cli.main_shell import implicit_launch, shell_executable
from mambashell.common.compat import on_mac, on_win

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

skip_on_win = pytest.mark.skipif(on_win, reason="unix-specific test")

BASHRC = ".bash_profile" if on_mac else ".bashrc"


@pytest.fixture
def no_guess(mocker: MockerFixture):
    """The calling shell cannot be guessed."""
    mocker.patch.object(guess, "_parent_process_shell", return_value=None)
    mocker.patch.object(guess, "on_win", False)


@pytest.fixture
def popen(mocker: MockerFixture):
    popen = mocker.patch.object(launch_module, "Popen")
    popen.return_value.communicate.return_value = (None, None)
    popen.return_value.returncode = 0
    return popen


@pytest.mark.parametrize(
    "args, expected",
    [
        ((), True),
        (("myenv",), True),
        (("-s", "bash"), True),
        (("-s", "bash", "-r", "/root", "myenv"), True),
        (("-v", "-r", "init"), True),
        (("init", "-s", "bash"), False),
        (("-v", "activate", "myenv"), False),
        (("--dry-run", "enable_long_path_support"), False),
        (("launch",), False),
        (("--help",), False),
        (("-V",), False),
    ],
)
def test_implicit_launch(args, expected):
    assert implicit_launch(args) is expected


@pytest.mark.parametrize(
    "shell, expected",
    [
        ("bash", "bash"),
        ("posix", "sh"),
        ("cmd.exe", "cmd.exe"),
        ("powershell", "powershell" if on_win else "pwsh"),
    ],
)
def test_shell_executable(shell, expected):
    assert shell_executable(shell) == expected


def test_version(shell_cli):
    out, _, rc = shell_cli("--version")
    assert rc == 0
    assert out.strip() == f"mambashell {__version__}"


@skip_on_win
def test_init_appends_one_block(shell_cli, home, tmp_path):
    bashrc = home / BASHRC
    bashrc.write_text("alias ll='ls -l'\n")
    env_prefix = tmp_path / "opt" / "env"

    out, err, rc = shell_cli("init", "-s", "bash", "-p", str(env_prefix))
    assert rc == 0
    assert out == ""
    content = bashrc.read_text()
    assert content.startswith("alias ll='ls -l'\n\n" + INITIALIZE_BEGIN)
    assert content.count(INITIALIZE_BEGIN) == 1
    assert f"export MAMBA_ROOT_PREFIX='{env_prefix}';" in content
    assert str(bashrc) in err

    _, err, rc = shell_cli("init", "-s", "bash", "-p", str(env_prefix))
    assert rc == 0
    assert bashrc.read_text() == content
    assert "No action taken." in err


@skip_on_win
def test_init_deinit_round_trip(shell_cli, home, root_prefix):
    zshrc = home / ".zshrc"
    zshrc.write_text("setopt autocd")
    assert shell_cli("init", "-s", "zsh").rc == 0
    assert f"MAMBA_ROOT_PREFIX='{root_prefix}'" in zshrc.read_text()
    assert shell_cli("deinit", "-s", "zsh").rc == 0
    assert zshrc.read_text() == "setopt autocd"


def test_init_guesses_shell(shell_cli, home, mocker):
    mocker.patch.object(guess, "_parent_process_shell", return_value="fish")
    assert shell_cli("init").rc == 0
    assert (home / ".config" / "fish" / "config.fish").exists()


def test_init_by_name(shell_cli, home, root_prefix):
    assert shell_cli("init", "-s", "xonsh", "-n", "other").rc == 0
    expected = root_prefix / "envs" / "other"
    assert f'$MAMBA_ROOT_PREFIX = "{expected}"' in (home / ".xonshrc").read_text()


def test_init_global_options_anywhere(shell_cli, home):
    _, err, rc = shell_cli("--dry-run", "init", "-s", "fish", "-v")
    assert rc == 0
    assert f"+{INITIALIZE_BEGIN}" in err
    assert list(home.iterdir()) == []


def test_init_conflicting_targets(shell_cli, home, tmp_path):
    _, err, rc = shell_cli("init", "-s", "bash", "myenv", "-p", str(tmp_path))
    assert rc == 2
    assert "Give only one of PREFIX, --prefix and --name." in err

    _, err, rc = shell_cli("init", "-s", "bash", "-n", "a", "-p", str(tmp_path))
    assert rc == 2
    assert "not allowed with argument" in err
    assert list(home.iterdir()) == []


def test_init_without_shell(shell_cli, home, no_guess):
    out, err, rc = shell_cli("init")
    assert rc == 1
    assert out == ""
    assert "Please provide a shell type." in err
    assert list(home.iterdir()) == []


def test_unsupported_shell(shell_cli, home):
    out, err, rc = shell_cli("init", "-s", "ksh")
    assert rc == 1
    assert out == ""
    assert "UnsupportedShellError: 'ksh' is not a supported shell." in err
    assert "Supported shells: bash, posix, powershell" in err

    out, err, rc = shell_cli("--json", "activate", "-s", "ksh")
    assert rc == 1
    error = json.loads(out)
    assert error["exception_name"] == "UnsupportedShellError"
    assert error["shell"] == "ksh"


def test_unwritable_rc_file(shell_cli, home, mocker):
    from mambashell import initialize

    mocker.patch.object(
        initialize, "write_file_atomic", side_effect=PermissionError(13, "denied")
    )
    _, err, rc = shell_cli("init", "-s", "tcsh")
    assert rc == 1
    assert "Unable to modify the shell startup file." in err
    assert str(home / ".tcshrc") in err


def test_reinit(shell_cli, home):
    assert shell_cli("init", "-s", "fish", environ={"MAMBA_EXE": "/old/mamba"}).rc == 0
    _, err, rc = shell_cli("reinit", environ={"MAMBA_EXE": "/new/mamba"})
    assert rc == 0
    assert "/new/mamba" in (home / ".config" / "fish" / "config.fish").read_text()


@skip_on_win
def test_hook(shell_cli, root_prefix, home):
    out, _, rc = shell_cli("hook", "-s", "posix")
    assert rc == 0
    assert "mamba() {" in out
    assert "__mamba_shell='posix'" in out
    assert list(home.iterdir()) == []

    out, _, rc = shell_cli("hook", "-s", "fish", "-p", "/elsewhere")
    assert 'set -gx MAMBA_ROOT_PREFIX "/elsewhere"' in out


@skip_on_win
def test_activate_by_name(shell_cli, root_prefix):
    out, _, rc = shell_cli("activate", "-s", "bash", "myenv")
    assert rc == 0
    expected = root_prefix / "envs" / "myenv"
    assert out.startswith(f"export PATH='{expected / 'bin'}:")
    assert f"export CONDA_PREFIX='{expected}'" in out.splitlines()
    assert not out.endswith("\n\n")


@skip_on_win
def test_activate_base(shell_cli, root_prefix):
    out, _, rc = shell_cli("activate", "-s", "bash", "base")
    assert rc == 0
    assert f"export CONDA_PREFIX='{root_prefix}'" in out.splitlines()
    assert "envs/base" not in out

    assert shell_cli("activate", "-s", "bash").out == out


@skip_on_win
def test_activate_stacking(shell_cli, root_prefix):
    (root_prefix / "envs" / "a").mkdir()
    environ = {"CONDA_SHLVL": "1", "CONDA_PREFIX": str(root_prefix)}

    out = shell_cli("activate", "-s", "bash", "a", environ=environ).out
    assert "export CONDA_SHLVL='1'" in out.splitlines()

    out = shell_cli("activate", "-s", "bash", "--stack", "a", environ=environ).out
    assert "export CONDA_SHLVL='2'" in out.splitlines()
    assert f"export CONDA_PREFIX_1='{root_prefix}'" in out.splitlines()

    environ["MAMBA_AUTO_STACK"] = "1"
    out = shell_cli("activate", "-s", "bash", "a", environ=environ).out
    assert "export CONDA_SHLVL='2'" in out.splitlines()
    out = shell_cli("activate", "-s", "bash", "--no-stack", "a", environ=environ).out
    assert "export CONDA_SHLVL='1'" in out.splitlines()


@skip_on_win
def test_activate_missing_prefix(shell_cli, root_prefix):
    out, err, rc = shell_cli("activate", "-s", "bash", "nope")
    assert rc == 0
    assert "does not exist" in err
    assert "does not exist" not in out
    assert "CONDA_SHLVL='1'" in out


def test_deactivate_and_reactivate_without_environment(shell_cli):
    assert shell_cli("deactivate", "-s", "bash") == ("", "", 0)
    assert shell_cli("reactivate", "-s", "fish") == ("", "", 0)


@skip_on_win
def test_deactivate(shell_cli, root_prefix):
    environ = {"CONDA_SHLVL": "1", "CONDA_PREFIX": str(root_prefix)}
    out, _, rc = shell_cli("deactivate", "-s", "zsh", environ=environ)
    assert rc == 0
    assert "export CONDA_SHLVL='0'" in out.splitlines()
    assert "export CONDA_PREFIX=''" in out.splitlines()


def test_root_prefix_precedence(shell_cli, tmp_path):
    environ = {"MAMBA_ROOT_PREFIX": str(tmp_path / "from-env")}
    out = shell_cli("hook", "-s", "xonsh", environ=environ, with_root=False).out
    assert str(tmp_path / "from-env") in out

    out = shell_cli(
        "-r", str(tmp_path / "from-cli"), "hook", "-s", "xonsh", environ=environ
    ).out
    assert str(tmp_path / "from-cli") in out
    assert str(tmp_path / "from-env") not in out


@skip_on_win
def test_enable_long_path_support_elsewhere(shell_cli):
    assert shell_cli("enable_long_path_support").rc == 0


def test_launch_defaults_to_bash(shell_cli, root_prefix, popen, mocker, no_guess):
    mocker.patch.object(launch_module, "on_win", False)
    mocker.patch.object(launch_module, "on_mac", False)

    rc = shell_cli().rc
    assert rc == 0
    (command,) = popen.call_args.args
    assert command == ["bash"]
    assert popen.call_args.kwargs["env"]["CONDA_PREFIX"] == str(root_prefix)


def test_launch_returns_child_exit_code(shell_cli, root_prefix, popen):
    (root_prefix / "envs" / "myenv").mkdir()
    popen.return_value.returncode = 7

    assert shell_cli("-s", "posix", "myenv").rc == 7
    (command,) = popen.call_args.args
    assert command == ["sh"]
    env = popen.call_args.kwargs["env"]
    assert env["CONDA_PREFIX"] == str(root_prefix / "envs" / "myenv")

    assert shell_cli("launch", "-s", "fish").rc == 7
    assert popen.call_args.args == (["fish"],)
