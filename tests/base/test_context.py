# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import os
import sys
import sysconfig
from argparse import Namespace
from os.path import join

import pytest

from mambashell.base.constants import DEFAULT_ROOT_PREFIX, SEARCH_PATH
from mambashell.base.context import Context, locate_prefix, locate_prefix_by_name
from mambashell.common.compat import on_win
from mambashell.common.configuration import InvalidTypeError, ValidationError
from mambashell.common.path import expand
from mambashell.exceptions import PrefixResolutionError


def test_defaults(home):
    context = Context.from_sources(environ={}, search_path=())
    assert context.root_prefix == expand(DEFAULT_ROOT_PREFIX)
    assert context.root_prefix == join(str(home), "micromamba")
    assert context.changeps1 is True
    assert context.env_prompt == "({default_env}) "
    assert context.auto_stack == 0
    assert context.auto_activate_base is False
    assert context.verbosity == 0
    assert context.dry_run is False
    assert context.envs_dir == join(context.root_prefix, "envs")


def test_environ_is_a_copy():
    environ = {"MAMBA_ROOT_PREFIX": "/opt/root"}
    context = Context.from_sources(environ=environ, search_path=())
    environ["MAMBA_ROOT_PREFIX"] = "/elsewhere"
    assert context.environ == {"MAMBA_ROOT_PREFIX": "/opt/root"}
    assert context.root_prefix == expand("/opt/root")


def test_precedence(tmp_path):
    mambarc = tmp_path / ".mambarc"
    mambarc.write_text("auto_stack: 1\nchangeps1: false\nenv_prompt: '<{name}> '\n")
    environ = {"MAMBA_AUTO_STACK": "2", "MAMBA_CHANGEPS1": "true"}
    argparse_args = Namespace(root_prefix=None, verbosity=None, dry_run=True)

    context = Context.from_sources(
        argparse_args=argparse_args, environ=environ, search_path=(str(mambarc),)
    )
    assert context.auto_stack == 2
    assert context.changeps1 is True
    assert context.env_prompt == "<{name}> "
    assert context.dry_run is True
    assert context.verbosity == 0


def test_root_prefix_search_path_entry(home, tmp_path, monkeypatch):
    root = tmp_path / "root"
    # search path entries expand against the process environment
    monkeypatch.setenv("MAMBA_ROOT_PREFIX", str(root))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("MAMBARC", raising=False)
    root.mkdir()
    (root / ".mambarc").write_text("auto_activate_base: true\n")
    context = Context.from_sources(
        environ={"MAMBA_ROOT_PREFIX": str(root)}, search_path=SEARCH_PATH
    )
    assert context.auto_activate_base is True


def test_exe():
    context = Context.from_sources(
        environ={"MAMBA_EXE": "/opt/mamba/bin/mamba"}, search_path=()
    )
    assert context.exe == "/opt/mamba/bin/mamba"

    context = Context.from_sources(environ={}, search_path=())
    assert os.path.isabs(context.exe)


@pytest.mark.parametrize(
    "environ, error",
    [
        ({"MAMBA_AUTO_STACK": "many"}, InvalidTypeError),
        ({"MAMBA_AUTO_STACK": "-1"}, ValidationError),
        ({"MAMBA_CHANGEPS1": "perhaps"}, InvalidTypeError),
        ({"MAMBA_ENV_PROMPT": "({missing}) "}, ValidationError),
    ],
)
def test_invalid_values(environ, error):
    with pytest.raises(error):
        Context.from_sources(environ=environ, search_path=())


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "/opt/root"),
        ("", "/opt/root"),
        ("base", "/opt/root"),
        ("myenv", "/opt/root/envs/myenv"),
        ("/some/where", "/some/where"),
        ("./rel", os.path.abspath("rel")),
    ],
)
@pytest.mark.skipif(os.name == "nt", reason="unix-specific test")
def test_locate_prefix(value, expected):
    assert locate_prefix(value, "/opt/root") == expected


def test_locate_prefix_by_name():
    root = os.path.abspath("root")
    assert locate_prefix_by_name("base", root) == root
    assert locate_prefix_by_name("py3.11", root) == join(root, "envs", "py3.11")
    for bad_name in ("has space", "a:b", "c#d"):
        with pytest.raises(PrefixResolutionError) as exc:
            locate_prefix_by_name(bad_name, root)
        assert bad_name in str(exc.value)


def test_exe_when_run_as_module(monkeypatch):
    main_py = join("site-packages", "mambashell", "__main__.py")
    monkeypatch.setattr(sys, "argv", [main_py])
    context = Context.from_sources(environ={}, search_path=())
    script = "mambashell.exe" if on_win else "mambashell"
    assert context.exe == join(sysconfig.get_path("scripts"), script)
