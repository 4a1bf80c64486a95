# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

from logging import NOTSET, getLogger
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from mambashell.base.context import Context

from .helpers import (
    DEFAULT_PROMPT,
    MAMBA_EXE,
    default_path,
    write_pkg_env_vars,
    write_state_file,
)

if TYPE_CHECKING:
    from typing import Callable

    from pytest import MonkeyPatch


@pytest.fixture(autouse=True)
def reset_loggers():
    """Undo the handlers a ``main()`` call attaches to the package logger."""
    yield
    logger = getLogger("mambashell")
    for handler in [h for h in logger.handlers if h.name == "stderr"]:
        logger.removeHandler(handler)
    logger.setLevel(NOTSET)
    logger.propagate = True


@pytest.fixture
def home(tmp_path: Path, monkeypatch: MonkeyPatch) -> Path:
    """An empty home directory that ``~`` expands to."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("ZDOTDIR", raising=False)
    return home


@pytest.fixture
def root_prefix(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    (root / "conda-meta").mkdir(parents=True)
    (root / "envs").mkdir()
    return root


@pytest.fixture
def make_prefix(root_prefix: Path) -> Callable[..., Path]:
    """Create ``<root>/envs/<name>`` the way an installer would leave it."""

    def _make_prefix(name: str, env_vars=None, pkg_env_vars=None) -> Path:
        prefix = root_prefix / "envs" / name
        (prefix / "conda-meta").mkdir(parents=True)
        (prefix / "bin").mkdir()
        if env_vars is not None:
            write_state_file(prefix, **env_vars)
        for pkg_name, variables in (pkg_env_vars or {}).items():
            write_pkg_env_vars(prefix, pkg_name, **variables)
        return prefix

    return _make_prefix


@pytest.fixture
def make_context(root_prefix: Path) -> Callable[..., Context]:
    """Build a ``Context`` isolated from the user's rc files and environment.

    Keyword arguments act as command line arguments; ``environ`` replaces the process
    environment.
    """

    def _make_context(environ=None, **argparse_args) -> Context:
        argparse_args.setdefault("root_prefix", str(root_prefix))
        argparse_args.setdefault("exe", MAMBA_EXE)
        environ = {"PATH": default_path(), "PS1": DEFAULT_PROMPT, **(environ or {})}
        return Context.from_sources(
            argparse_args=argparse_args, environ=environ, search_path=()
        )

    return _make_context

