# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Configuration for a single mambashell invocation.

A ``Context`` is built once per command from the parsed command line, the process
environment and the ``.mambarc`` files, and is passed explicitly to every engine call.
"""

from __future__ import annotations

import os
import sys
import sysconfig
from logging import getLogger
from os.path import abspath, basename, join
from shutil import which
from typing import TYPE_CHECKING

from ..common.compat import on_win
from ..common.configuration import Configuration, PrimitiveParameter
from ..common.path import expand
from ..exceptions import PrefixResolutionError
from .constants import (
    APP_NAME,
    DEFAULT_ROOT_PREFIX,
    ENVS_DIR_NAME,
    EXE_NAME,
    PREFIX_NAME_DISALLOWED_CHARS,
    ROOT_ENV_NAME,
    SEARCH_PATH,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from typing import Any

log = getLogger(__name__)


def _validate_auto_stack(value):
    return value >= 0 or "auto_stack must be a non-negative integer"


def _validate_env_prompt(value):
    try:
        value.format(default_env="", stacked_env="", prefix="", name="")
    except (KeyError, IndexError, ValueError) as e:
        return f"env_prompt is not a valid format string: {e!r}"
    return True


class Context(Configuration):
    _root_prefix = PrimitiveParameter("", element_type=str)
    changeps1 = PrimitiveParameter(True)
    env_prompt = PrimitiveParameter(
        "({default_env}) ", element_type=str, validation=_validate_env_prompt
    )
    auto_stack = PrimitiveParameter(0, validation=_validate_auto_stack)
    auto_activate_base = PrimitiveParameter(False)
    verbosity = PrimitiveParameter(0)
    dry_run = PrimitiveParameter(False)
    json = PrimitiveParameter(False)
    _exe = PrimitiveParameter("", element_type=str)

    def __init__(
        self,
        search_path: Iterable[str] = (),
        argparse_args: Any = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.environ = dict(os.environ if environ is None else environ)
        super().__init__(
            search_path=search_path,
            app_name=APP_NAME,
            argparse_args=argparse_args,
            environ=self.environ,
        )

    @classmethod
    def from_sources(
        cls,
        argparse_args: Any = None,
        environ: Mapping[str, str] | None = None,
        search_path: Iterable[str] = SEARCH_PATH,
    ) -> Context:
        context = cls(
            search_path=search_path, argparse_args=argparse_args, environ=environ
        )
        context.validate_all()
        log.debug("context built from %s", ", ".join(context.raw_data) or "defaults")
        return context

    @property
    def root_prefix(self) -> str:
        return expand(self._root_prefix or DEFAULT_ROOT_PREFIX)

    @property
    def envs_dir(self) -> str:
        return join(self.root_prefix, ENVS_DIR_NAME)

    @property
    def exe(self) -> str:
        if self._exe:
            return self._exe
        argv0 = sys.argv[0] if sys.argv and sys.argv[0] else APP_NAME
        if basename(argv0) == "__main__.py":
            # python -m mambashell; the hooks need an executable, not a module
            script = EXE_NAME + (".exe" if on_win else "")
            return join(sysconfig.get_path("scripts"), script)
        return which(argv0) or abspath(argv0)

    def locate_prefix(self, env_name_or_prefix: str | None) -> str:
        return locate_prefix(env_name_or_prefix, self.root_prefix)


def locate_prefix(env_name_or_prefix: str | None, root_prefix: str) -> str:
    """Resolve an environment name or path to an absolute prefix.

    An empty value or ``base`` is the root prefix itself.  A value containing a path
    separator, or starting with ``.`` or ``~``, is a path.  Anything else is the name
    of an environment under ``<root_prefix>/envs``.

    Examples:
        >>> locate_prefix("base", "/opt/mamba")
        '/opt/mamba'
        >>> locate_prefix("py311", "/opt/mamba")
        '/opt/mamba/envs/py311'

    """
    if not env_name_or_prefix or env_name_or_prefix == ROOT_ENV_NAME:
        return root_prefix
    if (
        "/" in env_name_or_prefix
        or "\\" in env_name_or_prefix
        or env_name_or_prefix.startswith((".", "~"))
    ):
        return expand(env_name_or_prefix)
    return locate_prefix_by_name(env_name_or_prefix, root_prefix)


def locate_prefix_by_name(name: str, root_prefix: str) -> str:
    """The prefix of the environment called ``name``; never interpreted as a path."""
    if name == ROOT_ENV_NAME:
        return root_prefix
    bad_chars = sorted(char for char in PREFIX_NAME_DISALLOWED_CHARS if char in name)
    if bad_chars:
        raise PrefixResolutionError(
            name,
            "environment names may not contain %s"
            % ", ".join(repr(char) for char in bad_chars),
        )
    return join(root_prefix, ENVS_DIR_NAME, name)
