# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""
This file should hold most string literals and magic numbers used throughout the code base.
The exception is if a literal is specifically meant to be private to and isolated within a module.
"""

from __future__ import annotations

from os.path import join
from typing import TYPE_CHECKING

from ..common.compat import on_win

if TYPE_CHECKING:
    from typing import Final

APP_NAME: Final = "mamba"
#: console script installed by setup.py
EXE_NAME: Final = "mambashell"

SEARCH_PATH: tuple[str, ...]

if on_win:  # pragma: no cover
    SEARCH_PATH = (
        "C:/ProgramData/mamba/.mambarc",
    )
else:
    SEARCH_PATH = (
        "/etc/mamba/.mambarc",
        "/var/lib/mamba/.mambarc",
    )

SEARCH_PATH += (
    "$XDG_CONFIG_HOME/mamba/.mambarc",
    "~/.config/mamba/.mambarc",
    "~/.mamba/.mambarc",
    "~/.mambarc",
    "$MAMBA_ROOT_PREFIX/.mambarc",
    "$MAMBARC",
)

#: Enumerated shell dialect identifiers accepted by ``-s/--shell``.
COMPATIBLE_SHELLS: Final = (
    "bash",
    "posix",
    "powershell",
    "cmd.exe",
    "xonsh",
    "zsh",
    "fish",
    "tcsh",
    "dash",
)

ROOT_ENV_NAME: Final = "base"
ENVS_DIR_NAME: Final = "envs"
PREFIX_NAME_DISALLOWED_CHARS: Final = {"/", "\\", " ", ":", "#"}
DEFAULT_ROOT_PREFIX: Final = join("~", "micromamba")

# managed block delimiters
INITIALIZE_BEGIN: Final = "# >>> mamba initialize >>>"
INITIALIZE_END: Final = "# <<< mamba initialize <<<"
INITIALIZE_NOTICE: Final = (
    "# !! Contents within this block are managed by 'mamba shell init' !!"
)

#: Records which dialects were initialized, per root prefix; used by ``reinit``.
INIT_MANIFEST_PATH: Final = join("~", ".mamba", "shell_init.json")

CMD_EXE_AUTORUN_KEY: Final = (
    "HKEY_CURRENT_USER\\Software\\Microsoft\\Command Processor\\AutoRun"
)
LONG_PATHS_KEY: Final = (
    "HKEY_LOCAL_MACHINE\\SYSTEM\\CurrentControlSet\\Control\\FileSystem\\LongPathsEnabled"
)

# activation bookkeeping, shared with conda so both tools understand each other's shells
SHLVL_VAR: Final = "CONDA_SHLVL"
PREFIX_VAR: Final = "CONDA_PREFIX"
DEFAULT_ENV_VAR: Final = "CONDA_DEFAULT_ENV"
PROMPT_MODIFIER_VAR: Final = "CONDA_PROMPT_MODIFIER"
EXE_VAR: Final = "MAMBA_EXE"
ROOT_PREFIX_VAR: Final = "MAMBA_ROOT_PREFIX"

PREFIX_STATE_FILE: Final = join("conda-meta", "state")
PACKAGE_ENV_VARS_DIR: Final = join("etc", "conda", "env_vars.d")
ACTIVATE_D_DIR: Final = join("etc", "conda", "activate.d")
DEACTIVATE_D_DIR: Final = join("etc", "conda", "deactivate.d")
ENV_VARS_UNSET_VAR: Final = "***unset***"
