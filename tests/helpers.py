# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Helpers shared by the test modules."""

from __future__ import annotations

import json
from pathlib import Path

from mambashell.base.constants import PACKAGE_ENV_VARS_DIR, PREFIX_STATE_FILE
from mambashell.common.compat import on_win

MAMBA_EXE = "C:\\mamba\\mamba.exe" if on_win else "/opt/mamba/bin/mamba"
DEFAULT_PROMPT = "$ "


def default_path() -> str:
    if on_win:
        return "C:\\Windows\\system32;C:\\Windows"
    return "/usr/local/bin:/usr/bin:/bin"


def write_state_file(prefix: str | Path, **env_vars) -> None:
    Path(prefix, PREFIX_STATE_FILE).write_text(
        json.dumps({"version": 1, "env_vars": env_vars})
    )


def write_pkg_env_vars(prefix: str | Path, pkg_name: str, **env_vars) -> None:
    env_vars_d = Path(prefix, PACKAGE_ENV_VARS_DIR)
    env_vars_d.mkdir(parents=True, exist_ok=True)
    (env_vars_d / f"{pkg_name}.json").write_text(json.dumps(env_vars))
