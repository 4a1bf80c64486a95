# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Command line interface: `mamba shell` and its subcommands."""

from .main import main  # noqa: F401
