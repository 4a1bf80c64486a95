# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Text helpers for writing indented literal blocks in source code."""

from textwrap import dedent


def dals(string):
    """dedent and left-strip"""
    return dedent(string).lstrip()
