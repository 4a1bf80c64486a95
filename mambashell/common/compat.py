# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Common compatibility code."""
# This module should contain ONLY stdlib imports.

import sys
from collections.abc import Iterable

on_win = bool(sys.platform == "win32")
on_mac = bool(sys.platform == "darwin")


def encode_for_env_var(value) -> str:
    """Environment names and values need to be string."""
    if isinstance(value, str):
        return value
    elif isinstance(value, bytes):
        return value.decode()
    return str(value)


def encode_environment(env):
    return {encode_for_env_var(k): encode_for_env_var(v) for k, v in env.items()}


def isiterable(obj):
    return not isinstance(obj, str) and isinstance(obj, Iterable)


def ensure_text_type(value) -> str:
    try:
        return value.decode("utf-8")
    except AttributeError:  # pragma: no cover
        # AttributeError: '<>' object has no attribute 'decode'
        # In this case assume already text_type and do nothing
        return value

