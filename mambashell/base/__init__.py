# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Code in ``mambashell.base`` is the lowest level of the application stack.

It holds the constants and the configuration object every other module relies on.
"""
