# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""
Gateways isolate interaction of mambashell code with the outside world.  Disk manipulation,
logging, and process spawning are examples.  Functions in gateways should be as simple as
possible, and should not know about the shells they are used for.
"""
