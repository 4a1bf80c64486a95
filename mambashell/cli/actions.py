# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""
Collection of custom argparse actions.
"""

from argparse import _CountAction


class NullCountAction(_CountAction):
    """Count occurrences, starting from a default of ``None`` or a suppressed one.

    A ``None`` default keeps an absent flag from overriding lower precedence sources
    of the same setting.
    """

    @staticmethod
    def _ensure_value(namespace, name, value):
        if getattr(namespace, name, None) is None:
            setattr(namespace, name, value)
        return getattr(namespace, name)

    def __call__(self, parser, namespace, values, option_string=None):
        new_count = self._ensure_value(namespace, self.dest, 0) + 1
        setattr(namespace, self.dest, new_count)
