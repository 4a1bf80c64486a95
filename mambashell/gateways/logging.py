# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Configure logging for mambashell."""

import logging
import sys
from functools import cache
from logging import DEBUG, INFO, WARN, Formatter, StreamHandler, getLogger

from ..common.io import attach_stderr_handler

log = getLogger(__name__)

TRACE = 5  # TRACE LOG LEVEL

_VERBOSITY_LEVELS = {
    0: WARN,  # standard output
    1: WARN,  # -v, detailed output
    2: INFO,  # -vv, info logging
    3: DEBUG,  # -vvv, debug logging
    4: TRACE,  # -vvvv, trace logging
}

# Labels log messages with log level TRACE (5) as "TRACE"
logging.addLevelName(TRACE, "TRACE")


def verbosity_to_level(verbosity: int) -> int:
    return _VERBOSITY_LEVELS[max(0, min(verbosity, max(_VERBOSITY_LEVELS)))]


class StdStreamHandler(StreamHandler):
    """Log StreamHandler that always writes to the current sys stream."""

    terminator = "\n"

    def __init__(self, sys_stream):
        """
        Args:
            sys_stream: stream name, either "stdout" or "stderr" (attribute of module sys)
        """
        super().__init__(getattr(sys, sys_stream))
        self.sys_stream = sys_stream
        del self.stream

    def __getattr__(self, attr):
        # always get current sys.stdout/sys.stderr, unless self.stream has been set explicitly
        if attr == "stream":
            return getattr(sys, self.sys_stream)
        return super().__getattribute__(attr)

    def emit(self, record):
        # a record may carry its own terminator, e.g.
        # logger.info(..., extra={"terminator": ""}) for shell code on stdout
        try:
            msg = self.format(record)
            stream = self.stream
            stream.write(msg)
            stream.write(getattr(record, "terminator", self.terminator))
            self.flush()
        except Exception:
            self.handleError(record)


@cache
def initialize_logging():
    # 'mambashell' gets level WARN and does not propagate to root.
    getLogger("mambashell").setLevel(WARN)
    set_mambashell_log_level()
    initialize_std_loggers()


def initialize_std_loggers():
    # Set up special loggers 'mambashell.stdout'/'mambashell.stderr' which output directly
    # to the corresponding sys streams and don't propagate.
    formatter = Formatter("%(message)s")

    for stream in ("stdout", "stderr"):
        logger = getLogger(f"mambashell.{stream}")
        logger.handlers = []
        logger.setLevel(INFO)
        handler = StdStreamHandler(stream)
        handler.setLevel(INFO)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False


def set_mambashell_log_level(level=WARN):
    attach_stderr_handler(level=level, logger_name="mambashell")


def set_verbosity(verbosity: int):
    level = verbosity_to_level(verbosity)
    set_mambashell_log_level(level)
    log.debug("log_level set to %d", level)
