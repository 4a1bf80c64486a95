# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""YAML and JSON serialization and deserialization functions."""

import json
from functools import cache
from logging import getLogger

from ruamel.yaml import YAML

log = getLogger(__name__)


@cache
def _yaml_safe():
    parser = YAML(typ="safe", pure=True)
    parser.indent(mapping=2, offset=2, sequence=4)
    parser.default_flow_style = False
    parser.sort_base_mapping_type_on_output = False
    return parser


def yaml_safe_load(string):
    """
    Examples:
        >>> yaml_safe_load("key: value")
        {'key': 'value'}

    """
    return _yaml_safe().load(string)


def json_load(string):
    return json.loads(string)


def json_dump(object):
    return json.dumps(object, indent=2, sort_keys=True, separators=(",", ": "))
