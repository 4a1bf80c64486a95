# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""
A small application configuration utility.

Parameters are declared as class attributes of a ``Configuration`` subclass and are
resolved lazily from, in increasing order of precedence:
  - defaults declared with the parameter
  - yaml configuration files found on the search path (later files win)
  - ``<APPNAME>_<KEY>`` environment variables
  - parsed command line arguments

Values are coerced to the parameter's element type and validated on access.
"""

from __future__ import annotations

from logging import getLogger
from os import stat
from stat import S_IFMT, S_IFREG
from typing import TYPE_CHECKING

from ruamel.yaml.error import YAMLError
from ruamel.yaml.reader import ReaderError
from ruamel.yaml.scanner import ScannerError

from .. import MambaShellError, MambaShellMultiError
from .compat import isiterable
from .path import expand
from .serialize import yaml_safe_load

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from typing import Any

log = getLogger(__name__)

BOOLISH_TRUE = ("true", "yes", "on", "y", "1")
BOOLISH_FALSE = ("false", "off", "no", "n", "none", "0", "")

ENVVARS_SOURCE = "envvars"
CMD_LINE_SOURCE = "cmd_line"
DEFAULT_SOURCE = "<<default>>"


def pretty_list(iterable, padding="  "):
    if not isiterable(iterable):
        iterable = [iterable]
    return "\n".join(f"{padding}- {item}" for item in iterable)


class ConfigurationError(MambaShellError):
    pass


class ConfigurationLoadError(ConfigurationError):
    def __init__(self, path, message_addition="", **kwargs):
        message = "Unable to load configuration file.\n  path: %(path)s\n"
        super().__init__(message + message_addition, path=path, **kwargs)


class ValidationError(ConfigurationError):
    def __init__(self, parameter_name, parameter_value, source, msg=None, **kwargs):
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value
        self.source = source
        super().__init__(msg, **kwargs)


class InvalidTypeError(ValidationError):
    def __init__(
        self, parameter_name, parameter_value, source, wrong_type, valid_types
    ):
        self.wrong_type = wrong_type
        self.valid_types = valid_types
        msg = "Parameter %s = %r declared in %s has type %s.\nValid types:\n%s" % (
            parameter_name,
            parameter_value,
            source,
            wrong_type,
            pretty_list(valid_types),
        )
        super().__init__(parameter_name, parameter_value, source, msg=msg)


class MultiValidationError(MambaShellMultiError, ConfigurationError):
    def __init__(self, errors, *args, **kwargs):
        super().__init__(errors, *args, **kwargs)


def raise_errors(errors):
    if not errors:
        return True
    elif len(errors) == 1:
        raise errors[0]
    else:
        raise MultiValidationError(errors)


def boolify(value):
    """Convert a string, number or bool into a bool.

    Examples:
        >>> boolify("yes")
        True
        >>> boolify("0")
        False
        >>> boolify(1)
        True

    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in BOOLISH_TRUE:
            return True
        if lowered in BOOLISH_FALSE:
            return False
    raise TypeError(f"cannot interpret {value!r} as a boolean")


def typify(value, element_type):
    if value is None or isinstance(value, element_type) and not (
        element_type is int and isinstance(value, bool)
    ):
        return value
    if element_type is bool:
        return boolify(value)
    if element_type is int:
        if isinstance(value, bool):
            raise TypeError(f"cannot interpret {value!r} as an integer")
        return int(value)
    if element_type is str:
        if isinstance(value, (dict, list, tuple)):
            raise TypeError(f"cannot interpret {value!r} as a string")
        return str(value)
    return element_type(value)


def load_file_configs(search_path: Iterable[str]) -> dict[str, dict[str, Any]]:
    # returns an ordered map of filepath and dict of raw values

    def _get_st_mode(path):
        # stat the path for file type, or None if path doesn't exist
        try:
            return S_IFMT(stat(path).st_mode)
        except OSError:
            return None

    expanded_paths = tuple(expand(path) for path in search_path)
    raw_data = {}
    for path in expanded_paths:
        if _get_st_mode(path) != S_IFREG or path in raw_data:
            continue
        raw_data[path] = load_yaml_config(path)
    return raw_data


def load_yaml_config(filepath: str) -> dict[str, Any]:
    with open(filepath, encoding="utf-8") as fh:
        try:
            yaml_obj = yaml_safe_load(fh)
        except ScannerError as err:
            mark = err.problem_mark
            raise ConfigurationLoadError(
                filepath,
                "  reason: invalid yaml at line %(line)s, column %(column)s",
                line=mark.line,
                column=mark.column,
            )
        except ReaderError as err:
            raise ConfigurationLoadError(
                filepath,
                "  reason: invalid yaml at position %(position)s",
                position=err.position,
            )
        except YAMLError as err:
            raise ConfigurationLoadError(
                filepath, "  reason: %(reason)s", reason=str(err)
            )
    if yaml_obj is None:
        return {}
    if not isinstance(yaml_obj, dict):
        raise ConfigurationLoadError(
            filepath, "  reason: top level of file must be a mapping"
        )
    log.debug("loaded configuration file %s", filepath)
    return dict(yaml_obj)


def env_raw_data(app_name: str, environ: Mapping[str, str]) -> dict[str, str]:
    keystart = f"{app_name.upper()}_"
    return {
        k.replace(keystart, "", 1).lower(): v
        for k, v in environ.items()
        if k.startswith(keystart)
    }


class PrimitiveParameter:
    """A parameter holding a single bool, int or str value."""

    def __init__(self, default, element_type=None, validation=None):
        self.default = default
        self.element_type = element_type or type(default)
        self.validation = validation
        self.name = None

    def __set_name__(self, owner, name):
        # a leading underscore marks a parameter wrapped by a property of the same name
        self.name = name.lstrip("_")

    def __get__(self, instance, instance_type):
        if instance is None:
            return self
        cache = instance._cache_
        if self.name not in cache:
            cache[self.name] = self.resolve(instance)
        return cache[self.name]

    def resolve(self, instance):
        source, raw_value = instance.find_raw_value(self.name)
        if source == DEFAULT_SOURCE:
            return self.default
        return self.typify(source, raw_value)

    def typify(self, source, raw_value):
        try:
            value = typify(raw_value, self.element_type)
        except (TypeError, ValueError):
            raise InvalidTypeError(
                self.name,
                raw_value,
                source,
                type(raw_value).__name__,
                (self.element_type.__name__,),
            )
        if self.validation is not None:
            message = self.validation(value)
            if message is not True and message:
                raise ValidationError(self.name, value, source, msg=message)
        return value


class Configuration:
    def __init__(
        self,
        search_path: Iterable[str] = (),
        app_name: str | None = None,
        argparse_args: Any = None,
        environ: Mapping[str, str] | None = None,
    ):
        self._cache_ = {}
        # ordered lowest to highest precedence
        self.raw_data: dict[str, dict[str, Any]] = {}
        self._search_path = tuple(search_path)
        self.raw_data.update(load_file_configs(self._search_path))
        if app_name:
            self.raw_data[ENVVARS_SOURCE] = env_raw_data(app_name, environ or {})
        if hasattr(argparse_args, "__dict__"):
            argparse_args = vars(argparse_args)
        self.raw_data[CMD_LINE_SOURCE] = {
            k: v for k, v in (argparse_args or {}).items() if v is not None
        }

    @classmethod
    def parameter_names(cls) -> tuple[str, ...]:
        return tuple(
            name
            for klass in reversed(cls.__mro__)
            for name, value in vars(klass).items()
            if isinstance(value, PrimitiveParameter)
        )

    def find_raw_value(self, name: str) -> tuple[str, Any]:
        for source in reversed(tuple(self.raw_data)):
            if name in self.raw_data[source]:
                return source, self.raw_data[source][name]
        return DEFAULT_SOURCE, None

    def validate_all(self):
        errors = []
        for name in self.parameter_names():
            try:
                getattr(self, name)
            except ConfigurationError as e:
                errors.append(e)
        raise_errors(errors)

    def collect_all(self) -> dict[str, dict[str, Any]]:
        names = {getattr(type(self), name).name for name in self.parameter_names()}
        return {
            source: {k: v for k, v in values.items() if k in names}
            for source, values in self.raw_data.items()
            if any(k in names for k in values)
        }
