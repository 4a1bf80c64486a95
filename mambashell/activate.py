# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""Activate, reactivate and deactivate logic.

Implementation for all shell interface logic exposed via
`mamba shell [activate|deactivate|reactivate|hook]`.  This includes the activation
stack read back from the shell's environment, an abstract activator class and one
concrete activator per shell dialect.

See mambashell.cli.main_shell for the entry point into this module.
"""

from __future__ import annotations

import abc
import os
import re
import sys
import tempfile
import warnings
from dataclasses import dataclass
from logging import getLogger
from os.path import basename, dirname, exists, isdir, join
from pathlib import Path
from typing import TYPE_CHECKING

from . import MAMBASHELL_PACKAGE_ROOT
from .base.constants import (
    ACTIVATE_D_DIR,
    DEACTIVATE_D_DIR,
    DEFAULT_ENV_VAR,
    ENV_VARS_UNSET_VAR,
    ENVS_DIR_NAME,
    EXE_VAR,
    PACKAGE_ENV_VARS_DIR,
    PREFIX_STATE_FILE,
    PREFIX_VAR,
    PROMPT_MODIFIER_VAR,
    ROOT_ENV_NAME,
    ROOT_PREFIX_VAR,
    SHLVL_VAR,
)
from .common.compat import on_win
from .common.path import backslash_to_forwardslash, native_path_to_unix, paths_equal
from .common.path import path_identity as _path_identity
from .common.serialize import json_load
from .exceptions import PrefixResolutionWarning
from .shells import ShellDialect

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from .base.context import Context

log = getLogger(__name__)


@dataclass(frozen=True)
class ActivationStack:
    """The prefixes activated in a shell, bottom first.

    A shell carries its stack in ``CONDA_SHLVL`` (the depth), ``CONDA_PREFIX`` (the top)
    and ``CONDA_PREFIX_<i>`` for every level ``i`` below the top.
    """

    prefixes: tuple[str, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.prefixes)

    @property
    def top(self) -> str | None:
        return self.prefixes[-1] if self.prefixes else None

    def push(self, prefix: str) -> ActivationStack:
        return ActivationStack((*self.prefixes, prefix))

    def pop(self) -> ActivationStack:
        if not self.prefixes:
            return self
        return ActivationStack(self.prefixes[:-1])

    def replace_top(self, prefix: str) -> ActivationStack:
        return self.pop().push(prefix)

    def to_environ(
        self, previous: ActivationStack | None = None
    ) -> dict[str, str | None]:
        """Bookkeeping variables describing this stack; ``None`` means unset.

        Levels that existed in ``previous`` but not in this stack are unset.
        """
        result: dict[str, str | None] = {
            SHLVL_VAR: str(self.depth),
            PREFIX_VAR: self.top,
        }
        for level, prefix in enumerate(self.prefixes[:-1], start=1):
            result[f"{PREFIX_VAR}_{level}"] = prefix
        if previous is not None:
            for level in range(max(self.depth, 1), previous.depth):
                result[f"{PREFIX_VAR}_{level}"] = None
        return result

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> ActivationStack:
        try:
            depth = int(environ.get(SHLVL_VAR, "").strip() or 0)
        except ValueError:
            log.warning("ignoring malformed %s=%r", SHLVL_VAR, environ[SHLVL_VAR])
            depth = 0
        top = environ.get(PREFIX_VAR)
        if depth < 1 or not top:
            return cls()
        prefixes = []
        for level in range(1, depth):
            prefix = environ.get(f"{PREFIX_VAR}_{level}")
            if prefix:
                prefixes.append(prefix)
            else:
                log.warning("%s_%d is missing; dropping that level", PREFIX_VAR, level)
        prefixes.append(top)
        return cls(tuple(prefixes))


def _empty_commands():
    return {
        "unset_vars": (),
        "set_vars": {},
        "export_vars": {},
        "export_path": {},
        "deactivate_scripts": (),
        "activate_scripts": (),
    }


class _Activator(metaclass=abc.ABCMeta):
    # Activate and deactivate have three tasks
    #   1. Set and unset environment variables
    #   2. Execute/source activate.d/deactivate.d scripts
    #   3. Update the command prompt
    #
    # Shells should also use 'reactivate' following install, update, and remove.
    #
    # All core logic is in build_activate(), build_reactivate() and build_deactivate(),
    # and is independent of shell type.  Each returns a map containing the keys:
    #   export_path
    #   export_vars
    #   unset_vars
    #   set_vars
    #   activate_scripts
    #   deactivate_scripts
    #
    # The environment is read from `self.environ`, never from the process, so that the
    # same activator can compute the environment of a child process.

    # The following class attributes must be defined by each implementation.
    dialect: ShellDialect
    pathsep_join: Callable[[Iterable[str]], str]
    sep: str
    path_conversion: Callable[
        [str | Iterable[str] | None], str | tuple[str, ...] | None
    ]
    script_extension: str
    #: temporary file's extension, None writes to stdout instead
    tempfile_extension: str | None
    command_join: str

    unset_var_tmpl: str
    export_var_tmpl: str
    path_var_tmpl: str
    set_var_tmpl: str
    run_script_tmpl: str

    hook_source_path: Path | None
    inline_hook_source: bool

    def __init__(
        self,
        context: Context,
        environ: Mapping[str, str] | None = None,
        root_prefix: str | None = None,
    ):
        self.context = context
        self.root_prefix = root_prefix or context.root_prefix
        self.environ = dict(context.environ if environ is None else environ)
        self.activation_stack = ActivationStack.from_environ(self.environ)

    def _finalize(self, commands, ext):
        commands = (*commands, "")  # add terminating newline
        if ext is None:
            return self.command_join.join(commands)
        elif ext:
            with tempfile.NamedTemporaryFile(
                "w", suffix=ext, delete=False, encoding="utf-8"
            ) as tf:
                tf.write(self.command_join.join(commands))
            return tf.name
        else:
            raise NotImplementedError()

    def should_stack(self) -> bool:
        auto_stack = self.context.auto_stack
        return bool(auto_stack) and self.activation_stack.depth <= auto_stack

    def activate(self, env_name_or_prefix: str | None, stack: bool = False) -> str:
        builder_result = self.build_activate(env_name_or_prefix, stack)
        return self._finalize(
            self._yield_commands(builder_result), self.tempfile_extension
        )

    def deactivate(self) -> str:
        return self._finalize(
            self._yield_commands(self.build_deactivate()), self.tempfile_extension
        )

    def reactivate(self) -> str:
        return self._finalize(
            self._yield_commands(self.build_reactivate()), self.tempfile_extension
        )

    def hook(self, auto_activate_base: bool | None = None) -> str:
        builder: list[str] = []
        if preamble := self._hook_preamble():
            builder.append(preamble)
        if self.hook_source_path:
            if self.inline_hook_source:
                builder.append(self.hook_source_path.read_text(encoding="utf-8"))
            else:
                builder.append(self.run_script_tmpl % self.hook_source_path)
        if (
            auto_activate_base is None
            and self.context.auto_activate_base
            or auto_activate_base
        ):
            builder.append(self._auto_activate_command())
        postamble = self._hook_postamble()
        if postamble is not None:
            builder.append(postamble)
        return "\n".join(builder)

    def _auto_activate_command(self) -> str:
        return f"mamba activate {ROOT_ENV_NAME}\n"

    def template_unset_var(self, key: str) -> str:
        return self.unset_var_tmpl % key

    def template_export_var(self, key: str, value: str) -> str:
        return self.export_var_tmpl % (key, value)

    def template_path_var(self, key: str, value: str) -> str:
        return self.path_var_tmpl % (key, value)

    def _meta_vars(self) -> dict[str, str]:
        return {
            EXE_VAR: self.context.exe,
            ROOT_PREFIX_VAR: self.root_prefix,
        }

    def _hook_preamble(self) -> str | None:
        result = []
        for key, value in self._meta_vars().items():
            if value is None:
                result.append(self.template_unset_var(key))
            elif {"/", "\\"}.intersection(value):
                result.append(self.template_path_var(key, value))
            else:
                result.append(self.template_export_var(key, value))
        if result:
            return self.command_join.join(result) + self.command_join
        return None

    def _hook_postamble(self) -> str | None:
        return None

    def get_export_unset_vars(self, **kwargs):
        """
        :param kwargs: environment variables to export.
            .. if you pass and set any variable to None, then it
            emits it to the list of variables to unset.

        :return: A dict of env vars to export ordered the same way as kwargs.
            And a list of env vars to unset.
        """
        unset_vars = []
        export_vars = {}
        for name, value in {**self._meta_vars(), **kwargs}.items():
            if value is None:
                unset_vars.append(name)
            elif name in self._meta_vars() and {"/", "\\"}.intersection(value):
                export_vars[name] = self.path_conversion(value)
            else:
                export_vars[name] = value
        return export_vars, unset_vars

    def _yield_commands(self, cmds_dict):
        for key, value in sorted(cmds_dict.get("export_path", {}).items()):
            yield self.export_var_tmpl % (key, value)

        for script in cmds_dict.get("deactivate_scripts", ()):
            yield self.run_script_tmpl % script

        for key in cmds_dict.get("unset_vars", ()):
            yield self.unset_var_tmpl % key

        for key, value in cmds_dict.get("set_vars", {}).items():
            yield self.set_var_tmpl % (key, value)

        for key, value in cmds_dict.get("export_vars", {}).items():
            yield self.export_var_tmpl % (key, value)

        for script in cmds_dict.get("activate_scripts", ()):
            yield self.run_script_tmpl % script

    def build_activate(self, env_name_or_prefix: str | None, stack: bool = False):
        prefix = self.context.locate_prefix(env_name_or_prefix)
        self._check_prefix(env_name_or_prefix, prefix)

        old_stack = self.activation_stack
        # if the prior active prefix is this prefix we are actually doing a reactivate
        if old_stack.top is not None and paths_equal(old_stack.top, prefix):
            return self.build_reactivate()

        if stack or old_stack.top is None:
            new_stack = old_stack.push(prefix)
            new_path = self._add_prefix_to_path(prefix)
            deactivate_scripts = ()
            restored_vars = {}
        else:
            new_stack = old_stack.replace_top(prefix)
            new_path = self._replace_prefix_in_path(old_stack.top, prefix)
            deactivate_scripts = self._get_deactivate_scripts(old_stack.top)
            restored_vars = self._restore_env_vars(old_stack.top, old_stack.depth - 1)

        # the environment as it will be once the replaced prefix's variables are gone
        environ = {**self.environ, **restored_vars}
        saved_level = new_stack.depth - 1
        env_vars = self._get_active_env_vars(prefix)

        overwritten = sorted(
            name
            for name, value in env_vars.items()
            if environ.get(name) is not None and environ[name] != value
        )
        if overwritten:
            log.warning(
                "activating %s overwrites environment variables: %s",
                prefix,
                ", ".join(overwritten),
            )
        clobber_vars = {
            f"__CONDA_SHLVL_{saved_level}_{name}": environ[name]
            for name in env_vars
            if environ.get(name) is not None
        }

        conda_default_env = self._default_env(prefix)
        conda_prompt_modifier = self._prompt_modifier(new_stack)
        export_vars, unset_vars = self.get_export_unset_vars(
            **{
                **new_stack.to_environ(old_stack),
                DEFAULT_ENV_VAR: conda_default_env,
                PROMPT_MODIFIER_VAR: conda_prompt_modifier,
                **restored_vars,
                **env_vars,
                **clobber_vars,
            }
        )

        set_vars = {}
        if self.context.changeps1:
            self._update_prompt(set_vars, conda_prompt_modifier)

        return {
            "unset_vars": unset_vars,
            "set_vars": set_vars,
            "export_vars": export_vars,
            "export_path": {"PATH": self.pathsep_join(new_path)},
            "deactivate_scripts": deactivate_scripts,
            "activate_scripts": self._get_activate_scripts(prefix),
        }

    def build_deactivate(self):
        old_stack = self.activation_stack
        if old_stack.top is None:
            # no active environment, so cannot deactivate; do nothing
            return _empty_commands()

        old_prefix = old_stack.top
        new_stack = old_stack.pop()
        new_prefix = new_stack.top
        deactivate_scripts = self._get_deactivate_scripts(old_prefix)
        restored_vars = self._restore_env_vars(old_prefix, new_stack.depth)

        if new_prefix is None:
            new_path = self._remove_prefix_from_path(old_prefix)
            conda_prompt_modifier = ""
            variables = {
                **new_stack.to_environ(old_stack),
                SHLVL_VAR: "0",
                DEFAULT_ENV_VAR: None,
                PROMPT_MODIFIER_VAR: None,
                **restored_vars,
            }
            activate_scripts = ()
        else:
            if self._prefix_on_path(new_prefix):
                new_path = self._remove_prefix_from_path(old_prefix)
            else:
                new_path = self._replace_prefix_in_path(old_prefix, new_prefix)
            conda_prompt_modifier = self._prompt_modifier(new_stack)
            variables = {
                **new_stack.to_environ(old_stack),
                DEFAULT_ENV_VAR: self._default_env(new_prefix),
                PROMPT_MODIFIER_VAR: conda_prompt_modifier,
                **restored_vars,
                **self._get_active_env_vars(new_prefix),
            }
            activate_scripts = self._get_activate_scripts(new_prefix)

        export_vars, unset_vars = self.get_export_unset_vars(**variables)
        set_vars = {}
        if self.context.changeps1:
            self._update_prompt(set_vars, conda_prompt_modifier)

        return {
            "unset_vars": unset_vars,
            "set_vars": set_vars,
            "export_vars": export_vars,
            "export_path": {"PATH": self.pathsep_join(new_path)},
            "deactivate_scripts": deactivate_scripts,
            "activate_scripts": activate_scripts,
        }

    def build_reactivate(self):
        current_stack = self.activation_stack
        prefix = current_stack.top
        if prefix is None:
            # no active environment, so cannot reactivate; do nothing
            return _empty_commands()

        new_path = self._replace_prefix_in_path(prefix, prefix)
        conda_prompt_modifier = self._prompt_modifier(current_stack)
        set_vars = {}
        if self.context.changeps1:
            self._update_prompt(set_vars, conda_prompt_modifier)

        export_vars, unset_vars = self.get_export_unset_vars(
            **{
                SHLVL_VAR: str(current_stack.depth),
                PROMPT_MODIFIER_VAR: conda_prompt_modifier,
                **self._get_active_env_vars(prefix),
            }
        )
        return {
            "unset_vars": unset_vars,
            "set_vars": set_vars,
            "export_vars": export_vars,
            "export_path": {"PATH": self.pathsep_join(new_path)},
            "deactivate_scripts": self._get_deactivate_scripts(prefix),
            "activate_scripts": self._get_activate_scripts(prefix),
        }

    def build_env(self, cmds_dict) -> dict[str, str]:
        """Apply a command map to a copy of ``self.environ``.

        Shell-local variables (the prompt) and activation scripts only make sense inside
        an interactive shell and are not applied.
        """
        env = dict(self.environ)
        for key, value in cmds_dict.get("export_path", {}).items():
            env[key] = value
        for key in cmds_dict.get("unset_vars", ()):
            env.pop(key, None)
        for key, value in cmds_dict.get("export_vars", {}).items():
            env[key] = str(value)
        return env

    def _check_prefix(self, env_name_or_prefix, prefix):
        if isdir(prefix):
            return
        name = env_name_or_prefix or ROOT_ENV_NAME
        message = f"environment '{name}' does not exist at {prefix}"
        log.warning(message)
        warnings.warn(message, PrefixResolutionWarning, stacklevel=3)

    def _get_starting_path_list(self):
        clean_paths = {
            "darwin": "/usr/bin:/bin:/usr/sbin:/sbin",
            "win32": "C:\\Windows\\system32;"
            "C:\\Windows;"
            "C:\\Windows\\System32\\Wbem;"
            "C:\\Windows\\System32\\WindowsPowerShell\\v1.0\\",
        }
        path = self.environ.get(
            "PATH",
            clean_paths[sys.platform] if sys.platform in clean_paths else "/usr/bin",
        )
        return [entry for entry in path.split(os.pathsep) if entry]

    def _get_path_dirs(self, prefix):
        if on_win:  # pragma: unix no cover
            yield prefix.rstrip(self.sep)
            yield self.sep.join((prefix, "Library", "mingw-w64", "bin"))
            yield self.sep.join((prefix, "Library", "usr", "bin"))
            yield self.sep.join((prefix, "Library", "bin"))
            yield self.sep.join((prefix, "Scripts"))
            yield self.sep.join((prefix, "bin"))
        else:
            yield self.sep.join((prefix, "bin"))

    def _prefix_on_path(self, prefix) -> bool:
        path_list = self.path_conversion(self._get_starting_path_list())
        first_dir = next(self._get_path_dirs(self.path_conversion(prefix)))
        return any(paths_equal(entry, first_dir) for entry in path_list)

    def _add_prefix_to_path(self, prefix, starting_path_dirs=None):
        prefix = self.path_conversion(prefix)
        if starting_path_dirs is None:
            path_list = list(self.path_conversion(self._get_starting_path_list()))
        else:
            path_list = list(self.path_conversion(starting_path_dirs))
        path_list[0:0] = list(self._get_path_dirs(prefix))
        return tuple(path_list)

    def _remove_prefix_from_path(self, prefix, starting_path_dirs=None):
        return self._replace_prefix_in_path(prefix, None, starting_path_dirs)

    def _replace_prefix_in_path(self, old_prefix, new_prefix, starting_path_dirs=None):
        old_prefix = self.path_conversion(old_prefix)
        new_prefix = self.path_conversion(new_prefix)
        if starting_path_dirs is None:
            path_list = list(self.path_conversion(self._get_starting_path_list()))
        else:
            path_list = list(self.path_conversion(starting_path_dirs))

        def index_of_path(paths, test_path):
            for q, path in enumerate(paths):
                if paths_equal(path, test_path):
                    return q
            return None

        first_idx = 0
        if old_prefix is not None:
            prefix_dirs = tuple(self._get_path_dirs(old_prefix))
            found = [
                idx
                for idx in (index_of_path(path_list, d) for d in prefix_dirs)
                if idx is not None
            ]
            if found:
                first_idx = min(found)
                for idx in sorted(found, reverse=True):
                    del path_list[idx]
            else:
                log.debug("no PATH entries found for %s", old_prefix)

        if new_prefix is not None:
            path_list[first_idx:first_idx] = list(self._get_path_dirs(new_prefix))

        return tuple(path_list)

    def _update_prompt(self, set_vars, conda_prompt_modifier):
        pass

    def _default_env(self, prefix):
        if paths_equal(prefix, self.root_prefix):
            return ROOT_ENV_NAME
        if basename(dirname(prefix)) == ENVS_DIR_NAME:
            return basename(prefix)
        return prefix

    def _prompt_modifier(self, activation_stack: ActivationStack) -> str:
        prefix = activation_stack.top
        if not self.context.changeps1 or prefix is None:
            return ""
        conda_default_env = self._default_env(prefix)
        conda_stacked_env = ",".join(
            self._default_env(p) for p in reversed(activation_stack.prefixes)
        )
        return self.context.env_prompt.format(
            default_env=conda_default_env,
            stacked_env=conda_stacked_env,
            prefix=prefix,
            name=basename(prefix),
        )

    def _get_activate_scripts(self, prefix):
        _script_extension = self.script_extension
        se_len = -len(_script_extension)
        try:
            paths = (entry.path for entry in os.scandir(join(prefix, ACTIVATE_D_DIR)))
        except OSError:
            return ()
        return self.path_conversion(
            sorted(p for p in paths if p[se_len:] == _script_extension)
        )

    def _get_deactivate_scripts(self, prefix):
        _script_extension = self.script_extension
        se_len = -len(_script_extension)
        try:
            paths = (
                entry.path for entry in os.scandir(join(prefix, DEACTIVATE_D_DIR))
            )
        except OSError:
            return ()
        return self.path_conversion(
            sorted((p for p in paths if p[se_len:] == _script_extension), reverse=True)
        )

    def _get_environment_env_vars(self, prefix):
        env_vars_file = join(prefix, PREFIX_STATE_FILE)
        pkg_env_var_dir = join(prefix, PACKAGE_ENV_VARS_DIR)
        env_vars = {}

        # First get env vars from packages
        if exists(pkg_env_var_dir):
            for pkg_env_var_path in sorted(
                entry.path
                for entry in os.scandir(pkg_env_var_dir)
                if entry.name.endswith(".json")
            ):
                with open(pkg_env_var_path, encoding="utf-8") as f:
                    env_vars.update(json_load(f.read()))

        # Then get env vars from environment specification
        if exists(env_vars_file):
            with open(env_vars_file, encoding="utf-8") as f:
                prefix_state = json_load(f.read())
            prefix_state_env_vars = prefix_state.get("env_vars", {})
            for dup in sorted(set(env_vars).intersection(prefix_state_env_vars)):
                log.warning(
                    "duplicate env var %s detected; the environment's value overrides "
                    "the package's",
                    dup,
                )
            env_vars.update(prefix_state_env_vars)

        return {name: str(value) for name, value in env_vars.items()}

    def _get_active_env_vars(self, prefix):
        return {
            name: value
            for name, value in self._get_environment_env_vars(prefix).items()
            if value != ENV_VARS_UNSET_VAR
        }

    def _restore_env_vars(self, prefix, level) -> dict[str, str | None]:
        """Undo the prefix-scoped variables of ``prefix``, activated at ``level + 1``.

        A variable whose previous value was saved as ``__CONDA_SHLVL_<level>_<NAME>``
        gets that value back; any other is unset, as is the saved copy.
        """
        restored: dict[str, str | None] = {}
        for name in self._get_environment_env_vars(prefix):
            saved_name = f"__CONDA_SHLVL_{level}_{name}"
            saved_value = self.environ.get(saved_name)
            restored[name] = saved_value
            if saved_value is not None:
                restored[saved_name] = None
        return restored


class PosixActivator(_Activator):
    dialect = ShellDialect.POSIX
    pathsep_join = ":".join
    sep = "/"
    path_conversion = staticmethod(native_path_to_unix)
    script_extension = ".sh"
    tempfile_extension = None  # output to stdout
    command_join = "\n"

    # Using `unset %s` would cause issues for people running
    # with shell flag -u set (error on unset).
    unset_var_tmpl = "export %s=''"  # unset %s
    export_var_tmpl = "export %s='%s'"
    path_var_tmpl = "export %s=\"$(cygpath '%s')\"" if on_win else export_var_tmpl
    set_var_tmpl = "%s='%s'"
    run_script_tmpl = ". \"`cygpath '%s'`\"" if on_win else '. "%s"'

    hook_source_path = Path(
        MAMBASHELL_PACKAGE_ROOT,
        "shell",
        "etc",
        "profile.d",
        "mamba.sh",
    )
    inline_hook_source = True

    def __init__(self, context, environ=None, root_prefix=None, dialect=None):
        super().__init__(context, environ, root_prefix)
        if dialect is not None:
            self.dialect = ShellDialect.resolve(dialect)

    def _update_prompt(self, set_vars, conda_prompt_modifier):
        ps1 = self.environ.get("PS1", "")
        if "POWERLINE_COMMAND" in ps1:
            # Defer to powerline (https://github.com/powerline/powerline) if it's in use.
            return
        current_prompt_modifier = self.environ.get(PROMPT_MODIFIER_VAR)
        if current_prompt_modifier:
            ps1 = re.sub(re.escape(current_prompt_modifier), r"", ps1)
        # Because we're using single-quotes to set shell variables, we need to handle the
        # proper escaping of single quotes that are already part of the string.
        ps1 = ps1.replace("'", "'\"'\"'")
        set_vars.update(
            {
                "PS1": conda_prompt_modifier + ps1,
            }
        )

    def _hook_preamble(self) -> str:
        # the hook function passes the dialect back on every call
        shell_var = self.set_var_tmpl % ("__mamba_shell", self.dialect.value)
        return (super()._hook_preamble() or "") + shell_var + self.command_join


class CshActivator(_Activator):
    dialect = ShellDialect.TCSH
    pathsep_join = ":".join
    sep = "/"
    path_conversion = staticmethod(native_path_to_unix)
    script_extension = ".csh"
    tempfile_extension = None  # output to stdout
    command_join = ";\n"

    unset_var_tmpl = "unsetenv %s"
    export_var_tmpl = 'setenv %s "%s"'
    path_var_tmpl = "setenv %s \"`cygpath '%s'`\"" if on_win else export_var_tmpl
    set_var_tmpl = "set %s='%s'"
    run_script_tmpl = "source \"`cygpath '%s'`\"" if on_win else 'source "%s"'

    hook_source_path = Path(
        MAMBASHELL_PACKAGE_ROOT,
        "shell",
        "etc",
        "profile.d",
        "mamba.csh",
    )
    # TCSH/CSH removes newlines when doing command substitution (see `man tcsh`),
    # source mamba.csh directly and use line terminators to separate commands
    inline_hook_source = False

    def _hook_preamble(self, script_path=None) -> str:
        # the `mamba` alias re-sources this file, so it must know where it lives
        script_path = self.path_conversion(str(script_path or self.hook_source_path))
        return (
            super()._hook_preamble()
            + self.template_path_var("_MAMBA_CSH", script_path)
            + self.command_join
        )

    def _update_prompt(self, set_vars, conda_prompt_modifier):
        prompt = self.environ.get("prompt", "")
        current_prompt_modifier = self.environ.get(PROMPT_MODIFIER_VAR)
        if current_prompt_modifier:
            prompt = re.sub(re.escape(current_prompt_modifier), r"", prompt)
        set_vars.update(
            {
                "prompt": conda_prompt_modifier + prompt,
            }
        )


class XonshActivator(_Activator):
    dialect = ShellDialect.XONSH
    pathsep_join = ";".join if on_win else ":".join
    sep = "/"
    path_conversion = staticmethod(
        backslash_to_forwardslash if on_win else _path_identity
    )
    # 'scripts' really refer to de/activation scripts, not scripts in the language per se
    # xonsh can piggy-back activation scripts from other languages depending on the platform
    script_extension = ".bat" if on_win else ".sh"
    tempfile_extension = None  # output to stdout
    command_join = "\n"

    unset_var_tmpl = "try:\n    del $%s\nexcept KeyError:\n    pass"
    export_var_tmpl = "$%s = '%s'"
    path_var_tmpl = export_var_tmpl
    set_var_tmpl = export_var_tmpl
    run_script_tmpl = (
        'source-cmd --suppress-skip-message "%s"'
        if on_win
        else 'source-bash --suppress-skip-message -n "%s"'
    )

    hook_source_path = Path(MAMBASHELL_PACKAGE_ROOT, "shell", "mamba.xsh")
    inline_hook_source = True

    def template_path_var(self, key: str, value: str) -> str:
        return self.path_var_tmpl % (key, self.path_conversion(value))


class CmdExeActivator(_Activator):
    dialect = ShellDialect.CMD_EXE
    pathsep_join = ";".join
    sep = "\\"
    path_conversion = staticmethod(_path_identity)
    script_extension = ".bat"
    # cmd.exe cannot evaluate command output, so mamba.bat CALLs this file instead
    tempfile_extension = ".bat"
    command_join = "\n"

    unset_var_tmpl = "@SET %s="
    export_var_tmpl = '@SET "%s=%s"'
    path_var_tmpl = export_var_tmpl
    set_var_tmpl = export_var_tmpl
    run_script_tmpl = '@CALL "%s"'

    hook_source_path = Path(
        MAMBASHELL_PACKAGE_ROOT,
        "shell",
        "condabin",
        "mamba_hook.bat",
    )
    inline_hook_source = True

    def _update_prompt(self, set_vars, conda_prompt_modifier):
        prompt = self.environ.get("PROMPT", "")
        current_prompt_modifier = self.environ.get(PROMPT_MODIFIER_VAR)
        if current_prompt_modifier:
            prompt = re.sub(re.escape(current_prompt_modifier), r"", prompt)
        set_vars["PROMPT"] = conda_prompt_modifier + prompt

    def _auto_activate_command(self) -> str:
        return f'@CALL "%MAMBA_BAT%" activate {ROOT_ENV_NAME}\n'


class FishActivator(_Activator):
    dialect = ShellDialect.FISH
    pathsep_join = '" "'.join
    sep = "/"
    path_conversion = staticmethod(native_path_to_unix)
    script_extension = ".fish"
    tempfile_extension = None  # output to stdout
    command_join = ";\n"

    unset_var_tmpl = "set -e %s || true"
    export_var_tmpl = 'set -gx %s "%s"'
    path_var_tmpl = 'set -gx %s (cygpath "%s")' if on_win else export_var_tmpl
    set_var_tmpl = 'set -g %s "%s"'
    run_script_tmpl = 'source "%s"'

    hook_source_path = Path(
        MAMBASHELL_PACKAGE_ROOT,
        "shell",
        "etc",
        "fish",
        "conf.d",
        "mamba.fish",
    )
    inline_hook_source = True


class PowerShellActivator(_Activator):
    dialect = ShellDialect.POWERSHELL
    pathsep_join = ";".join if on_win else ":".join
    sep = "\\" if on_win else "/"
    path_conversion = staticmethod(_path_identity)
    script_extension = ".ps1"
    tempfile_extension = None  # output to stdout
    command_join = "\n"

    unset_var_tmpl = "$Env:%s = $null"
    export_var_tmpl = '$Env:%s = "%s"'
    path_var_tmpl = export_var_tmpl
    set_var_tmpl = export_var_tmpl
    run_script_tmpl = '. "%s"'

    hook_source_path = Path(
        MAMBASHELL_PACKAGE_ROOT,
        "shell",
        "condabin",
        "mamba-hook.ps1",
    )
    inline_hook_source = True

    def _hook_preamble(self) -> str:
        module_args = f"$MambaModuleArgs = @{{ChangePs1 = ${self.context.changeps1}}}"
        return super()._hook_preamble() + module_args + self.command_join

    def _hook_postamble(self) -> str:
        return "Remove-Variable MambaModuleArgs"


activator_map: dict[ShellDialect, type[_Activator]] = {
    ShellDialect.BASH: PosixActivator,
    ShellDialect.POSIX: PosixActivator,
    ShellDialect.DASH: PosixActivator,
    ShellDialect.ZSH: PosixActivator,
    ShellDialect.TCSH: CshActivator,
    ShellDialect.XONSH: XonshActivator,
    ShellDialect.CMD_EXE: CmdExeActivator,
    ShellDialect.FISH: FishActivator,
    ShellDialect.POWERSHELL: PowerShellActivator,
}


def get_activator(
    shell: str | ShellDialect,
    context: Context,
    environ: Mapping[str, str] | None = None,
    root_prefix: str | None = None,
) -> _Activator:
    """Instantiate the activator rendering code for ``shell``."""
    dialect = ShellDialect.resolve(shell)
    activator_cls = activator_map[dialect]
    if activator_cls is PosixActivator:
        return PosixActivator(context, environ, root_prefix, dialect=dialect)
    return activator_cls(context, environ, root_prefix)
