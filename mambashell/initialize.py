# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
"""
Sections in this module are

  1. top-level functions
  2. plan creators
  3. plan runners
  4. individual operations
  5. helper functions

The top-level functions compose and execute full plans.

A plan is created by composing various individual operations.  The plan data structure
is a list of dicts, where each dict represents an individual operation.  The dict
contains two keys--`function` and `kwargs`--where function is the name of the individual
operation function within this module.

Each individual operation must

  a) return a `Result` (i.e. NEEDS_SUDO, MODIFIED, or NO_CHANGE)
  b) have no side effects if context.dry_run is True
  c) be verbose and descriptive about the changes being made or proposed if
     context.verbosity >= 1

The plan runner functions take the plan (list of dicts) as an argument, and then
coordinate the execution of each individual operation.  The docstring for
`run_plan()` describes how the individual operations are evaluated.

Every rc file edit goes through the managed block delimited by INITIALIZE_BEGIN and
INITIALIZE_END, so that `deinit` can remove exactly what `init` added.
"""

from __future__ import annotations

import os
import re
import sys
from difflib import unified_diff
from errno import ENOENT
from logging import getLogger
from os.path import abspath, exists, expanduser, join
from pathlib import Path
from typing import TYPE_CHECKING

from . import MAMBASHELL_PACKAGE_ROOT
from .activate import CshActivator, get_activator
from .base.constants import (
    CMD_EXE_AUTORUN_KEY,
    INIT_MANIFEST_PATH,
    INITIALIZE_BEGIN,
    INITIALIZE_END,
    INITIALIZE_NOTICE,
    LONG_PATHS_KEY,
)
from .common.compat import on_win
from .common.path import expand, native_path_to_unix
from .common.serialize import json_dump, json_load
from .exceptions import RcFileUnwritableError
from .gateways.disk.update import read_file, write_file_atomic
from .shells import ShellDialect

if on_win:  # pragma: no cover
    import winreg

if TYPE_CHECKING:
    from .base.context import Context

log = getLogger(__name__)

MANAGED_BLOCK_REGEX = re.compile(
    rf"^{re.escape(INITIALIZE_BEGIN)}\r?$[\s\S]*?^{re.escape(INITIALIZE_END)}\r?$\n?",
    flags=re.MULTILINE,
)
CMD_EXE_HOOK_REGEX = re.compile(
    r"if exist \"[^\"]*?mamba[-_]hook\.bat\" \"[^\"]*?mamba[-_]hook\.bat\"",
    flags=re.IGNORECASE,
)


class Result:
    NEEDS_SUDO = "needs sudo"
    MODIFIED = "modified"
    NO_CHANGE = "no change"


# #####################################################
# top-level functions
# #####################################################


def shell_init(shell, root_prefix, context: Context, home=None):
    """Install the hook for ``shell`` into the user's startup files.

    Returns the executed plan; every step carries its ``result``.
    """
    dialect = ShellDialect.resolve(shell)
    plan = make_initialize_plan(
        dialect, _normalize_root(root_prefix), home, context.environ
    )
    run_plan(plan, context)
    print_plan_results(plan)
    return plan


def shell_deinit(shell, root_prefix, context: Context, home=None):
    dialect = ShellDialect.resolve(shell)
    plan = make_initialize_plan(
        dialect, _normalize_root(root_prefix), home, context.environ, reverse=True
    )
    run_plan(plan, context)
    print_plan_results(plan)
    return plan


def shell_reinit(root_prefix, context: Context, home=None):
    """Re-run ``shell_init`` for every dialect recorded for ``root_prefix``."""
    root_prefix = _normalize_root(root_prefix)
    manifest = load_manifest(_manifest_path(home))
    dialects = sorted(manifest.get(root_prefix, {}))
    if not dialects:
        log.info("no shells were initialized for %s; nothing to do", root_prefix)
        return []

    plan = []
    for shell in dialects:
        plan.extend(
            make_initialize_plan(
                ShellDialect.resolve(shell), root_prefix, home, context.environ
            )
        )
    run_plan(plan, context)
    print_plan_results(plan)
    return plan


def shell_hook(shell, context: Context, root_prefix=None) -> str:
    """The code a shell evaluates to define the ``mamba`` function; touches no file."""
    activator = get_activator(shell, context, root_prefix=root_prefix)
    return activator.hook()


def enable_long_path_support(context: Context) -> str:
    if not on_win:
        log.info("long path support is only configurable on Windows; nothing to do")
        return Result.NO_CHANGE

    plan = [
        {
            "function": init_long_path.__name__,
            "kwargs": {"target_path": LONG_PATHS_KEY},
        }
    ]
    run_plan(plan, context)
    print_plan_results(plan)
    return plan[0]["result"]


# #####################################################
# plan creators
# #####################################################


def make_initialize_plan(
    dialect: ShellDialect, root_prefix, home=None, environ=None, reverse=False
):
    """
    Creates a plan for initializing (or with reverse=True, deinitializing) the hook of a
    single shell dialect for the installation at ``root_prefix``.
    """
    home = expanduser("~") if home is None else home
    environ = os.environ if environ is None else environ
    plan = []

    if dialect is ShellDialect.TCSH and not reverse:
        plan.append(
            {
                "function": install_mamba_csh.__name__,
                "kwargs": {
                    "target_path": join(root_prefix, "etc", "profile.d", "mamba.csh"),
                    "root_prefix": root_prefix,
                },
            }
        )

    if dialect.uses_registry:
        if not reverse:
            plan.append(
                {
                    "function": install_mamba_hook_bat.__name__,
                    "kwargs": {
                        "target_path": join(root_prefix, "condabin", "mamba_hook.bat"),
                        "root_prefix": root_prefix,
                    },
                }
            )
            plan.append(
                {
                    "function": install_mamba_bat.__name__,
                    "kwargs": {
                        "target_path": join(root_prefix, "condabin", "mamba.bat"),
                    },
                }
            )
        plan.append(
            {
                "function": init_cmd_exe_registry.__name__,
                "kwargs": {
                    "target_path": CMD_EXE_AUTORUN_KEY,
                    "root_prefix": root_prefix,
                    "reverse": reverse,
                },
            }
        )
    else:
        for target_path in dialect.rc_paths(home, environ):
            plan.append(
                {
                    "function": init_rc_file.__name__,
                    "kwargs": {
                        "target_path": target_path,
                        "shell": dialect.value,
                        "root_prefix": root_prefix,
                        "reverse": reverse,
                    },
                }
            )

    plan.append(
        {
            "function": update_manifest.__name__,
            "kwargs": {
                "target_path": _manifest_path(home),
                "shell": dialect.value,
                "root_prefix": root_prefix,
                "rc_paths": list(dialect.rc_targets(home, environ)),
                "reverse": reverse,
            },
        }
    )
    return plan


# #####################################################
# plan runners
# #####################################################


def run_plan(plan, context: Context):
    """Execute every step of ``plan`` in order, storing each step's ``result``.

    A permission problem on a step makes that step NEEDS_SUDO and the plan carries on;
    an rc file that cannot be written is fatal.
    """
    for step in plan:
        previous_result = step.get("result", None)
        if previous_result in (Result.MODIFIED, Result.NO_CHANGE):
            continue
        try:
            result = globals()[step["function"]](context=context, **step["kwargs"])
        except RcFileUnwritableError:
            raise
        except OSError as e:
            log.info("%s: %r", step["function"], e, exc_info=True)
            result = Result.NEEDS_SUDO
        step["result"] = result


def print_plan_results(plan, stream=None):
    if not stream:
        stream = sys.stderr
    for step in plan:
        print(
            "%s\n  %s\n" % (step["kwargs"]["target_path"], step.get("result")),
            file=stream,
        )

    changed = any(step.get("result") == Result.MODIFIED for step in plan)
    if changed:
        print(
            "\n==> For changes to take effect, close and re-open your current shell. <==\n",
            file=stream,
        )
    else:
        print("No action taken.", file=stream)


# #####################################################
# individual operations
# #####################################################


def init_rc_file(target_path, shell, root_prefix, context: Context, reverse=False):
    dialect = ShellDialect.resolve(shell)
    if reverse and not exists(target_path):
        # nothing to remove
        return Result.NO_CHANGE

    rc_original_content = _read_rc_file(target_path)
    if reverse:
        rc_content = remove_managed_block(rc_original_content)
    else:
        block = make_managed_block(rc_bootstrap(dialect, context.exe, root_prefix))
        rc_content = add_managed_block(rc_original_content, block)

    return _write_if_changed(target_path, rc_original_content, rc_content, context)


def install_mamba_csh(target_path, root_prefix, context: Context):
    # the alias defined by mamba.csh sources this file again on every call
    activator = CshActivator(context, root_prefix=root_prefix)
    content = activator._hook_preamble(script_path=target_path)
    content += activator.hook_source_path.read_text(encoding="utf-8")
    return _install_file(target_path, content, context)


def install_mamba_hook_bat(target_path, root_prefix, context: Context):
    activator = get_activator(ShellDialect.CMD_EXE, context, root_prefix=root_prefix)
    return _install_file(target_path, _crlf(activator.hook()), context)


def install_mamba_bat(target_path, context: Context):
    source = Path(MAMBASHELL_PACKAGE_ROOT, "shell", "condabin", "mamba.bat")
    content = _crlf(source.read_text(encoding="utf-8"))
    return _install_file(target_path, content, context)


def init_cmd_exe_registry(target_path, root_prefix, context: Context, reverse=False):
    # HKEY_CURRENT_USER\Software\Microsoft\Command Processor\AutoRun
    prev_value, value_type = _read_windows_registry(target_path)
    if prev_value is None:
        prev_value = ""
        value_type = winreg.REG_EXPAND_SZ if on_win else None

    hook_path = '"{}"'.format(join(root_prefix, "condabin", "mamba_hook.bat"))
    new_hook = f"if exist {hook_path} {hook_path}"
    if reverse:
        # other programs may share the value; keep every part that is not ours
        autorun_parts = prev_value.split("&")
        autorun_parts = [
            part.strip()
            for part in autorun_parts
            if part.strip() and not CMD_EXE_HOOK_REGEX.search(part)
        ]
        new_value = " & ".join(autorun_parts)
    else:
        replace_str = "__MAMBA_REPLACE_ME_123__"
        new_value = CMD_EXE_HOOK_REGEX.sub(replace_str, prev_value)

        # fold repeats of 'HOOK & HOOK'
        new_value_2 = new_value.replace(replace_str + " & " + replace_str, replace_str)
        while new_value_2 != new_value:
            new_value = new_value_2
            new_value_2 = new_value.replace(
                replace_str + " & " + replace_str, replace_str
            )
        new_value = new_value_2.replace(replace_str, new_hook)
        if new_hook not in new_value:
            if new_value:
                new_value += " & " + new_hook
            else:
                new_value = new_hook

    if prev_value != new_value:
        if context.verbosity:
            print("\n", file=sys.stderr)
            print(target_path, file=sys.stderr)
            print(make_diff(prev_value, new_value), file=sys.stderr)
        if not context.dry_run:
            _write_windows_registry(target_path, new_value, value_type)
        return Result.MODIFIED
    else:
        return Result.NO_CHANGE


def init_long_path(target_path, context: Context):
    win_ver, _, win_build = _windows_version()
    # win10, build 14352 was the first preview release that supported this
    if win_ver >= 10 and win_build >= 14352:
        prev_value, value_type = _read_windows_registry(target_path)
        if str(prev_value) != "1":
            if context.verbosity:
                print("\n", file=sys.stderr)
                print(target_path, file=sys.stderr)
                print(make_diff(str(prev_value), "1"), file=sys.stderr)
            if not context.dry_run:
                _write_windows_registry(target_path, 1, winreg.REG_DWORD)
            return Result.MODIFIED
        else:
            return Result.NO_CHANGE
    else:
        log.info(
            "Not setting long path registry key; Windows version must be at least 10 "
            'with the fall 2016 "Anniversary update" or newer.'
        )
        return Result.NO_CHANGE


def update_manifest(
    target_path, shell, root_prefix, rc_paths, context: Context, reverse=False
):
    """Record (or with reverse=True, forget) that ``shell`` was initialized."""
    manifest = load_manifest(target_path)
    new_manifest = {key: dict(value) for key, value in manifest.items()}
    shells = new_manifest.setdefault(root_prefix, {})
    if reverse:
        shells.pop(shell, None)
        if not shells:
            del new_manifest[root_prefix]
    else:
        shells[shell] = list(rc_paths)

    if new_manifest == manifest:
        return Result.NO_CHANGE
    if not context.dry_run:
        save_manifest(target_path, new_manifest)
    return Result.MODIFIED


# #####################################################
# helper functions
# #####################################################


def rc_bootstrap(dialect: ShellDialect, exe, root_prefix) -> str:
    """The lines placed inside the managed block of ``dialect``'s startup file."""
    if dialect.is_posix_family:
        exe = native_path_to_unix(exe)
        root_prefix = native_path_to_unix(root_prefix)
        return (
            f"export MAMBA_EXE='{exe}';\n"
            f"export MAMBA_ROOT_PREFIX='{root_prefix}';\n"
            f'__mamba_setup="$("$MAMBA_EXE" shell hook -s {dialect} '
            '-r "$MAMBA_ROOT_PREFIX" 2> /dev/null)"\n'
            "if [ $? -eq 0 ]; then\n"
            '    eval "$__mamba_setup"\n'
            "else\n"
            '    alias mamba="$MAMBA_EXE"  # Fallback on help from mamba activate\n'
            "fi\n"
            "unset __mamba_setup\n"
        )
    elif dialect is ShellDialect.FISH:
        exe = native_path_to_unix(exe)
        root_prefix = native_path_to_unix(root_prefix)
        return (
            f'set -gx MAMBA_EXE "{exe}"\n'
            f'set -gx MAMBA_ROOT_PREFIX "{root_prefix}"\n'
            '"$MAMBA_EXE" shell hook -s fish -r $MAMBA_ROOT_PREFIX | source\n'
        )
    elif dialect is ShellDialect.TCSH:
        exe = native_path_to_unix(exe)
        root_prefix = native_path_to_unix(root_prefix)
        return (
            f'setenv MAMBA_EXE "{exe}";\n'
            f'setenv MAMBA_ROOT_PREFIX "{root_prefix}";\n'
            f'source "{root_prefix}/etc/profile.d/mamba.csh";\n'
        )
    elif dialect is ShellDialect.XONSH:
        return (
            f'$MAMBA_EXE = "{exe}"\n'
            f'$MAMBA_ROOT_PREFIX = "{root_prefix}"\n'
            "execx($($MAMBA_EXE shell hook -s xonsh -r $MAMBA_ROOT_PREFIX), "
            "'exec', __xonsh__.ctx, filename='mamba')\n"
        )
    elif dialect is ShellDialect.POWERSHELL:
        return (
            f'$Env:MAMBA_EXE = "{exe}"\n'
            f'$Env:MAMBA_ROOT_PREFIX = "{root_prefix}"\n'
            "(& $Env:MAMBA_EXE shell hook -s powershell -r $Env:MAMBA_ROOT_PREFIX) "
            "| Out-String | Invoke-Expression\n"
        )
    raise NotImplementedError(dialect)


def make_managed_block(content: str) -> str:
    return "\n".join(
        (INITIALIZE_BEGIN, INITIALIZE_NOTICE, content.rstrip("\n"), INITIALIZE_END, "")
    )


def add_managed_block(rc_content: str, block: str) -> str:
    """Put ``block`` into ``rc_content``, replacing a block already there.

    A new block is separated from existing content by a newline.  The block takes the
    line ending of ``rc_content``.
    """
    newline = _newline(rc_content)
    if newline != "\n":
        block = _crlf(block)
    if MANAGED_BLOCK_REGEX.search(rc_content):
        return MANAGED_BLOCK_REGEX.sub(lambda _: block, rc_content, count=1)
    if not rc_content:
        return block
    return rc_content + newline + block


def remove_managed_block(rc_content: str) -> str:
    """Remove the managed block together with the blank line ``add_managed_block`` put
    before it, giving back the content as it was before ``init``.
    """
    match = MANAGED_BLOCK_REGEX.search(rc_content)
    if not match:
        return rc_content
    newline = _newline(match.group())
    head, tail = rc_content[: match.start()], rc_content[match.end() :]
    if not tail:
        if head.endswith(newline):
            head = head[: -len(newline)]
    elif head == newline or head.endswith(newline * 2):
        head = head[: -len(newline)]
    return head + tail


def make_diff(old, new):
    return "\n".join(
        unified_diff(old.splitlines(), new.splitlines(), lineterm="", n=3)
    )


def load_manifest(path) -> dict:
    try:
        data = json_load(read_file(path) or "{}")
    except (OSError, ValueError) as e:
        log.debug("ignoring unreadable manifest %s: %r", path, e)
        return {}
    if not isinstance(data, dict):
        log.debug("ignoring malformed manifest %s", path)
        return {}
    return data


def save_manifest(path, manifest) -> None:
    write_file_atomic(path, json_dump(manifest) + "\n", mkdir=True)


def _read_rc_file(target_path) -> str:
    try:
        return read_file(target_path)
    except OSError as e:
        raise RcFileUnwritableError(target_path, e.strerror or str(e), e.errno) from e


def _write_if_changed(target_path, original_content, content, context: Context):
    if content == original_content:
        return Result.NO_CHANGE

    if context.verbosity:
        print("\n", file=sys.stderr)
        print(target_path, file=sys.stderr)
        print(make_diff(original_content, content), file=sys.stderr)

    if not context.dry_run:
        try:
            write_file_atomic(target_path, content, mkdir=True)
        except OSError as e:
            raise RcFileUnwritableError(
                target_path, e.strerror or str(e), e.errno
            ) from e
    return Result.MODIFIED


def _install_file(target_path, file_content, context: Context):
    try:
        original_content = read_file(target_path)
    except OSError:
        original_content = None

    if original_content == file_content:
        return Result.NO_CHANGE

    if context.verbosity:
        print("\n", file=sys.stderr)
        print(target_path, file=sys.stderr)
        print(make_diff(original_content or "", file_content), file=sys.stderr)
    if not context.dry_run:
        write_file_atomic(target_path, file_content, mkdir=True)
    return Result.MODIFIED


def _crlf(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\n", "\r\n")


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _normalize_root(root_prefix) -> str:
    return abspath(expand(root_prefix))


def _manifest_path(home=None) -> str:
    if home is None:
        return expand(INIT_MANIFEST_PATH)
    return join(home, *Path(INIT_MANIFEST_PATH).parts[1:])


def _windows_version():  # pragma: no cover
    version = sys.getwindowsversion()
    return version.major, version.minor, version.build


def _read_windows_registry(target_path):  # pragma: no cover
    # HKEY_LOCAL_MACHINE\SYSTEM\CurrentControlSet\Control\FileSystem\LongPathsEnabled
    # HKEY_CURRENT_USER\Software\Microsoft\Command Processor\AutoRun
    # returns value_value, value_type  -or-  None, None if target does not exist
    main_key, the_rest = target_path.split("\\", 1)
    subkey_str, value_name = the_rest.rsplit("\\", 1)
    main_key = getattr(winreg, main_key)

    try:
        key = winreg.OpenKey(main_key, subkey_str, 0, winreg.KEY_READ)
    except OSError as e:
        if e.errno != ENOENT:
            raise
        return None, None

    try:
        value_tuple = winreg.QueryValueEx(key, value_name)
        value_value = value_tuple[0]
        if isinstance(value_value, str):
            value_value = value_value.strip()
        value_type = value_tuple[1]
        return value_value, value_type
    except FileNotFoundError:
        return None, None
    finally:
        winreg.CloseKey(key)


def _write_windows_registry(target_path, value_value, value_type):  # pragma: no cover
    main_key, the_rest = target_path.split("\\", 1)
    subkey_str, value_name = the_rest.rsplit("\\", 1)
    main_key = getattr(winreg, main_key)
    try:
        key = winreg.OpenKey(main_key, subkey_str, 0, winreg.KEY_WRITE)
    except OSError as e:
        if e.errno != ENOENT:
            raise
        key = winreg.CreateKey(main_key, subkey_str)
    try:
        winreg.SetValueEx(key, value_name, 0, value_type, value_value)
    finally:
        winreg.CloseKey(key)
