# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import os
import stat

import pytest

from mambashell.common.compat import on_win
from mambashell.gateways.disk import mkdir_p
from mambashell.gateways.disk import update
from mambashell.gateways.disk.update import read_file, write_file_atomic


def test_read_file(tmp_path):
    assert read_file(str(tmp_path / "missing")) == ""
    path = tmp_path / "crlf.bat"
    path.write_bytes(b"@ECHO OFF\r\nREM \xc3\xa9\r\n")
    assert read_file(str(path)) == "@ECHO OFF\r\nREM é\r\n"


def test_write_file_atomic_creates_and_replaces(tmp_path):
    path = tmp_path / "rc"
    write_file_atomic(str(path), "one\n")
    assert path.read_text() == "one\n"
    write_file_atomic(str(path), "two\r\n")
    assert path.read_bytes() == b"two\r\n"
    assert os.listdir(tmp_path) == ["rc"]


def test_write_file_atomic_mkdir(tmp_path):
    path = tmp_path / "a" / "b" / "config.fish"
    with pytest.raises(FileNotFoundError):
        write_file_atomic(str(path), "x")
    write_file_atomic(str(path), "x", mkdir=True)
    assert path.read_text() == "x"


@pytest.mark.skipif(on_win, reason="unix-specific test")
def test_write_file_atomic_keeps_mode(tmp_path):
    path = tmp_path / "rc"
    path.write_text("old")
    path.chmod(0o640)
    write_file_atomic(str(path), "new")
    assert stat.S_IMODE(path.stat().st_mode) == 0o640


def test_write_file_atomic_failure_leaves_original(tmp_path, mocker):
    path = tmp_path / "rc"
    path.write_text("original")
    mocker.patch.object(update.os, "replace", side_effect=PermissionError(13, "no"))
    with pytest.raises(PermissionError):
        write_file_atomic(str(path), "new")
    assert path.read_text() == "original"
    assert os.listdir(tmp_path) == ["rc"]


def test_mkdir_p(tmp_path):
    path = str(tmp_path / "x" / "y")
    assert mkdir_p(path) == path
    assert mkdir_p(path) == path
    (tmp_path / "file").write_text("")
    with pytest.raises(OSError):
        mkdir_p(str(tmp_path / "file"))


def test_read_and_write_keep_undecodable_bytes(tmp_path):
    path = tmp_path / "rc"
    path.write_bytes(b"# caf\xe9\r\n")
    content = read_file(str(path))
    write_file_atomic(str(path), content + "# more\r\n")
    assert path.read_bytes() == b"# caf\xe9\r\n# more\r\n"


@pytest.mark.skipif(on_win, reason="unix-specific test")
def test_write_file_atomic_through_symlink(tmp_path):
    target = tmp_path / "real"
    target.write_text("old")
    link = tmp_path / "link"
    link.symlink_to(target)
    write_file_atomic(str(link), "new")
    assert link.is_symlink()
    assert target.read_text() == "new"
    assert sorted(os.listdir(tmp_path)) == ["link", "real"]
