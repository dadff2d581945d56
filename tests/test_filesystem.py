import argparse
import logging
import os
import stat
from pathlib import Path

import pytest

from degit.errors import (
    DestinationNotAccessible,
    DirectoryNotEmpty,
    NotADirectory,
    ReadOnlyDestination,
)
from degit.utils.filesystem import (
    check_destination,
    ensure_dir,
    is_read_only,
    is_valid_destination,
    nearest_existing_ancestor,
    resolve_lexically,
    setup_logging,
)


@pytest.fixture
def read_only_dir(tmp_path):
    d = tmp_path / "locked"
    d.mkdir()
    d.chmod(stat.S_IRUSR | stat.S_IXUSR | stat.S_IRGRP | stat.S_IXGRP)
    yield d
    d.chmod(0o755)


# --- check_destination --- #

def test_existing_empty_directory_is_accepted(tmp_path):
    assert check_destination(tmp_path) == tmp_path


def test_existing_non_empty_directory_is_rejected(tmp_path):
    (tmp_path / "file.txt").write_text("x")
    with pytest.raises(DirectoryNotEmpty, match="not empty"):
        check_destination(tmp_path)


def test_existing_file_is_rejected(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("x")
    with pytest.raises(NotADirectory, match="not a directory"):
        check_destination(f)


def test_missing_path_under_writable_ancestor_is_accepted(tmp_path):
    dest = tmp_path / "a" / "b" / "c"
    assert check_destination(dest) == dest
    assert not dest.exists()


def test_missing_path_under_read_only_ancestor_is_rejected(read_only_dir):
    with pytest.raises(ReadOnlyDestination, match="read-only") as excinfo:
        check_destination(read_only_dir / "new" / "project")
    assert excinfo.value.path == read_only_dir


def test_relative_destination_is_resolved_against_cwd(tmp_path, monkeypatch):
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    assert check_destination("../out") == Path.cwd().parent / "out"


def test_relative_destination_under_read_only_cwd(read_only_dir, monkeypatch):
    monkeypatch.chdir(read_only_dir)
    with pytest.raises(ReadOnlyDestination):
        check_destination("project")


# --- resolve_lexically --- #

@pytest.mark.parametrize("relative, expected_parts", [
    ("out", ("work", "out")),
    ("./out", ("work", "out")),
    ("../out", ("out",)),
    ("a/../b", ("work", "b")),
    ("a/./b/..", ("work", "a")),
])
def test_resolve_lexically(tmp_path, monkeypatch, relative, expected_parts):
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    assert resolve_lexically(relative) == Path.cwd().parent.joinpath(*expected_parts)


def test_resolve_lexically_does_not_follow_symlinks(tmp_path, monkeypatch):
    real = tmp_path / "real"
    real.mkdir()
    (tmp_path / "alias").symlink_to(real)
    monkeypatch.chdir(tmp_path)
    assert resolve_lexically("alias/out") == Path.cwd() / "alias" / "out"


def test_resolve_lexically_keeps_absolute_paths(tmp_path):
    assert resolve_lexically(tmp_path / "x") == tmp_path / "x"


# --- helpers --- #

def test_nearest_existing_ancestor(tmp_path):
    assert nearest_existing_ancestor(tmp_path / "a" / "b") == tmp_path
    assert nearest_existing_ancestor(tmp_path) == tmp_path


def test_is_read_only_uses_permission_bits(tmp_path, read_only_dir):
    assert is_read_only(read_only_dir)
    assert not is_read_only(tmp_path)


def test_ensure_dir_creates_parents(tmp_path):
    target = tmp_path / "x" / "y"
    ensure_dir(target)
    assert target.is_dir()
    ensure_dir(target)  # idempotent


def test_is_valid_destination_hook(tmp_path):
    assert is_valid_destination(str(tmp_path / "new")) == str(tmp_path / "new")
    (tmp_path / "f").write_text("x")
    with pytest.raises(argparse.ArgumentTypeError, match="not empty"):
        is_valid_destination(str(tmp_path))


@pytest.mark.parametrize("verbosity, level", [
    (0, logging.WARNING),
    (1, logging.INFO),
    (2, logging.DEBUG),
    (5, logging.DEBUG),
])
def test_setup_logging_levels(monkeypatch, verbosity, level):
    captured = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: captured.update(kw))
    setup_logging(verbosity)
    assert captured["level"] == level


# --- unreadable destinations --- #

def _permission_denied(*args, **kwargs):
    raise PermissionError(13, "Permission denied")


def test_unlistable_directory_is_not_accessible(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "iterdir", _permission_denied)
    with pytest.raises(DestinationNotAccessible, match="Could not read directory") as excinfo:
        check_destination(tmp_path)
    assert isinstance(excinfo.value.__cause__, PermissionError)


def test_unreadable_ancestor_is_not_accessible(tmp_path, monkeypatch):
    monkeypatch.setattr("degit.utils.filesystem.is_read_only", _permission_denied)
    with pytest.raises(DestinationNotAccessible):
        check_destination(tmp_path / "new")


@pytest.mark.skipif(os.geteuid() == 0, reason="root can list any directory")
def test_real_unreadable_directory_is_not_accessible(tmp_path):
    locked = tmp_path / "locked"
    locked.mkdir()
    locked.chmod(stat.S_IWUSR | stat.S_IXUSR)
    try:
        with pytest.raises(DestinationNotAccessible):
            check_destination(locked)
    finally:
        locked.chmod(0o755)


def test_is_valid_destination_hook_reports_unreadable_directory(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "iterdir", _permission_denied)
    with pytest.raises(argparse.ArgumentTypeError, match="Could not read directory"):
        is_valid_destination(str(tmp_path))
