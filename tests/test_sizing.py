from __future__ import annotations

import os
from pathlib import Path

import pytest

from sizing import logical_size


def _write_sized(path: Path, size: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0" * size)


@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    _write_sized(tmp_path / "fileA", 100)
    _write_sized(tmp_path / "Library" / "fileB", 200)
    _write_sized(tmp_path / "Projects" / "Library" / "fileC", 300)
    return tmp_path


def test_total_without_exclude(tree: Path) -> None:
    assert logical_size(str(tree)) == (600, None)


def test_exclude_only_the_given_subtree(tree: Path) -> None:
    total, error = logical_size(str(tree), str(tree / "Library"))
    assert error is None
    assert total == 400


def test_exclude_equals_difference(tree: Path) -> None:
    sub = tree / "Projects"
    whole, _ = logical_size(str(tree), "")
    part, _ = logical_size(str(sub), "")
    excluded, _ = logical_size(str(tree), str(sub))
    assert excluded == whole - part


def test_exclude_root_yields_zero(tree: Path) -> None:
    assert logical_size(str(tree), str(tree)) == (0, None)


def test_exclude_outside_root_is_ignored(tree: Path, tmp_path_factory: pytest.TempPathFactory) -> None:
    elsewhere = tmp_path_factory.mktemp("elsewhere")
    assert logical_size(str(tree), str(elsewhere)) == (600, None)


def test_symlinks_are_not_followed(tree: Path) -> None:
    os.symlink(tree / "Library", tree / "link-to-library")
    os.symlink(tree / "fileA", tree / "link-to-file")
    assert logical_size(str(tree))[0] == 600


def test_missing_root_reports_error(tmp_path: Path) -> None:
    total, error = logical_size(str(tmp_path / "missing"))
    assert total == 0
    assert isinstance(error, FileNotFoundError)


def test_regular_file_root(tmp_path: Path) -> None:
    _write_sized(tmp_path / "single", 42)
    assert logical_size(str(tmp_path / "single")) == (42, None)


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs non-root POSIX permissions")
def test_unreadable_subtree_is_skipped_and_reported(tree: Path) -> None:
    locked = tree / "Projects"
    locked.chmod(0o000)
    try:
        total, error = logical_size(str(tree))
    finally:
        locked.chmod(0o755)
    assert total == 300
    assert isinstance(error, PermissionError)
