from __future__ import annotations

import errno
import os
from pathlib import Path

import pytest

from deletion import (
    DeletionResult,
    MultiDeleteError,
    ProgressCounter,
    delete_path,
    delete_paths,
)


def _write(path: Path, size: int = 1) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)


class RecordingCounter(ProgressCounter):
    def __init__(self) -> None:
        super().__init__()
        self.history: list[int] = []

    def store(self, value: int) -> None:
        self.history.append(value)
        super().store(value)


@pytest.fixture()
def locked_unlink(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make every file named locked.bin impossible to remove."""
    real_unlink = os.unlink

    def guarded(path, *args, **kwargs):
        if os.fspath(path).endswith("locked.bin"):
            raise PermissionError(errno.EACCES, "Permission denied", os.fspath(path))
        return real_unlink(path, *args, **kwargs)

    monkeypatch.setattr(os, "unlink", guarded)


def test_parent_and_child_selected_together(tmp_path: Path) -> None:
    parent = tmp_path / "parent"
    child = parent / "child"
    _write(parent / "fileA", 100)
    _write(child / "fileC", 50)

    counter = ProgressCounter()
    result = delete_paths([str(parent), str(child)], counter)

    assert result.error is None
    assert result.files_deleted == 2
    assert counter.load() == 2
    assert not parent.exists()
    assert not child.exists()


def test_missing_path_is_success(tmp_path: Path) -> None:
    result = delete_path(str(tmp_path / "missing"))
    assert result == DeletionResult(files_deleted=0, error=None)
    assert result.ok

    batch = delete_paths([str(tmp_path / "missing"), str(tmp_path / "also-missing")])
    assert batch.files_deleted == 0
    assert batch.error is None


def test_rerun_is_noop(tmp_path: Path) -> None:
    target = tmp_path / "node_modules"
    _write(target / "a" / "index.js")
    _write(target / "b" / "index.js")
    selection = [str(target), str(target / "a")]

    first = delete_paths(selection)
    assert first.files_deleted == 2
    assert first.ok

    second = delete_paths(selection)
    assert second.files_deleted == 0
    assert second.error is None


def test_counter_is_running_total_across_batch(tmp_path: Path) -> None:
    for name in ("one", "two", "three"):
        for i in range(3):
            _write(tmp_path / name / f"f{i}")
    _write(tmp_path / "two" / "deep" / "nested" / "f")

    counter = RecordingCounter()
    result = delete_paths([str(tmp_path / n) for n in ("one", "two", "three")], counter)

    assert result.files_deleted == 10
    assert counter.history == sorted(counter.history)
    assert counter.history[-1] == 10


def test_single_file_and_symlink_roots(tmp_path: Path) -> None:
    _write(tmp_path / "target" / "keep.txt")
    os.symlink(tmp_path / "target", tmp_path / "link")
    _write(tmp_path / "loose.log")

    assert delete_path(str(tmp_path / "loose.log")).files_deleted == 1
    assert delete_path(str(tmp_path / "link")).files_deleted == 1

    assert not os.path.lexists(tmp_path / "link")
    assert (tmp_path / "target" / "keep.txt").exists()


def test_symlink_inside_tree_is_removed_not_followed(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    _write(outside / "precious.txt")
    tree = tmp_path / ".venv"
    _write(tree / "bin" / "python")
    os.symlink(outside, tree / "lib-link")

    result = delete_path(str(tree))

    assert result.ok
    assert not tree.exists()
    assert (outside / "precious.txt").exists()


def test_empty_directories_are_swept_without_counting(tmp_path: Path) -> None:
    tree = tmp_path / "build"
    (tree / "a" / "b" / "c").mkdir(parents=True)

    result = delete_path(str(tree))

    assert result.files_deleted == 0
    assert result.ok
    assert not tree.exists()


def test_partial_failure_keeps_count(tmp_path: Path, locked_unlink: None) -> None:
    good = tmp_path / "dist"
    _write(good / "bundle.js")
    _write(good / "bundle.js.map")
    restricted = tmp_path / "restricted" / "target"
    _write(restricted / "locked.bin")

    result = delete_paths([str(good), str(restricted)])

    assert result.files_deleted == 2
    assert result.partial
    assert isinstance(result.error, MultiDeleteError)
    assert "Permission denied" in str(result.error)
    assert not good.exists()
    assert (restricted / "locked.bin").exists()


def test_nested_selection_reports_child_failure_once(tmp_path: Path, locked_unlink: None) -> None:
    parent = tmp_path / "node_modules"
    child = parent / "esbuild"
    _write(parent / ".package-lock.json")
    _write(child / "package.json")
    _write(child / "locked.bin")

    result = delete_paths([str(parent), str(child)])

    assert result.files_deleted == 2
    assert isinstance(result.error, MultiDeleteError)
    assert result.error.total == 1
    assert len(result.error.messages) == 1
    assert "(and" not in str(result.error)
    assert str(child / "locked.bin") in str(result.error)
    assert sorted(p.name for p in parent.rglob("*") if p.is_file()) == ["locked.bin"]


def test_hidden_count_matches_failed_paths(tmp_path: Path, locked_unlink: None) -> None:
    targets = []
    for name in ("a", "b", "c", "d", "e"):
        target = tmp_path / name / "build"
        _write(target / "locked.bin")
        targets.append(str(target))

    result = delete_paths(targets)

    assert isinstance(result.error, MultiDeleteError)
    assert result.error.total == 5
    assert str(result.error).endswith("(and 2 more)")
    assert str(result.error).count("; ") == 2


def test_walk_continues_past_failures(tmp_path: Path, locked_unlink: None) -> None:
    tree = tmp_path / "coverage"
    _write(tree / "locked.bin")
    _write(tree / "lcov.info")
    _write(tree / "html" / "index.html")

    counter = ProgressCounter()
    result = delete_path(str(tree), counter)

    assert result.files_deleted == 2
    assert isinstance(result.error, PermissionError)
    assert counter.load() == 2
    assert sorted(p.name for p in tree.rglob("*") if p.is_file()) == ["locked.bin"]


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs non-root POSIX permissions")
def test_permission_restricted_directory(tmp_path: Path) -> None:
    good = tmp_path / "out"
    _write(good / "Main.class")
    restricted = tmp_path / "locked" / "vendor"
    _write(restricted / "gem.rb")
    restricted.chmod(0o500)

    try:
        result = delete_paths([str(good), str(restricted)])
    finally:
        restricted.chmod(0o755)

    assert result.files_deleted == 1
    assert result.error is not None
    assert (restricted / "gem.rb").exists()


def test_multi_delete_error_is_bounded() -> None:
    messages = [f"failure {i}" for i in range(25)]
    error = MultiDeleteError(messages)

    assert len(error.messages) == 10
    assert error.total == 25
    assert str(error) == "failure 0; failure 1; failure 2 (and 22 more)"


def test_multi_delete_error_single_message() -> None:
    assert str(MultiDeleteError(["only one"])) == "only one"


def test_duplicate_and_empty_entries_are_ignored(tmp_path: Path) -> None:
    target = tmp_path / ".tox"
    _write(target / "log.txt")

    result = delete_paths(["", str(target), str(target) + os.sep, str(target)])

    assert result.files_deleted == 1
    assert result.ok
